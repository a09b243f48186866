"""Address DTOs for the Service Layer.

- ``CreateAddressDTO``: input for address creation.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class CreateAddressDTO(BaseModel):
    """Immutable DTO for address creation requests.

    ``country`` is optional; the configured default country is applied
    when it is omitted.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    full_name: str
    phone: str
    address_line1: str
    address_line2: str = ""
    city: str
    state: str
    postal_code: str
    country: Optional[str] = None
    is_default: bool = False

    @field_validator(
        "full_name", "phone", "address_line1", "city", "state", "postal_code"
    )
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Field must not be blank.")
        return v
