"""Read-only lookups into the user directory.

Local retailers live in ``django.contrib.auth``.  Auth0 retailers have no
local row; their display name is cached from the token claims the first
time they authenticate (see ``remember_display_name``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.cache import cache

EXTERNAL_NAME_TTL = 60 * 60 * 24 * 30


def _external_name_key(user_id: str) -> str:
    return f"user-directory:name:{user_id}"


def remember_display_name(user_id: str, name: str) -> None:
    if user_id and name:
        cache.set(_external_name_key(user_id), name, EXTERNAL_NAME_TTL)


class IUserDirectory(ABC):
    @abstractmethod
    def display_name(self, user_id: str) -> Optional[str]:
        """Human readable name for *user_id*, or ``None`` when unknown."""


class DjangoUserDirectory(IUserDirectory):
    """Full name, then email, then username for local users.

    Other ids resolve through the cached Auth0 claims, else ``None``.
    """

    def display_name(self, user_id: str) -> Optional[str]:
        if not str(user_id).isdigit():
            return cache.get(_external_name_key(str(user_id)))
        user = get_user_model().objects.filter(pk=int(user_id)).first()
        if user is None:
            return None
        full_name = user.get_full_name().strip()
        return full_name or user.email or user.get_username()
