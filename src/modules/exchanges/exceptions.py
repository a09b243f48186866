"""Exchange domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class ExchangeValidationError(Exception):
    """Malformed request: self-exchange, bad filter, unknown address."""


class SellerNotEligible(Exception):
    """A party does not hold an approved seller registration."""


class ExchangeNotFound(Exception):
    """The requested exchange does not exist."""


class ExchangeForbidden(Exception):
    """The caller is not a party, or has the wrong role for the action."""


class InvalidExchangeStatus(Exception):
    """The action is not allowed from the exchange's current status."""


class ExchangeConflict(InvalidExchangeStatus):
    """Another caller changed the exchange between our read and our write."""


class ExchangeStorageError(Exception):
    """A read or write against the exchange store failed."""
