"""Address domain exceptions."""

from __future__ import annotations


class AddressNotFound(Exception):
    """The address does not exist, is inactive, or belongs to another user."""
