"""Domain events for the Exchanges bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class ExchangeCreated(DomainEvent):
    """Raised when an exchange proposal is submitted."""

    actor_id: Optional[str] = None


@dataclass(frozen=True)
class ExchangeApproved(DomainEvent):
    """Raised when the receiver accepts a proposal."""

    actor_id: Optional[str] = None


@dataclass(frozen=True)
class ExchangeRejected(DomainEvent):
    """Raised when the receiver declines a proposal."""

    actor_id: Optional[str] = None


@dataclass(frozen=True)
class ExchangeCancelled(DomainEvent):
    """Raised when the initiator withdraws a proposal."""

    actor_id: Optional[str] = None


@dataclass(frozen=True)
class ExchangeShipped(DomainEvent):
    """Raised the first time either side ships its goods."""

    actor_id: Optional[str] = None


@dataclass(frozen=True)
class ExchangeCompleted(DomainEvent):
    """Raised when both sides have received their goods."""
