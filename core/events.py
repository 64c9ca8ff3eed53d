"""
Domain events for ticketing.

Immutable event objects published after a state change has committed.
Services publish what happened; handlers (confirmation email, stats cache)
react without the publisher knowing who's listening.

Event Categories:
- OrderEvent: Order lifecycle (created, paid, cancelled, refunded)
- TicketEvent: Admission (checked in)

Events carry the full domain objects so handlers never re-read state that
may have moved on since the commit.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class TicketingEvent:
    """Base class for all ticketing domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# ORDER EVENTS
# =============================================================================


@dataclass(frozen=True)
class OrderEvent(TicketingEvent):
    """Events related to order lifecycle."""
    pass


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    """A PENDING order was created. No inventory was reserved."""
    order: Any = None  # Order; Any avoids a models import cycle

    @classmethod
    def create(cls, order: Any) -> "OrderCreated":
        return cls(order=order)


@dataclass(frozen=True)
class OrderPaid(OrderEvent):
    """Payment confirmed; inventory decremented, codes redeemed, tickets issued."""
    order: Any = None
    tickets: tuple = ()
    performance: Any = None

    @classmethod
    def create(cls, order: Any, tickets: list, performance: Any = None) -> "OrderPaid":
        return cls(order=order, tickets=tuple(tickets), performance=performance)


@dataclass(frozen=True)
class OrderCancelled(OrderEvent):
    """A PENDING order was cancelled (staff, timeout or expired provider session)."""
    order: Any = None

    @classmethod
    def create(cls, order: Any) -> "OrderCancelled":
        return cls(order=order)


@dataclass(frozen=True)
class OrderRefunded(OrderEvent):
    """A PAID order was refunded. Its tickets are no longer admissible."""
    order: Any = None

    @classmethod
    def create(cls, order: Any) -> "OrderRefunded":
        return cls(order=order)


# =============================================================================
# TICKET EVENTS
# =============================================================================


@dataclass(frozen=True)
class TicketEvent(TicketingEvent):
    """Events related to admission."""
    pass


@dataclass(frozen=True)
class TicketCheckedIn(TicketEvent):
    """A ticket moved UNUSED -> USED. Exactly one per ticket."""
    ticket: Any = None

    @classmethod
    def create(cls, ticket: Any) -> "TicketCheckedIn":
        return cls(ticket=ticket)
