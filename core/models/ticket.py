"""Ticket (one admittable seat) domain models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class TicketType(str, Enum):
    """Seat pool a ticket belongs to."""

    GENERAL = "general"
    RESERVED = "reserved"


class Ticket(BaseModel):
    """
    Full ticket entity as stored.

    `code` is the sole check-in credential. `is_exchanged` and
    `exchange_code` record how the seat was funded and never affect admission.
    """

    id: UUID
    code: str
    order_id: UUID
    ticket_type: TicketType
    is_exchanged: bool
    exchange_code: str | None
    is_used: bool
    used_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CheckInRequest(BaseModel):
    code: str


class CheckInResult(BaseModel):
    """Successful check-in, authoritative proof of entry."""

    ticket: Ticket
    customer_name: str
    performance_label: str | None = None


class TicketVerification(BaseModel):
    """
    Read-only preview of a check-in decision.

    Never proof of entry; only CheckInResult is.
    """

    code: str
    admissible: bool
    reason: str
    ticket: Ticket | None = None
    customer_name: str | None = None
    performance_label: str | None = None
    order_status: str | None = None
