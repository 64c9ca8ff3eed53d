"""Derived statistics. Never authoritative; always recomputable from records."""

from datetime import date

from pydantic import BaseModel


class DailyStats(BaseModel):
    """Check-ins for one venue-local calendar day."""

    date: date
    total_checked_in: int = 0
    general_checked_in: int = 0
    reserved_checked_in: int = 0


class TicketTotals(BaseModel):
    """All-time issued ticket counts for the staff dashboard."""

    total: int = 0
    used: int = 0
    unused: int = 0
    general: int = 0
    reserved: int = 0
    general_used: int = 0
    reserved_used: int = 0
    exchanged: int = 0


class OrderSummary(BaseModel):
    """Paid order totals."""

    paid_orders: int = 0
    revenue: int = 0
    tickets: int = 0
    general_tickets: int = 0
    reserved_tickets: int = 0
    discounted_tickets: int = 0
