"""Performance (one showing) domain models.

Prices are integer minor currency units. Remaining counts are the live
inventory pools; they only ever move through the payment confirmation path.
"""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


def format_performance_label(title: str, performance_date: date, performance_time: time) -> str:
    return f"{title} {performance_date.isoformat()} {performance_time.strftime('%H:%M')}"


class PerformanceCreate(BaseModel):
    """Data required to create a performance."""

    title: str = Field(..., min_length=1, max_length=200)
    performance_date: date
    performance_time: time
    doors_open_time: time | None = None
    venue_name: str = Field(..., min_length=1, max_length=200)
    venue_address: str | None = Field(None, max_length=500)
    general_price: int = Field(..., ge=0)
    reserved_price: int = Field(..., ge=0)
    general_capacity: int = Field(..., ge=0)
    reserved_capacity: int = Field(..., ge=0)
    on_sale: bool = False
    sale_starts_at: datetime | None = None
    sale_ends_at: datetime | None = None

    @model_validator(mode="after")
    def _sale_window_ordered(self) -> "PerformanceCreate":
        if self.sale_starts_at and self.sale_ends_at and self.sale_ends_at <= self.sale_starts_at:
            raise ValueError("sale_ends_at must be after sale_starts_at")
        return self


class Performance(BaseModel):
    """Full performance entity as stored."""

    id: UUID
    title: str
    performance_date: date
    performance_time: time
    doors_open_time: time | None
    venue_name: str
    venue_address: str | None
    general_price: int
    reserved_price: int
    general_capacity: int
    reserved_capacity: int
    general_remaining: int
    reserved_remaining: int
    on_sale: bool
    sale_starts_at: datetime | None
    sale_ends_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def label(self) -> str:
        """Display label, e.g. "easel live vol.2 2025-03-01 18:30"."""
        return format_performance_label(self.title, self.performance_date, self.performance_time)

    @property
    def is_sold_out(self) -> bool:
        return self.general_remaining == 0 and self.reserved_remaining == 0

    def is_in_sale_window(self, at: datetime) -> bool:
        """On sale and inside the optional sale window."""
        if not self.on_sale:
            return False
        if self.sale_starts_at is not None and at < self.sale_starts_at:
            return False
        if self.sale_ends_at is not None and at >= self.sale_ends_at:
            return False
        return True

    def is_purchasable(self, at: datetime) -> bool:
        """In the sale window with at least one seat left."""
        return self.is_in_sale_window(at) and not self.is_sold_out
