"""Order domain models.

All amounts are integer minor currency units. Unit prices are captured on
the order at creation and never follow later performance price changes.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


# Legal transitions. CANCELLED and REFUNDED are terminal.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Whether `current -> new` is in the legal-transition table."""
    return new in ALLOWED_TRANSITIONS[current]


class PriceQuote(BaseModel):
    """Authoritative price breakdown for a set of quantities."""

    general_quantity: int
    reserved_quantity: int
    general_unit_price: int
    reserved_unit_price: int
    discounted_general_count: int
    subtotal: int
    discount_amount: int
    total: int


class OrderCreate(BaseModel):
    """Checkout request from a customer."""

    performance_id: UUID
    general_quantity: int = Field(0, ge=0)
    reserved_quantity: int = Field(0, ge=0)
    exchange_codes: list[str] = Field(default_factory=list, max_length=50)
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_email: EmailStr
    customer_phone: str | None = Field(None, max_length=30)
    # Display hint from the client; never used for charging
    client_total: int | None = Field(None, ge=0)

    @field_validator("customer_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("customer_name must not be blank")
        return value

    @property
    def total_quantity(self) -> int:
        return self.general_quantity + self.reserved_quantity


class PricePreviewRequest(BaseModel):
    """Price preview: same inputs as checkout, nothing persisted."""

    performance_id: UUID
    general_quantity: int = Field(0, ge=0)
    reserved_quantity: int = Field(0, ge=0)
    exchange_codes: list[str] = Field(default_factory=list, max_length=50)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class PaymentConfirmation(BaseModel):
    """Manual reconciliation of a provider payment by staff."""

    provider_session_ref: str = Field(..., min_length=1)
    provider_payment_ref: str | None = None


class Order(BaseModel):
    """Full order entity as stored."""

    id: UUID
    performance_id: UUID
    status: OrderStatus
    general_quantity: int
    reserved_quantity: int
    general_unit_price: int
    reserved_unit_price: int
    exchange_codes: list[str]
    discounted_general_count: int
    discount_amount: int
    total_amount: int
    customer_name: str
    customer_email: str
    customer_phone: str | None
    provider_session_ref: str | None
    provider_payment_ref: str | None
    created_at: datetime
    paid_at: datetime | None
    cancelled_at: datetime | None
    refunded_at: datetime | None
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def total_quantity(self) -> int:
        return self.general_quantity + self.reserved_quantity

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID


class OrderQuote(BaseModel):
    """Result of createOrder."""

    order_id: UUID
    status: OrderStatus
    total: int
    discount_amount: int
    discounted_general_count: int
    # Valid codes beyond the general seat count; not applied, not consumed
    unused_exchange_codes: list[str] = Field(default_factory=list)


class CheckoutStart(BaseModel):
    """createOrder plus the provider session the customer is redirected to."""

    quote: OrderQuote
    session_ref: str
    checkout_url: str
