"""Core domain models."""

from core.models.performance import Performance, PerformanceCreate, format_performance_label
from core.models.exchange_code import (
    ExchangeCode, ExchangeCodeCreate, ExchangeCodeBatchCreate,
    Performer, PerformerCreate,
    CodeValidation, CodeValidationReason, normalize_code,
)
from core.models.order import (
    Order, OrderCreate, OrderStatus, OrderStatusUpdate, OrderQuote,
    PriceQuote, PricePreviewRequest, PaymentConfirmation, CheckoutStart,
    ALLOWED_TRANSITIONS, can_transition,
)
from core.models.ticket import Ticket, TicketType, CheckInRequest, CheckInResult, TicketVerification
from core.models.stats import DailyStats, TicketTotals, OrderSummary

__all__ = [
    # Performance
    "Performance", "PerformanceCreate", "format_performance_label",
    # ExchangeCode
    "ExchangeCode", "ExchangeCodeCreate", "ExchangeCodeBatchCreate",
    "Performer", "PerformerCreate",
    "CodeValidation", "CodeValidationReason", "normalize_code",
    # Order
    "Order", "OrderCreate", "OrderStatus", "OrderStatusUpdate", "OrderQuote",
    "PriceQuote", "PricePreviewRequest", "PaymentConfirmation", "CheckoutStart",
    "ALLOWED_TRANSITIONS", "can_transition",
    # Ticket
    "Ticket", "TicketType", "CheckInRequest", "CheckInResult", "TicketVerification",
    # Stats
    "DailyStats", "TicketTotals", "OrderSummary",
]
