"""
Typed domain errors for ordering and admission.

Every failure in the core resolves to one of these. Each carries a stable
machine-readable `code` (mirrored in api.base.ErrorCodes) and the HTTP status
the API layer answers with. None of them is fatal to the process.
"""

from datetime import datetime
from typing import Any
from uuid import UUID


class TicketingError(Exception):
    """Base class for ticketing domain errors."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any] | None:
        """Extra context for the caller, serialized into the error envelope."""
        return None


class InvalidInputError(TicketingError):
    """Bad input shape or range. User-correctable; message is shown verbatim."""

    code = "VALIDATION_ERROR"
    http_status = 400


class NotFoundError(TicketingError):
    """Referenced performance, order, ticket or code does not exist."""

    code = "NOT_FOUND"
    http_status = 404


class AlreadyExistsError(TicketingError):
    """A unique value (exchange code) is already taken."""

    code = "ALREADY_EXISTS"
    http_status = 409


class SoldOutError(TicketingError):
    """Not enough remaining inventory for the requested seats."""

    code = "SOLD_OUT"
    http_status = 409

    def __init__(self, message: str, ticket_type: str | None = None, remaining: int | None = None):
        self.ticket_type = ticket_type
        self.remaining = remaining
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any] | None:
        if self.ticket_type is None:
            return None
        return {"ticket_type": self.ticket_type, "remaining": self.remaining}


class InvalidExchangeCodeError(TicketingError):
    """One or more exchange codes cannot be redeemed."""

    code = "INVALID_EXCHANGE_CODE"
    http_status = 400

    def __init__(self, message: str, results: list | None = None):
        # CodeValidation models, one per offending code
        self.results = results or []
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any] | None:
        if not self.results:
            return None
        return {"codes": [r.model_dump(mode="json") for r in self.results]}


class InadmissibleTicketError(TicketingError):
    """Ticket exists but its order is not PAID (pending, cancelled, refunded)."""

    code = "TICKET_INADMISSIBLE"
    http_status = 409

    def __init__(self, message: str, order_status: str | None = None):
        self.order_status = order_status
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any] | None:
        return {"order_status": self.order_status}


class TicketAlreadyUsedError(TicketingError):
    """Ticket was already checked in. Carries what door staff need to resolve it."""

    code = "TICKET_ALREADY_USED"
    http_status = 409

    def __init__(self, message: str, used_at: datetime | None, customer_name: str | None):
        self.used_at = used_at
        self.customer_name = customer_name
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any] | None:
        return {
            "used_at": self.used_at.isoformat() if self.used_at else None,
            "customer_name": self.customer_name,
        }


class InvalidTransitionError(TicketingError):
    """Order status change not in the legal-transition table. Nothing was mutated."""

    code = "INVALID_STATUS_TRANSITION"
    http_status = 409

    def __init__(self, order_id: UUID, current: str, requested: str, message: str | None = None):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(message or f"Cannot transition order {order_id} from {current} to {requested}")

    @property
    def details(self) -> dict[str, Any] | None:
        return {"current": self.current, "requested": self.requested}


class ConcurrencyConflictError(TicketingError):
    """An atomic commit lost a race and current state could not explain why."""

    code = "CONCURRENCY_CONFLICT"
    http_status = 409


class PaymentProviderError(TicketingError):
    """Payment provider unreachable or rejected the request. Not retried here."""

    code = "PAYMENT_PROVIDER_ERROR"
    http_status = 502
