"""
Ticket check-in.

Each ticket goes UNUSED -> USED exactly once. The transition is a single
conditional UPDATE keyed on `is_used = false` and a PAID order, so two door
stations scanning the same code concurrently get one success and one
rejection. When the UPDATE matches nothing, the current row is re-read and
the rejection reports that truth (not found, inadmissible, already used).

verify() runs the same decision read-only. It is a UI preview and never
proof of entry.
"""

import logging
from typing import Any

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.errors import (
    ConcurrencyConflictError,
    InadmissibleTicketError,
    InvalidInputError,
    NotFoundError,
    TicketAlreadyUsedError,
    TicketingError,
)
from core.event_bus import EventBus
from core.events import TicketCheckedIn
from core.models import (
    CheckInResult,
    OrderStatus,
    Ticket,
    TicketVerification,
    format_performance_label,
)
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

ADMISSIBLE = "OK"

_CHECK_IN_SQL = """
    UPDATE tickets t
    SET is_used = true, used_at = %s
    FROM orders o, performances p
    WHERE t.code = %s
      AND t.is_used = false
      AND o.id = t.order_id
      AND o.status = %s
      AND p.id = o.performance_id
    RETURNING t.*, o.customer_name, p.title, p.performance_date, p.performance_time
"""

_LOOKUP_SQL = """
    SELECT t.*, o.status AS order_status, o.customer_name,
           p.title, p.performance_date, p.performance_time
    FROM tickets t
    JOIN orders o ON o.id = t.order_id
    JOIN performances p ON p.id = o.performance_id
    WHERE t.code = %s
"""


def normalize_ticket_code(code: str) -> str:
    """Strip scanner whitespace. Ticket codes are case-sensitive."""
    return code.strip()


def _label(row: dict[str, Any]) -> str:
    return format_performance_label(row["title"], row["performance_date"], row["performance_time"])


class CheckInService:
    """Door admission: atomic check-in plus read-only verification."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger, event_bus: EventBus):
        self.postgres = postgres
        self.audit = audit
        self.event_bus = event_bus

    def _lookup(self, code: str) -> dict[str, Any] | None:
        return self.postgres.execute_single(_LOOKUP_SQL, (code,))

    def _rejection(self, code: str) -> TicketingError:
        """Explain a check-in that matched no row, from current state."""
        row = self._lookup(code)

        if row is None:
            return NotFoundError("Ticket not found")

        if row["order_status"] != OrderStatus.PAID.value:
            return InadmissibleTicketError(
                f"Ticket belongs to a {row['order_status']} order",
                order_status=row["order_status"],
            )

        if row["is_used"]:
            return TicketAlreadyUsedError(
                "Ticket already used",
                used_at=row["used_at"],
                customer_name=row["customer_name"],
            )

        return ConcurrencyConflictError(f"Check-in for ticket {row['id']} did not apply; retry the scan")

    def check_in(self, code: str) -> CheckInResult:
        """
        Admit a ticket. The only authoritative entry decision.

        Args:
            code: Decoded ticket code from a scanner or manual entry

        Returns:
            CheckInResult with the now-USED ticket and customer name

        Raises:
            InvalidInputError: Blank code
            NotFoundError: No ticket with this code
            InadmissibleTicketError: Ticket's order is not PAID
            TicketAlreadyUsedError: Ticket was checked in before (carries used_at, customer)
            ConcurrencyConflictError: Commit lost a race that current state doesn't explain
        """
        normalized = normalize_ticket_code(code)
        if not normalized:
            raise InvalidInputError("Ticket code is required")

        rows = self.postgres.execute_returning(
            _CHECK_IN_SQL,
            (now_utc(), normalized, OrderStatus.PAID.value),
        )

        if not rows:
            error = self._rejection(normalized)
            logger.warning(f"Check-in rejected ({error.code}): {error.message}")
            raise error

        row = rows[0]
        ticket = Ticket.model_validate(row)
        result = CheckInResult(
            ticket=ticket,
            customer_name=row["customer_name"],
            performance_label=_label(row),
        )

        self.audit.log_change(
            entity_type="ticket",
            entity_id=ticket.id,
            action=AuditAction.CHECK_IN,
            changes={
                "is_used": {"old": False, "new": True},
                "used_at": {"old": None, "new": ticket.used_at.isoformat()},
            },
        )
        logger.info(f"Ticket {ticket.id} checked in ({ticket.ticket_type.value})")
        self.event_bus.publish(TicketCheckedIn.create(ticket=ticket))
        return result

    def verify(self, code: str) -> TicketVerification:
        """
        Preview the check-in decision without changing anything.

        Raises:
            InvalidInputError: Blank code
        """
        normalized = normalize_ticket_code(code)
        if not normalized:
            raise InvalidInputError("Ticket code is required")

        row = self._lookup(normalized)
        if row is None:
            return TicketVerification(code=normalized, admissible=False, reason=NotFoundError.code)

        ticket = Ticket.model_validate(row)
        if row["order_status"] != OrderStatus.PAID.value:
            reason = InadmissibleTicketError.code
        elif ticket.is_used:
            reason = TicketAlreadyUsedError.code
        else:
            reason = ADMISSIBLE

        return TicketVerification(
            code=normalized,
            admissible=reason == ADMISSIBLE,
            reason=reason,
            ticket=ticket,
            customer_name=row["customer_name"],
            performance_label=_label(row),
            order_status=row["order_status"],
        )
