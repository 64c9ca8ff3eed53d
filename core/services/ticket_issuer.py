"""
Ticket issuance.

Runs inside the payment confirmation transaction, so tickets exist if and
only if the order committed as PAID. Ticket codes are the whole check-in
credential and come from `secrets`, never from a sequence.
"""

import logging
import secrets
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core.errors import ConcurrencyConflictError
from core.models import Order, Ticket, TicketType
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# 16 random bytes -> 22 URL-safe characters (128 bits)
TICKET_CODE_BYTES = 16


def new_ticket_code() -> str:
    """Unpredictable, URL-safe ticket code."""
    return secrets.token_urlsafe(TICKET_CODE_BYTES)


class TicketIssuer:
    """Materializes one ticket per paid seat."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def issue(self, tx: Transaction, order: Order, redeemed_codes: list[str]) -> list[Ticket]:
        """
        Insert the tickets for a newly PAID order.

        The first `discounted_general_count` general tickets are marked
        exchanged, each linked to one redeemed code. Exchange flags never
        change admission.

        Args:
            tx: Open confirmation transaction
            order: Order being confirmed
            redeemed_codes: Codes redeemed for this order, one per discounted seat

        Returns:
            Issued tickets, general first

        Raises:
            ValueError: If redeemed codes don't match the discounted seat count
            ConcurrencyConflictError: If the order already has tickets
        """
        if len(redeemed_codes) != order.discounted_general_count:
            raise ValueError(
                f"Order {order.id} needs {order.discounted_general_count} redeemed codes, "
                f"got {len(redeemed_codes)}"
            )

        existing = tx.execute_single(
            "SELECT count(*) AS issued FROM tickets WHERE order_id = %s",
            (order.id,),
        )
        if existing and existing["issued"] > 0:
            raise ConcurrencyConflictError(f"Tickets already issued for order {order.id}")

        ids, codes, types, exchanged, exchange_codes = [], [], [], [], []
        for i in range(order.general_quantity):
            is_exchanged = i < order.discounted_general_count
            ids.append(uuid4())
            codes.append(new_ticket_code())
            types.append(TicketType.GENERAL.value)
            exchanged.append(is_exchanged)
            exchange_codes.append(redeemed_codes[i] if is_exchanged else None)

        for _ in range(order.reserved_quantity):
            ids.append(uuid4())
            codes.append(new_ticket_code())
            types.append(TicketType.RESERVED.value)
            exchanged.append(False)
            exchange_codes.append(None)

        rows = tx.execute_returning(
            """
            INSERT INTO tickets (id, code, order_id, ticket_type, is_exchanged, exchange_code, created_at)
            SELECT unnest(%s::uuid[]), unnest(%s::text[]), %s,
                   unnest(%s::text[]), unnest(%s::boolean[]), unnest(%s::text[]), %s
            RETURNING *
            """,
            (ids, codes, order.id, types, exchanged, exchange_codes, now_utc()),
        )

        tickets = [Ticket.model_validate(row) for row in rows]
        logger.info(
            f"Issued {len(tickets)} tickets for order {order.id} "
            f"({order.discounted_general_count} exchanged)"
        )
        return tickets

    def list_for_order(self, order_id: UUID) -> list[Ticket]:
        rows = self.postgres.execute(
            "SELECT * FROM tickets WHERE order_id = %s ORDER BY ticket_type, created_at, code",
            (order_id,),
        )
        return [Ticket.model_validate(row) for row in rows]
