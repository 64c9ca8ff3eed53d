"""
Order service for the purchase lifecycle.

PENDING orders are created at checkout without reserving inventory. The
PENDING -> PAID transition happens only on payment-provider confirmation and
is one transaction: inventory decrement, exchange code redemption, status
change and ticket issuance commit together or not at all. Duplicate
confirmations for a PAID order are no-op successes.

    PENDING --payment confirmed--> PAID
    PENDING --staff cancel / timeout--> CANCELLED
    PAID    --staff refund--> REFUNDED
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from clients.stripe_client import LineItem, PaymentGatewayError, StripeClient
from core.audit import AuditLogger, AuditAction, status_change
from core.config import TicketingConfig
from core.errors import (
    ConcurrencyConflictError,
    InvalidExchangeCodeError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
    PaymentProviderError,
    SoldOutError,
)
from core.event_bus import EventBus
from core.events import OrderCancelled, OrderCreated, OrderPaid, OrderRefunded
from core.models import (
    CheckoutStart,
    CodeValidation,
    Order,
    OrderCreate,
    OrderQuote,
    OrderStatus,
    OrderSummary,
    Performance,
    PricePreviewRequest,
    PriceQuote,
    Ticket,
    TicketType,
    can_transition,
)
from core.pricing import compute_price
from core.services.exchange_code_service import ExchangeCodeService
from core.services.ticket_issuer import TicketIssuer
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# Timestamp column stamped when entering a status through set_status()
_STATUS_TIMESTAMP_COLUMNS = {
    OrderStatus.CANCELLED: "cancelled_at",
    OrderStatus.REFUNDED: "refunded_at",
}


class OrderService:
    """Service for order creation, confirmation and status transitions."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        event_bus: EventBus,
        config: TicketingConfig,
        exchange_codes: ExchangeCodeService,
        issuer: TicketIssuer,
        payment_gateway: StripeClient | None = None,
    ):
        self.postgres = postgres
        self.audit = audit
        self.event_bus = event_bus
        self.config = config
        self.exchange_codes = exchange_codes
        self.issuer = issuer
        self.payment_gateway = payment_gateway

    # =========================================================================
    # READS
    # =========================================================================

    def get_by_id(self, order_id: UUID) -> Order | None:
        row = self.postgres.execute_single(
            "SELECT * FROM orders WHERE id = %s",
            (order_id,),
        )
        return Order.model_validate(row) if row else None

    def get(self, order_id: UUID) -> Order:
        """Like get_by_id but raises NotFoundError."""
        order = self.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def get_by_provider_session(self, session_ref: str) -> Order | None:
        row = self.postgres.execute_single(
            "SELECT * FROM orders WHERE provider_session_ref = %s",
            (session_ref,),
        )
        return Order.model_validate(row) if row else None

    def list_orders(self, status: OrderStatus | None = None, limit: int = 200) -> list[Order]:
        """Orders newest first, optionally filtered by status."""
        if status is None:
            rows = self.postgres.execute(
                "SELECT * FROM orders ORDER BY created_at DESC LIMIT %s",
                (limit,),
            )
        else:
            rows = self.postgres.execute(
                "SELECT * FROM orders WHERE status = %s ORDER BY created_at DESC LIMIT %s",
                (status.value, limit),
            )
        return [Order.model_validate(row) for row in rows]

    def get_tickets(self, order_id: UUID) -> list[Ticket]:
        self.get(order_id)
        return self.issuer.list_for_order(order_id)

    def get_history(self, order_id: UUID) -> list[dict]:
        """Audit trail of an order, newest first."""
        self.get(order_id)
        return self.audit.get_entity_history("order", order_id)

    def paid_summary(self) -> OrderSummary:
        """Totals over PAID orders."""
        row = self.postgres.execute_single(
            """
            SELECT count(*) AS paid_orders,
                   COALESCE(sum(total_amount), 0) AS revenue,
                   COALESCE(sum(general_quantity + reserved_quantity), 0) AS tickets,
                   COALESCE(sum(general_quantity), 0) AS general_tickets,
                   COALESCE(sum(reserved_quantity), 0) AS reserved_tickets,
                   COALESCE(sum(discounted_general_count), 0) AS discounted_tickets
            FROM orders
            WHERE status = %s
            """,
            (OrderStatus.PAID.value,),
        )
        return OrderSummary.model_validate(row or {})

    # =========================================================================
    # PRICING
    # =========================================================================

    def _check_quantities(self, general_quantity: int, reserved_quantity: int) -> None:
        total = general_quantity + reserved_quantity
        if total == 0:
            raise InvalidInputError("Select at least one ticket")
        if total > self.config.max_tickets_per_order:
            raise InvalidInputError(
                f"At most {self.config.max_tickets_per_order} tickets per order"
            )

    def preview(self, data: PricePreviewRequest) -> tuple[PriceQuote, list[CodeValidation]]:
        """
        Price a selection without persisting anything.

        Invalid codes are reported, not raised, and simply don't discount.
        """
        self._check_quantities(data.general_quantity, data.reserved_quantity)

        row = self.postgres.execute_single(
            "SELECT * FROM performances WHERE id = %s",
            (data.performance_id,),
        )
        if row is None:
            raise NotFoundError(f"Performance {data.performance_id} not found")
        performance = Performance.model_validate(row)

        results = self.exchange_codes.validate_batch(data.exchange_codes)
        quote = compute_price(
            data.general_quantity,
            data.reserved_quantity,
            performance.general_price,
            performance.reserved_price,
            sum(1 for r in results if r.valid),
        )
        return quote, results

    # =========================================================================
    # CREATION
    # =========================================================================

    def _create(self, data: OrderCreate) -> tuple[Order, Performance, list[str]]:
        self._check_quantities(data.general_quantity, data.reserved_quantity)

        results = self.exchange_codes.validate_batch(data.exchange_codes)
        invalid = [r for r in results if not r.valid]
        if invalid:
            raise InvalidExchangeCodeError(
                f"Invalid exchange code(s): {', '.join(r.code for r in invalid)}",
                invalid,
            )
        valid_codes = [r.code for r in results]

        with self.postgres.transaction() as tx:
            # FOR SHARE serializes against the confirmation-time decrement
            row = tx.execute_single(
                "SELECT * FROM performances WHERE id = %s FOR SHARE",
                (data.performance_id,),
            )
            if row is None:
                raise NotFoundError(f"Performance {data.performance_id} not found")
            performance = Performance.model_validate(row)

            if not performance.is_in_sale_window(now_utc()):
                raise InvalidInputError(f"Performance {performance.id} is not on sale")

            if data.general_quantity > performance.general_remaining:
                raise SoldOutError(
                    f"Only {performance.general_remaining} general tickets remain",
                    ticket_type=TicketType.GENERAL.value,
                    remaining=performance.general_remaining,
                )
            if data.reserved_quantity > performance.reserved_remaining:
                raise SoldOutError(
                    f"Only {performance.reserved_remaining} reserved tickets remain",
                    ticket_type=TicketType.RESERVED.value,
                    remaining=performance.reserved_remaining,
                )

            quote = compute_price(
                data.general_quantity,
                data.reserved_quantity,
                performance.general_price,
                performance.reserved_price,
                len(valid_codes),
            )
            if quote.total == 0:
                raise InvalidInputError("Order total must be greater than zero")

            if data.client_total is not None and data.client_total != quote.total:
                logger.warning(
                    f"Client total {data.client_total} differs from computed {quote.total} "
                    f"for performance {performance.id}; using computed"
                )

            applied = valid_codes[:quote.discounted_general_count]
            unused = valid_codes[quote.discounted_general_count:]
            now = now_utc()

            order_row = tx.execute_returning(
                """
                INSERT INTO orders (
                    id, performance_id, status,
                    general_quantity, reserved_quantity,
                    general_unit_price, reserved_unit_price,
                    exchange_codes, discounted_general_count, discount_amount, total_amount,
                    customer_name, customer_email, customer_phone,
                    created_at, updated_at
                ) VALUES (
                    %s, %s, %s,
                    %s, %s,
                    %s, %s,
                    %s::text[], %s, %s, %s,
                    %s, %s, %s,
                    %s, %s
                )
                RETURNING *
                """,
                (
                    uuid4(), performance.id, OrderStatus.PENDING.value,
                    quote.general_quantity, quote.reserved_quantity,
                    quote.general_unit_price, quote.reserved_unit_price,
                    applied, quote.discounted_general_count, quote.discount_amount, quote.total,
                    data.customer_name, str(data.customer_email), data.customer_phone,
                    now, now,
                ),
            )[0]

        order = Order.model_validate(order_row)

        self.audit.log_change(
            entity_type="order",
            entity_id=order.id,
            action=AuditAction.CREATE,
            changes={"created": order.model_dump(mode="json")},
        )
        logger.info(
            f"Order {order.id} created: {order.general_quantity} general, "
            f"{order.reserved_quantity} reserved, total {order.total_amount}"
        )
        self.event_bus.publish(OrderCreated.create(order=order))
        return order, performance, unused

    def create_order(self, data: OrderCreate) -> OrderQuote:
        """
        Create a PENDING order with a server-computed total.

        Inventory is re-checked but not decremented. Any client-supplied
        total is ignored.

        Raises:
            InvalidInputError: Zero or too many seats, not on sale, zero total
            InvalidExchangeCodeError: Any supplied code is not redeemable
            NotFoundError: Performance doesn't exist
            SoldOutError: Not enough remaining seats
        """
        order, _, unused = self._create(data)
        return self._quote(order, unused)

    @staticmethod
    def _quote(order: Order, unused: list[str]) -> OrderQuote:
        return OrderQuote(
            order_id=order.id,
            status=order.status,
            total=order.total_amount,
            discount_amount=order.discount_amount,
            discounted_general_count=order.discounted_general_count,
            unused_exchange_codes=unused,
        )

    def start_checkout(self, data: OrderCreate) -> CheckoutStart:
        """
        Create the order, then a hosted checkout session for it.

        The provider call happens after the order transaction committed and
        holds no locks. If the provider fails the PENDING order is cancelled
        and PaymentProviderError is raised.
        """
        if self.payment_gateway is None:
            raise PaymentProviderError("No payment provider configured")

        order, performance, unused = self._create(data)

        line_items = [
            LineItem(
                name=f"{performance.label} 一般",
                unit_amount=order.general_unit_price,
                quantity=order.general_quantity - order.discounted_general_count,
            ),
            LineItem(
                name=f"{performance.label} 指定席",
                unit_amount=order.reserved_unit_price,
                quantity=order.reserved_quantity,
            ),
        ]

        try:
            session = self.payment_gateway.create_checkout_session(
                order_id=str(order.id),
                line_items=line_items,
                customer_email=order.customer_email,
                success_url=self.config.checkout_success_url,
                cancel_url=self.config.checkout_cancel_url,
            )
        except PaymentGatewayError as e:
            logger.error(f"Checkout for order {order.id} failed at provider: {e}")
            self.set_status(order.id, OrderStatus.CANCELLED)
            raise PaymentProviderError(f"Payment provider unavailable: {e}")

        self.attach_provider_session(order.id, session.session_ref)
        return CheckoutStart(
            quote=self._quote(order, unused),
            session_ref=session.session_ref,
            checkout_url=session.url,
        )

    def attach_provider_session(self, order_id: UUID, session_ref: str) -> Order:
        """
        Record the provider session on a PENDING order that has none yet.

        Raises:
            NotFoundError: Order doesn't exist
            ConcurrencyConflictError: Order left PENDING or already has a session
        """
        rows = self.postgres.execute_returning(
            """
            UPDATE orders
            SET provider_session_ref = %s, updated_at = %s
            WHERE id = %s AND status = %s AND provider_session_ref IS NULL
            RETURNING *
            """,
            (session_ref, now_utc(), order_id, OrderStatus.PENDING.value),
        )
        if rows:
            return Order.model_validate(rows[0])

        current = self.get(order_id)
        if current.provider_session_ref == session_ref:
            return current
        raise ConcurrencyConflictError(
            f"Order {order_id} is {current.status.value} and cannot take a new payment session"
        )

    # =========================================================================
    # CONFIRMATION
    # =========================================================================

    def confirm_payment(
        self,
        order_id: UUID,
        provider_session_ref: str,
        provider_payment_ref: str | None = None,
    ) -> Order:
        """
        Apply a payment-provider confirmation. Idempotent.

        One transaction: lock the order, decrement inventory, redeem the
        applied codes, mark PAID, issue tickets. A second confirmation for a
        PAID order returns it unchanged and issues nothing.

        Args:
            order_id: Order to confirm
            provider_session_ref: Provider session the payment belongs to
            provider_payment_ref: Provider payment id, stored for refunds

        Returns:
            The PAID order

        Raises:
            NotFoundError: Order doesn't exist
            InvalidTransitionError: Order is CANCELLED or REFUNDED
            InvalidInputError: Session reference belongs to another checkout
            SoldOutError: Seats ran out between checkout and payment
            InvalidExchangeCodeError: A code was redeemed elsewhere meanwhile
        """
        with self.postgres.transaction() as tx:
            row = tx.execute_single(
                "SELECT * FROM orders WHERE id = %s FOR UPDATE",
                (order_id,),
            )
            if row is None:
                raise NotFoundError(f"Order {order_id} not found")
            order = Order.model_validate(row)

            if order.status == OrderStatus.PAID:
                logger.warning(f"Duplicate payment confirmation for order {order_id}; already paid")
                return order

            if not can_transition(order.status, OrderStatus.PAID):
                logger.warning(
                    f"Payment confirmation for order {order_id} in status {order.status.value}"
                )
                raise InvalidTransitionError(order.id, order.status.value, OrderStatus.PAID.value)

            if order.provider_session_ref and order.provider_session_ref != provider_session_ref:
                raise InvalidInputError(
                    f"Payment session {provider_session_ref} does not belong to order {order_id}"
                )

            now = now_utc()
            performance_row = tx.execute_single(
                """
                UPDATE performances
                SET general_remaining = general_remaining - %s,
                    reserved_remaining = reserved_remaining - %s,
                    updated_at = %s
                WHERE id = %s
                  AND general_remaining >= %s
                  AND reserved_remaining >= %s
                RETURNING *
                """,
                (
                    order.general_quantity, order.reserved_quantity, now,
                    order.performance_id,
                    order.general_quantity, order.reserved_quantity,
                ),
            )
            if performance_row is None:
                logger.error(f"Order {order_id} paid but seats are gone; needs refund")
                raise SoldOutError(f"Not enough seats remain to confirm order {order_id}")

            redeemed = self._redeem_codes(tx, order, now)

            paid_row = tx.execute_returning(
                """
                UPDATE orders
                SET status = %s,
                    paid_at = %s,
                    provider_session_ref = COALESCE(provider_session_ref, %s),
                    provider_payment_ref = %s,
                    updated_at = %s
                WHERE id = %s AND status = %s
                RETURNING *
                """,
                (
                    OrderStatus.PAID.value, now, provider_session_ref, provider_payment_ref, now,
                    order_id, OrderStatus.PENDING.value,
                ),
            )[0]
            paid = Order.model_validate(paid_row)

            tickets = self.issuer.issue(tx, paid, [code for code, _ in redeemed])

        performance = Performance.model_validate(performance_row)

        self.audit.log_change(
            entity_type="order",
            entity_id=paid.id,
            action=AuditAction.UPDATE,
            changes={
                **status_change(OrderStatus.PENDING, OrderStatus.PAID),
                "provider_session_ref": {"old": order.provider_session_ref, "new": paid.provider_session_ref},
                "tickets_issued": {"old": 0, "new": len(tickets)},
            },
        )
        for code, code_id in redeemed:
            self.audit.log_change(
                entity_type="exchange_code",
                entity_id=code_id,
                action=AuditAction.UPDATE,
                changes={"is_redeemed": {"old": False, "new": True}, "order_id": str(paid.id)},
            )

        logger.info(f"Order {paid.id} paid; {len(tickets)} tickets issued")
        self.event_bus.publish(OrderPaid.create(order=paid, tickets=tickets, performance=performance))
        return paid

    def _redeem_codes(self, tx, order: Order, now) -> list[tuple[str, UUID]]:
        """Consume the order's applied codes. Returns (code, id) in order."""
        if not order.exchange_codes:
            return []

        rows = tx.execute_returning(
            """
            UPDATE exchange_codes ec
            SET is_redeemed = true, redeemed_at = %s, redeemed_by_order_id = %s
            FROM performers p
            WHERE ec.code = ANY(%s)
              AND ec.is_redeemed = false
              AND p.id = ec.performer_id
              AND p.is_active
            RETURNING ec.id, ec.code
            """,
            (now, order.id, order.exchange_codes),
        )
        ids = {row["code"]: row["id"] for row in rows}

        lost = [code for code in order.exchange_codes if code not in ids]
        if lost:
            results = [r for r in self.exchange_codes.validate_batch(lost, tx=tx) if not r.valid]
            logger.error(f"Order {order.id} paid but exchange codes {lost} are no longer redeemable")
            raise InvalidExchangeCodeError(
                f"Exchange code(s) no longer redeemable: {', '.join(lost)}",
                results,
            )

        return [(code, ids[code]) for code in order.exchange_codes]

    # =========================================================================
    # MANUAL TRANSITIONS
    # =========================================================================

    def set_status(self, order_id: UUID, new_status: OrderStatus) -> Order:
        """
        Staff-initiated status change, validated against the transition table.

        PAID is never reachable here; only confirm_payment() pays an order.

        Raises:
            NotFoundError: Order doesn't exist
            InvalidTransitionError: Transition not allowed; nothing mutated
        """
        with self.postgres.transaction() as tx:
            row = tx.execute_single(
                "SELECT * FROM orders WHERE id = %s FOR UPDATE",
                (order_id,),
            )
            if row is None:
                raise NotFoundError(f"Order {order_id} not found")
            current = Order.model_validate(row)

            if new_status == OrderStatus.PAID or not can_transition(current.status, new_status):
                logger.warning(
                    f"Rejected transition for order {order_id}: "
                    f"{current.status.value} -> {new_status.value}"
                )
                message = None
                if new_status == OrderStatus.PAID and current.status == OrderStatus.PENDING:
                    message = "Orders become paid only through payment confirmation"
                raise InvalidTransitionError(
                    current.id, current.status.value, new_status.value, message
                )

            now = now_utc()
            column = _STATUS_TIMESTAMP_COLUMNS[new_status]
            updated_row = tx.execute_returning(
                f"""
                UPDATE orders
                SET status = %s, {column} = %s, updated_at = %s
                WHERE id = %s
                RETURNING *
                """,
                (new_status.value, now, now, order_id),
            )[0]

        updated = Order.model_validate(updated_row)

        self.audit.log_change(
            entity_type="order",
            entity_id=updated.id,
            action=AuditAction.UPDATE,
            changes=status_change(current.status, updated.status),
        )
        logger.info(f"Order {updated.id} {current.status.value} -> {updated.status.value}")

        if updated.status == OrderStatus.CANCELLED:
            self.event_bus.publish(OrderCancelled.create(order=updated))
        elif updated.status == OrderStatus.REFUNDED:
            self.event_bus.publish(OrderRefunded.create(order=updated))
        return updated

    def cancel_expired_session(self, session_ref: str) -> Order | None:
        """
        Cancel the PENDING order behind an expired provider session.

        Returns the cancelled order, or None when there is nothing to cancel
        (unknown session, or the order already moved on).
        """
        order = self.get_by_provider_session(session_ref)
        if order is None:
            logger.warning(f"Expired session {session_ref} matches no order")
            return None
        if order.status != OrderStatus.PENDING:
            logger.info(f"Expired session {session_ref}: order {order.id} is {order.status.value}")
            return None

        try:
            return self.set_status(order.id, OrderStatus.CANCELLED)
        except InvalidTransitionError:
            logger.info(f"Order {order.id} left PENDING before session expiry was applied")
            return None
