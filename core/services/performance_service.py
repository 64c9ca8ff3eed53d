"""
Performance service.

Reads showings and their live inventory. Inventory columns are never
written here after creation; they move only through payment confirmation.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.errors import NotFoundError
from core.models import Performance, PerformanceCreate
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class PerformanceService:
    """Service for performance reads and seeding."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def create(self, data: PerformanceCreate) -> Performance:
        """
        Create a performance with full inventory.

        Remaining counts start equal to capacity.
        """
        now = now_utc()
        row = self.postgres.execute_returning(
            """
            INSERT INTO performances (
                id, title, performance_date, performance_time, doors_open_time,
                venue_name, venue_address,
                general_price, reserved_price,
                general_capacity, reserved_capacity,
                general_remaining, reserved_remaining,
                on_sale, sale_starts_at, sale_ends_at,
                created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s,
                %s, %s,
                %s, %s,
                %s, %s,
                %s, %s,
                %s, %s, %s,
                %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), data.title, data.performance_date, data.performance_time, data.doors_open_time,
                data.venue_name, data.venue_address,
                data.general_price, data.reserved_price,
                data.general_capacity, data.reserved_capacity,
                data.general_capacity, data.reserved_capacity,
                data.on_sale, data.sale_starts_at, data.sale_ends_at,
                now, now,
            ),
        )[0]

        performance = Performance.model_validate(row)

        self.audit.log_change(
            entity_type="performance",
            entity_id=performance.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)},
        )
        logger.info(f"Performance {performance.id} created: {performance.label}")
        return performance

    def get_by_id(self, performance_id: UUID) -> Performance | None:
        row = self.postgres.execute_single(
            "SELECT * FROM performances WHERE id = %s",
            (performance_id,),
        )
        return Performance.model_validate(row) if row else None

    def get(self, performance_id: UUID) -> Performance:
        """Like get_by_id but raises NotFoundError."""
        performance = self.get_by_id(performance_id)
        if performance is None:
            raise NotFoundError(f"Performance {performance_id} not found")
        return performance

    def list_on_sale(self) -> list[Performance]:
        """Performances currently purchasable, soonest first."""
        rows = self.postgres.execute(
            """
            SELECT * FROM performances
            WHERE on_sale
            ORDER BY performance_date, performance_time
            """
        )
        now = now_utc()
        performances = [Performance.model_validate(row) for row in rows]
        return [p for p in performances if p.is_purchasable(now)]

    def list_all(self) -> list[Performance]:
        rows = self.postgres.execute(
            "SELECT * FROM performances ORDER BY performance_date DESC, performance_time DESC"
        )
        return [Performance.model_validate(row) for row in rows]
