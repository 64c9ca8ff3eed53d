"""
Audit trail for orders, exchange codes and admissions.

Every order transition, code redemption and check-in is logged here. The
audit log is:
- Append-only (entries never modified or deleted)
- Actor-attributed (staff member, or NULL for customer/provider actions)
- Detailed (captures old and new values)
"""

from enum import Enum
from uuid import UUID, uuid4
from typing import Any

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.staff_context import get_optional_staff_id
from utils.timezone import now_utc


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    CHECK_IN = "check_in"


def status_change(old: Any, new: Any) -> dict[str, dict[str, Any]]:
    """Changes payload for a single status field."""
    return {"status": {"old": getattr(old, "value", old), "new": getattr(new, "value", new)}}


class AuditLogger:
    """
    Append-only audit trail.

    Always use model_dump(mode="json") when passing Pydantic models so UUIDs
    and datetimes serialize.

    Usage:
        audit = AuditLogger(postgres)

        audit.log_change(
            entity_type="order",
            entity_id=order.id,
            action=AuditAction.UPDATE,
            changes=status_change(OrderStatus.PENDING, OrderStatus.PAID),
        )

        history = audit.get_entity_history("order", order.id)
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
        actor_id: UUID | None = None,
    ) -> None:
        """
        Log an entity change.

        Args:
            entity_type: "order", "ticket", "exchange_code", ...
            entity_id: ID of the entity
            action: The action performed
            changes: The changes made
            actor_id: Staff member responsible (defaults to current staff context,
                NULL for customer and payment-provider actions)
        """
        if actor_id is None:
            actor_id = get_optional_staff_id()

        self.postgres.execute(
            """
            INSERT INTO audit_log (id, actor_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                uuid4(),
                actor_id,
                entity_type,
                entity_id,
                action.value,
                Json(changes),
                now_utc(),
            ),
        )

    def get_entity_history(self, entity_type: str, entity_id: UUID) -> list[dict[str, Any]]:
        """Full audit history for an entity, newest first."""
        return self.postgres.execute(
            """
            SELECT id, actor_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE entity_type = %s AND entity_id = %s
            ORDER BY created_at DESC
            """,
            (entity_type, entity_id),
        )
