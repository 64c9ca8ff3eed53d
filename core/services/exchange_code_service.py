"""
Exchange code validation and administration.

Validation is read-only: it never consumes a code. Codes are consumed only
inside the payment confirmation transaction (see OrderService).
"""

import logging
import secrets
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core.audit import AuditLogger, AuditAction
from core.config import TicketingConfig
from core.errors import AlreadyExistsError, InvalidInputError, NotFoundError
from core.models import (
    CodeValidation,
    CodeValidationReason,
    ExchangeCode,
    Performer,
    PerformerCreate,
    normalize_code,
)
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# No 0/O, 1/I: codes are read off paper and typed by hand
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

_MAX_GENERATION_ROUNDS = 5


def dedupe_codes(codes: list[str]) -> list[str]:
    """Normalize, drop blanks, and de-duplicate preserving first-seen order."""
    seen: set[str] = set()
    result = []
    for raw in codes:
        code = normalize_code(raw)
        if code and code not in seen:
            seen.add(code)
            result.append(code)
    return result


def _evaluate(code: str, row: dict | None) -> CodeValidation:
    if row is None:
        return CodeValidation(code=code, valid=False, reason=CodeValidationReason.NOT_FOUND)

    performer_name = row["performer_name"]
    if row["is_redeemed"]:
        reason = CodeValidationReason.ALREADY_REDEEMED
    elif not row["performer_active"]:
        reason = CodeValidationReason.INACTIVE_CAMPAIGN
    else:
        reason = CodeValidationReason.VALID

    return CodeValidation(
        code=code,
        valid=reason == CodeValidationReason.VALID,
        reason=reason,
        performer_name=performer_name,
    )


class ExchangeCodeService:
    """Validates and administers exchange codes."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger, config: TicketingConfig):
        self.postgres = postgres
        self.audit = audit
        self.config = config

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(self, code: str) -> CodeValidation:
        """
        Check one code's redeemability. No side effects.

        Returns:
            CodeValidation; reason EMPTY for a blank code.
        """
        normalized = normalize_code(code)
        if not normalized:
            return CodeValidation(code="", valid=False, reason=CodeValidationReason.EMPTY)
        return self.validate_batch([normalized])[0]

    def validate_batch(self, codes: list[str], tx: Transaction | None = None) -> list[CodeValidation]:
        """
        Validate a submission of codes in one query.

        Identical codes (after normalization) are reported once, so a single
        physical exchange ticket can never count twice toward a discount.
        Blank entries are dropped.
        """
        unique = dedupe_codes(codes)
        if not unique:
            return []

        db = tx if tx is not None else self.postgres
        rows = db.execute(
            """
            SELECT ec.code, ec.is_redeemed,
                   p.name AS performer_name, p.is_active AS performer_active
            FROM exchange_codes ec
            JOIN performers p ON p.id = ec.performer_id
            WHERE ec.code = ANY(%s)
            """,
            (unique,),
        )
        by_code = {row["code"]: row for row in rows}
        return [_evaluate(code, by_code.get(code)) for code in unique]

    # =========================================================================
    # PERFORMERS
    # =========================================================================

    def create_performer(self, data: PerformerCreate) -> Performer:
        row = self.postgres.execute_returning(
            """
            INSERT INTO performers (id, name, is_active, created_at)
            VALUES (%s, %s, %s, %s)
            RETURNING *
            """,
            (uuid4(), data.name.strip(), data.is_active, now_utc()),
        )[0]
        performer = Performer.model_validate(row)

        self.audit.log_change(
            entity_type="performer",
            entity_id=performer.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json")},
        )
        return performer

    def get_performer(self, performer_id: UUID) -> Performer | None:
        row = self.postgres.execute_single(
            "SELECT * FROM performers WHERE id = %s",
            (performer_id,),
        )
        return Performer.model_validate(row) if row else None

    def set_performer_active(self, performer_id: UUID, is_active: bool) -> Performer:
        """
        Open or close a performer's campaign. Closing invalidates all their
        unredeemed codes without touching the codes themselves.

        Raises:
            NotFoundError: If performer doesn't exist
        """
        current = self.get_performer(performer_id)
        if current is None:
            raise NotFoundError(f"Performer {performer_id} not found")
        if current.is_active == is_active:
            return current

        row = self.postgres.execute_returning(
            "UPDATE performers SET is_active = %s WHERE id = %s RETURNING *",
            (is_active, performer_id),
        )[0]
        performer = Performer.model_validate(row)

        self.audit.log_change(
            entity_type="performer",
            entity_id=performer.id,
            action=AuditAction.UPDATE,
            changes={"is_active": {"old": current.is_active, "new": is_active}},
        )
        logger.info(f"Performer {performer.id} campaign active={is_active}")
        return performer

    # =========================================================================
    # CODES
    # =========================================================================

    def create_code(self, performer_id: UUID, code: str) -> ExchangeCode:
        """
        Register one pre-printed code.

        Raises:
            InvalidInputError: If code is blank
            NotFoundError: If performer doesn't exist
            AlreadyExistsError: If the normalized code is taken
        """
        normalized = normalize_code(code)
        if not normalized:
            raise InvalidInputError("Exchange code must not be blank")
        if self.get_performer(performer_id) is None:
            raise NotFoundError(f"Performer {performer_id} not found")

        rows = self.postgres.execute_returning(
            """
            INSERT INTO exchange_codes (id, code, performer_id, created_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (code) DO NOTHING
            RETURNING *
            """,
            (uuid4(), normalized, performer_id, now_utc()),
        )
        if not rows:
            raise AlreadyExistsError(f"Exchange code {normalized} already exists")

        created = ExchangeCode.model_validate(rows[0])
        self.audit.log_change(
            entity_type="exchange_code",
            entity_id=created.id,
            action=AuditAction.CREATE,
            changes={"created": {"code": created.code, "performer_id": str(performer_id)}},
        )
        return created

    def _random_code(self) -> str:
        return "".join(
            secrets.choice(CODE_ALPHABET) for _ in range(self.config.exchange_code_length)
        )

    def generate_batch(self, performer_id: UUID, count: int) -> list[ExchangeCode]:
        """
        Generate `count` random codes for a performer.

        Collisions with existing codes are skipped by the database and
        regenerated in the next round.

        Raises:
            InvalidInputError: If count is outside 1..exchange_code_batch_max
            NotFoundError: If performer doesn't exist
        """
        if count < 1 or count > self.config.exchange_code_batch_max:
            raise InvalidInputError(
                f"count must be between 1 and {self.config.exchange_code_batch_max}"
            )
        if self.get_performer(performer_id) is None:
            raise NotFoundError(f"Performer {performer_id} not found")

        created: list[ExchangeCode] = []
        for _ in range(_MAX_GENERATION_ROUNDS):
            missing = count - len(created)
            if missing == 0:
                break

            candidates = list({self._random_code() for _ in range(missing)})
            rows = self.postgres.execute_returning(
                """
                INSERT INTO exchange_codes (id, code, performer_id, created_at)
                SELECT unnest(%s::uuid[]), unnest(%s::text[]), %s, %s
                ON CONFLICT (code) DO NOTHING
                RETURNING *
                """,
                ([uuid4() for _ in candidates], candidates, performer_id, now_utc()),
            )
            created.extend(ExchangeCode.model_validate(row) for row in rows)

        if len(created) < count:
            logger.warning(
                f"Generated only {len(created)}/{count} exchange codes for performer {performer_id}"
            )

        for code in created:
            self.audit.log_change(
                entity_type="exchange_code",
                entity_id=code.id,
                action=AuditAction.CREATE,
                changes={"created": {"code": code.code, "performer_id": str(performer_id)}},
            )
        logger.info(f"Generated {len(created)} exchange codes for performer {performer_id}")
        return created

    def list_codes(self, performer_id: UUID | None = None) -> list[ExchangeCode]:
        """All codes, newest first, optionally for one performer."""
        if performer_id is None:
            rows = self.postgres.execute(
                "SELECT * FROM exchange_codes ORDER BY created_at DESC"
            )
        else:
            rows = self.postgres.execute(
                "SELECT * FROM exchange_codes WHERE performer_id = %s ORDER BY created_at DESC",
                (performer_id,),
            )
        return [ExchangeCode.model_validate(row) for row in rows]
