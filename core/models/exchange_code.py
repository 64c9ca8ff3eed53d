"""Exchange code and performer models.

An exchange code is a pre-sold token bought offline from a performer, good
for one free general seat. Codes are case-insensitive and stored uppercase.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


def normalize_code(code: str) -> str:
    """Trim and uppercase an exchange code."""
    return code.strip().upper()


class CodeValidationReason(str, Enum):
    """Outcome of validating one exchange code."""

    VALID = "valid"
    EMPTY = "empty"
    NOT_FOUND = "not_found"
    ALREADY_REDEEMED = "already_redeemed"
    INACTIVE_CAMPAIGN = "inactive_campaign"


class CodeValidation(BaseModel):
    """Validation result for one (normalized) code."""

    code: str
    valid: bool
    reason: CodeValidationReason
    performer_name: str | None = None


class PerformerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    is_active: bool = True


class Performer(BaseModel):
    """A performer selling exchange codes. `is_active` gates the whole campaign."""

    id: UUID
    name: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ExchangeCodeCreate(BaseModel):
    performer_id: UUID
    code: str = Field(..., min_length=1, max_length=32)


class ExchangeCodeBatchCreate(BaseModel):
    performer_id: UUID
    count: int = Field(..., ge=1)


class ExchangeCode(BaseModel):
    """Full exchange code entity as stored."""

    id: UUID
    code: str
    performer_id: UUID
    is_redeemed: bool
    redeemed_at: datetime | None
    redeemed_by_order_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}
