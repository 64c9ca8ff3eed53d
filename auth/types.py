"""Pydantic models for staff auth."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class StaffSession(BaseModel):
    """An active staff session (door staff, box office)."""

    token: str = Field(..., description="Session token (opaque string)")
    staff_id: UUID
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime
