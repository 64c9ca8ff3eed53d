"""Staff authorization and abuse-limiting configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Staff session and rate limit settings.

    Durations are in their natural units (minutes for short windows,
    hours for session lifetimes).
    """

    # Staff sessions
    staff_session_expiry_hours: int = Field(
        default=12,
        description="Idle lifetime of a staff session; extended on activity",
        ge=1,
        le=168,
    )
    staff_session_cookie: str = Field(
        default="staff_session",
        description="Cookie carrying the staff session token",
    )

    # Exchange code validation rate limiting
    code_validation_attempts: int = Field(
        default=20,
        description="Max code validation requests per client per window",
        ge=1,
        le=500,
    )
    code_validation_window_minutes: int = Field(
        default=10,
        description="Rate limit window duration",
        ge=1,
        le=60,
    )
