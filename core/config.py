"""Ticketing business configuration."""

from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator


class TicketingConfig(BaseModel):
    """
    Business rules that vary per deployment.

    Money is in minor currency units of `currency`.
    """

    # Ordering
    max_tickets_per_order: int = Field(
        default=10,
        description="Max seats (general + reserved) in one order",
        ge=1,
        le=50,
    )
    currency: str = Field(
        default="jpy",
        description="ISO currency code passed to the payment provider",
        min_length=3,
        max_length=3,
    )

    # Venue
    venue_timezone: str = Field(
        default="Asia/Tokyo",
        description="IANA timezone that defines the venue's calendar day",
    )

    # Stats cache
    stats_cache_ttl_seconds: int = Field(
        default=300,
        description="Lifetime of a cached daily stats snapshot before it is rebuilt",
        ge=10,
        le=86400,
    )

    # Exchange codes
    exchange_code_length: int = Field(
        default=8,
        description="Length of generated exchange codes",
        ge=6,
        le=32,
    )
    exchange_code_batch_max: int = Field(
        default=50,
        description="Max codes generated per batch request",
        ge=1,
        le=500,
    )

    # Links
    site_base_url: str = Field(
        default="http://localhost:5173",
        description="Public site URL for checkout redirects and ticket links",
    )

    @field_validator("venue_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (KeyError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @property
    def checkout_success_url(self) -> str:
        return f"{self.site_base_url.rstrip('/')}/ticket/success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def checkout_cancel_url(self) -> str:
        return f"{self.site_base_url.rstrip('/')}/ticket/purchase"

    @property
    def tickets_url(self) -> str:
        return f"{self.site_base_url.rstrip('/')}/ticket"
