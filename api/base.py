"""Unified API response format, error codes and request helpers."""

import ipaddress
from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field
from starlette.requests import Request

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict | None = Field(None, description="Structured context for the client")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Unique request identifier for tracing")


class APIResponse(BaseModel):
    """
    Unified response format for all API endpoints.

    Every endpoint returns this structure, making client parsing predictable.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def success_response(data: Any, request_id: str | None = None) -> APIResponse:
    """Create a success response."""
    return APIResponse(
        success=True,
        data=data,
        error=None,
        meta=APIMeta(
            timestamp=now_utc(),
            request_id=request_id or str(uuid4()),
        ),
    )


def error_response(
    code: str,
    message: str,
    details: dict | None = None,
    request_id: str | None = None,
) -> APIResponse:
    """Create an error response."""
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message, details=details),
        meta=APIMeta(
            timestamp=now_utc(),
            request_id=request_id or str(uuid4()),
        ),
    )


class ErrorCodes:
    """
    Standard error codes for consistent error handling.

    Domain errors carry their own code (see core.errors); the constants
    here cover transport and auth failures plus the domain codes clients
    are expected to branch on.
    """

    # Authentication & Authorization
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    RATE_LIMITED = "RATE_LIMITED"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Ordering
    SOLD_OUT = "SOLD_OUT"
    INVALID_EXCHANGE_CODE = "INVALID_EXCHANGE_CODE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"

    # Admission
    TICKET_INADMISSIBLE = "TICKET_INADMISSIBLE"
    TICKET_ALREADY_USED = "TICKET_ALREADY_USED"

    # Payments
    PAYMENT_PROVIDER_ERROR = "PAYMENT_PROVIDER_ERROR"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


def get_client_ip(request: Request) -> str:
    """Client IP for rate limiting; unparseable hosts share one bucket."""
    if not request.client:
        return "unknown"
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return "unknown"
