"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import RateLimitedError
from core.errors import (
    ConcurrencyConflictError,
    InvalidTransitionError,
    PaymentProviderError,
    TicketingError,
)

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(TicketingError)
    async def ticketing_error_handler(request: Request, exc: TicketingError):
        if isinstance(exc, PaymentProviderError):
            logger.error(f"{request.url.path}: {exc.message}")
        elif isinstance(exc, (InvalidTransitionError, ConcurrencyConflictError)):
            logger.warning(f"{request.url.path}: {exc.message}")
        else:
            logger.info(f"{request.url.path}: {exc.code} {exc.message}")
        return JSONResponse(
            status_code=exc.http_status,
            content=error_response(
                exc.code,
                exc.message,
                details=exc.details,
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError):
        return JSONResponse(
            status_code=429,
            headers={"Retry-After": str(exc.retry_after_seconds)},
            content=error_response(
                ErrorCodes.RATE_LIMITED,
                f"Too many requests. Please wait {exc.retry_after_seconds} seconds.",
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": error.get("msg", ""),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=error_response(
                ErrorCodes.VALIDATION_ERROR,
                "Request validation failed",
                details={"errors": errors},
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_response(
                ErrorCodes.INTERNAL_ERROR,
                "An internal error occurred",
                request_id=_request_id(request),
            ).model_dump(mode="json"),
        )
