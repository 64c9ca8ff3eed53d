"""Staff authorization and abuse-limiting modules."""

from auth.exceptions import (
    AuthError,
    RateLimitedError,
    SessionExpiredError,
)
from auth.types import StaffSession
from auth.config import AuthConfig
from auth.rate_limiter import RateLimiter
from auth.session import SessionManager
from auth.security_middleware import StaffAuthMiddleware
