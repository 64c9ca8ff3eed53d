"""Tests for auth/exceptions.py."""

from auth.exceptions import AuthError, RateLimitedError, SessionExpiredError


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(SessionExpiredError, AuthError)
        assert issubclass(RateLimitedError, AuthError)

    def test_rate_limited_carries_retry_after(self):
        error = RateLimitedError(retry_after_seconds=30)
        assert error.retry_after_seconds == 30
        assert "30 seconds" in str(error)
