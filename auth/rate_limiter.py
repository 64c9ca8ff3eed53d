"""Rate limiting for public exchange code validation.

Codes are short enough to guess, so validation is limited per client.
Uses Valkey with sliding window TTL - each attempt resets the expiry, so
hammering the endpoint extends the lockout.
"""

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.exceptions import RateLimitedError


class RateLimiter:
    """Per-client attempt counter in Valkey."""

    KEY_PREFIX = "ratelimit:exchange_code:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config
        self._window_seconds = config.code_validation_window_minutes * 60

    def _key(self, client_key: str) -> str:
        return f"{self.KEY_PREFIX}{client_key.lower()}"

    def check_rate_limit(self, client_key: str) -> None:
        """Count an attempt and reject it when over the limit.

        Raises:
            RateLimitedError: If rate limit exceeded.
        """
        key = self._key(client_key)

        count = self._valkey.incr(key)
        self._valkey.expire(key, self._window_seconds)

        if count > self._config.code_validation_attempts:
            retry_after = max(self._valkey.ttl(key), 1)
            raise RateLimitedError(retry_after_seconds=retry_after)

