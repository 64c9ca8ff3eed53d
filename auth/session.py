"""Staff session token lifecycle.

Sessions are stored in Valkey with TTL matching session expiry. Tokens are
issued by the sign-in flow (outside this service) through create_session()
and validated on every staff request.
"""

import secrets
from datetime import timedelta
from uuid import UUID

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.types import StaffSession
from auth.exceptions import SessionExpiredError
from utils.timezone import now_utc, parse_iso


class SessionManager:
    """Staff session storage with a sliding expiry window."""

    KEY_PREFIX = "staff_session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    @property
    def _ttl_seconds(self) -> int:
        return self._config.staff_session_expiry_hours * 3600

    def _store(self, session: StaffSession) -> None:
        self._valkey.set_json(
            self._key(session.token),
            {
                "staff_id": str(session.staff_id),
                "created_at": session.created_at.isoformat(),
                "expires_at": session.expires_at.isoformat(),
                "last_activity_at": session.last_activity_at.isoformat(),
            },
            expire_seconds=self._ttl_seconds,
        )

    def create_session(self, staff_id: UUID) -> StaffSession:
        """Create a new session for a staff member."""
        now = now_utc()
        session = StaffSession(
            token=secrets.token_urlsafe(32),
            staff_id=staff_id,
            created_at=now,
            expires_at=now + timedelta(hours=self._config.staff_session_expiry_hours),
            last_activity_at=now,
        )
        self._store(session)
        return session

    def validate_session(self, token: str) -> StaffSession:
        """Validate token and extend its expiry.

        Raises SessionExpiredError if the token is unknown or expired.
        """
        data = self._valkey.get_json(self._key(token))
        if data is None:
            raise SessionExpiredError("Session not found or expired")

        session = StaffSession(
            token=token,
            staff_id=UUID(data["staff_id"]),
            created_at=parse_iso(data["created_at"]),
            expires_at=parse_iso(data["expires_at"]),
            last_activity_at=parse_iso(data["last_activity_at"]),
        )

        now = now_utc()
        if now > session.expires_at:
            self._valkey.delete(self._key(token))
            raise SessionExpiredError("Session expired")

        extended = session.model_copy(update={
            "expires_at": now + timedelta(hours=self._config.staff_session_expiry_hours),
            "last_activity_at": now,
        })
        self._store(extended)
        return extended

    def revoke_session(self, token: str) -> None:
        """Revoke session. Safe to call with an unknown token."""
        self._valkey.delete(self._key(token))
