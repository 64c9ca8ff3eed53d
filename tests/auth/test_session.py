"""Tests for SessionManager - staff session token lifecycle."""

from datetime import timedelta
from unittest.mock import Mock, patch
from uuid import UUID

import pytest

from auth.config import AuthConfig
from auth.exceptions import SessionExpiredError
from auth.session import SessionManager
from clients.valkey_client import ValkeyClient
from factories import FIXED_NOW

STAFF_B = UUID("00000000-0000-0000-0000-0000000000b2")


@pytest.fixture
def config():
    return AuthConfig(staff_session_expiry_hours=1)


@pytest.fixture
def mock_valkey():
    return Mock(spec=ValkeyClient)


@pytest.fixture
def manager(mock_valkey, config):
    return SessionManager(mock_valkey, config)


def _stored(staff_id, expires_at):
    return {
        "staff_id": str(staff_id),
        "created_at": FIXED_NOW.isoformat(),
        "expires_at": expires_at.isoformat(),
        "last_activity_at": FIXED_NOW.isoformat(),
    }


class TestCreateSession:
    def test_stores_with_ttl(self, manager, mock_valkey, test_staff_id):
        session = manager.create_session(test_staff_id)

        assert len(session.token) > 20
        assert session.staff_id == test_staff_id
        key, payload = mock_valkey.set_json.call_args.args
        assert key == f"staff_session:{session.token}"
        assert payload["staff_id"] == str(test_staff_id)
        assert mock_valkey.set_json.call_args.kwargs["expire_seconds"] == 3600

    def test_tokens_are_unique(self, manager, test_staff_id):
        assert manager.create_session(test_staff_id).token != manager.create_session(STAFF_B).token


class TestValidateSession:
    def test_valid_session_slides_expiry(self, manager, mock_valkey, test_staff_id):
        mock_valkey.get_json.return_value = _stored(test_staff_id, FIXED_NOW + timedelta(minutes=30))
        later = FIXED_NOW + timedelta(minutes=10)

        with patch("auth.session.now_utc", return_value=later):
            session = manager.validate_session("tok")

        assert session.staff_id == test_staff_id
        assert session.expires_at == later + timedelta(hours=1)
        assert session.last_activity_at == later
        mock_valkey.set_json.assert_called_once()

    def test_unknown_token(self, manager, mock_valkey):
        mock_valkey.get_json.return_value = None
        with pytest.raises(SessionExpiredError):
            manager.validate_session("nope")

    def test_expired_session_is_deleted(self, manager, mock_valkey, test_staff_id):
        mock_valkey.get_json.return_value = _stored(test_staff_id, FIXED_NOW)

        with patch("auth.session.now_utc", return_value=FIXED_NOW + timedelta(seconds=1)):
            with pytest.raises(SessionExpiredError):
                manager.validate_session("tok")

        mock_valkey.delete.assert_called_once_with("staff_session:tok")
        mock_valkey.set_json.assert_not_called()


class TestRevokeSession:
    def test_deletes_key(self, manager, mock_valkey):
        manager.revoke_session("tok")
        mock_valkey.delete.assert_called_once_with("staff_session:tok")


class TestLiveValkey:
    """Round trip against a real Valkey (skipped without one)."""

    @pytest.fixture
    def live_manager(self, valkey, config):
        manager = SessionManager(valkey, config)
        yield manager
        for key in valkey._client.keys("staff_session:*"):
            valkey._client.delete(key)

    def test_create_validate_revoke(self, live_manager, test_staff_id):
        session = live_manager.create_session(test_staff_id)

        assert live_manager.validate_session(session.token).staff_id == test_staff_id

        live_manager.revoke_session(session.token)
        with pytest.raises(SessionExpiredError):
            live_manager.validate_session(session.token)
