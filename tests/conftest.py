"""Shared test fixtures for the ticketing test suite."""

import os
from pathlib import Path
from unittest.mock import MagicMock, Mock
from uuid import UUID

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
# override=True ensures .env takes precedence over shell env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from clients.postgres_client import PostgresClient, Transaction
from utils.staff_context import clear_current_staff_id


SCHEMA_PATH = Path(__file__).parent.parent / "schema" / "ticketing.sql"

# Door staff member used wherever a staff actor is needed
TEST_STAFF_ID = UUID("00000000-0000-0000-0000-0000000000a1")


# =============================================================================
# STAFF CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_staff_context():
    """Ensure clean staff context before and after each test."""
    clear_current_staff_id()
    yield
    clear_current_staff_id()


@pytest.fixture
def test_staff_id() -> UUID:
    return TEST_STAFF_ID


# =============================================================================
# MOCK DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def tx():
    """Mock Transaction yielded by mock_db.transaction()."""
    return Mock(spec=Transaction)


@pytest.fixture
def mock_db(tx):
    """
    Mock PostgresClient.

    transaction() is a context manager yielding `tx`; exceptions raised in
    the block propagate like the real client after rollback.
    """
    db = MagicMock(spec=PostgresClient)
    db.transaction.return_value.__enter__.return_value = tx
    db.transaction.return_value.__exit__.return_value = False
    return db


# =============================================================================
# LIVE DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def db():
    """Session-scoped PostgresClient against a disposable test database."""
    url = os.getenv("TICKETING_TEST_DATABASE_URL")
    if not url:
        pytest.skip("TICKETING_TEST_DATABASE_URL not set")

    client = PostgresClient(url)
    client.execute(SCHEMA_PATH.read_text())
    yield client
    client.close()


@pytest.fixture
def clean_db(db):
    """Empty every ticketing table before the test."""
    db.execute("""
        TRUNCATE audit_log, tickets, exchange_codes, orders, performers, performances
        CASCADE
    """)
    yield db


# =============================================================================
# VALKEY FIXTURES
# =============================================================================


@pytest.fixture(scope="session")
def valkey():
    """Session-scoped ValkeyClient against a disposable Valkey."""
    url = os.getenv("TICKETING_TEST_VALKEY_URL")
    if not url:
        pytest.skip("TICKETING_TEST_VALKEY_URL not set")

    from clients.valkey_client import ValkeyClient

    client = ValkeyClient(url)
    yield client
    client.close()
