"""API test fixtures - the assembled app over mocked services."""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from auth.rate_limiter import RateLimiter
from auth.session import SessionManager
from auth.types import StaffSession
from clients.stripe_client import StripeClient
from core.services.check_in_service import CheckInService
from core.services.exchange_code_service import ExchangeCodeService
from core.services.order_service import OrderService
from core.services.performance_service import PerformanceService
from core.services.stats_service import StatsService
from main import create_app
from utils.timezone import now_utc


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def performance_service():
    return Mock(spec=PerformanceService)


@pytest.fixture
def order_service():
    service = Mock(spec=OrderService)
    # Set in __init__, so Mock(spec=...) lacks it; None means no hosted checkout
    service.payment_gateway = None
    return service


@pytest.fixture
def exchange_code_service():
    return Mock(spec=ExchangeCodeService)


@pytest.fixture
def check_in_service():
    return Mock(spec=CheckInService)


@pytest.fixture
def stats_service():
    return Mock(spec=StatsService)


@pytest.fixture
def rate_limiter():
    return Mock(spec=RateLimiter)


@pytest.fixture
def stripe_client():
    return Mock(spec=StripeClient)


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def mock_session_manager(test_staff_id):
    now = now_utc()
    mock = Mock(spec=SessionManager)
    mock.validate_session.return_value = StaffSession(
        token="test-token",
        staff_id=test_staff_id,
        created_at=now,
        expires_at=now + timedelta(hours=12),
        last_activity_at=now,
    )
    return mock


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def services(
    performance_service,
    order_service,
    exchange_code_service,
    check_in_service,
    stats_service,
    rate_limiter,
    stripe_client,
    mock_session_manager,
):
    return {
        "performance": performance_service,
        "order": order_service,
        "exchange_code": exchange_code_service,
        "check_in": check_in_service,
        "stats": stats_service,
        "rate_limiter": rate_limiter,
        "stripe": stripe_client,
        "session_manager": mock_session_manager,
    }


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app):
    """Staff-authenticated test client."""
    c = TestClient(app, raise_server_exceptions=False)
    c.cookies.set("staff_session", "test-token")
    return c


@pytest.fixture
def unauthed_client(app):
    """Customer client (no staff session cookie)."""
    return TestClient(app, raise_server_exceptions=False)
