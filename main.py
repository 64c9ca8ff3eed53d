"""
Application assembly: secrets, clients, services, event wiring and routes.

Run with:
    uvicorn --factory main:build_app
"""

import logging
import os

from fastapi import FastAPI

from api.base import success_response
from api.check_in import create_check_in_router
from api.errors import register_error_handlers
from api.exchange_codes import create_exchange_codes_router
from api.middleware import RequestIDMiddleware
from api.orders import create_orders_router
from api.performances import create_performances_router
from api.webhooks import create_webhooks_router
from auth import AuthConfig, RateLimiter, SessionManager, StaffAuthMiddleware
from clients import (
    EmailGatewayClient,
    PostgresClient,
    StripeClient,
    ValkeyClient,
    get_database_url,
    get_email_config,
    get_stripe_config,
    get_valkey_url,
)
from core.audit import AuditLogger
from core.config import TicketingConfig
from core.event_bus import EventBus
from core.handlers.check_in_stats_handler import handle_ticket_checked_in
from core.handlers.order_paid_handler import handle_order_paid
from core.handlers.order_refunded_handler import handle_order_refunded
from core.services.check_in_service import CheckInService
from core.services.exchange_code_service import ExchangeCodeService
from core.services.order_service import OrderService
from core.services.performance_service import PerformanceService
from core.services.stats_service import StatsService
from core.services.ticket_issuer import TicketIssuer

logger = logging.getLogger(__name__)


def wire_event_handlers(event_bus: EventBus, email_client, stats_service, config: TicketingConfig) -> None:
    """Subscribe the side-effect handlers to their events."""
    event_bus.subscribe("OrderPaid", handle_order_paid(email_client, config))
    event_bus.subscribe("OrderRefunded", handle_order_refunded(email_client))
    event_bus.subscribe("TicketCheckedIn", handle_ticket_checked_in(stats_service))


def build_services(
    config: TicketingConfig | None = None,
    auth_config: AuthConfig | None = None,
) -> dict:
    """
    Construct every client and service from Vault-held secrets.

    Raises:
        VaultError: If a secret cannot be read
    """
    config = config or TicketingConfig()
    auth_config = auth_config or AuthConfig()

    postgres = PostgresClient(get_database_url())
    valkey = ValkeyClient(get_valkey_url())
    email_client = EmailGatewayClient(**get_email_config())
    stripe_config = get_stripe_config()
    stripe_client = StripeClient(
        stripe_config["secret_key"],
        stripe_config["webhook_secret"],
        currency=config.currency,
    )

    audit = AuditLogger(postgres)
    event_bus = EventBus()

    exchange_codes = ExchangeCodeService(postgres, audit, config)
    issuer = TicketIssuer(postgres)
    stats = StatsService(postgres, valkey, config)

    wire_event_handlers(event_bus, email_client, stats, config)

    return {
        "performance": PerformanceService(postgres, audit),
        "exchange_code": exchange_codes,
        "order": OrderService(
            postgres, audit, event_bus, config, exchange_codes, issuer,
            payment_gateway=stripe_client,
        ),
        "check_in": CheckInService(postgres, audit, event_bus),
        "stats": stats,
        "stripe": stripe_client,
        "rate_limiter": RateLimiter(valkey, auth_config),
        "session_manager": SessionManager(valkey, auth_config),
    }


def create_app(services: dict, auth_config: AuthConfig | None = None) -> FastAPI:
    """FastAPI app with staff auth, error handlers and all routes."""
    auth_config = auth_config or AuthConfig()

    app = FastAPI(title="Ticketing")
    # Last added runs outermost, so staff auth rejections carry a request id
    app.add_middleware(
        StaffAuthMiddleware,
        session_manager=services["session_manager"],
        cookie_name=auth_config.staff_session_cookie,
    )
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_performances_router(services), prefix="/api")
    app.include_router(create_orders_router(services), prefix="/api")
    app.include_router(create_exchange_codes_router(services), prefix="/api")
    app.include_router(create_check_in_router(services), prefix="/api")
    app.include_router(create_webhooks_router(services))

    @app.get("/health")
    async def health():
        return success_response({"status": "ok"}).model_dump(mode="json")

    return app


def build_app() -> FastAPI:
    """Production entry point: configure logging, load secrets, assemble."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Building ticketing application")
    return create_app(build_services())

