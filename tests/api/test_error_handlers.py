"""Tests for api/errors.py - domain errors mapped onto the response envelope."""

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from core.errors import PaymentProviderError, TicketAlreadyUsedError


@pytest.fixture
def client():
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    @app.get("/provider")
    async def provider():
        raise PaymentProviderError("Payment provider unavailable: timeout")

    @app.get("/used")
    async def used():
        raise TicketAlreadyUsedError("Ticket already used", used_at=None, customer_name="Hanako Yamada")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    return TestClient(app, raise_server_exceptions=False)


class TestErrorHandlers:
    def test_domain_error_status_and_code(self, client):
        response = client.get("/provider")

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "PAYMENT_PROVIDER_ERROR"

    def test_request_id_in_body_matches_header(self, client):
        response = client.get("/used", headers={"X-Request-ID": "door-1-scan-42"})

        assert response.json()["meta"]["request_id"] == "door-1-scan-42"
        assert response.json()["error"]["details"] == {"used_at": None, "customer_name": "Hanako Yamada"}

    def test_unhandled_error_hides_internals(self, client):
        response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert "secret" not in body["error"]["message"]
