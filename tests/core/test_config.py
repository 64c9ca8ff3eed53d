"""Tests for TicketingConfig."""

import pytest
from pydantic import ValidationError

from core.config import TicketingConfig


class TestDefaults:
    def test_defaults(self):
        config = TicketingConfig()
        assert config.max_tickets_per_order == 10
        assert config.venue_timezone == "Asia/Tokyo"
        assert config.currency == "jpy"
        assert config.exchange_code_length == 8
        assert config.exchange_code_batch_max == 50


class TestValidation:
    def test_unknown_timezone_rejected(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            TicketingConfig(venue_timezone="Mars/Olympus")

    def test_max_tickets_bounded(self):
        with pytest.raises(ValidationError):
            TicketingConfig(max_tickets_per_order=0)


class TestUrls:
    def test_checkout_urls_from_base(self):
        config = TicketingConfig(site_base_url="https://easel.example.com/")
        assert config.checkout_success_url == (
            "https://easel.example.com/ticket/success?session_id={CHECKOUT_SESSION_ID}"
        )
        assert config.checkout_cancel_url == "https://easel.example.com/ticket/purchase"
        assert config.tickets_url == "https://easel.example.com/ticket"
