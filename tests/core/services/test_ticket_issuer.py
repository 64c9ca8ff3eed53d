"""Tests for TicketIssuer."""

from unittest.mock import Mock

import pytest

from clients.postgres_client import PostgresClient
from core.errors import ConcurrencyConflictError
from core.models import Order, TicketType
from core.services.ticket_issuer import TicketIssuer, new_ticket_code
from factories import FIXED_NOW, order_row, ticket_row


def _echo_insert(query, params):
    """Build the rows an INSERT ... SELECT unnest(...) RETURNING * would return."""
    ids, codes, order_id, types, exchanged, exchange_codes, created_at = params
    return [
        ticket_row(
            id=ids[i], code=codes[i], order_id=order_id, ticket_type=types[i],
            is_exchanged=exchanged[i], exchange_code=exchange_codes[i], created_at=created_at,
        )
        for i in range(len(ids))
    ]


@pytest.fixture
def issuer():
    return TicketIssuer(Mock(spec=PostgresClient))


@pytest.fixture
def open_tx(tx):
    tx.execute_single.return_value = {"issued": 0}
    tx.execute_returning.side_effect = _echo_insert
    return tx


def _order(**overrides):
    return Order.model_validate(order_row(status="paid", paid_at=FIXED_NOW, **overrides))


class TestIssue:
    def test_one_ticket_per_seat(self, issuer, open_tx):
        order = _order(general_quantity=3, reserved_quantity=1)

        tickets = issuer.issue(open_tx, order, [])

        assert len(tickets) == 4
        assert [t.ticket_type for t in tickets].count(TicketType.GENERAL) == 3
        assert [t.ticket_type for t in tickets].count(TicketType.RESERVED) == 1
        assert all(t.order_id == order.id for t in tickets)
        assert all(not t.is_used for t in tickets)

    def test_first_general_tickets_carry_redeemed_codes(self, issuer, open_tx):
        order = _order(
            general_quantity=3, reserved_quantity=1,
            discounted_general_count=2, exchange_codes=["AAAA2222", "BBBB3333"],
        )

        tickets = issuer.issue(open_tx, order, ["AAAA2222", "BBBB3333"])

        exchanged = [t for t in tickets if t.is_exchanged]
        assert [t.exchange_code for t in exchanged] == ["AAAA2222", "BBBB3333"]
        assert all(t.ticket_type == TicketType.GENERAL for t in exchanged)
        assert sum(1 for t in tickets if not t.is_exchanged) == 2

    def test_codes_are_unique(self, issuer, open_tx):
        tickets = issuer.issue(open_tx, _order(general_quantity=10, reserved_quantity=0), [])
        assert len({t.code for t in tickets}) == 10

    def test_code_count_mismatch_raises(self, issuer, open_tx):
        order = _order(discounted_general_count=2, exchange_codes=["AAAA2222", "BBBB3333"])
        with pytest.raises(ValueError, match="needs 2 redeemed codes"):
            issuer.issue(open_tx, order, ["AAAA2222"])
        open_tx.execute_returning.assert_not_called()

    def test_refuses_second_issuance(self, issuer, open_tx):
        open_tx.execute_single.return_value = {"issued": 4}
        with pytest.raises(ConcurrencyConflictError, match="already issued"):
            issuer.issue(open_tx, _order(), [])
        open_tx.execute_returning.assert_not_called()


class TestNewTicketCode:
    def test_url_safe_and_long(self):
        code = new_ticket_code()
        assert len(code) >= 22
        assert all(c.isalnum() or c in "-_" for c in code)
