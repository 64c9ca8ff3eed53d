"""Tests for compute_price - the authoritative order price."""

import pytest

from core.pricing import compute_price


class TestComputePrice:
    def test_worked_example(self):
        """3 general + 1 reserved, 4500/5500, two codes."""
        quote = compute_price(3, 1, 4500, 5500, 2)

        assert quote.discounted_general_count == 2
        assert quote.discount_amount == 9000
        assert quote.total == 10000
        assert quote.subtotal == 19000

    def test_no_codes_charges_full_price(self):
        quote = compute_price(2, 0, 4500, 5500, 0)
        assert quote.discounted_general_count == 0
        assert quote.total == 9000

    def test_codes_beyond_general_seats_do_not_discount_reserved(self):
        """Codes only ever cover general seats."""
        quote = compute_price(1, 2, 4500, 5500, 5)

        assert quote.discounted_general_count == 1
        assert quote.discount_amount == 4500
        assert quote.total == 11000

    def test_fully_exchanged_order_totals_zero(self):
        quote = compute_price(2, 0, 4500, 5500, 2)
        assert quote.total == 0

    def test_total_equals_subtotal_minus_discount(self):
        for general, reserved, codes in [(0, 3, 1), (4, 4, 2), (10, 0, 7)]:
            quote = compute_price(general, reserved, 4500, 5500, codes)
            assert quote.total == quote.subtotal - quote.discount_amount

    def test_captures_unit_prices(self):
        quote = compute_price(1, 1, 3000, 3500, 0)
        assert quote.general_unit_price == 3000
        assert quote.reserved_unit_price == 3500

    @pytest.mark.parametrize("args", [
        (-1, 0, 4500, 5500, 0),
        (0, -1, 4500, 5500, 0),
        (1, 0, -4500, 5500, 0),
        (1, 0, 4500, -5500, 0),
        (1, 0, 4500, 5500, -1),
    ])
    def test_negative_input_raises(self, args):
        with pytest.raises(ValueError, match="must be >= 0"):
            compute_price(*args)
