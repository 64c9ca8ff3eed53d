"""
Order price computation.

Pure and deterministic: no I/O, no clock, no randomness. The same function
backs the customer-facing preview and the authoritative charge; only the
server-side result is ever charged.

Exchange codes discount general seats only, one code per seat. Codes beyond
the general quantity are not applied and are not an error.
"""

from core.models.order import PriceQuote


def compute_price(
    general_quantity: int,
    reserved_quantity: int,
    general_unit_price: int,
    reserved_unit_price: int,
    valid_code_count: int,
) -> PriceQuote:
    """
    Compute totals and discount breakdown.

    Args:
        general_quantity: General seats requested
        reserved_quantity: Reserved seats requested
        general_unit_price: Price per general seat
        reserved_unit_price: Price per reserved seat
        valid_code_count: Distinct currently-valid exchange codes supplied

    Returns:
        PriceQuote with discounted_general_count = min(codes, general seats)

    Raises:
        ValueError: If any input is negative
    """
    for name, value in (
        ("general_quantity", general_quantity),
        ("reserved_quantity", reserved_quantity),
        ("general_unit_price", general_unit_price),
        ("reserved_unit_price", reserved_unit_price),
        ("valid_code_count", valid_code_count),
    ):
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")

    discounted = min(valid_code_count, general_quantity)
    subtotal = general_quantity * general_unit_price + reserved_quantity * reserved_unit_price
    discount_amount = discounted * general_unit_price
    total = (general_quantity - discounted) * general_unit_price + reserved_quantity * reserved_unit_price

    return PriceQuote(
        general_quantity=general_quantity,
        reserved_quantity=reserved_quantity,
        general_unit_price=general_unit_price,
        reserved_unit_price=reserved_unit_price,
        discounted_general_count=discounted,
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=total,
    )
