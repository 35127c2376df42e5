# bakery/domain/pricing.py
"""
Money math for carts and orders.

Every intermediate value is rounded to cents (half-up) as soon as it is
computed, so subtotal -> tax -> total never accumulates float drift.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple

from bakery.utils.settings import FREE_SHIPPING_THRESHOLD, SHIPPING_FEE, TAX_RATE

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def as_money(value) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    shipping_fee: Decimal
    discount_total: Decimal
    total: Decimal
    item_count: int


def shipping_fee_for(subtotal: Decimal) -> Decimal:
    # nothing to ship: an empty cart shows 0.00, checkout rejects it anyway
    if subtotal <= ZERO:
        return ZERO
    return ZERO if subtotal >= FREE_SHIPPING_THRESHOLD else as_money(SHIPPING_FEE)


def compute_totals(lines: Iterable[Tuple[Decimal, int]], discount_total: Decimal = ZERO) -> Totals:
    """lines: (unit_price, quantity) pairs."""
    subtotal = ZERO
    item_count = 0
    for unit_price, quantity in lines:
        subtotal = as_money(subtotal + as_money(unit_price) * quantity)
        item_count += quantity

    tax = as_money(subtotal * TAX_RATE)
    shipping = shipping_fee_for(subtotal)
    discount = as_money(discount_total)
    total = as_money(subtotal + tax + shipping - discount)

    return Totals(
        subtotal=subtotal,
        tax=tax,
        shipping_fee=shipping,
        discount_total=discount,
        total=total,
        item_count=item_count,
    )
