from decimal import Decimal

from bakery.domain.pricing import as_money, compute_totals, shipping_fee_for


class TestComputeTotals:
    def test_small_cart_pays_tax_and_shipping(self):
        totals = compute_totals([(Decimal("12.00"), 2), (Decimal("10.00"), 1)])
        assert totals.subtotal == Decimal("34.00")
        assert totals.tax == Decimal("2.72")
        assert totals.shipping_fee == Decimal("5.00")
        assert totals.total == Decimal("41.72")
        assert totals.item_count == 3

    def test_threshold_is_inclusive(self):
        totals = compute_totals([(Decimal("25.00"), 2)])
        assert totals.subtotal == Decimal("50.00")
        assert totals.shipping_fee == Decimal("0.00")
        assert totals.total == Decimal("54.00")

    def test_just_below_threshold(self):
        totals = compute_totals([(Decimal("49.99"), 1)])
        assert totals.shipping_fee == Decimal("5.00")
        assert totals.tax == Decimal("4.00")
        assert totals.total == Decimal("58.99")

    def test_empty_cart_is_all_zero(self):
        totals = compute_totals([])
        assert totals.total == Decimal("0.00")
        assert totals.shipping_fee == Decimal("0.00")
        assert totals.item_count == 0

    def test_discount_is_subtracted(self):
        totals = compute_totals([(Decimal("60.00"), 1)], discount_total=Decimal("10"))
        assert totals.discount_total == Decimal("10.00")
        assert totals.total == Decimal("54.80")

    def test_same_lines_same_totals(self):
        lines = [(Decimal("3.33"), 3), (Decimal("0.99"), 7)]
        assert compute_totals(lines) == compute_totals(lines)


def test_as_money_rounds_half_up():
    assert as_money(Decimal("0.125")) == Decimal("0.13")
    assert as_money("2.675") == Decimal("2.68")
    assert as_money(3) == Decimal("3.00")


def test_shipping_fee_for_zero_subtotal():
    assert shipping_fee_for(Decimal("0.00")) == Decimal("0.00")
