"""Unit tests for booking price calculation."""

from decimal import Decimal

import pytest

from tourmarket.core.exceptions import ValidationError
from tourmarket.services.pricing import calculate_price


def test_commission_comes_out_of_guide_share():
    """Two guests at 100.00 with a 10% commission."""
    quote = calculate_price(Decimal("100.00"), 2, 12, Decimal("10"))

    assert quote.subtotal == Decimal("200.00")
    assert quote.commission_amount == Decimal("20.00")
    assert quote.guide_earnings == Decimal("180.00")
    assert quote.total_price == Decimal("200.00")


def test_commission_rounds_half_up_to_cents():
    quote = calculate_price(Decimal("33.33"), 1, 5, Decimal("12.5"))

    # 33.33 * 12.5% = 4.16625
    assert quote.commission_amount == Decimal("4.17")
    assert quote.guide_earnings == Decimal("29.16")


def test_float_inputs_are_exact():
    quote = calculate_price(19.99, 3, 10, 15)

    assert quote.subtotal == Decimal("59.97")
    assert quote.commission_amount + quote.guide_earnings == quote.subtotal


@pytest.mark.parametrize("rate,commission", [(0, Decimal("0.00")), (100, Decimal("150.00"))])
def test_commission_rate_bounds(rate, commission):
    quote = calculate_price(Decimal("50.00"), 3, 3, rate)

    assert quote.commission_amount == commission
    assert quote.guide_earnings == Decimal("150.00") - commission


@pytest.mark.parametrize(
    "unit_price,guests,max_group_size,rate",
    [
        (Decimal("0"), 1, 5, 10),
        (Decimal("-5"), 1, 5, 10),
        (Decimal("10"), 0, 5, 10),
        (Decimal("10"), 6, 5, 10),
        (Decimal("10"), 1, 5, -1),
        (Decimal("10"), 1, 5, Decimal("100.01")),
    ],
)
def test_rejects_out_of_range_inputs(unit_price, guests, max_group_size, rate):
    with pytest.raises(ValidationError) as exc_info:
        calculate_price(unit_price, guests, max_group_size, rate)

    assert exc_info.value.status_code == 400
