"""Booking price and commission calculation."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..core.exceptions import ValidationError

CENT = Decimal("0.01")


@dataclass(frozen=True)
class PriceQuote:
    """Amounts captured on a booking when it is created."""

    subtotal: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    guide_earnings: Decimal
    total_price: Decimal


def _to_decimal(value) -> Decimal:
    # str() keeps floats like 0.1 from expanding to their binary value
    return value if isinstance(value, Decimal) else Decimal(str(value))


def calculate_price(unit_price, guests: int, max_group_size: int, commission_rate) -> PriceQuote:
    """
    Price a booking.

    The commission is the platform's cut of the subtotal and comes out of
    the guide's share, so the traveler pays the subtotal.

    Args:
        unit_price: Tour price per guest, positive
        guests: Number of guests, between 1 and ``max_group_size``
        max_group_size: Tour's maximum group size
        commission_rate: Platform commission percentage, 0 to 100

    Returns:
        PriceQuote: Subtotal, commission, guide earnings and total

    Raises:
        ValidationError: If any input is out of range
    """
    unit_price = _to_decimal(unit_price)
    commission_rate = _to_decimal(commission_rate)

    if unit_price <= 0:
        raise ValidationError(detail="Tour price must be greater than zero")
    if guests < 1:
        raise ValidationError(detail="At least one guest is required")
    if guests > max_group_size:
        raise ValidationError(
            detail=f"Maximum group size is {max_group_size} guests",
            extensions={"max_group_size": max_group_size, "requested_guests": guests},
        )
    if not Decimal("0") <= commission_rate <= Decimal("100"):
        raise ValidationError(detail="Commission rate must be between 0 and 100")

    subtotal = (unit_price * guests).quantize(CENT, rounding=ROUND_HALF_UP)
    commission_amount = (subtotal * commission_rate / 100).quantize(CENT, rounding=ROUND_HALF_UP)
    guide_earnings = subtotal - commission_amount

    return PriceQuote(
        subtotal=subtotal,
        commission_rate=commission_rate,
        commission_amount=commission_amount,
        guide_earnings=guide_earnings,
        total_price=subtotal,
    )
