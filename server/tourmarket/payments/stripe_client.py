"""Async Stripe API wrapper."""

import logging
from decimal import ROUND_HALF_UP, Decimal

import stripe
from stripe import StripeClient

from ..core.config import settings
from ..models.booking import Booking
from ..models.tour import Tour

logger = logging.getLogger(__name__)


def get_stripe_client() -> StripeClient:
    """Create a StripeClient instance with async HTTP support."""
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


def to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to cents."""
    return int((Decimal(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


async def create_checkout_session(booking: Booking, tour: Tour, customer_email: str) -> stripe.checkout.Session:
    """
    Create a one-off Checkout Session charging a booking's total price.

    The booking id is stored in both the session and the payment intent
    metadata so webhook events for either object can find the booking.
    """
    client = get_stripe_client()
    metadata = {
        "booking_id": str(booking.id),
        "tour_id": str(tour.id),
        "user_id": str(booking.user_id),
    }

    logger.info(
        "Creating checkout session",
        extra={"booking_id": str(booking.id), "amount": str(booking.total_price)}
    )

    return await client.v1.checkout.sessions.create_async(
        params={
            "mode": "payment",
            "customer_email": customer_email,
            "line_items": [
                {
                    "price_data": {
                        "currency": settings.currency,
                        "product_data": {
                            "name": tour.title,
                            "description": f"{booking.guests} guest(s) on {booking.date.isoformat()}",
                        },
                        "unit_amount": to_minor_units(booking.total_price),
                    },
                    "quantity": 1,
                }
            ],
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
            "success_url": f"{settings.frontend_url}/booking-success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{settings.frontend_url}/tours/{tour.id}",
        }
    )


def construct_webhook_event(payload: bytes, sig_header: str) -> stripe.Event:
    """Verify and construct a Stripe webhook event (synchronous)."""
    client = get_stripe_client()
    return client.construct_event(payload, sig_header, settings.stripe_webhook_secret)
