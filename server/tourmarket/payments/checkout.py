"""Booking checkout through Stripe Checkout."""

import logging

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser
from ..core.exceptions import InternalServerError, PaymentProviderError
from ..models.booking import Booking, BookingStatus
from ..schemas.booking import CreateBookingRequest
from ..schemas.checkout import CreateCheckoutSessionRequest
from ..services.booking_service import BookingService
from .stripe_client import create_checkout_session

logger = logging.getLogger(__name__)

CHECKOUT_FAILED_REASON = "checkout session failed"


async def start_checkout(
    db: AsyncSession,
    request: CreateCheckoutSessionRequest,
    user: CurrentUser,
) -> tuple[Booking, stripe.checkout.Session]:
    """
    Create a pending booking and a Checkout Session to pay for it.

    If the session cannot be created, for any reason, the booking is
    cancelled, which returns its spots to the slot.

    Raises:
        PaymentProviderError: If Stripe refused to create the Checkout Session
        InternalServerError: If session creation failed unexpectedly
    """
    service = BookingService(db)
    booking = await service.create_booking(
        CreateBookingRequest(**request.model_dump()),
        user,
    )
    tour = await service.tour_service.get_tour_by_id_or_raise(booking.tour_id)

    try:
        session = await create_checkout_session(booking, tour, user.email)
    except stripe.StripeError as e:
        logger.error(
            "Checkout session creation failed",
            extra={"booking_id": str(booking.id), "error": str(e)}
        )
        await _release_booking(service, booking)
        raise PaymentProviderError("Could not start checkout with the payment provider") from e
    except Exception as e:
        logger.error(
            "Unexpected error creating checkout session",
            extra={"booking_id": str(booking.id), "error": str(e)},
            exc_info=True
        )
        await _release_booking(service, booking)
        raise InternalServerError() from e

    await service.set_checkout_session(booking, session.id)

    logger.info(
        "Checkout session created",
        extra={"booking_id": str(booking.id), "session_id": session.id}
    )
    return booking, session


async def _release_booking(service: BookingService, booking: Booking) -> None:
    """Cancel a booking that has no Checkout Session, returning its spots."""
    await service.apply_transition(booking, BookingStatus.CANCELLED, reason=CHECKOUT_FAILED_REASON)
    await service.db.commit()
