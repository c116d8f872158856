"""Apply Stripe webhook events to bookings."""

from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import CapacityError
from ..core.observability import get_logger, metrics_collector
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..services.booking_service import BookingService
from ..services.idempotency_service import IdempotencyService

logger = get_logger(__name__)

PAYMENT_FAILED_REASON = "payment failed"

# Outcomes recorded per event
CONFIRMED = "confirmed"
ALREADY_CONFIRMED = "already_confirmed"
PAID_AFTER_CANCEL = "paid_after_cancel"
CANCELLED = "cancelled"
RECORDED = "recorded"
UNMATCHED = "unmatched"
IGNORED = "ignored"
DUPLICATE = "duplicate"


def _metadata_value(obj: Any, key: str) -> Optional[str]:
    metadata = getattr(obj, "metadata", None)
    if not metadata:
        return None
    try:
        return metadata[key]
    except KeyError:
        return None


def _object_id(value: Any) -> Optional[str]:
    """Id of a possibly expanded Stripe reference."""
    if value is None or isinstance(value, str):
        return value
    return getattr(value, "id", None)


async def _booking_from_metadata(service: BookingService, obj: Any) -> Optional[Booking]:
    raw_id = _metadata_value(obj, "booking_id")
    if not raw_id:
        return None
    try:
        booking_id = UUID(str(raw_id))
    except ValueError:
        logger.warning("Webhook metadata carries an invalid booking id", booking_id=raw_id)
        return None
    return await service.get_booking_by_id(booking_id)


async def handle_checkout_session_completed(db: AsyncSession, event: Any) -> str:
    """
    checkout.session.completed: mark the booking paid and confirm it.

    Spots were reserved when the booking was created, so no second
    reservation is made unless ``reserve_spots_on_payment`` is enabled.
    """
    session = event.data.object
    service = BookingService(db)
    log = logger.with_context(event_id=event.id, session_id=getattr(session, "id", None))

    booking = await _booking_from_metadata(service, session)
    if booking is None:
        log.warning("No booking matches checkout session")
        return UNMATCHED

    log = log.with_context(booking_id=str(booking.id))

    payment_intent_id = _object_id(getattr(session, "payment_intent", None))
    if payment_intent_id:
        booking.stripe_payment_intent_id = payment_intent_id
    if not booking.stripe_session_id:
        booking.stripe_session_id = session.id
    booking.payment_status = PaymentStatus.PAID.value

    status = BookingStatus(booking.status)
    if status == BookingStatus.PENDING:
        await service.apply_transition(booking, BookingStatus.CONFIRMED)
        if settings.reserve_spots_on_payment and booking.availability_id:
            try:
                await service.availability.reserve(booking.availability_id, booking.guests)
            except CapacityError:
                log.error("Slot full when reserving spots on payment; booking stays confirmed")
        log.info("Booking confirmed by payment")
        return CONFIRMED

    if status == BookingStatus.CANCELLED:
        log.warning("Payment received for a cancelled booking; refund needed")
        return PAID_AFTER_CANCEL

    log.info("Payment received for booking already past pending", status=status.value)
    return ALREADY_CONFIRMED


async def handle_payment_failed(db: AsyncSession, event: Any) -> str:
    """payment_intent.payment_failed: mark the booking failed and cancel it."""
    intent = event.data.object
    service = BookingService(db)
    log = logger.with_context(event_id=event.id, payment_intent_id=intent.id)

    booking = await service.get_booking_by_payment_intent(intent.id)
    if booking is None:
        booking = await _booking_from_metadata(service, intent)
    if booking is None:
        log.warning("No booking matches failed payment intent")
        return UNMATCHED

    log = log.with_context(booking_id=str(booking.id))

    booking.payment_status = PaymentStatus.FAILED.value
    if not booking.stripe_payment_intent_id:
        booking.stripe_payment_intent_id = intent.id

    if BookingStatus(booking.status) in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
        await service.apply_transition(booking, BookingStatus.CANCELLED, reason=PAYMENT_FAILED_REASON)
        log.info("Booking cancelled after failed payment")
        return CANCELLED

    log.info("Failed payment recorded", status=booking.status)
    return RECORDED


EventHandler = Callable[[AsyncSession, Any], Awaitable[str]]

EVENT_HANDLERS: dict[str, EventHandler] = {
    "checkout.session.completed": handle_checkout_session_completed,
    "payment_intent.payment_failed": handle_payment_failed,
}


async def process_event(db: AsyncSession, event: Any) -> str:
    """
    Apply a verified event exactly once.

    The processed-event record commits in the same transaction as the
    event's side effects. Any failure rolls back both, so the processor's
    retry gets a clean attempt.

    Returns:
        str: Outcome of the event, ``duplicate`` for a replay
    """
    idempotency = IdempotencyService(db)
    log = logger.with_context(event_id=event.id, event_type=event.type)

    if await idempotency.is_processed(event.id):
        log.info("Duplicate webhook event acknowledged")
        metrics_collector.record_webhook_event(event.type, DUPLICATE)
        return DUPLICATE

    handler = EVENT_HANDLERS.get(event.type)

    try:
        if handler is None:
            log.debug("Unhandled webhook event type")
            outcome = IGNORED
        else:
            outcome = await handler(db, event)
        idempotency.mark_processed(event.id, event.type, outcome)
    except Exception:
        await db.rollback()
        metrics_collector.record_webhook_event(event.type, "error")
        raise

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent delivery of this event committed first
        await db.rollback()
        log.info("Webhook event already processed by a concurrent delivery")
        metrics_collector.record_webhook_event(event.type, DUPLICATE)
        return DUPLICATE
    except Exception:
        await db.rollback()
        metrics_collector.record_webhook_event(event.type, "error")
        raise

    metrics_collector.record_webhook_event(event.type, outcome)
    log.info("Webhook event processed", outcome=outcome)
    return outcome
