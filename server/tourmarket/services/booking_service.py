"""Booking service: creation, state transitions and cancellation."""

import logging
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.dependencies import CurrentUser
from ..core.exceptions import (
    AuthorizationError,
    CapacityError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..core.observability import metrics_collector
from ..core.permissions import can_cancel_booking, can_update_booking_status, can_view_booking
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.tour import Tour
from ..models.user import Role
from ..schemas.booking import CreateBookingRequest
from .availability_service import AvailabilityService, remaining
from .pricing import calculate_price
from .settings_service import SettingsService
from .tour_service import TourService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def can_transition(from_status: BookingStatus, to_status: BookingStatus) -> bool:
    return BookingStatus(to_status) in ALLOWED_TRANSITIONS[BookingStatus(from_status)]


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tour_service = TourService(db)
        self.availability = AvailabilityService(db)
        self.settings = SettingsService(db)

    async def create_booking(self, request: CreateBookingRequest, user: CurrentUser) -> Booking:
        """
        Create a pending booking, reserving slot capacity in the same transaction.

        Args:
            request: Booking creation request
            user: Traveler making the booking

        Returns:
            Created booking entity

        Raises:
            NotFoundError: If the tour or availability slot does not exist
            ValidationError: If the tour is inactive, the date is in the past,
                the traveler already booked this tour on this date, the group is
                too large, or the slot belongs to another tour or another date
            CapacityError: If the slot does not have enough spots left
        """
        tour = await self.tour_service.get_tour_by_id_or_raise(request.tour_id)

        if not tour.is_active:
            raise ValidationError(detail="This tour is not currently available for booking")

        if request.date < date.today():
            raise ValidationError(detail="Cannot book a tour for a past date")

        if await self._has_open_booking(user.user_id, tour.id, request.date):
            logger.info(
                "Booking rejected - duplicate booking",
                extra={"user_id": str(user.user_id), "tour_id": str(tour.id), "date": request.date.isoformat()}
            )
            raise ValidationError(detail="You already have a booking for this tour on this date")

        if request.guests > tour.max_group_size:
            raise ValidationError(
                detail=f"Maximum group size is {tour.max_group_size} guests",
                extensions={"max_group_size": tour.max_group_size, "requested_guests": request.guests},
            )

        if request.availability_id:
            slot = await self.availability.get_slot_by_id_or_raise(request.availability_id)
            if slot.tour_id != tour.id:
                raise ValidationError(detail="The availability slot does not belong to this tour")
            if slot.date != request.date:
                raise ValidationError(
                    detail="The booking date does not match the availability slot date",
                    extensions={"slot_date": slot.date.isoformat(), "requested_date": request.date.isoformat()},
                )
            if not slot.is_active:
                raise ValidationError(detail="The availability slot is not open for booking")
            if request.guests > remaining(slot):
                metrics_collector.record_capacity_rejection()
                raise CapacityError(
                    requested_spots=request.guests,
                    remaining_spots=remaining(slot),
                    slot_id=str(slot.id),
                )

        commission_rate = await self.settings.get_commission_rate()
        quote = calculate_price(tour.price, request.guests, tour.max_group_size, commission_rate)

        booking = Booking(
            user_id=user.user_id,
            tour_id=tour.id,
            availability_id=request.availability_id,
            date=request.date,
            guests=request.guests,
            subtotal=quote.subtotal,
            commission_rate=quote.commission_rate,
            commission_amount=quote.commission_amount,
            guide_earnings=quote.guide_earnings,
            total_price=quote.total_price,
            status=BookingStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            notes=request.notes,
        )

        try:
            if request.availability_id:
                # The check above only shapes the message; this is the guard
                await self.availability.reserve(request.availability_id, request.guests)
            self.db.add(booking)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(booking)
        metrics_collector.record_booking_created()

        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "user_id": str(user.user_id),
                "tour_id": str(tour.id),
                "availability_id": str(request.availability_id) if request.availability_id else None,
                "guests": booking.guests,
                "total_price": str(booking.total_price),
                "commission_rate": str(booking.commission_rate)
            }
        )

        return booking

    async def _has_open_booking(self, user_id: UUID, tour_id: UUID, booking_date: date) -> bool:
        stmt = select(Booking.id).where(
            Booking.user_id == user_id,
            Booking.tour_id == tour_id,
            Booking.date == booking_date,
            Booking.status != BookingStatus.CANCELLED.value,
        ).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_booking_by_id(self, booking_id: UUID) -> Optional[Booking]:
        stmt = (
            select(Booking)
            .options(selectinload(Booking.tour))
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_booking_by_id_or_raise(self, booking_id: UUID) -> Booking:
        """
        Get booking by ID or raise NotFoundError.

        Raises:
            NotFoundError: If booking not found
        """
        booking = await self.get_booking_by_id(booking_id)
        if not booking:
            logger.warning(
                "Booking not found",
                extra={"booking_id": str(booking_id)}
            )
            raise NotFoundError(
                resource_type="booking",
                resource_id=str(booking_id)
            )
        return booking

    async def get_booking_for_user(self, booking_id: UUID, user: CurrentUser) -> Booking:
        booking = await self.get_booking_by_id_or_raise(booking_id)
        if not can_view_booking(user, booking):
            raise AuthorizationError(detail="You do not have access to this booking")
        return booking

    async def get_booking_by_payment_intent(self, payment_intent_id: str) -> Optional[Booking]:
        stmt = select(Booking).where(Booking.stripe_payment_intent_id == payment_intent_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_user_bookings(self, user_id: UUID) -> list[Booking]:
        """A traveler's bookings, newest first, with their tours loaded."""
        stmt = (
            select(Booking)
            .options(selectinload(Booking.tour))
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def list_guide_bookings(self, guide_id: UUID) -> list[Booking]:
        """Bookings on every tour owned by a guide, newest first."""
        stmt = (
            select(Booking)
            .join(Tour, Booking.tour_id == Tour.id)
            .options(selectinload(Booking.tour))
            .where(Tour.guide_id == guide_id)
            .order_by(Booking.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def list_all_bookings(self) -> list[Booking]:
        stmt = select(Booking).options(selectinload(Booking.tour)).order_by(Booking.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def apply_transition(
        self,
        booking: Booking,
        to_status: BookingStatus,
        actor_id: Optional[UUID] = None,
        reason: Optional[str] = None,
    ) -> None:
        """
        Move a booking to ``to_status`` and apply the side effects, without committing.

        Cancelling returns the booking's spots to its slot. Completing stamps
        ``completed_at``.

        Raises:
            InvalidTransitionError: If the state machine does not allow the move
        """
        from_status = BookingStatus(booking.status)
        to_status = BookingStatus(to_status)

        if not can_transition(from_status, to_status):
            logger.warning(
                "Booking transition rejected",
                extra={
                    "booking_id": str(booking.id),
                    "from_status": from_status.value,
                    "to_status": to_status.value
                }
            )
            raise InvalidTransitionError(from_status.value, to_status.value)

        booking.status = to_status.value

        if to_status == BookingStatus.CANCELLED:
            booking.cancelled_at = datetime.now(timezone.utc)
            booking.cancelled_by = actor_id
            booking.cancel_reason = reason
            if booking.availability_id:
                await self.availability.release(booking.availability_id, booking.guests)
        elif to_status == BookingStatus.COMPLETED:
            booking.completed_at = datetime.now(timezone.utc)

        metrics_collector.record_booking_transition(to_status.value)

        logger.info(
            "Booking status changed",
            extra={
                "booking_id": str(booking.id),
                "from_status": from_status.value,
                "to_status": to_status.value,
                "actor_id": str(actor_id) if actor_id else None,
                "reason": reason
            }
        )

    async def update_status(
        self,
        booking_id: UUID,
        to_status: BookingStatus,
        user: CurrentUser,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Status update by the tour's guide or an admin.

        Raises:
            NotFoundError: If the booking does not exist
            AuthorizationError: If the caller neither owns the tour nor is an admin
            InvalidTransitionError: If the transition is not allowed
        """
        booking = await self.get_booking_by_id_or_raise(booking_id)

        if not can_update_booking_status(user, booking.tour):
            raise AuthorizationError(detail="Only the tour's guide or an admin can update this booking")

        return await self._transition_and_commit(booking, to_status, user.user_id, reason)

    async def cancel_booking(self, booking_id: UUID, user: CurrentUser, reason: Optional[str] = None) -> Booking:
        """
        Cancellation by the traveler who made the booking, or an admin.

        Raises:
            NotFoundError: If the booking does not exist
            AuthorizationError: If the caller may not cancel it
            ValidationError: If a traveler tries to cancel a booking that is no longer pending
            InvalidTransitionError: If the booking is already completed or cancelled
        """
        booking = await self.get_booking_by_id_or_raise(booking_id)

        if not can_cancel_booking(user, booking):
            raise AuthorizationError(detail="You cannot cancel this booking")

        if user.role == Role.USER and BookingStatus(booking.status) != BookingStatus.PENDING:
            raise ValidationError(
                detail="Only pending bookings can be cancelled; contact the guide for confirmed bookings",
                extensions={"status": booking.status},
            )

        return await self._transition_and_commit(booking, BookingStatus.CANCELLED, user.user_id, reason)

    async def set_checkout_session(self, booking: Booking, session_id: str) -> Booking:
        booking.stripe_session_id = session_id
        await self.db.commit()
        await self.db.refresh(booking)
        return booking

    async def _transition_and_commit(
        self,
        booking: Booking,
        to_status: BookingStatus,
        actor_id: Optional[UUID],
        reason: Optional[str],
    ) -> Booking:
        try:
            await self.apply_transition(booking, to_status, actor_id=actor_id, reason=reason)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(booking)
        return booking
