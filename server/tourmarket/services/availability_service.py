"""Availability ledger: slot capacity accounting and slot management."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser
from ..core.exceptions import AuthorizationError, CapacityError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..core.permissions import can_manage_tour
from ..models.availability import AvailabilitySlot
from ..models.booking import Booking
from ..schemas.availability import CreateSlotRequest
from .tour_service import TourService

logger = logging.getLogger(__name__)


def remaining(slot: AvailabilitySlot) -> int:
    """Spots still open on a slot."""
    return slot.available_spots - slot.booked_spots


class AvailabilityService:
    """
    Tracks booked spots per availability slot.

    ``reserve`` and ``release`` are single UPDATE statements and do not
    commit, so they take part in the caller's transaction. ``reserve``
    only succeeds when the new total still fits in the slot, which keeps
    ``0 <= booked_spots <= available_spots`` under concurrent bookings.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tour_service = TourService(db)

    async def reserve(self, slot_id: UUID, guests: int) -> None:
        """
        Add ``guests`` to a slot's booked spots if they fit.

        Raises:
            CapacityError: If the slot does not have ``guests`` spots left,
                or no longer exists
        """
        stmt = (
            update(AvailabilitySlot)
            .where(
                AvailabilitySlot.id == slot_id,
                AvailabilitySlot.booked_spots + guests <= AvailabilitySlot.available_spots,
            )
            .values(booked_spots=AvailabilitySlot.booked_spots + guests)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.rowcount == 0:
            slot = await self.get_slot_by_id(slot_id)
            left = remaining(slot) if slot else 0
            metrics_collector.record_capacity_rejection()
            logger.warning(
                "Reservation rejected - insufficient capacity",
                extra={"slot_id": str(slot_id), "requested_spots": guests, "remaining_spots": left}
            )
            raise CapacityError(requested_spots=guests, remaining_spots=left, slot_id=str(slot_id))

        logger.debug(
            "Spots reserved",
            extra={"slot_id": str(slot_id), "guests": guests}
        )

    async def release(self, slot_id: UUID, guests: int) -> bool:
        """
        Return ``guests`` spots to a slot, never going below zero.

        Returns:
            bool: False if the slot no longer exists
        """
        stmt = (
            update(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id)
            .values(
                booked_spots=case(
                    (AvailabilitySlot.booked_spots >= guests, AvailabilitySlot.booked_spots - guests),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.rowcount == 0:
            logger.warning(
                "Release skipped - slot no longer exists",
                extra={"slot_id": str(slot_id), "guests": guests}
            )
            return False

        logger.debug(
            "Spots released",
            extra={"slot_id": str(slot_id), "guests": guests}
        )
        return True

    async def get_slot_by_id(self, slot_id: UUID) -> Optional[AvailabilitySlot]:
        # Counters are changed by UPDATE statements, so always reload from the row
        stmt = (
            select(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_slot_by_id_or_raise(self, slot_id: UUID) -> AvailabilitySlot:
        slot = await self.get_slot_by_id(slot_id)
        if not slot:
            logger.warning("Availability slot not found", extra={"slot_id": str(slot_id)})
            raise NotFoundError(resource_type="availability slot", resource_id=str(slot_id))
        return slot

    async def list_slots(self, tour_id: UUID, active_only: bool = True) -> list[AvailabilitySlot]:
        await self.tour_service.get_tour_by_id_or_raise(tour_id)

        stmt = (
            select(AvailabilitySlot)
            .where(AvailabilitySlot.tour_id == tour_id)
            .order_by(AvailabilitySlot.date, AvailabilitySlot.start_time)
            .execution_options(populate_existing=True)
        )
        if active_only:
            stmt = stmt.where(AvailabilitySlot.is_active.is_(True))

        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def create_slot(self, tour_id: UUID, request: CreateSlotRequest, user: CurrentUser) -> AvailabilitySlot:
        """
        Open a bookable date on a tour.

        Raises:
            NotFoundError: If the tour does not exist
            AuthorizationError: If the caller does not manage the tour
            ValidationError: If the slot holds more spots than the tour's group size
        """
        tour = await self.tour_service.get_tour_by_id_or_raise(tour_id)
        if not can_manage_tour(user, tour):
            raise AuthorizationError(detail="Only the tour's guide or an admin can manage availability")

        if request.available_spots > tour.max_group_size:
            raise ValidationError(
                detail=f"Available spots cannot exceed the tour's maximum group size of {tour.max_group_size}",
                extensions={"max_group_size": tour.max_group_size},
            )

        slot = AvailabilitySlot(
            tour_id=tour_id,
            date=request.date,
            start_time=request.start_time,
            available_spots=request.available_spots,
            booked_spots=0,
            is_active=True,
        )

        self.db.add(slot)
        await self.db.commit()
        await self.db.refresh(slot)

        logger.info(
            "Availability slot created",
            extra={
                "slot_id": str(slot.id),
                "tour_id": str(tour_id),
                "date": slot.date.isoformat(),
                "available_spots": slot.available_spots
            }
        )
        return slot

    async def delete_slot(self, tour_id: UUID, slot_id: UUID, user: CurrentUser) -> None:
        """
        Delete a slot. Bookings that referenced it keep existing without a slot.

        Raises:
            NotFoundError: If the tour or slot does not exist, or the slot belongs to another tour
            AuthorizationError: If the caller does not manage the tour
        """
        tour = await self.tour_service.get_tour_by_id_or_raise(tour_id)
        if not can_manage_tour(user, tour):
            raise AuthorizationError(detail="Only the tour's guide or an admin can manage availability")

        slot = await self.get_slot_by_id(slot_id)
        if not slot or slot.tour_id != tour_id:
            raise NotFoundError(resource_type="availability slot", resource_id=str(slot_id))

        await self.db.execute(
            update(Booking)
            .where(Booking.availability_id == slot_id)
            .values(availability_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.delete(slot)
        await self.db.commit()

        logger.info(
            "Availability slot deleted",
            extra={"slot_id": str(slot_id), "tour_id": str(tour_id), "deleted_by": str(user.user_id)}
        )
