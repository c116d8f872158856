"""Race tests for the last spots on a slot."""

import pytest
from sqlalchemy import func, select

from tourmarket.core.exceptions import CapacityError
from tourmarket.models import Booking, BookingStatus
from tourmarket.schemas.booking import CreateBookingRequest
from tourmarket.services.availability_service import AvailabilityService
from tourmarket.services.booking_service import BookingService


def _request(tour, slot, guests):
    return CreateBookingRequest(tour_id=tour.id, date=slot.date, guests=guests, availability_id=slot.id)


@pytest.mark.asyncio
async def test_competitor_between_check_and_reserve(
    test_session, tour, make_slot, traveler, other_traveler, current_user_for, monkeypatch
):
    """
    Both requests see 2 spots left; the one that reserves second is refused.

    The competing booking is committed after the first request has read the
    slot and passed the remaining-spots check, which is the window a
    read-then-write ledger would overbook in.
    """
    slot = await make_slot(tour, available_spots=5, booked_spots=3)
    slot_id = slot.id
    first_request = _request(tour, slot, guests=2)
    second_request = _request(tour, slot, guests=2)
    first_user = current_user_for(traveler)
    second_user = current_user_for(other_traveler)

    original = AvailabilityService.get_slot_by_id_or_raise
    competitor = {"ran": False, "booking_id": None}

    async def check_then_compete(self, requested_slot_id):
        checked = await original(self, requested_slot_id)
        if not competitor["ran"]:
            competitor["ran"] = True
            winner = await BookingService(self.db).create_booking(second_request, second_user)
            competitor["booking_id"] = winner.id
        return checked

    monkeypatch.setattr(AvailabilityService, "get_slot_by_id_or_raise", check_then_compete)

    with pytest.raises(CapacityError) as exc_info:
        await BookingService(test_session).create_booking(first_request, first_user)

    assert exc_info.value.status_code == 400
    assert exc_info.value.problem_details["remaining_spots"] == 0

    refreshed = await AvailabilityService(test_session).get_slot_by_id(slot_id)
    assert refreshed.booked_spots == refreshed.available_spots == 5

    booking_ids = list(await test_session.scalars(select(Booking.id).where(Booking.availability_id == slot_id)))
    assert booking_ids == [competitor["booking_id"]]


@pytest.mark.asyncio
async def test_last_spots_go_to_one_reservation(test_session, tour, make_slot):
    """Two reservations for the same last spots: one succeeds, one is refused."""
    slot = await make_slot(tour, available_spots=4, booked_spots=1)
    slot_id = slot.id
    ledger = AvailabilityService(test_session)

    outcomes = []
    for _ in range(2):
        try:
            await ledger.reserve(slot_id, 3)
            await test_session.commit()
            outcomes.append("reserved")
        except CapacityError:
            await test_session.rollback()
            outcomes.append("rejected")

    assert outcomes == ["reserved", "rejected"]
    assert (await ledger.get_slot_by_id(slot_id)).booked_spots == 4


@pytest.mark.asyncio
async def test_sequential_bookings_never_overbook(test_session, tour, make_slot, make_user, current_user_for):
    """Many one-guest bookings against a small slot fill it exactly."""
    from tourmarket.models import Role

    slot = await make_slot(tour, available_spots=3, days_ahead=10)
    slot_id = slot.id
    slot_date = slot.date
    tour_id = tour.id
    users = [current_user_for(await make_user(Role.USER)) for _ in range(6)]

    service = BookingService(test_session)
    accepted = 0
    rejected = 0
    for user in users:
        request = CreateBookingRequest(tour_id=tour_id, date=slot_date, guests=1, availability_id=slot_id)
        try:
            await service.create_booking(request, user)
            accepted += 1
        except CapacityError:
            rejected += 1

    assert accepted == 3
    assert rejected == 3
    assert (await AvailabilityService(test_session).get_slot_by_id(slot_id)).booked_spots == 3

    open_bookings = await test_session.scalar(
        select(func.count()).select_from(Booking).where(
            Booking.availability_id == slot_id,
            Booking.status != BookingStatus.CANCELLED.value,
        )
    )
    assert open_bookings == 3


@pytest.mark.asyncio
async def test_cancel_frees_spot_for_next_traveler(test_session, tour, make_slot, traveler, other_traveler, current_user_for):
    slot = await make_slot(tour, available_spots=2, days_ahead=12)
    service = BookingService(test_session)
    first = await service.create_booking(_request(tour, slot, guests=2), current_user_for(traveler))

    with pytest.raises(CapacityError):
        await service.create_booking(_request(tour, slot, guests=1), current_user_for(other_traveler))

    await service.cancel_booking(first.id, current_user_for(traveler))
    second = await service.create_booking(_request(tour, slot, guests=2), current_user_for(other_traveler))

    assert second.status == BookingStatus.PENDING.value
    assert (await AvailabilityService(test_session).get_slot_by_id(slot.id)).booked_spots == 2
