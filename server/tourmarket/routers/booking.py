"""Booking router for traveler, guide and admin booking operations."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, get_current_user, require_roles
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..models.user import Role
from ..schemas.booking import (
    Booking,
    BookingWithTour,
    CancelBookingRequest,
    CreateBookingRequest,
    UpdateBookingStatusRequest,
)
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["booking"])


@router.post("", response_model=Booking, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    user: CurrentUser = Depends(require_roles(Role.USER)),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Book a tour.

    Prices the booking with the current commission rate and reserves the
    guests' spots on the availability slot, if one is given.
    """
    try:
        booking = await BookingService(db).create_booking(request, user)
        return JSONResponse(
            status_code=201,
            content=Booking.model_validate(booking).model_dump(mode="json"),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "user_id": str(user.user_id),
                "tour_id": str(request.tour_id),
                "guests": request.guests,
                "error": str(e)
            },
            exc_info=True
        )
        raise InternalServerError() from e


@router.get("", response_model=list[BookingWithTour])
async def list_my_bookings(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """The caller's bookings, newest first."""
    bookings = await BookingService(db).list_user_bookings(user.user_id)
    return JSONResponse(
        status_code=200,
        content=[BookingWithTour.model_validate(b).model_dump(mode="json") for b in bookings],
    )


@router.get("/{booking_id}", response_model=BookingWithTour)
async def get_booking(
    booking_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    booking = await BookingService(db).get_booking_for_user(booking_id, user)
    return JSONResponse(
        status_code=200,
        content=BookingWithTour.model_validate(booking).model_dump(mode="json"),
    )


@router.patch("/{booking_id}/status", response_model=Booking)
async def update_booking_status(
    booking_id: UUID,
    request: UpdateBookingStatusRequest,
    user: CurrentUser = Depends(require_roles(Role.GUIDE, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Move a booking to another status; guides may only act on their own tours."""
    try:
        booking = await BookingService(db).update_status(booking_id, request.status, user, request.reason)
        return JSONResponse(
            status_code=200,
            content=Booking.model_validate(booking).model_dump(mode="json"),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking status update",
            extra={"booking_id": str(booking_id), "status": request.status.value, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.delete("/{booking_id}", response_model=Booking)
async def cancel_booking(
    booking_id: UUID,
    request: Optional[CancelBookingRequest] = Body(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Cancel a booking and return its spots to the slot."""
    reason = request.reason if request else None
    booking = await BookingService(db).cancel_booking(booking_id, user, reason)
    return JSONResponse(
        status_code=200,
        content=Booking.model_validate(booking).model_dump(mode="json"),
    )
