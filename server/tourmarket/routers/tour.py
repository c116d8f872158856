"""Tour router for catalogue and availability operations."""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, require_roles
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..models.user import Role
from ..schemas.availability import AvailabilitySlot, CreateSlotRequest
from ..schemas.common import MessageResponse
from ..schemas.tour import CreateTourRequest, Tour, TourWithAvailability, UpdateTourRequest
from ..services.availability_service import AvailabilityService
from ..services.tour_service import TourService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tours", tags=["tour"])

guide_or_admin = require_roles(Role.GUIDE, Role.ADMIN)


def _tours_response(tours) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content=[Tour.model_validate(t).model_dump(mode="json") for t in tours],
    )


@router.get("", response_model=list[Tour])
async def list_tours(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """List active tours, newest first."""
    return _tours_response(await TourService(db).list_active_tours())


@router.get("/featured", response_model=list[Tour])
async def list_featured_tours(
    limit: int = Query(6, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    return _tours_response(await TourService(db).list_featured_tours(limit))


@router.get("/search", response_model=list[Tour])
async def search_tours(
    q: Optional[str] = Query(None, max_length=255, description="Matches title, description or location"),
    category: Optional[str] = Query(None, max_length=100),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    location: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Search active tours by text, category, price range and location."""
    tours = await TourService(db).search_tours(
        q=q,
        category=category,
        min_price=min_price,
        max_price=max_price,
        location=location,
    )
    return _tours_response(tours)


@router.get("/{tour_id}", response_model=TourWithAvailability)
async def get_tour(tour_id: UUID, db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Get a tour with its open availability slots."""
    tour = await TourService(db).get_tour_with_slots_or_raise(tour_id)

    response_data = TourWithAvailability(
        **Tour.model_validate(tour).model_dump(),
        availability=[AvailabilitySlot.model_validate(s) for s in tour.slots if s.is_active],
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("", response_model=Tour, status_code=201)
async def create_tour(
    request: CreateTourRequest,
    user: CurrentUser = Depends(guide_or_admin),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Create a tour owned by the caller.

    Guides must have an approved profile.
    """
    try:
        tour = await TourService(db).create_tour(request, user)
        return JSONResponse(
            status_code=201,
            content=Tour.model_validate(tour).model_dump(mode="json"),
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in tour creation",
            extra={"guide_id": str(user.user_id), "title": request.title, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.put("/{tour_id}", response_model=Tour)
async def update_tour(
    tour_id: UUID,
    request: UpdateTourRequest,
    user: CurrentUser = Depends(guide_or_admin),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    tour = await TourService(db).update_tour(tour_id, request, user)
    return JSONResponse(status_code=200, content=Tour.model_validate(tour).model_dump(mode="json"))


@router.patch("/{tour_id}/toggle", response_model=Tour)
async def toggle_tour(
    tour_id: UUID,
    user: CurrentUser = Depends(guide_or_admin),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Activate or deactivate a tour."""
    tour = await TourService(db).toggle_tour(tour_id, user)
    return JSONResponse(status_code=200, content=Tour.model_validate(tour).model_dump(mode="json"))


@router.delete("/{tour_id}", response_model=MessageResponse)
async def delete_tour(
    tour_id: UUID,
    user: CurrentUser = Depends(guide_or_admin),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Withdraw a tour; it is deactivated so its bookings stay intact."""
    await TourService(db).deactivate_tour(tour_id, user)
    return JSONResponse(status_code=200, content={"message": "Tour deactivated"})


@router.get("/{tour_id}/availability", response_model=list[AvailabilitySlot])
async def list_availability(tour_id: UUID, db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Open availability slots of a tour, ordered by date."""
    slots = await AvailabilityService(db).list_slots(tour_id)
    return JSONResponse(
        status_code=200,
        content=[AvailabilitySlot.model_validate(s).model_dump(mode="json") for s in slots],
    )


@router.post("/{tour_id}/availability", response_model=AvailabilitySlot, status_code=201)
async def create_availability(
    tour_id: UUID,
    request: CreateSlotRequest,
    user: CurrentUser = Depends(guide_or_admin),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    slot = await AvailabilityService(db).create_slot(tour_id, request, user)
    return JSONResponse(
        status_code=201,
        content=AvailabilitySlot.model_validate(slot).model_dump(mode="json"),
    )


@router.delete("/{tour_id}/availability/{slot_id}", response_model=MessageResponse)
async def delete_availability(
    tour_id: UUID,
    slot_id: UUID,
    user: CurrentUser = Depends(guide_or_admin),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Delete a slot; bookings that referenced it are kept."""
    await AvailabilityService(db).delete_slot(tour_id, slot_id, user)
    return JSONResponse(status_code=200, content={"message": "Availability slot deleted"})
