"""Guide dashboard router and the public guide directory."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, require_roles
from ..models.user import Role
from ..schemas.admin import EarningsSummary, GuideStats, Payout
from ..schemas.auth import GuideListing, GuideProfile, UpdateGuideProfileRequest, User
from ..schemas.booking import BookingWithTour
from ..schemas.tour import Tour
from ..services.booking_service import BookingService
from ..services.guide_service import GuideService
from ..services.payout_service import PayoutService
from ..services.tour_service import TourService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/guide", tags=["guide"])
directory_router = APIRouter(prefix="/api/guides", tags=["guide"])

guide_only = require_roles(Role.GUIDE)


@router.get("/tours", response_model=list[Tour])
async def my_tours(
    user: CurrentUser = Depends(guide_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    tours = await TourService(db).list_guide_tours(user.user_id)
    return JSONResponse(
        status_code=200,
        content=[Tour.model_validate(t).model_dump(mode="json") for t in tours],
    )


@router.get("/bookings", response_model=list[BookingWithTour])
async def my_tour_bookings(
    user: CurrentUser = Depends(guide_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Bookings on the caller's tours."""
    bookings = await BookingService(db).list_guide_bookings(user.user_id)
    return JSONResponse(
        status_code=200,
        content=[BookingWithTour.model_validate(b).model_dump(mode="json") for b in bookings],
    )


@router.get("/earnings", response_model=EarningsSummary)
async def my_earnings(
    user: CurrentUser = Depends(guide_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Net earnings and commissions over confirmed and completed bookings."""
    earnings = await PayoutService(db).get_earnings(user.user_id)
    response_data = EarningsSummary(
        total_earnings=earnings["total_earnings"],
        total_commission=earnings["total_commission"],
        booking_count=earnings["booking_count"],
        paid_out=earnings["paid_out"],
        pending_payout=earnings["pending_payout"],
        payouts=[Payout.model_validate(p) for p in earnings["payouts"]],
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.get("/stats", response_model=GuideStats)
async def my_stats(
    user: CurrentUser = Depends(guide_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    stats = await PayoutService(db).get_guide_stats(user.user_id)
    return JSONResponse(status_code=200, content=GuideStats(**stats).model_dump(mode="json"))


@router.get("/profile", response_model=GuideProfile)
async def my_profile(
    user: CurrentUser = Depends(guide_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    profile = await GuideService(db).get_profile_by_user_id_or_raise(user.user_id)
    return JSONResponse(status_code=200, content=GuideProfile.model_validate(profile).model_dump(mode="json"))


@router.put("/profile", response_model=GuideProfile)
async def update_my_profile(
    request: UpdateGuideProfileRequest,
    user: CurrentUser = Depends(guide_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Update business details; the approval status is left to administrators."""
    profile = await GuideService(db).update_profile(user.user_id, request)
    return JSONResponse(status_code=200, content=GuideProfile.model_validate(profile).model_dump(mode="json"))


@directory_router.get("", response_model=list[GuideListing])
async def list_guides(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Public directory of approved guides."""
    guides = await GuideService(db).list_approved_guides()
    return JSONResponse(
        status_code=200,
        content=[
            GuideListing(
                user=User.model_validate(profile.user),
                guide_profile=GuideProfile.model_validate(profile),
                tour_count=tour_count,
            ).model_dump(mode="json")
            for profile, tour_count in guides
        ],
    )
