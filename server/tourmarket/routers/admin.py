"""Administration router: commission, guide approval, bookings, payouts and reporting."""

import logging
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, require_roles
from ..models.user import Role
from ..schemas.admin import (
    CommissionRate,
    CreatePayoutRequest,
    MarkPayoutPaidRequest,
    Payout,
    PlatformStats,
    RevenueReport,
    UpdateCommissionRequest,
)
from ..schemas.auth import GuideProfile, User
from ..schemas.booking import BookingWithTour
from ..schemas.tour import Tour
from ..services.booking_service import BookingService
from ..services.guide_service import GuideService
from ..services.payout_service import PayoutService
from ..services.settings_service import SettingsService
from ..services.tour_service import TourService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

admin_only = require_roles(Role.ADMIN)

REVENUE_DEFAULT_DAYS = 30


@router.get("/settings/commission", response_model=CommissionRate)
async def get_commission(
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    rate = await SettingsService(db).get_commission_rate()
    return JSONResponse(status_code=200, content=CommissionRate(rate=float(rate)).model_dump())


@router.put("/settings/commission", response_model=CommissionRate)
async def update_commission(
    request: UpdateCommissionRequest,
    user: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Change the commission rate applied to bookings created from now on."""
    rate = await SettingsService(db).set_commission_rate(request.rate, user.user_id)
    return JSONResponse(status_code=200, content=CommissionRate(rate=float(rate)).model_dump())


@router.get("/bookings", response_model=list[BookingWithTour])
async def list_bookings(
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    bookings = await BookingService(db).list_all_bookings()
    return JSONResponse(
        status_code=200,
        content=[BookingWithTour.model_validate(b).model_dump(mode="json") for b in bookings],
    )


@router.get("/guides/pending")
async def pending_guides(
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Guide profiles awaiting review, with their accounts."""
    profiles = await GuideService(db).list_pending()
    return JSONResponse(
        status_code=200,
        content=[
            {
                "profile": GuideProfile.model_validate(p).model_dump(mode="json"),
                "user": User.model_validate(p.user).model_dump(mode="json"),
            }
            for p in profiles
        ],
    )


@router.post("/guides/{user_id}/approve", response_model=GuideProfile)
async def approve_guide(
    user_id: UUID,
    admin: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    profile = await GuideService(db).approve(user_id, admin.user_id)
    return JSONResponse(status_code=200, content=GuideProfile.model_validate(profile).model_dump(mode="json"))


@router.post("/guides/{user_id}/reject", response_model=GuideProfile)
async def reject_guide(
    user_id: UUID,
    admin: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    profile = await GuideService(db).reject(user_id, admin.user_id)
    return JSONResponse(status_code=200, content=GuideProfile.model_validate(profile).model_dump(mode="json"))


@router.post("/payouts", response_model=Payout, status_code=201)
async def create_payout(
    request: CreatePayoutRequest,
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Bundle a guide's completed, unpaid bookings into a pending payout."""
    payout = await PayoutService(db).create_payout(request.guide_id, request.notes)
    return JSONResponse(status_code=201, content=Payout.model_validate(payout).model_dump(mode="json"))


@router.post("/payouts/{payout_id}/paid", response_model=Payout)
async def mark_payout_paid(
    payout_id: UUID,
    request: MarkPayoutPaidRequest,
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    payout = await PayoutService(db).mark_paid(payout_id, request.transaction_id)
    return JSONResponse(status_code=200, content=Payout.model_validate(payout).model_dump(mode="json"))


@router.get("/payouts/pending", response_model=list[Payout])
async def pending_payouts(
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    payouts = await PayoutService(db).list_pending()
    return JSONResponse(
        status_code=200,
        content=[Payout.model_validate(p).model_dump(mode="json") for p in payouts],
    )


@router.get("/stats", response_model=PlatformStats)
async def platform_stats(
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    stats = await PayoutService(db).get_platform_stats()
    return JSONResponse(status_code=200, content=PlatformStats(**stats).model_dump(mode="json"))


@router.get("/tours", response_model=list[Tour])
async def list_all_tours(
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Every tour, including inactive ones."""
    tours = await TourService(db).list_all_tours()
    return JSONResponse(
        status_code=200,
        content=[Tour.model_validate(t).model_dump(mode="json") for t in tours],
    )


@router.get("/revenue", response_model=RevenueReport)
async def revenue(
    start_date: Optional[date] = Query(None, description="First day, defaults to 30 days ago"),
    end_date: Optional[date] = Query(None, description="Last day, defaults to today"),
    _: CurrentUser = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Revenue and commission of confirmed and completed bookings created in the period."""
    end_date = end_date or date.today()
    start_date = start_date or end_date - timedelta(days=REVENUE_DEFAULT_DAYS)

    report = await PayoutService(db).get_revenue(start_date, end_date)
    return JSONResponse(status_code=200, content=RevenueReport(**report).model_dump(mode="json"))
