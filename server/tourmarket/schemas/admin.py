"""Administration and earnings Pydantic schemas."""

import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CommissionRate(BaseModel):
    """Current platform commission rate."""

    rate: float = Field(..., description="Commission percentage")


class UpdateCommissionRequest(BaseModel):
    # Range is enforced by the settings service so the error carries its message
    rate: float = Field(..., description="Commission percentage between 0 and 100")


class CreatePayoutRequest(BaseModel):
    guide_id: UUID
    notes: Optional[str] = Field(None, max_length=2000)


class MarkPayoutPaidRequest(BaseModel):
    transaction_id: Optional[str] = Field(None, max_length=255)


class Payout(BaseModel):
    """Commission payout response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    guide_id: UUID
    amount: float
    currency: str
    booking_ids: List[str]
    period_start: Optional[datetime.date] = None
    period_end: Optional[datetime.date] = None
    status: str
    paid_at: Optional[datetime.datetime] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime.datetime


class EarningsSummary(BaseModel):
    """Guide earnings over confirmed and completed bookings."""

    total_earnings: float
    total_commission: float
    booking_count: int
    paid_out: float
    pending_payout: float
    payouts: List[Payout] = Field(default_factory=list)


class GuideStats(BaseModel):
    """Guide dashboard figures; money over confirmed and completed bookings."""

    total_tours: int
    total_bookings: int
    total_revenue: float
    total_commission: float
    net_earnings: float
    average_rating: float


class PlatformStats(BaseModel):
    total_users: int = Field(..., description="Traveler accounts")
    total_guides: int
    total_tours: int
    total_bookings: int
    total_revenue: float
    total_commission: float


class RevenueReport(BaseModel):
    """Revenue and commission of the bookings created within a period."""

    start_date: datetime.date
    end_date: datetime.date
    booking_count: int
    total_revenue: float
    total_commission: float
    guide_earnings: float
