"""Guide earnings and commission payouts."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationError
from ..models.booking import Booking, BookingStatus
from ..models.guide_profile import GuideProfile
from ..models.payout import CommissionPayout, PayoutStatus
from ..models.tour import Tour
from ..models.user import Role, User

logger = logging.getLogger(__name__)

EARNING_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


class PayoutService:
    """Service for guide earnings and payouts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _guide_bookings(self, guide_id: UUID, statuses: tuple[str, ...]) -> list[Booking]:
        stmt = (
            select(Booking)
            .join(Tour, Booking.tour_id == Tour.id)
            .where(Tour.guide_id == guide_id, Booking.status.in_(statuses))
            .order_by(Booking.date)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def list_guide_payouts(self, guide_id: UUID) -> list[CommissionPayout]:
        stmt = (
            select(CommissionPayout)
            .where(CommissionPayout.guide_id == guide_id)
            .order_by(CommissionPayout.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_earnings(self, guide_id: UUID) -> dict:
        """Net earnings and commission over a guide's confirmed and completed bookings."""
        bookings = await self._guide_bookings(guide_id, EARNING_STATUSES)
        payouts = await self.list_guide_payouts(guide_id)

        return {
            "total_earnings": _total(b.guide_earnings for b in bookings),
            "total_commission": _total(b.commission_amount for b in bookings),
            "booking_count": len(bookings),
            "paid_out": _total(p.amount for p in payouts if p.status == PayoutStatus.PAID.value),
            "pending_payout": _total(p.amount for p in payouts if p.status == PayoutStatus.PENDING.value),
            "payouts": payouts,
        }

    async def create_payout(self, guide_id: UUID, notes: Optional[str] = None) -> CommissionPayout:
        """
        Bundle a guide's completed bookings not yet in any payout.

        Raises:
            NotFoundError: If the guide does not exist
            ValidationError: If there is nothing left to pay out
        """
        result = await self.db.execute(select(User).where(User.id == guide_id))
        guide = result.scalar_one_or_none()
        if not guide or Role(guide.role) != Role.GUIDE:
            raise NotFoundError(resource_type="guide", resource_id=str(guide_id))

        already_paid = {
            booking_id
            for payout in await self.list_guide_payouts(guide_id)
            for booking_id in payout.booking_ids
        }
        bookings = [
            b for b in await self._guide_bookings(guide_id, (BookingStatus.COMPLETED.value,))
            if str(b.id) not in already_paid
        ]

        if not bookings:
            raise ValidationError(detail="This guide has no completed bookings awaiting payout")

        payout = CommissionPayout(
            guide_id=guide_id,
            amount=sum((b.guide_earnings for b in bookings), Decimal("0")),
            currency=settings.currency,
            booking_ids=[str(b.id) for b in bookings],
            period_start=min(b.date for b in bookings),
            period_end=max(b.date for b in bookings),
            status=PayoutStatus.PENDING.value,
            notes=notes,
        )
        self.db.add(payout)
        await self.db.commit()
        await self.db.refresh(payout)

        logger.info(
            "Payout created",
            extra={
                "payout_id": str(payout.id),
                "guide_id": str(guide_id),
                "amount": str(payout.amount),
                "booking_count": len(bookings)
            }
        )
        return payout

    async def mark_paid(self, payout_id: UUID, transaction_id: Optional[str] = None) -> CommissionPayout:
        result = await self.db.execute(select(CommissionPayout).where(CommissionPayout.id == payout_id))
        payout = result.scalar_one_or_none()
        if not payout:
            raise NotFoundError(resource_type="payout", resource_id=str(payout_id))

        if payout.status == PayoutStatus.PAID.value:
            raise ValidationError(detail="This payout has already been paid")

        payout.status = PayoutStatus.PAID.value
        payout.paid_at = datetime.now(timezone.utc)
        payout.transaction_id = transaction_id

        await self.db.commit()
        await self.db.refresh(payout)

        logger.info(
            "Payout marked paid",
            extra={"payout_id": str(payout.id), "transaction_id": transaction_id}
        )
        return payout

    async def list_pending(self) -> list[CommissionPayout]:
        stmt = (
            select(CommissionPayout)
            .where(CommissionPayout.status == PayoutStatus.PENDING.value)
            .order_by(CommissionPayout.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_guide_stats(self, guide_id: UUID) -> dict:
        """Dashboard figures for one guide; revenue counts confirmed and completed bookings."""
        tour_count = await self.db.scalar(
            select(func.count(Tour.id)).where(Tour.guide_id == guide_id)
        )
        booking_count = await self.db.scalar(
            select(func.count(Booking.id))
            .join(Tour, Booking.tour_id == Tour.id)
            .where(Tour.guide_id == guide_id)
        )
        earning = await self._guide_bookings(guide_id, EARNING_STATUSES)
        rating = await self.db.scalar(
            select(GuideProfile.rating).where(GuideProfile.user_id == guide_id)
        )

        return {
            "total_tours": tour_count or 0,
            "total_bookings": booking_count or 0,
            "total_revenue": _total(b.total_price for b in earning),
            "total_commission": _total(b.commission_amount for b in earning),
            "net_earnings": _total(b.guide_earnings for b in earning),
            "average_rating": rating or Decimal("0"),
        }

    async def get_platform_stats(self) -> dict:
        """Platform-wide counts and revenue for the admin dashboard."""
        role_counts = dict(
            (await self.db.execute(select(User.role, func.count(User.id)).group_by(User.role))).all()
        )
        tour_count = await self.db.scalar(select(func.count(Tour.id)))
        booking_count = await self.db.scalar(select(func.count(Booking.id)))
        result = await self.db.execute(select(Booking).where(Booking.status.in_(EARNING_STATUSES)))
        earning = list(result.scalars())

        return {
            "total_users": role_counts.get(Role.USER.value, 0),
            "total_guides": role_counts.get(Role.GUIDE.value, 0),
            "total_tours": tour_count or 0,
            "total_bookings": booking_count or 0,
            "total_revenue": _total(b.total_price for b in earning),
            "total_commission": _total(b.commission_amount for b in earning),
        }

    async def get_revenue(self, start_date: date, end_date: date) -> dict:
        """
        Revenue of confirmed and completed bookings created between two dates.

        Both dates are inclusive.

        Raises:
            ValidationError: If the period ends before it starts
        """
        if end_date < start_date:
            raise ValidationError(detail="The revenue period must not end before it starts")

        stmt = select(Booking).where(
            Booking.status.in_(EARNING_STATUSES),
            Booking.created_at >= datetime.combine(start_date, time.min),
            Booking.created_at < datetime.combine(end_date + timedelta(days=1), time.min),
        )
        bookings = list((await self.db.execute(stmt)).scalars())

        return {
            "start_date": start_date,
            "end_date": end_date,
            "booking_count": len(bookings),
            "total_revenue": _total(b.total_price for b in bookings),
            "total_commission": _total(b.commission_amount for b in bookings),
            "guide_earnings": _total(b.guide_earnings for b in bookings),
        }


def _total(amounts) -> Decimal:
    return sum(amounts, Decimal("0"))
