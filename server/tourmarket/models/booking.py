"""Booking model definition."""

import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .availability import AvailabilitySlot
    from .tour import Tour
    from .user import User


class BookingStatus(str, Enum):
    """Booking lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status, tracked independently of the booking status."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Booking(Base):
    """
    Booking of a number of spots on a tour by one traveler.

    Pricing and commission columns are captured when the booking is
    created and never recomputed. Bookings are cancelled, never deleted.
    """

    __tablename__ = "bookings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    tour_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("tours.id"), nullable=False, index=True)
    availability_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("availability_slots.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    guests: Mapped[int] = mapped_column(Integer, nullable=False)

    # Pricing captured at creation
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    guide_earnings: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING.value,
        index=True
    )
    payment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value
    )

    stripe_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    cancel_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    cancelled_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime.datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("guests >= 1", name="ck_booking_guests_positive"),
        CheckConstraint("subtotal >= 0", name="ck_booking_subtotal_non_negative"),
        CheckConstraint(
            "commission_rate >= 0 AND commission_rate <= 100",
            name="ck_booking_commission_rate_range"
        ),
    )

    tour: Mapped["Tour"] = relationship("Tour")
    slot: Mapped["AvailabilitySlot | None"] = relationship("AvailabilitySlot")
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, tour_id={self.tour_id}, guests={self.guests}, "
            f"status={self.status}, payment_status={self.payment_status})>"
        )
