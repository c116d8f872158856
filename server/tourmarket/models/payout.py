"""Commission payout model definition."""

import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class CommissionPayout(Base):
    """Amount owed to a guide for a bundle of completed bookings."""

    __tablename__ = "commission_payouts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    guide_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    booking_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    period_start: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    period_end: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PayoutStatus.PENDING.value,
        index=True
    )
    paid_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime.datetime] = mapped_column(nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payout_amount_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<CommissionPayout(id={self.id}, guide_id={self.guide_id}, amount={self.amount}, status={self.status})>"
