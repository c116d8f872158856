"""Availability slot model definition."""

import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .tour import Tour


class AvailabilitySlot(Base):
    """A bookable date of a tour with a fixed number of spots."""

    __tablename__ = "availability_slots"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    tour_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)

    available_spots: Mapped[int] = mapped_column(Integer, nullable=False)
    booked_spots: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime.datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("available_spots >= 1", name="ck_slot_available_spots_positive"),
        CheckConstraint("booked_spots >= 0", name="ck_slot_booked_spots_non_negative"),
        CheckConstraint("booked_spots <= available_spots", name="ck_slot_booked_spots_lte_available"),
    )

    tour: Mapped["Tour"] = relationship("Tour", back_populates="slots")

    @property
    def remaining_spots(self) -> int:
        return self.available_spots - self.booked_spots

    def __repr__(self) -> str:
        return (
            f"<AvailabilitySlot(id={self.id}, tour_id={self.tour_id}, date={self.date}, "
            f"booked={self.booked_spots}/{self.available_spots})>"
        )
