"""Availability slot Pydantic schemas."""

import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateSlotRequest(BaseModel):
    """Request schema for opening a bookable date on a tour."""

    date: datetime.date
    start_time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="HH:MM")
    available_spots: int = Field(..., ge=1, description="Total spots on this date")


class AvailabilitySlot(BaseModel):
    """Availability slot response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tour_id: UUID
    date: datetime.date
    start_time: Optional[str] = None
    available_spots: int
    booked_spots: int
    remaining_spots: int
    is_active: bool
