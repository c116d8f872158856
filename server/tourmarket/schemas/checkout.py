"""Checkout Pydantic schemas."""

import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CreateCheckoutSessionRequest(BaseModel):
    """Request schema for starting a hosted checkout for a new booking."""

    tour_id: UUID
    date: datetime.date
    guests: int = Field(..., ge=1)
    availability_id: Optional[UUID] = None
    notes: Optional[str] = Field(None, max_length=2000)


class CheckoutSessionResponse(BaseModel):
    url: str = Field(..., description="Hosted checkout page to redirect the traveler to")
    booking_id: UUID
    session_id: str
