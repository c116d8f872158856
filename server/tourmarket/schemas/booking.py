"""Booking-related Pydantic schemas."""

import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.booking import BookingStatus, PaymentStatus
from .tour import TourSummary


class CreateBookingRequest(BaseModel):
    """Request schema for booking a tour."""

    tour_id: UUID = Field(..., description="Tour to book")
    date: datetime.date = Field(..., description="Date of the tour")
    guests: int = Field(..., ge=1, description="Number of guests")
    availability_id: Optional[UUID] = Field(None, description="Availability slot to reserve spots on")
    notes: Optional[str] = Field(None, max_length=2000)


class UpdateBookingStatusRequest(BaseModel):
    """Request schema for moving a booking to another status."""

    status: BookingStatus
    reason: Optional[str] = Field(None, max_length=1000, description="Cancellation reason")


class CancelBookingRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class Booking(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Unique booking ID")
    user_id: UUID
    tour_id: UUID
    availability_id: Optional[UUID] = None
    date: datetime.date
    guests: int
    subtotal: float
    commission_rate: float
    commission_amount: float
    guide_earnings: float
    total_price: float
    status: BookingStatus
    payment_status: PaymentStatus
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    cancelled_by: Optional[UUID] = None
    cancelled_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    created_at: datetime.datetime


class BookingWithTour(Booking):
    """Booking with a summary of the booked tour."""

    tour: Optional[TourSummary] = None
