"""Tour-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .availability import AvailabilitySlot


class CreateTourRequest(BaseModel):
    """Request schema for creating a tour."""

    title: str = Field(..., min_length=1, max_length=255, description="Tour title")
    description: Optional[str] = Field(None, max_length=5000, description="Tour description")
    location: str = Field(..., min_length=1, max_length=255)
    duration: Optional[str] = Field(None, max_length=100, description="Human-readable duration")
    category: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Price per guest")
    max_group_size: int = Field(..., ge=1, description="Maximum guests per booking and slot")
    featured: bool = False


class UpdateTourRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    duration: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    max_group_size: Optional[int] = Field(None, ge=1)
    featured: Optional[bool] = None


class Tour(BaseModel):
    """Tour response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Unique tour ID")
    guide_id: UUID
    title: str
    description: Optional[str] = None
    location: str
    duration: Optional[str] = None
    category: Optional[str] = None
    price: float
    max_group_size: int
    is_active: bool
    featured: bool
    created_at: datetime


class TourSummary(BaseModel):
    """Compact tour view embedded in booking listings."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    location: str
    price: float


class TourWithAvailability(Tour):
    availability: List[AvailabilitySlot] = Field(default_factory=list)
