"""Authentication and account Pydantic schemas."""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request schema for registering a traveler or guide account."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    role: Literal["user", "guide"] = Field("user", description="Admins cannot self-register")


class GuideRegisterRequest(RegisterRequest):
    """Guide registration with business details."""

    role: Literal["guide"] = "guide"
    business_name: Optional[str] = Field(None, max_length=255)
    specialties: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    experience: Optional[str] = Field(None, max_length=5000)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class User(BaseModel):
    """Public view of an account; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    location: Optional[str] = None
    is_active: bool
    created_at: datetime


class GuideProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    business_name: Optional[str] = None
    specialties: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    status: str
    approved_at: Optional[datetime] = None
    rating: float = 0
    review_count: int = 0


class AuthResponse(BaseModel):
    """Response returned on successful registration or login."""

    user: User
    token: str
    guide_profile: Optional[GuideProfile] = None


class MeResponse(BaseModel):
    user: User
    guide_profile: Optional[GuideProfile] = None


class UpdateGuideProfileRequest(BaseModel):
    """Partial update of a guide's business details; approval fields are not editable."""

    business_name: Optional[str] = Field(None, max_length=255)
    specialties: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    experience: Optional[str] = Field(None, max_length=5000)


class GuideListing(BaseModel):
    """Public directory entry of an approved guide."""

    user: User
    guide_profile: GuideProfile
    tour_count: int
