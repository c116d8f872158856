"""Service layer package."""

from .auth_service import AuthService
from .availability_service import AvailabilityService
from .booking_service import BookingService
from .guide_service import GuideService
from .idempotency_service import IdempotencyService
from .payout_service import PayoutService
from .settings_service import SettingsService
from .tour_service import TourService

__all__ = [
    "AuthService",
    "AvailabilityService",
    "BookingService",
    "GuideService",
    "IdempotencyService",
    "PayoutService",
    "SettingsService",
    "TourService",
]
