"""Models module exporting all database models."""

from .availability import AvailabilitySlot
from .booking import Booking, BookingStatus, PaymentStatus
from .guide_profile import GuideProfile, GuideStatus
from .idempotency import ProcessedWebhookEvent
from .payout import CommissionPayout, PayoutStatus
from .setting import PlatformSetting
from .tour import Tour
from .user import Role, User

__all__ = [
    # Accounts
    "User",
    "Role",
    "GuideProfile",
    "GuideStatus",

    # Catalogue
    "Tour",
    "AvailabilitySlot",

    # Booking ledger
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "PlatformSetting",
    "CommissionPayout",
    "PayoutStatus",

    # Payment reconciliation
    "ProcessedWebhookEvent",
]
