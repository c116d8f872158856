"""FastAPI routers package."""

from .admin import router as admin_router
from .auth import router as auth_router
from .booking import router as booking_router
from .checkout import router as checkout_router
from .guide import directory_router as guide_directory_router
from .guide import router as guide_router
from .health import router as health_router
from .metrics import router as metrics_router
from .tour import router as tour_router
from .webhooks import router as webhooks_router

__all__ = [
    "admin_router",
    "auth_router",
    "booking_router",
    "checkout_router",
    "guide_directory_router",
    "guide_router",
    "health_router",
    "metrics_router",
    "tour_router",
    "webhooks_router",
]
