"""Role-based access rules shared by the routers and services."""

from .dependencies import CurrentUser
from ..models.booking import Booking
from ..models.tour import Tour
from ..models.user import Role


def can_manage_tour(user: CurrentUser, tour: Tour) -> bool:
    """Owning guide or any admin may edit a tour and its availability."""
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.GUIDE:
        return tour.guide_id == user.user_id
    if user.role == Role.USER:
        return False
    raise ValueError(f"Unknown role: {user.role}")


def can_view_booking(user: CurrentUser, booking: Booking) -> bool:
    if user.role == Role.ADMIN:
        return True
    if user.role in (Role.USER, Role.GUIDE):
        return booking.user_id == user.user_id
    raise ValueError(f"Unknown role: {user.role}")


def can_update_booking_status(user: CurrentUser, tour: Tour) -> bool:
    """Only the guide who owns the booked tour, or an admin, moves bookings between states."""
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.GUIDE:
        return tour.guide_id == user.user_id
    if user.role == Role.USER:
        return False
    raise ValueError(f"Unknown role: {user.role}")


def can_cancel_booking(user: CurrentUser, booking: Booking) -> bool:
    """
    Travelers cancel their own bookings while pending; admins cancel any.

    Guides cancel through a status update instead.
    """
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.USER:
        return booking.user_id == user.user_id
    if user.role == Role.GUIDE:
        return False
    raise ValueError(f"Unknown role: {user.role}")
