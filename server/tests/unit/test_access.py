"""Unit tests for bearer tokens and role-based access rules."""

from datetime import timedelta
from types import SimpleNamespace
from uuid import uuid4

import jwt
import pytest

from tourmarket.core.dependencies import CurrentUser, get_current_user
from tourmarket.core.exceptions import AuthenticationError
from tourmarket.core.permissions import (
    can_cancel_booking,
    can_manage_tour,
    can_update_booking_status,
    can_view_booking,
)
from tourmarket.core.security import create_access_token, decode_access_token, hash_password, verify_password
from tourmarket.models import Role


def _user(role: Role) -> CurrentUser:
    return CurrentUser(user_id=uuid4(), email=f"{role.value}@example.com", role=role)


def test_password_hash_round_trip():
    hashed = hash_password("s3cret!")

    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_token_carries_identity():
    user_id = str(uuid4())
    token = create_access_token(user_id, "ana@example.com", "guide")

    payload = decode_access_token(token)

    assert payload["sub"] == user_id
    assert payload["email"] == "ana@example.com"
    assert payload["role"] == "guide"


def test_expired_token_rejected():
    token = create_access_token(str(uuid4()), "ana@example.com", "user", expires_delta=timedelta(seconds=-10))

    with pytest.raises(jwt.ExpiredSignatureError):
        decode_access_token(token)


@pytest.mark.asyncio
async def test_current_user_from_header():
    user_id = uuid4()
    token = create_access_token(str(user_id), "ana@example.com", "admin")

    user = await get_current_user(f"Bearer {token}")

    assert user.user_id == user_id
    assert user.role == Role.ADMIN
    assert user.is_admin


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "header,detail",
    [
        (None, "Authorization header missing"),
        ("Bearer", "Invalid authorization header format"),
        ("Token abc", "Invalid authentication scheme"),
        ("Bearer abc.def.ghi", "Invalid token"),
    ],
)
async def test_current_user_rejects_bad_headers(header, detail):
    with pytest.raises(AuthenticationError) as exc_info:
        await get_current_user(header)

    assert exc_info.value.problem_details["detail"] == detail


@pytest.mark.asyncio
async def test_current_user_rejects_unknown_role():
    token = create_access_token(str(uuid4()), "ana@example.com", "superuser")

    with pytest.raises(AuthenticationError):
        await get_current_user(f"Bearer {token}")


def test_tour_management_rules():
    guide = _user(Role.GUIDE)
    own_tour = SimpleNamespace(guide_id=guide.user_id)
    other_tour = SimpleNamespace(guide_id=uuid4())

    assert can_manage_tour(guide, own_tour)
    assert not can_manage_tour(guide, other_tour)
    assert can_manage_tour(_user(Role.ADMIN), other_tour)
    assert not can_manage_tour(_user(Role.USER), own_tour)
    assert can_update_booking_status(guide, own_tour)
    assert not can_update_booking_status(guide, other_tour)
    assert not can_update_booking_status(_user(Role.USER), own_tour)


def test_booking_access_rules():
    traveler = _user(Role.USER)
    booking = SimpleNamespace(user_id=traveler.user_id)

    assert can_view_booking(traveler, booking)
    assert not can_view_booking(_user(Role.USER), booking)
    assert can_view_booking(_user(Role.ADMIN), booking)
    assert can_cancel_booking(traveler, booking)
    assert not can_cancel_booking(_user(Role.USER), booking)
    assert not can_cancel_booking(_user(Role.GUIDE), booking)
    assert can_cancel_booking(_user(Role.ADMIN), booking)
