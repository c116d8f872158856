"""Unit tests for tour service."""

from decimal import Decimal
from uuid import uuid4

import pytest

from tourmarket.core.exceptions import AuthorizationError, NotFoundError
from tourmarket.models import Role
from tourmarket.schemas.tour import CreateTourRequest, UpdateTourRequest
from tourmarket.services.tour_service import TourService


def _tour_request(**overrides) -> CreateTourRequest:
    data = {
        "title": "Sunset Kayak",
        "description": "Paddle along the coast at dusk",
        "location": "Split",
        "duration": "3 hours",
        "category": "water",
        "price": Decimal("75.00"),
        "max_group_size": 8,
    }
    data.update(overrides)
    return CreateTourRequest(**data)


@pytest.mark.asyncio
async def test_create_tour(test_session, guide, current_user_for):
    """An approved guide creates an active tour they own."""
    service = TourService(test_session)

    tour = await service.create_tour(_tour_request(), current_user_for(guide))

    assert tour.id is not None
    assert tour.guide_id == guide.id
    assert tour.title == "Sunset Kayak"
    assert tour.price == Decimal("75.00")
    assert tour.is_active is True


@pytest.mark.asyncio
async def test_create_tour_unapproved_guide(test_session, make_user, current_user_for):
    """Guides awaiting approval cannot publish tours."""
    pending = await make_user(Role.GUIDE, approved=False)
    service = TourService(test_session)

    with pytest.raises(AuthorizationError):
        await service.create_tour(_tour_request(), current_user_for(pending))


@pytest.mark.asyncio
async def test_get_tour_by_id(test_session, tour):
    """Test getting a tour by ID."""
    service = TourService(test_session)

    found_tour = await service.get_tour_by_id(tour.id)

    assert found_tour is not None
    assert found_tour.id == tour.id
    assert found_tour.title == tour.title


@pytest.mark.asyncio
async def test_get_tour_by_id_not_found(test_session):
    """Test getting a non-existent tour returns None."""
    service = TourService(test_session)

    assert await service.get_tour_by_id(uuid4()) is None

    with pytest.raises(NotFoundError):
        await service.get_tour_by_id_or_raise(uuid4())


@pytest.mark.asyncio
async def test_update_tour_by_other_guide_denied(test_session, tour, make_user, current_user_for):
    """Only the owning guide or an admin may change a tour."""
    stranger = await make_user(Role.GUIDE)
    service = TourService(test_session)

    with pytest.raises(AuthorizationError):
        await service.update_tour(tour.id, UpdateTourRequest(title="Hijacked"), current_user_for(stranger))


@pytest.mark.asyncio
async def test_update_tour_partial(test_session, tour, guide, current_user_for):
    """Omitted fields keep their values."""
    service = TourService(test_session)

    updated = await service.update_tour(tour.id, UpdateTourRequest(price=Decimal("120.00")), current_user_for(guide))

    assert updated.price == Decimal("120.00")
    assert updated.title == "Old Town Walking Tour"


@pytest.mark.asyncio
async def test_toggle_tour_hides_from_listing(test_session, tour, admin, current_user_for):
    """Inactive tours drop out of the public listing."""
    service = TourService(test_session)

    toggled = await service.toggle_tour(tour.id, current_user_for(admin))
    assert toggled.is_active is False

    assert tour.id not in [t.id for t in await service.list_active_tours()]


@pytest.mark.asyncio
async def test_list_featured_tours(test_session, tour):
    service = TourService(test_session)

    featured = await service.list_featured_tours(limit=6)

    assert [t.id for t in featured] == [tour.id]
