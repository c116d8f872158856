"""API tests for the guide dashboard and the public guide directory."""

from datetime import date, timedelta

import pytest

from tourmarket.models import Booking, BookingStatus, PaymentStatus, Role


@pytest.fixture
def add_booking(test_session, tour, traveler):
    async def _add_booking(status, guests):
        booking = Booking(
            user_id=traveler.id,
            tour_id=tour.id,
            date=date.today() - timedelta(days=2),
            guests=guests,
            subtotal=100 * guests,
            commission_rate=10,
            commission_amount=10 * guests,
            guide_earnings=90 * guests,
            total_price=100 * guests,
            status=status.value,
            payment_status=PaymentStatus.PAID.value,
        )
        test_session.add(booking)
        await test_session.commit()
        return booking

    return _add_booking


@pytest.mark.asyncio
async def test_guide_stats(test_client, guide, add_booking, headers_for):
    await add_booking(BookingStatus.COMPLETED, 2)
    await add_booking(BookingStatus.CONFIRMED, 1)
    await add_booking(BookingStatus.CANCELLED, 3)

    response = await test_client.get("/api/guide/stats", headers=headers_for(guide))

    assert response.status_code == 200
    assert response.json() == {
        "total_tours": 1,
        "total_bookings": 3,
        "total_revenue": 300.0,
        "total_commission": 30.0,
        "net_earnings": 270.0,
        "average_rating": 0.0,
    }


@pytest.mark.asyncio
async def test_guide_stats_only_count_own_tours(test_client, tour, add_booking, make_user, headers_for):
    await add_booking(BookingStatus.COMPLETED, 2)
    other_guide = await make_user(Role.GUIDE)

    response = await test_client.get("/api/guide/stats", headers=headers_for(other_guide))

    data = response.json()
    assert data["total_tours"] == 0
    assert data["total_bookings"] == 0
    assert data["total_revenue"] == 0.0


@pytest.mark.asyncio
async def test_own_profile_read_and_update(test_client, guide, headers_for):
    headers = headers_for(guide)

    response = await test_client.get("/api/guide/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["business_name"] == "Harbour Walks"
    assert response.json()["status"] == "approved"

    response = await test_client.put(
        "/api/guide/profile",
        json={"specialties": ["history", "food"], "languages": ["pt", "en"], "status": "suspended"},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["specialties"] == ["history", "food"]
    assert data["languages"] == ["pt", "en"]
    assert data["business_name"] == "Harbour Walks"
    assert data["status"] == "approved"


@pytest.mark.asyncio
async def test_profile_routes_are_for_guides(test_client, traveler, headers_for):
    response = await test_client.get("/api/guide/profile", headers=headers_for(traveler))
    assert response.status_code == 403

    response = await test_client.put("/api/guide/profile", json={"experience": "None"}, headers=headers_for(traveler))
    assert response.status_code == 403

    response = await test_client.get("/api/guide/stats", headers=headers_for(traveler))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_guide_directory_lists_approved_guides(test_client, tour, guide, make_user):
    await make_user(Role.GUIDE, approved=False)

    response = await test_client.get("/api/guides")

    assert response.status_code == 200
    data = response.json()
    assert [g["user"]["id"] for g in data] == [str(guide.id)]
    assert data[0]["guide_profile"]["status"] == "approved"
    assert data[0]["tour_count"] == 1
    assert "password_hash" not in data[0]["user"]
