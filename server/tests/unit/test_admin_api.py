"""API tests for administration: commission, guide review and payouts."""

from datetime import date, timedelta

import pytest

from tourmarket.models import Booking, BookingStatus, GuideStatus, PaymentStatus, Role


@pytest.fixture
def add_booking(test_session, tour, traveler):
    """Store a booking on the tour with the given status."""

    async def _add_booking(status=BookingStatus.COMPLETED, guests=2, days_ago=3):
        booking = Booking(
            user_id=traveler.id,
            tour_id=tour.id,
            date=date.today() - timedelta(days=days_ago),
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
        await test_session.refresh(booking)
        return booking

    return _add_booking


@pytest.mark.asyncio
async def test_commission_rate_defaults_and_updates(test_client, admin, headers_for):
    headers = headers_for(admin)

    response = await test_client.get("/api/admin/settings/commission", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"rate": 10.0}

    response = await test_client.put("/api/admin/settings/commission", json={"rate": 12.5}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"rate": 12.5}

    response = await test_client.get("/api/admin/settings/commission", headers=headers)
    assert response.json() == {"rate": 12.5}


@pytest.mark.asyncio
@pytest.mark.parametrize("rate", [-1, 100.5])
async def test_commission_rate_out_of_range(test_client, admin, headers_for, rate):
    response = await test_client.put(
        "/api/admin/settings/commission", json={"rate": rate}, headers=headers_for(admin)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_commission_rate_admin_only(test_client, guide, headers_for):
    response = await test_client.put(
        "/api/admin/settings/commission", json={"rate": 0}, headers=headers_for(guide)
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_new_rate_prices_next_booking(test_client, tour, slot, traveler, admin, headers_for):
    await test_client.put("/api/admin/settings/commission", json={"rate": 20}, headers=headers_for(admin))

    response = await test_client.post(
        "/api/bookings",
        json={"tour_id": str(tour.id), "date": slot.date.isoformat(), "guests": 1, "availability_id": str(slot.id)},
        headers=headers_for(traveler),
    )

    assert response.status_code == 201
    assert response.json()["commission_amount"] == 20.0
    assert response.json()["guide_earnings"] == 80.0


@pytest.mark.asyncio
async def test_guide_review(test_client, make_user, admin, headers_for):
    waiting = await make_user(Role.GUIDE, approved=False)
    declined = await make_user(Role.GUIDE, approved=False)
    headers = headers_for(admin)

    response = await test_client.get("/api/admin/guides/pending", headers=headers)
    assert response.status_code == 200
    assert {entry["user"]["id"] for entry in response.json()} == {str(waiting.id), str(declined.id)}

    response = await test_client.post(f"/api/admin/guides/{waiting.id}/approve", headers=headers)
    assert response.json()["status"] == GuideStatus.APPROVED.value

    response = await test_client.post(f"/api/admin/guides/{declined.id}/reject", headers=headers)
    assert response.json()["status"] == GuideStatus.REJECTED.value

    response = await test_client.get("/api/admin/guides/pending", headers=headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_approve_unknown_guide(test_client, traveler, admin, headers_for):
    response = await test_client.post(f"/api/admin/guides/{traveler.id}/approve", headers=headers_for(admin))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_payout_lifecycle(test_client, guide, admin, add_booking, headers_for):
    first = await add_booking(guests=2, days_ago=5)
    second = await add_booking(guests=1, days_ago=2)
    await add_booking(status=BookingStatus.CONFIRMED, guests=4)
    headers = headers_for(admin)

    response = await test_client.post("/api/admin/payouts", json={"guide_id": str(guide.id)}, headers=headers)
    assert response.status_code == 201
    payout = response.json()
    assert payout["amount"] == 270.0
    assert set(payout["booking_ids"]) == {str(first.id), str(second.id)}
    assert payout["period_start"] == first.date.isoformat()
    assert payout["period_end"] == second.date.isoformat()
    assert payout["status"] == "pending"

    response = await test_client.post("/api/admin/payouts", json={"guide_id": str(guide.id)}, headers=headers)
    assert response.status_code == 400

    response = await test_client.get("/api/admin/payouts/pending", headers=headers)
    assert [p["id"] for p in response.json()] == [payout["id"]]

    response = await test_client.post(
        f"/api/admin/payouts/{payout['id']}/paid", json={"transaction_id": "tr_123"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    assert response.json()["transaction_id"] == "tr_123"

    response = await test_client.post(f"/api/admin/payouts/{payout['id']}/paid", json={}, headers=headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_payout_for_non_guide(test_client, traveler, admin, headers_for):
    response = await test_client.post(
        "/api/admin/payouts", json={"guide_id": str(traveler.id)}, headers=headers_for(admin)
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_guide_earnings(test_client, guide, admin, add_booking, headers_for):
    await add_booking(status=BookingStatus.COMPLETED, guests=2)
    await add_booking(status=BookingStatus.CONFIRMED, guests=1)
    await add_booking(status=BookingStatus.CANCELLED, guests=5)
    await test_client.post("/api/admin/payouts", json={"guide_id": str(guide.id)}, headers=headers_for(admin))

    response = await test_client.get("/api/guide/earnings", headers=headers_for(guide))

    assert response.status_code == 200
    data = response.json()
    assert data["total_earnings"] == 270.0
    assert data["total_commission"] == 30.0
    assert data["booking_count"] == 2
    assert data["pending_payout"] == 180.0
    assert data["paid_out"] == 0.0
    assert len(data["payouts"]) == 1


@pytest.mark.asyncio
async def test_platform_stats(test_client, guide, admin, add_booking, headers_for):
    await add_booking(status=BookingStatus.COMPLETED, guests=2)
    await add_booking(status=BookingStatus.CONFIRMED, guests=1)
    await add_booking(status=BookingStatus.PENDING, guests=4)
    await add_booking(status=BookingStatus.CANCELLED, guests=5)

    response = await test_client.get("/api/admin/stats", headers=headers_for(admin))

    assert response.status_code == 200
    assert response.json() == {
        "total_users": 1,
        "total_guides": 1,
        "total_tours": 1,
        "total_bookings": 4,
        "total_revenue": 300.0,
        "total_commission": 30.0,
    }


@pytest.mark.asyncio
async def test_admin_tours_include_inactive(test_client, tour, guide, admin, headers_for):
    await test_client.patch(f"/api/tours/{tour.id}/toggle", headers=headers_for(guide))

    response = await test_client.get("/api/admin/tours", headers=headers_for(admin))

    assert response.status_code == 200
    assert [(t["id"], t["is_active"]) for t in response.json()] == [(str(tour.id), False)]
    assert (await test_client.get("/api/tours")).json() == []


@pytest.mark.asyncio
async def test_revenue_by_period(test_client, admin, add_booking, headers_for):
    await add_booking(status=BookingStatus.COMPLETED, guests=2)
    await add_booking(status=BookingStatus.CONFIRMED, guests=1)
    await add_booking(status=BookingStatus.CANCELLED, guests=5)
    headers = headers_for(admin)
    today = date.today()

    response = await test_client.get(
        "/api/admin/revenue",
        params={"start_date": (today - timedelta(days=1)).isoformat(), "end_date": (today + timedelta(days=1)).isoformat()},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["booking_count"] == 2
    assert data["total_revenue"] == 300.0
    assert data["total_commission"] == 30.0
    assert data["guide_earnings"] == 270.0

    response = await test_client.get(
        "/api/admin/revenue",
        params={"start_date": (today - timedelta(days=60)).isoformat(), "end_date": (today - timedelta(days=31)).isoformat()},
        headers=headers,
    )
    assert response.json()["booking_count"] == 0
    assert response.json()["total_revenue"] == 0.0


@pytest.mark.asyncio
async def test_revenue_defaults_and_bad_period(test_client, admin, headers_for):
    headers = headers_for(admin)
    today = date.today()

    response = await test_client.get("/api/admin/revenue", headers=headers)
    assert response.status_code == 200
    assert response.json()["end_date"] == today.isoformat()
    assert response.json()["start_date"] == (today - timedelta(days=30)).isoformat()

    response = await test_client.get(
        "/api/admin/revenue",
        params={"start_date": today.isoformat(), "end_date": (today - timedelta(days=1)).isoformat()},
        headers=headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/admin/stats", "/api/admin/tours", "/api/admin/revenue"])
async def test_reporting_admin_only(test_client, guide, headers_for, path):
    response = await test_client.get(path, headers=headers_for(guide))

    assert response.status_code == 403
