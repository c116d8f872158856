"""API tests for registration, login and the current account."""

import pytest


def _registration(**overrides):
    body = {
        "name": "Ana Traveler",
        "email": "ana@example.com",
        "password": "hunter22",
        "phone": "+351 900 000 000",
        "location": "Lisbon",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_register_traveler(test_client):
    response = await test_client.post("/api/auth/register", json=_registration())

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "ana@example.com"
    assert data["user"]["role"] == "user"
    assert "password_hash" not in data["user"]
    assert data["token"]
    assert data["guide_profile"] is None


@pytest.mark.asyncio
async def test_register_normalises_email_case(test_client):
    await test_client.post("/api/auth/register", json=_registration(email="Ana@Example.com"))

    response = await test_client.post("/api/auth/register", json=_registration(email="ana@example.com"))

    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


@pytest.mark.asyncio
async def test_register_rejects_admin_role(test_client):
    response = await test_client.post("/api/auth/register", json=_registration(role="admin"))

    assert response.status_code == 400
    assert "role" in [v["path"] for v in response.json()["violations"]]


@pytest.mark.asyncio
async def test_register_rejects_invalid_email(test_client):
    response = await test_client.post("/api/auth/register", json=_registration(email="not-an-email"))

    assert response.status_code == 400
    assert "email" in [v["path"] for v in response.json()["violations"]]


@pytest.mark.asyncio
async def test_register_guide_creates_pending_profile(test_client):
    body = _registration(
        name="Rui Guide",
        email="rui@example.com",
        business_name="Rui's River Tours",
        specialties=["kayak", "history"],
        languages=["pt", "en"],
    )

    response = await test_client.post("/api/auth/register/guide", json=body)

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["role"] == "guide"
    assert data["guide_profile"]["status"] == "pending"
    assert data["guide_profile"]["specialties"] == ["kayak", "history"]


@pytest.mark.asyncio
async def test_login_and_me(test_client):
    await test_client.post("/api/auth/register", json=_registration())

    response = await test_client.post("/api/auth/login", json={"email": "ana@example.com", "password": "hunter22"})
    assert response.status_code == 200
    token = response.json()["token"]

    response = await test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Ana Traveler"


@pytest.mark.asyncio
async def test_login_wrong_password(test_client):
    await test_client.post("/api/auth/register", json=_registration())

    response = await test_client.post("/api/auth/login", json={"email": "ana@example.com", "password": "wrong"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_unknown_email(test_client):
    response = await test_client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "x"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(test_client):
    response = await test_client.get("/api/auth/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_rejects_wrong_scheme(test_client):
    response = await test_client.get("/api/auth/me", headers={"Authorization": "Basic abc"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid authentication scheme"


@pytest.mark.asyncio
async def test_pending_guide_cannot_publish_until_approved(test_client, admin, headers_for):
    response = await test_client.post(
        "/api/auth/register/guide", json=_registration(name="Rui Guide", email="rui@example.com")
    )
    guide_token = response.json()["token"]
    guide_id = response.json()["user"]["id"]
    guide_headers = {"Authorization": f"Bearer {guide_token}"}
    tour = {"title": "Tram 28 Ride", "location": "Lisbon", "price": 25, "max_group_size": 6}

    response = await test_client.post("/api/tours", json=tour, headers=guide_headers)
    assert response.status_code == 403

    response = await test_client.post(f"/api/admin/guides/{guide_id}/approve", headers=headers_for(admin))
    assert response.status_code == 200
    assert response.json()["status"] == "approved"

    response = await test_client.post("/api/tours", json=tour, headers=guide_headers)
    assert response.status_code == 201
    assert response.json()["guide_id"] == guide_id
