"""Test configuration and fixtures."""

import os

# Point the application engine at SQLite before the package is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("BEARER_TOKEN_SECRET", "test-signing-secret-for-bearer-tokens-0123456789")

from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tourmarket.core.database import Base, get_db
from tourmarket.core.dependencies import CurrentUser
from tourmarket.core.security import create_access_token, hash_password
from tourmarket.models import *  # noqa: F403 - Import all models
from tourmarket.models import AvailabilitySlot, GuideProfile, GuideStatus, Role, Tour, User

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """The application with its database dependency bound to the test session."""
    from tourmarket.main import create_app

    app = create_app()

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def auth_headers(user: User) -> dict[str, str]:
    """Bearer header for a stored user."""
    token = create_access_token(str(user.id), user.email, Role(user.role).value)
    return {"Authorization": f"Bearer {token}"}


def as_current_user(user: User) -> CurrentUser:
    return CurrentUser(user_id=user.id, email=user.email, role=Role(user.role))


@pytest.fixture
def make_user(test_session):
    """Factory storing a user with the given role."""

    async def _make_user(role: Role = Role.USER, email: str | None = None, approved: bool = True) -> User:
        count = getattr(_make_user, "count", 0) + 1
        _make_user.count = count
        user = User(
            name=f"{role.value.title()} {count}",
            email=email or f"{role.value}{count}@example.com",
            password_hash=hash_password("secret123"),
            role=role.value,
            is_active=True,
        )
        test_session.add(user)
        await test_session.flush()

        if role == Role.GUIDE:
            test_session.add(
                GuideProfile(
                    user_id=user.id,
                    business_name="Harbour Walks",
                    status=(GuideStatus.APPROVED if approved else GuideStatus.PENDING).value,
                )
            )

        await test_session.commit()
        await test_session.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture
async def traveler(make_user):
    return await make_user(Role.USER)


@pytest_asyncio.fixture
async def other_traveler(make_user):
    return await make_user(Role.USER)


@pytest_asyncio.fixture
async def guide(make_user):
    return await make_user(Role.GUIDE)


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN)


@pytest_asyncio.fixture
async def tour(test_session, guide):
    """Active tour: 100.00 per guest, groups of up to 12."""
    tour = Tour(
        guide_id=guide.id,
        title="Old Town Walking Tour",
        description="Two hours through the historic centre",
        location="Lisbon",
        duration="2 hours",
        category="walking",
        price=Decimal("100.00"),
        max_group_size=12,
        is_active=True,
        featured=True,
    )
    test_session.add(tour)
    await test_session.commit()
    await test_session.refresh(tour)
    return tour


@pytest.fixture
def make_slot(test_session):
    """Factory storing an availability slot."""

    async def _make_slot(tour: Tour, available_spots: int = 5, booked_spots: int = 0, days_ahead: int = 30) -> AvailabilitySlot:
        slot = AvailabilitySlot(
            tour_id=tour.id,
            date=date.today() + timedelta(days=days_ahead),
            start_time="09:00",
            available_spots=available_spots,
            booked_spots=booked_spots,
            is_active=True,
        )
        test_session.add(slot)
        await test_session.commit()
        await test_session.refresh(slot)
        return slot

    return _make_slot


@pytest_asyncio.fixture
async def slot(make_slot, tour):
    """Slot with 5 spots, none booked."""
    return await make_slot(tour)


@pytest.fixture
def future_date():
    return date.today() + timedelta(days=30)


@pytest.fixture
def headers_for():
    """Build bearer headers for a stored user."""
    return auth_headers


@pytest.fixture
def current_user_for():
    """Build the token identity of a stored user."""
    return as_current_user
