"""Property-based tests for pricing and slot capacity invariants."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tourmarket.core.database import Base
from tourmarket.core.exceptions import CapacityError
from tourmarket.models import AvailabilitySlot, Role, Tour, User
from tourmarket.services.availability_service import AvailabilityService
from tourmarket.services.pricing import calculate_price

# Strategies for generating test data
unit_prices = st.decimals(min_value=Decimal("0.01"), max_value=Decimal("10000"), places=2)
commission_rates = st.decimals(min_value=Decimal("0"), max_value=Decimal("100"), places=2)
group_sizes = st.integers(min_value=1, max_value=50)
ledger_ops = st.lists(
    st.tuples(st.sampled_from(["reserve", "release"]), st.integers(min_value=1, max_value=8)),
    min_size=1,
    max_size=25,
)


@given(unit_price=unit_prices, max_group_size=group_sizes, rate=commission_rates, data=st.data())
def test_commission_and_earnings_sum_to_subtotal(unit_price, max_group_size, rate, data):
    """The platform's cut and the guide's share always add up to the subtotal."""
    guests = data.draw(st.integers(min_value=1, max_value=max_group_size))

    quote = calculate_price(unit_price, guests, max_group_size, rate)

    assert quote.subtotal == unit_price * guests
    assert quote.commission_amount + quote.guide_earnings == quote.subtotal
    assert quote.total_price == quote.subtotal
    assert Decimal("0") <= quote.commission_amount <= quote.subtotal


@given(unit_price=unit_prices, guests=st.integers(min_value=1, max_value=20))
def test_zero_commission_pays_guide_everything(unit_price, guests):
    quote = calculate_price(unit_price, guests, 20, 0)

    assert quote.commission_amount == Decimal("0.00")
    assert quote.guide_earnings == quote.subtotal


async def _ledger_session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.mark.asyncio
@settings(max_examples=30, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(capacity=st.integers(min_value=1, max_value=20), operations=ledger_ops)
async def test_booked_spots_stay_within_capacity(capacity, operations):
    """Any sequence of reservations and releases keeps 0 <= booked <= available."""
    engine, session_factory = await _ledger_session()
    try:
        async with session_factory() as session:
            guide = User(name="Guide", email="guide@example.com", password_hash="x", role=Role.GUIDE.value)
            session.add(guide)
            await session.flush()
            tour = Tour(guide_id=guide.id, title="Walk", location="Lisbon", price=Decimal("10.00"), max_group_size=50)
            session.add(tour)
            await session.flush()
            slot = AvailabilitySlot(
                tour_id=tour.id,
                date=date.today() + timedelta(days=7),
                available_spots=capacity,
                booked_spots=0,
            )
            session.add(slot)
            await session.commit()
            slot_id = slot.id

            ledger = AvailabilityService(session)
            expected = 0
            for operation, guests in operations:
                if operation == "reserve":
                    if expected + guests <= capacity:
                        await ledger.reserve(slot_id, guests)
                        expected += guests
                    else:
                        with pytest.raises(CapacityError):
                            await ledger.reserve(slot_id, guests)
                else:
                    await ledger.release(slot_id, guests)
                    expected = max(expected - guests, 0)
                await session.commit()

                current = await ledger.get_slot_by_id(slot_id)
                assert 0 <= current.booked_spots <= current.available_spots
                assert current.booked_spots == expected
    finally:
        await engine.dispose()
