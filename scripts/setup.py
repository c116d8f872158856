#!/usr/bin/env python3
"""Setup script for the tour marketplace API: migrate, then seed the admin account and platform settings."""

import asyncio
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import select

from tourmarket.core.config import settings
from tourmarket.core.database import async_session_factory, close_db
from tourmarket.core.security import hash_password
from tourmarket.models import AvailabilitySlot, GuideProfile, GuideStatus, Role, Tour, User
from tourmarket.services.settings_service import SettingsService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def run_migrations():
    """Upgrade the database to the latest schema."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def seed_platform():
    """Create the first admin account and the default commission rate."""
    admin_email = os.environ.get("ADMIN_EMAIL", "admin@tourmarket.local").lower()
    admin_password = os.environ.get("ADMIN_PASSWORD")

    async with async_session_factory() as db:
        result = await db.execute(select(User).where(User.email == admin_email))
        admin = result.scalar_one_or_none()

        if admin is None:
            if not admin_password:
                raise SystemExit("ADMIN_PASSWORD must be set to create the admin account")
            admin = User(
                name="Platform Admin",
                email=admin_email,
                password_hash=hash_password(admin_password),
                role=Role.ADMIN.value,
                is_active=True,
            )
            db.add(admin)
            await db.commit()
            await db.refresh(admin)
            logger.info(f"Created admin account {admin_email}")
        else:
            logger.info(f"Admin account {admin_email} already exists, skipping...")

        service = SettingsService(db)
        if await service.get_setting("commission_rate") is None:
            rate = await service.set_commission_rate(settings.default_commission_rate, admin.id)
            logger.info(f"Commission rate set to {rate}%")


async def create_sample_data():
    """Create an approved demo guide with one tour and a few open dates."""
    from datetime import date, timedelta

    async with async_session_factory() as db:
        try:
            existing_tours = await db.execute(select(Tour.id).limit(1))
            if existing_tours.scalar_one_or_none() is not None:
                logger.info("Sample data already exists, skipping...")
                return

            guide = User(
                name="Demo Guide",
                email="guide@tourmarket.local",
                password_hash=hash_password("guide-demo"),
                role=Role.GUIDE.value,
                is_active=True,
            )
            db.add(guide)
            await db.flush()

            db.add(GuideProfile(
                user_id=guide.id,
                business_name="Northern Lights Adventures",
                specialties=["aurora", "photography"],
                languages=["en", "is"],
                status=GuideStatus.APPROVED.value,
            ))

            tour = Tour(
                guide_id=guide.id,
                title="Northern Lights Adventure",
                description="Chase the Aurora Borealis outside Reykjavik with an expert guide",
                location="Reykjavik",
                duration="5 hours",
                category="nature",
                price=Decimal("149.00"),
                max_group_size=12,
                featured=True,
            )
            db.add(tour)
            await db.flush()

            first_date = date.today() + timedelta(days=30)
            for i in range(5):
                db.add(AvailabilitySlot(
                    tour_id=tour.id,
                    date=first_date + timedelta(days=i * 7),
                    start_time="20:00",
                    available_spots=12,
                ))

            await db.commit()
            logger.info("Sample data created successfully!")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


async def seed(with_sample_data: bool):
    try:
        await seed_platform()
        if with_sample_data:
            await create_sample_data()
    finally:
        await close_db()


def main():
    """Main setup function."""
    logger.info("Starting tour marketplace API setup...")

    run_migrations()
    asyncio.run(seed(with_sample_data="--sample-data" in sys.argv))

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn tourmarket.main:app --reload")


if __name__ == "__main__":
    main()
