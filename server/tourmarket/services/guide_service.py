"""Guide profile and approval service."""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.exceptions import NotFoundError
from ..models.guide_profile import GuideProfile, GuideStatus
from ..models.tour import Tour
from ..models.user import User
from ..schemas.auth import UpdateGuideProfileRequest

logger = logging.getLogger(__name__)


class GuideService:
    """Service for guide profiles and their approval."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile_by_user_id(self, user_id: UUID) -> Optional[GuideProfile]:
        stmt = select(GuideProfile).where(GuideProfile.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_profile_by_user_id_or_raise(self, user_id: UUID) -> GuideProfile:
        profile = await self.get_profile_by_user_id(user_id)
        if not profile:
            logger.warning("Guide profile not found", extra={"user_id": str(user_id)})
            raise NotFoundError(resource_type="guide profile", resource_id=str(user_id))
        return profile

    async def is_approved(self, user_id: UUID) -> bool:
        profile = await self.get_profile_by_user_id(user_id)
        return profile is not None and GuideStatus(profile.status) == GuideStatus.APPROVED

    async def list_pending(self) -> list[GuideProfile]:
        """Guide profiles awaiting review, oldest first, with their accounts loaded."""
        stmt = (
            select(GuideProfile)
            .options(selectinload(GuideProfile.user))
            .where(GuideProfile.status == GuideStatus.PENDING.value)
            .order_by(GuideProfile.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def approve(self, user_id: UUID, admin_id: UUID) -> GuideProfile:
        profile = await self.get_profile_by_user_id_or_raise(user_id)

        profile.status = GuideStatus.APPROVED.value
        profile.approved_at = datetime.now(timezone.utc)
        profile.approved_by = admin_id

        await self.db.commit()
        await self.db.refresh(profile)

        logger.info(
            "Guide approved",
            extra={"user_id": str(user_id), "approved_by": str(admin_id)}
        )
        return profile

    async def reject(self, user_id: UUID, admin_id: UUID) -> GuideProfile:
        profile = await self.get_profile_by_user_id_or_raise(user_id)

        profile.status = GuideStatus.REJECTED.value
        profile.approved_at = None
        profile.approved_by = None

        await self.db.commit()
        await self.db.refresh(profile)

        logger.info(
            "Guide rejected",
            extra={"user_id": str(user_id), "rejected_by": str(admin_id)}
        )
        return profile

    async def update_profile(self, user_id: UUID, request: UpdateGuideProfileRequest) -> GuideProfile:
        """Apply a partial update to the business details of a guide's own profile."""
        profile = await self.get_profile_by_user_id_or_raise(user_id)

        for field, value in request.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(profile, field, value)

        await self.db.commit()
        await self.db.refresh(profile)

        logger.info("Guide profile updated", extra={"user_id": str(user_id)})
        return profile

    async def list_approved_guides(self) -> list[tuple[GuideProfile, int]]:
        """Approved guides with active accounts, each with its number of active tours."""
        stmt = (
            select(GuideProfile)
            .join(User, GuideProfile.user_id == User.id)
            .options(selectinload(GuideProfile.user))
            .where(GuideProfile.status == GuideStatus.APPROVED.value, User.is_active.is_(True))
            .order_by(User.name)
        )
        profiles = list((await self.db.execute(stmt)).scalars())

        counts_stmt = (
            select(Tour.guide_id, func.count(Tour.id))
            .where(Tour.is_active.is_(True))
            .group_by(Tour.guide_id)
        )
        tour_counts = dict((await self.db.execute(counts_stmt)).all())

        return [(profile, tour_counts.get(profile.user_id, 0)) for profile in profiles]
