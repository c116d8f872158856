"""Tour service for business logic operations."""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.dependencies import CurrentUser
from ..core.exceptions import AuthorizationError, NotFoundError
from ..core.permissions import can_manage_tour
from ..models.tour import Tour
from ..models.user import Role
from ..schemas.tour import CreateTourRequest, UpdateTourRequest
from .guide_service import GuideService

logger = logging.getLogger(__name__)


class TourService:
    """Service for tour-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.guide_service = GuideService(db)

    async def create_tour(self, request: CreateTourRequest, user: CurrentUser) -> Tour:
        """
        Create a new tour owned by the calling guide or admin.

        Args:
            request: Tour creation request
            user: Caller, a guide or admin

        Returns:
            Created tour entity

        Raises:
            AuthorizationError: If the caller is a guide who has not been approved
        """
        if user.role == Role.GUIDE and not await self.guide_service.is_approved(user.user_id):
            logger.warning(
                "Tour creation rejected - guide not approved",
                extra={"guide_id": str(user.user_id)}
            )
            raise AuthorizationError(detail="Your guide profile must be approved before creating tours")

        tour = Tour(guide_id=user.user_id, is_active=True, **request.model_dump())

        self.db.add(tour)
        await self.db.commit()
        await self.db.refresh(tour)

        logger.info(
            "Tour created successfully",
            extra={
                "tour_id": str(tour.id),
                "guide_id": str(tour.guide_id),
                "title": tour.title
            }
        )

        return tour

    async def update_tour(self, tour_id: UUID, request: UpdateTourRequest, user: CurrentUser) -> Tour:
        tour = await self.get_tour_by_id_or_raise(tour_id)
        self._ensure_can_manage(tour, user)

        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(tour, field, value)

        await self.db.commit()
        await self.db.refresh(tour)

        logger.info(
            "Tour updated",
            extra={"tour_id": str(tour.id), "updated_by": str(user.user_id)}
        )
        return tour

    async def toggle_tour(self, tour_id: UUID, user: CurrentUser) -> Tour:
        """Flip a tour between active and inactive."""
        tour = await self.get_tour_by_id_or_raise(tour_id)
        self._ensure_can_manage(tour, user)

        tour.is_active = not tour.is_active

        await self.db.commit()
        await self.db.refresh(tour)

        logger.info(
            "Tour active flag toggled",
            extra={"tour_id": str(tour.id), "is_active": tour.is_active}
        )
        return tour

    async def deactivate_tour(self, tour_id: UUID, user: CurrentUser) -> Tour:
        """
        Withdraw a tour from the catalogue.

        Bookings keep referencing the tour, so the row stays and is only
        marked inactive.
        """
        tour = await self.get_tour_by_id_or_raise(tour_id)
        self._ensure_can_manage(tour, user)

        tour.is_active = False

        await self.db.commit()
        await self.db.refresh(tour)

        logger.info(
            "Tour deactivated",
            extra={"tour_id": str(tour.id), "deactivated_by": str(user.user_id)}
        )
        return tour

    async def search_tours(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        location: Optional[str] = None,
    ) -> list[Tour]:
        """
        Search active tours.

        ``q`` matches title, description or location; ``location`` and
        ``category`` narrow the results further. Text matching is
        case-insensitive.
        """
        stmt = select(Tour).where(Tour.is_active.is_(True))

        if q:
            pattern = f"%{q}%"
            stmt = stmt.where(
                or_(
                    Tour.title.ilike(pattern),
                    Tour.description.ilike(pattern),
                    Tour.location.ilike(pattern),
                )
            )
        if category:
            stmt = stmt.where(func.lower(Tour.category) == category.lower())
        if location:
            stmt = stmt.where(Tour.location.ilike(f"%{location}%"))
        if min_price is not None:
            stmt = stmt.where(Tour.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Tour.price <= max_price)

        result = await self.db.execute(stmt.order_by(Tour.created_at.desc()))
        return list(result.scalars())

    async def list_all_tours(self) -> list[Tour]:
        """Every tour, active or not, for administrators."""
        result = await self.db.execute(select(Tour).order_by(Tour.created_at.desc()))
        return list(result.scalars())

    async def list_active_tours(self) -> list[Tour]:
        stmt = select(Tour).where(Tour.is_active.is_(True)).order_by(Tour.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def list_featured_tours(self, limit: int = 6) -> list[Tour]:
        stmt = (
            select(Tour)
            .where(Tour.is_active.is_(True), Tour.featured.is_(True))
            .order_by(Tour.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def list_guide_tours(self, guide_id: UUID) -> list[Tour]:
        stmt = select(Tour).where(Tour.guide_id == guide_id).order_by(Tour.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get_tour_by_id(self, tour_id: UUID) -> Optional[Tour]:
        """
        Get tour by ID.

        Args:
            tour_id: Tour ID to search for

        Returns:
            Tour if found, None otherwise
        """
        stmt = select(Tour).where(Tour.id == tour_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_tour_by_id_or_raise(self, tour_id: UUID) -> Tour:
        """
        Get tour by ID or raise NotFoundError.

        Raises:
            NotFoundError: If tour not found
        """
        tour = await self.get_tour_by_id(tour_id)
        if not tour:
            logger.warning(
                "Tour not found",
                extra={"tour_id": str(tour_id)}
            )
            raise NotFoundError(
                resource_type="tour",
                resource_id=str(tour_id)
            )
        return tour

    async def get_tour_with_slots_or_raise(self, tour_id: UUID) -> Tour:
        stmt = (
            select(Tour)
            .options(selectinload(Tour.slots))
            .where(Tour.id == tour_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        tour = result.scalar_one_or_none()
        if not tour:
            raise NotFoundError(resource_type="tour", resource_id=str(tour_id))
        return tour

    def _ensure_can_manage(self, tour: Tour, user: CurrentUser) -> None:
        if not can_manage_tour(user, tour):
            logger.warning(
                "Tour management denied",
                extra={"tour_id": str(tour.id), "user_id": str(user.user_id), "role": user.role.value}
            )
            raise AuthorizationError(detail="Only the tour's guide or an admin can manage this tour")
