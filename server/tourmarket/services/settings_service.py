"""Platform settings repository."""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import ValidationError
from ..models.setting import PlatformSetting

logger = logging.getLogger(__name__)

COMMISSION_RATE_KEY = "commission_rate"


class SettingsService:
    """
    Reads and writes platform settings.

    Values are read from the database on every call and never cached, so a
    change made by an administrator applies to the next booking priced.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_setting(self, key: str) -> Optional[PlatformSetting]:
        result = await self.db.execute(select(PlatformSetting).where(PlatformSetting.key == key))
        return result.scalar_one_or_none()

    async def get_commission_rate(self) -> Decimal:
        """Return the current commission percentage, falling back to the configured default."""
        setting = await self.get_setting(COMMISSION_RATE_KEY)
        if setting is None:
            return Decimal(str(settings.default_commission_rate))

        try:
            return Decimal(setting.value)
        except InvalidOperation:
            logger.error(
                "Stored commission rate is not a number, using default",
                extra={"value": setting.value}
            )
            return Decimal(str(settings.default_commission_rate))

    async def set_commission_rate(self, rate, actor_id: Optional[UUID] = None) -> Decimal:
        """
        Store a new commission percentage.

        Bookings already created keep the rate they were priced with.

        Raises:
            ValidationError: If the rate is outside 0 to 100
        """
        rate = Decimal(str(rate))
        if not rate.is_finite() or not Decimal("0") <= rate <= Decimal("100"):
            raise ValidationError(detail="Commission rate must be between 0 and 100")
        rate = rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

        setting = await self.get_setting(COMMISSION_RATE_KEY)
        if setting is None:
            setting = PlatformSetting(
                key=COMMISSION_RATE_KEY,
                value=str(rate),
                description="Platform commission percentage",
                updated_by=actor_id,
            )
            self.db.add(setting)
        else:
            setting.value = str(rate)
            setting.updated_by = actor_id

        await self.db.commit()

        logger.info(
            "Commission rate updated",
            extra={"rate": str(rate), "updated_by": str(actor_id) if actor_id else None}
        )

        return rate
