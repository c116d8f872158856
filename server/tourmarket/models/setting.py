"""Platform setting model definition."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class PlatformSetting(Base):
    """Key/value platform configuration editable by administrators."""

    __tablename__ = "platform_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )
    updated_by: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)

    def __repr__(self) -> str:
        return f"<PlatformSetting(key='{self.key}', value='{self.value}')>"
