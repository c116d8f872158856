"""Processed webhook event model definition."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class ProcessedWebhookEvent(Base):
    """Record of a payment processor event that has already been applied."""

    __tablename__ = "processed_webhook_events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Processor event id, unique so a replay cannot be applied twice
    event_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    outcome: Mapped[str] = mapped_column(String(50), nullable=False)

    processed_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("length(event_id) > 0", name="ck_webhook_event_id_not_empty"),
    )

    def __repr__(self) -> str:
        return (
            f"<ProcessedWebhookEvent(event_id='{self.event_id}', "
            f"type='{self.event_type}', outcome='{self.outcome}')>"
        )
