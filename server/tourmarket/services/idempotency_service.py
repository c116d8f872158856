"""Webhook event deduplication."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.idempotency import ProcessedWebhookEvent

logger = logging.getLogger(__name__)


class IdempotencyService:
    """
    Records which payment processor events have been applied.

    The processor delivers events at least once. An event id recorded
    here has already had its side effects committed, so a redelivery must
    be acknowledged without applying them again.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def is_processed(self, event_id: str) -> bool:
        stmt = select(ProcessedWebhookEvent.id).where(ProcessedWebhookEvent.event_id == event_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    def mark_processed(self, event_id: str, event_type: str, outcome: str) -> ProcessedWebhookEvent:
        """
        Stage the processed-event record in the current transaction.

        The record commits together with the event's side effects. If a
        concurrent delivery of the same event commits first, the unique
        ``event_id`` makes this commit fail with ``IntegrityError``.
        """
        record = ProcessedWebhookEvent(event_id=event_id, event_type=event_type, outcome=outcome)
        self.db.add(record)

        logger.debug(
            "Webhook event staged as processed",
            extra={"event_id": event_id, "event_type": event_type, "outcome": outcome}
        )
        return record
