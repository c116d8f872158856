"""Stripe webhook endpoint."""

import logging

import stripe
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import InternalServerError, ValidationError
from ..payments.reconciliation import process_event
from ..payments.stripe_client import construct_webhook_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)) -> dict[str, str]:
    """
    Receive a Stripe event.

    The signature is checked against the raw request bytes, so the body is
    read directly instead of being parsed into a model.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature", "")

    try:
        event = construct_webhook_event(payload, sig_header)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed")
        raise ValidationError(detail="Invalid webhook signature") from e
    except ValueError as e:
        logger.warning("Invalid webhook payload")
        raise ValidationError(detail="Invalid webhook payload") from e

    try:
        outcome = await process_event(db, event)
    except Exception as e:
        logger.exception(
            "Error processing webhook event",
            extra={"event_id": event.id, "event_type": event.type}
        )
        raise InternalServerError(detail="Webhook processing failed") from e

    return {"status": "processed", "outcome": outcome}
