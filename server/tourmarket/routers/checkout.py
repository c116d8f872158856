"""Checkout router: start a hosted payment for a new booking."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, require_roles
from ..models.user import Role
from ..payments.checkout import start_checkout
from ..schemas.checkout import CheckoutSessionResponse, CreateCheckoutSessionRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("/create-session", response_model=CheckoutSessionResponse)
async def create_session(
    request: CreateCheckoutSessionRequest,
    user: CurrentUser = Depends(require_roles(Role.USER)),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Create a pending booking and a Checkout Session for it.

    The booking is confirmed when the processor reports the session completed.
    """
    booking, session = await start_checkout(db, request, user)

    response_data = CheckoutSessionResponse(url=session.url, booking_id=booking.id, session_id=session.id)
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
