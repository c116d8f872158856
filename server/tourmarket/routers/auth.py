"""Authentication router: registration, login and the current account."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import CurrentUser, get_current_user
from ..schemas.auth import (
    AuthResponse,
    GuideProfile,
    GuideRegisterRequest,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    User,
)
from ..services.auth_service import AuthService, issue_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(user, profile, status_code: int) -> JSONResponse:
    response_data = AuthResponse(
        user=User.model_validate(user),
        token=issue_token(user),
        guide_profile=GuideProfile.model_validate(profile) if profile else None,
    )
    return JSONResponse(status_code=status_code, content=response_data.model_dump(mode="json"))


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Register a traveler or guide account and return a token."""
    user, profile = await AuthService(db).register(request)
    return _auth_response(user, profile, 201)


@router.post("/register/guide", response_model=AuthResponse, status_code=201)
async def register_guide(request: GuideRegisterRequest, db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Register a guide with business details; the profile awaits admin approval."""
    user, profile = await AuthService(db).register(request)
    return _auth_response(user, profile, 201)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)) -> JSONResponse:
    user, profile = await AuthService(db).login(request.email, request.password)
    return _auth_response(user, profile, 200)


@router.get("/me", response_model=MeResponse)
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    service = AuthService(db)
    user = await service.get_user_by_id_or_raise(current_user.user_id)
    profile = await service.guide_service.get_profile_by_user_id(user.id)

    response_data = MeResponse(
        user=User.model_validate(user),
        guide_profile=GuideProfile.model_validate(profile) if profile else None,
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
