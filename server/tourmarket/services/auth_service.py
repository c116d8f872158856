"""Account registration and login."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..core.security import create_access_token, hash_password, verify_password
from ..models.guide_profile import GuideProfile, GuideStatus
from ..models.user import Role, User
from ..schemas.auth import GuideRegisterRequest, RegisterRequest
from .guide_service import GuideService

logger = logging.getLogger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(str(user.id), user.email, Role(user.role).value)


class AuthService:
    """Service for accounts and credentials."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.guide_service = GuideService(db)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id_or_raise(self, user_id: UUID) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError(resource_type="user", resource_id=str(user_id))
        return user

    async def register(self, request: RegisterRequest) -> tuple[User, Optional[GuideProfile]]:
        """
        Create a traveler or guide account.

        Guides also get a profile awaiting admin approval.

        Raises:
            ValidationError: If the email is already registered
        """
        if await self.get_user_by_email(request.email):
            logger.info("Registration rejected - email in use", extra={"email": request.email})
            raise ValidationError(detail="An account with this email already exists")

        role = Role(request.role)
        user = User(
            name=request.name,
            email=request.email.lower(),
            password_hash=hash_password(request.password),
            role=role.value,
            phone=request.phone,
            location=request.location,
            is_active=True,
        )
        self.db.add(user)

        profile = None
        try:
            await self.db.flush()
            if role == Role.GUIDE:
                extra = request if isinstance(request, GuideRegisterRequest) else None
                profile = GuideProfile(
                    user_id=user.id,
                    business_name=extra.business_name if extra else None,
                    specialties=extra.specialties if extra else [],
                    languages=extra.languages if extra else [],
                    experience=extra.experience if extra else None,
                    status=GuideStatus.PENDING.value,
                )
                self.db.add(profile)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            # Lost a race with a concurrent registration of the same email
            raise ValidationError(detail="An account with this email already exists") from None

        await self.db.refresh(user)
        if profile is not None:
            await self.db.refresh(profile)

        logger.info(
            "User registered",
            extra={"user_id": str(user.id), "role": role.value}
        )
        return user, profile

    async def login(self, email: str, password: str) -> tuple[User, Optional[GuideProfile]]:
        """
        Check credentials.

        Raises:
            AuthenticationError: If the email or password is wrong
            AuthorizationError: If the account has been deactivated
        """
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Login failed", extra={"email": email})
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthorizationError(detail="This account has been deactivated")

        profile = None
        if Role(user.role) == Role.GUIDE:
            profile = await self.guide_service.get_profile_by_user_id(user.id)

        logger.info("User logged in", extra={"user_id": str(user.id)})
        return user, profile
