"""FastAPI dependencies for database sessions and authentication."""

from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header

from .database import get_db
from .exceptions import AuthenticationError, AuthorizationError
from .security import decode_access_token
from ..models.user import Role


@dataclass(frozen=True)
class CurrentUser:
    """Identity carried by a validated bearer token."""

    user_id: UUID
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> CurrentUser:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        CurrentUser: Identity from the validated token

    Raises:
        AuthenticationError: If the token is missing, malformed, invalid or expired
    """
    if not authorization:
        raise AuthenticationError("Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError("Invalid authorization header format") from None

    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authentication scheme")

    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired") from None
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid token") from None

    try:
        return CurrentUser(
            user_id=UUID(payload["sub"]),
            email=payload.get("email", ""),
            role=Role(payload.get("role")),
        )
    except ValueError:
        raise AuthenticationError("Invalid token payload") from None


def require_roles(*roles: Role) -> Callable:
    """Build a dependency that only lets the given roles through."""

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise AuthorizationError(
                detail=f"This action requires one of the roles: {', '.join(r.value for r in roles)}",
                required_roles=[r.value for r in roles],
            )
        return user

    return dependency


RequiredAuth = Depends(get_current_user)
DatabaseSession = Depends(get_db)
TravelerOnly = Depends(require_roles(Role.USER))
GuideOrAdmin = Depends(require_roles(Role.GUIDE, Role.ADMIN))
AdminOnly = Depends(require_roles(Role.ADMIN))
