"""Password hashing and bearer token issuance."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from .config import settings


def hash_password(password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain-text password against a bcrypt hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Issue a signed bearer token for a user.

    Args:
        user_id: User id, stored as the ``sub`` claim
        email: User email
        role: User role
        expires_delta: Token lifetime, defaults to ``settings.token_ttl_minutes``

    Returns:
        str: Encoded JWT
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.token_ttl_minutes))
    payload: Dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.bearer_token_secret, algorithm=settings.token_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a bearer token.

    Raises:
        jwt.PyJWTError: If the token is malformed, badly signed or expired
    """
    return jwt.decode(
        token,
        settings.bearer_token_secret,
        algorithms=[settings.token_algorithm],
        options={"require": ["sub", "exp"]},
    )
