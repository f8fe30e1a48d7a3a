"""
JWT access tokens.
Issues and validates HS256 tokens signed with JWT_SECRET.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from app.config import get_settings
from app.core.exceptions import UnauthorizedException


def create_access_token(user_id: str, username: str, role: str = "user") -> str:
    """
    Issue a signed access token for a user.

    Args:
        user_id: User ID, stored as the ``sub`` claim
        username: Login name
        role: User role

    Returns:
        Encoded JWT
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "username": username,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        "jti": str(uuid4()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def validate_token(token: str) -> dict[str, Any]:
    """
    Verify signature and expiry of a token.

    Raises:
        UnauthorizedException: If token is invalid or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired")
    except JWTError as e:
        raise UnauthorizedException(f"Invalid token: {str(e)}")

    if not payload.get("sub"):
        raise UnauthorizedException("Token missing subject")
    return payload


def token_expiry(payload: dict[str, Any]) -> datetime:
    """Expiry of a validated token as an aware datetime."""
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)


def extract_user_claims(payload: dict[str, Any]) -> dict[str, Any]:
    """Normalize token claims to the user dict handed to endpoints."""
    return {
        "user_id": payload.get("sub"),
        "username": payload.get("username"),
        "role": payload.get("role", "user"),
    }
