"""
Authentication dependencies for FastAPI.
Provides dependency injection for authenticated endpoints.
"""

from typing import Annotated, Any

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import extract_user_claims, validate_token
from app.config import get_settings
from app.core.exceptions import UnauthorizedException
from app.db.session import get_db
from app.services.auth_service import AuthService


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedException("Invalid authorization header format")
    return parts[1]


async def _authenticate(request: Request, token: str, db: AsyncSession) -> dict[str, Any]:
    payload = validate_token(token)
    if await AuthService(db).is_revoked(token):
        raise UnauthorizedException("Token has been revoked")

    user_claims = extract_user_claims(payload)
    # Endpoints that revoke the token need it again
    request.state.token = token
    request.state.token_payload = payload
    request.state.user = user_claims
    return user_claims


async def get_current_user(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    authorization: str | None = Header(default=None),
) -> dict[str, Any]:
    """
    Dependency to get current authenticated user.

    Validates the bearer token from the Authorization header and checks
    it against the logout blacklist.

    Raises:
        UnauthorizedException: If authentication fails
    """
    token = _bearer_token(authorization)
    if not token:
        raise UnauthorizedException("Authorization header required")
    return await _authenticate(request, token, db)


async def get_optional_user(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    authorization: str | None = Header(default=None),
) -> dict[str, Any] | None:
    """
    Dependency to optionally get current user.
    Returns None if no valid authentication provided.
    """
    try:
        token = _bearer_token(authorization)
        if not token:
            return None
        return await _authenticate(request, token, db)
    except UnauthorizedException:
        return None


async def get_uploader(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    authorization: str | None = Header(default=None),
) -> dict[str, Any] | None:
    """
    Dependency for write endpoints (upload, delete).

    With AUTH_REQUIRED a valid token is mandatory; otherwise a token is
    honoured when present and anonymous writes are allowed.
    """
    if get_settings().AUTH_REQUIRED:
        return await get_current_user(request, db, authorization)
    return await get_optional_user(request, db, authorization)


def resolve_owner_id(user: dict[str, Any] | None, user_id_field: str | None) -> str | None:
    """Owner of an upload: the authenticated user, else the userId field."""
    if user:
        return user["user_id"]
    return user_id_field or None


# Type aliases for dependency injection
CurrentUser = Annotated[dict[str, Any], Depends(get_current_user)]
Uploader = Annotated[dict[str, Any] | None, Depends(get_uploader)]
