"""
Account endpoints: register, login, me, logout, delete account.
"""

from fastapi import APIRouter, Request

from app.auth.dependencies import CurrentUser
from app.auth.jwt import token_expiry
from app.dependencies import DbSession
from app.schemas.auth import Credentials, TokenResponse
from app.schemas.error import ErrorResponse
from app.services.auth_service import AuthService

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Invalid credentials format"},
        401: {"model": ErrorResponse, "description": "Missing, invalid or revoked token"},
    }
)


@router.post(
    "/register",
    status_code=201,
    response_model=TokenResponse,
    responses={409: {"model": ErrorResponse, "description": "Username already taken"}},
)
async def register(credentials: Credentials, db: DbSession):
    """Create an account and return an access token."""
    token = await AuthService(db).register(credentials.username, credentials.password)
    return {"success": True, "token": token}


@router.post("/login", response_model=TokenResponse)
async def login(credentials: Credentials, db: DbSession):
    token = await AuthService(db).authenticate(credentials.username, credentials.password)
    return {"success": True, "token": token}


@router.get("/me")
async def me(user: CurrentUser, db: DbSession):
    """Get the authenticated user's account."""
    account = await AuthService(db).get_by_id(user["user_id"])
    return {
        "success": True,
        "user": {
            "id": account.id,
            "username": account.username,
            "role": account.role,
            "createdAt": account.created_at.isoformat(),
        },
    }


@router.post("/logout")
async def logout(request: Request, user: CurrentUser, db: DbSession):
    """
    Revoke the presented token.
    It stays blacklisted until it would have expired.
    """
    await AuthService(db).revoke(request.state.token, token_expiry(request.state.token_payload))
    return {"success": True, "message": "Logged out successfully"}


@router.delete("/me")
async def delete_me(request: Request, user: CurrentUser, db: DbSession):
    """Delete the authenticated user's account and revoke the token."""
    service = AuthService(db)
    await service.delete_account(user["user_id"])
    await service.revoke(request.state.token, token_expiry(request.state.token_payload))
    return {"success": True, "message": "User deleted successfully"}
