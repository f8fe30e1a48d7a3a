"""
Account service - registration, login and token revocation.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import create_access_token
from app.auth.passwords import hash_password, verify_password
from app.core.exceptions import (
    ConflictException,
    RecordNotFoundException,
    UnauthorizedException,
)
from app.models.user import BlacklistedToken, User

logger = logging.getLogger(__name__)


class AuthService:
    """Service class for user accounts and token blacklist."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise RecordNotFoundException("User", user_id)
        return user

    async def register(self, username: str, password: str) -> str:
        """
        Create an account and return an access token for it.

        Raises:
            ConflictException: If the username is taken
        """
        if await self.get_by_username(username):
            raise ConflictException("Username already exists")

        password_hash, salt = hash_password(password)
        user = User(username=username, password_hash=password_hash, password_salt=salt)
        self.db.add(user)
        await self.db.flush()

        logger.info(f"Registered user {user.username} ({user.id})")
        return create_access_token(user.id, user.username, user.role)

    async def authenticate(self, username: str, password: str) -> str:
        """Check credentials and return a fresh access token."""
        user = await self.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash, user.password_salt):
            raise UnauthorizedException("Invalid username or password")
        return create_access_token(user.id, user.username, user.role)

    async def revoke(self, token: str, expires_at: datetime) -> None:
        """Blacklist a token until it would have expired anyway."""
        if await self.is_revoked(token):
            return
        self.db.add(BlacklistedToken(token=token, expires_at=expires_at))
        await self.db.flush()

    async def is_revoked(self, token: str) -> bool:
        """Check the blacklist, purging rows whose tokens have expired."""
        now = datetime.now(timezone.utc)
        await self.db.execute(delete(BlacklistedToken).where(BlacklistedToken.expires_at < now))
        result = await self.db.execute(
            select(BlacklistedToken.token).where(BlacklistedToken.token == token)
        )
        return result.scalar_one_or_none() is not None

    async def delete_account(self, user_id: str) -> None:
        user = await self.get_by_id(user_id)
        await self.db.delete(user)
        await self.db.flush()
        logger.info(f"Deleted user {user.username} ({user.id})")
