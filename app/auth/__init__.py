"""
Authentication module.
Local accounts with HS256 JWT bearer tokens and a logout blacklist.
FastAPI dependencies live in app.auth.dependencies.
"""

from app.auth.jwt import create_access_token, extract_user_claims, validate_token
from app.auth.passwords import hash_password, verify_password

__all__ = [
    # JWT functions
    "create_access_token",
    "validate_token",
    "extract_user_claims",
    # Passwords
    "hash_password",
    "verify_password",
]
