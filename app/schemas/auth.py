"""
Pydantic schemas for authentication requests.
"""

import re

from pydantic import BaseModel, Field, field_validator


class Credentials(BaseModel):
    """Username/password pair used by register and login."""

    username: str = Field(..., min_length=3, max_length=20)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not re.match(r"^[a-zA-Z0-9_-]+$", v):
            raise ValueError("Username must contain only alphanumeric characters, underscores, and hyphens")
        return v


class TokenResponse(BaseModel):
    success: bool = True
    token: str


class UserResponse(BaseModel):
    id: str
    username: str
    role: str
    created_at: str = Field(alias="createdAt")
