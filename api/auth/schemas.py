"""
Auth request/response models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

UserRole = Literal["user", "admin"]


class Credentials(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        email = value.strip().lower()
        if "@" not in email.strip("@"):
            raise ValueError("Enter a valid email address.")
        return email


class RegisterRequest(Credentials):
    name: str = Field(..., min_length=1, max_length=100)
    # bcrypt ignores bytes past 72; the service enforces the byte limit.
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        name = value.strip()
        if not name:
            raise ValueError("Name is required.")
        return name


class LoginRequest(Credentials):
    pass


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=20)


class LogoutRequest(BaseModel):
    # Without a token every session of the authenticated caller is revoked.
    refresh_token: str | None = Field(default=None, min_length=20)


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: Literal["bearer"] = "bearer"


class AuthResponse(BaseModel):
    user: UserResponse
    tokens: TokenPairResponse


class UserStatusRequest(BaseModel):
    is_active: bool
