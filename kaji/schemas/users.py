"""Pydantic schemas for accounts and authentication."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

Role = Literal["user", "researcher", "admin"]


class CurrentUser(BaseModel):
    """Identity resolved from a verified access token."""

    id: str
    username: str
    role: Role = "user"


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserPublic(BaseModel):
    """User fields safe to return to clients (never the password hash)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    username: str
    email: str
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        # asyncpg returns uuid.UUID for uuid columns
        return str(value) if value is not None else value


class AuthResponse(BaseModel):
    user: UserPublic
    token: str
    message: str


class ProfileUpdate(BaseModel):
    email: EmailStr | None = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class RoleUpdate(BaseModel):
    role: Role
