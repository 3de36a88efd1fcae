from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from kaji.api.deps import Database
from kaji.core.auth import require_user
from kaji.schemas.users import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    UserPublic,
)
from kaji.services import user_service

auth_router = APIRouter(prefix="/auth", tags=["Auth"])
users_router = APIRouter(prefix="/users", tags=["Users"])

User = Annotated[CurrentUser, Depends(require_user)]


@auth_router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: Database) -> AuthResponse:
    """Create an account and return it with an access token.

    Raises:
        ConflictAppError: 409 when the username or email is taken.
    """
    return await user_service.register_user(db, payload)


@auth_router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, db: Database) -> AuthResponse:
    return await user_service.login_user(db, payload)


@users_router.get("/profile", response_model=UserPublic)
async def profile(db: Database, user: User) -> UserPublic:
    return await user_service.get_profile(db, user.id)


@users_router.put("/profile", response_model=UserPublic)
async def update_profile(payload: ProfileUpdate, db: Database, user: User) -> UserPublic:
    return await user_service.update_profile(db, user.id, payload)


@users_router.put("/change-password")
async def change_password(payload: PasswordChange, db: Database, user: User) -> dict[str, str]:
    """Replace the caller's password after checking the current one.

    Raises:
        AuthenticationAppError: 401 when the current password is wrong.
    """
    await user_service.change_password(db, user.id, payload)
    return {"message": "Password changed successfully"}


@users_router.get("/stats")
async def user_stats(db: Database, user: User) -> dict[str, Any]:
    return await user_service.get_stats(db, user.id)
