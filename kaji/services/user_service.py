"""Account registration, login, profile management and per-user statistics."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from kaji.adapters.database.gateway import DatabaseGateway, Row
from kaji.core.errors import AuthenticationAppError, ConflictAppError, NotFoundAppError, ValidationAppError
from kaji.core.security import create_access_token, hash_password, verify_password
from kaji.schemas.users import (
    AuthResponse,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    UserPublic,
)

logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = "id, username, email, role, created_at, updated_at"


def _issue(user: UserPublic, message: str) -> AuthResponse:
    token = create_access_token(user_id=user.id, username=user.username, role=user.role)
    return AuthResponse(user=user, token=token, message=message)


async def register_user(db: DatabaseGateway, payload: RegisterRequest) -> AuthResponse:
    """Create a ``user``-role account and sign the caller in.

    Raises:
        ConflictAppError: If the username or email is taken.
    """
    existing = await db.fetch_one(
        "SELECT id FROM users WHERE username = :username OR email = :email",
        {"username": payload.username, "email": payload.email},
    )
    if existing:
        raise ConflictAppError(code="user_exists", message="Username or email already exists")

    # bcrypt is CPU-bound; keep it off the event loop
    password_hash = await run_in_threadpool(hash_password, payload.password)

    row = await db.fetch_one(
        f"""
        INSERT INTO users (username, email, password_hash, role)
        VALUES (:username, :email, :password_hash, 'user')
        RETURNING {_PUBLIC_COLUMNS}
        """,
        {"username": payload.username, "email": payload.email, "password_hash": password_hash},
    )
    user = UserPublic.model_validate(row)
    logger.info("user.registered", extra={"user_id": user.id, "username": user.username})
    return _issue(user, "User created successfully")


async def login_user(db: DatabaseGateway, payload: LoginRequest) -> AuthResponse:
    """Verify credentials for an active account and issue a token.

    Raises:
        AuthenticationAppError: For unknown users, inactive accounts or wrong passwords.
    """
    row = await db.fetch_one(
        f"SELECT {_PUBLIC_COLUMNS}, password_hash FROM users "
        "WHERE username = :username AND is_active = true",
        {"username": payload.username},
    )
    if row is None:
        raise AuthenticationAppError(code="invalid_credentials", message="Invalid credentials")

    valid = await run_in_threadpool(verify_password, payload.password, row["password_hash"])
    if not valid:
        logger.warning("user.login_failed", extra={"user_id": str(row["id"])})
        raise AuthenticationAppError(code="invalid_credentials", message="Invalid credentials")

    user = UserPublic.model_validate(row)
    logger.info("user.logged_in", extra={"user_id": user.id})
    return _issue(user, "Login successful")


async def get_profile(db: DatabaseGateway, user_id: str) -> UserPublic:
    row = await db.fetch_one(
        f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE id = :id",
        {"id": user_id},
    )
    if row is None:
        raise NotFoundAppError(code="user_not_found", message="User not found")
    return UserPublic.model_validate(row)


async def update_profile(db: DatabaseGateway, user_id: str, payload: ProfileUpdate) -> UserPublic:
    """Change the caller's email.

    Raises:
        ValidationAppError: If no fields were supplied.
        ConflictAppError: If another account already uses the email.
    """
    if payload.email is None:
        raise ValidationAppError(code="no_fields", message="No fields to update")

    taken = await db.fetch_one(
        "SELECT id FROM users WHERE email = :email AND id != :id",
        {"email": payload.email, "id": user_id},
    )
    if taken:
        raise ConflictAppError(code="email_in_use", message="Email already in use")

    row = await db.fetch_one(
        f"UPDATE users SET email = :email, updated_at = CURRENT_TIMESTAMP WHERE id = :id "
        f"RETURNING {_PUBLIC_COLUMNS}",
        {"email": payload.email, "id": user_id},
    )
    if row is None:
        raise NotFoundAppError(code="user_not_found", message="User not found")

    logger.info("user.profile_updated", extra={"user_id": user_id, "fields": ["email"]})
    return UserPublic.model_validate(row)


async def change_password(db: DatabaseGateway, user_id: str, payload: PasswordChange) -> None:
    row = await db.fetch_one("SELECT password_hash FROM users WHERE id = :id", {"id": user_id})
    if row is None:
        raise NotFoundAppError(code="user_not_found", message="User not found")

    valid = await run_in_threadpool(verify_password, payload.current_password, row["password_hash"])
    if not valid:
        logger.warning("user.password_change_rejected", extra={"user_id": user_id})
        raise AuthenticationAppError(code="invalid_current_password", message="Current password is incorrect")

    password_hash = await run_in_threadpool(hash_password, payload.new_password)
    await db.execute(
        "UPDATE users SET password_hash = :password_hash, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
        {"password_hash": password_hash, "id": user_id},
    )
    logger.info("user.password_changed", extra={"user_id": user_id})


async def get_stats(db: DatabaseGateway, user_id: str) -> Row:
    row = await db.fetch_one(
        """
        SELECT (SELECT COUNT(*) FROM exploits WHERE created_by = :id) AS exploits_created,
               (SELECT COUNT(*) FROM user_reports WHERE user_id = :id) AS reports_submitted,
               (SELECT COUNT(*) FROM chat_sessions WHERE user_id = :id) AS chat_sessions,
               (SELECT COUNT(*) FROM user_reports WHERE user_id = :id AND status = 'accepted') AS accepted_reports
        """,
        {"id": user_id},
    )
    return row or {}
