"""Password hashing and access token helpers.

bcrypt for password hashes, PyJWT for signed access tokens. Token payloads
carry ``sub`` (user id), ``username`` and ``role``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from kaji.core.config import AuthSettings, settings
from kaji.core.errors import AuthenticationAppError


def hash_password(password: str, *, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.auth.bcrypt_rounds)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(
    *,
    user_id: str,
    username: str,
    role: str,
    auth_settings: AuthSettings | None = None,
) -> str:
    """Issue a signed access token valid for ``JWT_EXPIRES_DAYS`` days."""
    cfg = auth_settings or settings.auth
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "username": username,
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=cfg.expires_days),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.algorithm)


def decode_access_token(token: str, *, auth_settings: AuthSettings | None = None) -> dict[str, Any]:
    """Verify a token's signature and expiry and return its claims.

    Raises:
        AuthenticationAppError: If the token is expired, malformed or lacks a subject.
    """
    cfg = auth_settings or settings.auth
    try:
        payload = jwt.decode(token, cfg.secret, algorithms=[cfg.algorithm])
    except ExpiredSignatureError as exc:
        raise AuthenticationAppError(code="token_expired", message="Access token has expired") from exc
    except InvalidTokenError as exc:
        raise AuthenticationAppError(code="invalid_token", message="Invalid access token") from exc

    if not payload.get("sub"):
        raise AuthenticationAppError(code="invalid_token", message="Invalid access token")
    return payload
