"""Bearer token authentication dependencies.

Tokens are issued by ``/auth/login`` and ``/auth/register`` and verified here.
Token checking is kept apart from the FastAPI wiring so it can be tested
without a request:

- ``resolve_user``: pure claims-to-user logic
- ``get_current_user_optional``: anonymous access allowed, bad tokens rejected
- ``require_user`` / ``require_roles``: route guards
"""

from __future__ import annotations

import logging
from typing import Annotated, Callable, Coroutine

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kaji.core.errors import AuthenticationAppError, AuthorizationAppError
from kaji.core.security import decode_access_token
from kaji.schemas.users import CurrentUser

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def resolve_user(token: str) -> CurrentUser:
    """Turn a bearer token into the caller's identity.

    Raises:
        AuthenticationAppError: If the token is invalid or expired.
    """
    claims = decode_access_token(token)
    return CurrentUser(
        id=str(claims["sub"]),
        username=str(claims.get("username", "")),
        role=claims.get("role", "user"),
    )


async def get_current_user_optional(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> CurrentUser | None:
    """Return the authenticated user, or None for anonymous requests.

    A token that is present but invalid is an error, not anonymous access.
    """
    if credentials is None:
        return None

    try:
        return resolve_user(credentials.credentials)
    except AuthenticationAppError as exc:
        logger.warning("auth.invalid_token", extra={"reason": exc.code})
        raise


async def require_user(
    user: Annotated[CurrentUser | None, Depends(get_current_user_optional)],
) -> CurrentUser:
    if user is None:
        raise AuthenticationAppError(code="authentication_required", message="Authentication required")
    return user


def require_roles(*roles: str) -> Callable[..., Coroutine[None, None, CurrentUser]]:
    """Build a dependency that admits only users holding one of ``roles``.

    Usage:
        @router.delete("/{id}", dependencies=[Depends(require_roles("admin"))])
    """

    allowed = set(roles)

    async def _guard(user: Annotated[CurrentUser, Depends(require_user)]) -> CurrentUser:
        if user.role not in allowed:
            logger.warning(
                "auth.forbidden",
                extra={"user_id": user.id, "role": user.role, "required": sorted(allowed)},
            )
            raise AuthorizationAppError(
                code="insufficient_role",
                message=f"{' or '.join(sorted(allowed)).capitalize()} access required",
            )
        return user

    return _guard
