"""Administration endpoints. Every route requires the ``admin`` role."""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from kaji.api.deps import Database
from kaji.core.auth import require_roles
from kaji.schemas.admin import LogLevel, TrainingValidation
from kaji.schemas.common import Page
from kaji.schemas.users import CurrentUser, Role, RoleUpdate, UserPublic
from kaji.services import admin_service

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_roles("admin"))])

Admin = Annotated[CurrentUser, Depends(require_roles("admin"))]


@router.get("/stats")
async def platform_stats(db: Database) -> dict[str, Any]:
    """Row counts across the platform plus the last week's activity feed."""
    return await admin_service.platform_stats(db)


@router.get("/logs", response_model=Page)
async def list_logs(
    db: Database,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    level: LogLevel | None = None,
) -> Page:
    return await admin_service.list_logs(db, page=page, limit=limit, level=level)


@router.get("/ai-training", response_model=Page)
async def list_training_data(
    db: Database,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    validated_only: bool = False,
) -> Page:
    return await admin_service.list_training_data(db, page=page, limit=limit, validated_only=validated_only)


@router.patch("/ai-training/{training_id}/validate")
async def validate_training_data(
    training_id: UUID,
    payload: TrainingValidation,
    db: Database,
    user: Admin,
) -> dict[str, Any]:
    return await admin_service.set_training_validation(
        db,
        str(training_id),
        is_validated=payload.is_validated,
        updated_by=user.id,
    )


@router.get("/users", response_model=Page)
async def list_users(
    db: Database,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    role: Role | None = None,
    active_only: bool = True,
) -> Page:
    return await admin_service.list_users(db, page=page, limit=limit, role=role, active_only=active_only)


@router.patch("/users/{user_id}/role", response_model=UserPublic)
async def update_user_role(user_id: UUID, payload: RoleUpdate, db: Database, user: Admin) -> UserPublic:
    """Grant ``user``, ``researcher`` or ``admin`` to an account.

    Raises:
        NotFoundAppError: 404 when the account does not exist.
    """
    return await admin_service.update_user_role(db, str(user_id), payload.role, updated_by=user.id)
