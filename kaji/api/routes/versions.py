from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from kaji.api.deps import Database
from kaji.core.auth import require_roles
from kaji.schemas.common import Page
from kaji.schemas.exploits import Severity, VersionCreate, VersionUpdate
from kaji.schemas.users import CurrentUser
from kaji.services import exploit_service

router = APIRouter(prefix="/versions", tags=["Versions"])

Editor = Annotated[CurrentUser, Depends(require_roles("researcher", "admin"))]
Admin = Annotated[CurrentUser, Depends(require_roles("admin"))]


@router.get("")
async def list_versions(db: Database, current_only: bool = False) -> list[dict[str, Any]]:
    """ChromeOS releases with per-severity counts of public exploits."""
    return await exploit_service.list_versions(db, current_only=current_only)


@router.get("/stats/overview")
async def version_stats(db: Database) -> dict[str, Any]:
    return await exploit_service.version_stats(db)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_version(payload: VersionCreate, db: Database, _: Editor) -> dict[str, Any]:
    """Register a ChromeOS release.

    Raises:
        ConflictAppError: 409 when the version string already exists.
    """
    return await exploit_service.create_version(db, payload)


@router.get("/{version_id}")
async def get_version(version_id: UUID, db: Database) -> dict[str, Any]:
    return await exploit_service.get_version(db, str(version_id))


@router.put("/{version_id}")
async def update_version(version_id: UUID, payload: VersionUpdate, db: Database, _: Editor) -> dict[str, Any]:
    return await exploit_service.update_version(db, str(version_id), payload)


@router.patch("/{version_id}/set-current")
async def set_current_version(version_id: UUID, db: Database, user: Admin) -> dict[str, Any]:
    version = await exploit_service.set_current_version(db, str(version_id), updated_by=user.id)
    return {"message": "Current ChromeOS version updated successfully", "version": version}


@router.get("/{version_id}/exploits", response_model=Page)
async def list_version_exploits(
    version_id: UUID,
    db: Database,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    severity: Severity | None = None,
) -> Page:
    await exploit_service.get_version(db, str(version_id))
    return await exploit_service.list_exploits(
        db,
        page=page,
        limit=limit,
        severity=severity,
        version_id=str(version_id),
    )
