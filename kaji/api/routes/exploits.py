from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from kaji.api.deps import Database
from kaji.core.auth import require_roles
from kaji.schemas.common import Page
from kaji.schemas.exploits import ExploitCreate, ExploitUpdate, Severity
from kaji.schemas.users import CurrentUser
from kaji.services import exploit_service

router = APIRouter(prefix="/exploits", tags=["Exploits"])

Editor = Annotated[CurrentUser, Depends(require_roles("researcher", "admin"))]


@router.get("", response_model=Page)
async def list_exploits(
    db: Database,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    severity: Severity | None = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
) -> Page:
    """Browse public exploits, newest discoveries first."""
    return await exploit_service.list_exploits(db, page=page, limit=limit, severity=severity, search=search)


@router.get("/{exploit_id}")
async def get_exploit(exploit_id: UUID, db: Database) -> dict[str, Any]:
    return {"exploit": await exploit_service.get_exploit(db, str(exploit_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_exploit(payload: ExploitCreate, db: Database, user: Editor) -> dict[str, Any]:
    exploit = await exploit_service.create_exploit(db, payload, created_by=user.id)
    return {"exploit": exploit, "message": "Exploit created successfully"}


@router.put("/{exploit_id}")
async def update_exploit(
    exploit_id: UUID,
    payload: ExploitUpdate,
    db: Database,
    user: Editor,
) -> dict[str, Any]:
    exploit = await exploit_service.update_exploit(db, str(exploit_id), payload)
    return {"exploit": exploit, "message": "Exploit updated successfully"}


@router.delete(
    "/{exploit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles("admin"))],
)
async def delete_exploit(exploit_id: UUID, db: Database) -> Response:
    await exploit_service.delete_exploit(db, str(exploit_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
