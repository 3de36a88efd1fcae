from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from kaji.api.deps import Database, OptionalAI
from kaji.core.auth import get_current_user_optional, require_roles
from kaji.schemas.common import Page
from kaji.schemas.reports import ReportCreate, ReportStatus, ReportStatusUpdate, ReportType
from kaji.schemas.users import CurrentUser
from kaji.services import report_service

router = APIRouter(prefix="/reports", tags=["Reports"])

OptionalUser = Annotated[CurrentUser | None, Depends(get_current_user_optional)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    db: Database,
    ai: OptionalAI,
    user: OptionalUser,
) -> dict[str, Any]:
    """Submit a report about an exploit entry.

    When an AI provider is configured the report is triaged and the verdict
    stored in ``ai_analysis``; a failed triage still stores the report.
    """
    report = await report_service.create_report(
        db,
        payload,
        user_id=user.id if user else None,
        ai=ai,
    )
    return {"report": report, "message": "Report submitted successfully"}


@router.get("", response_model=Page)
async def list_reports(
    db: Database,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[ReportStatus | None, Query(alias="status")] = None,
    report_type: ReportType | None = None,
    user_id: UUID | None = None,
) -> Page:
    return await report_service.list_reports(
        db,
        page=page,
        limit=limit,
        status=status_filter,
        report_type=report_type,
        user_id=str(user_id) if user_id else None,
    )


@router.get("/stats/overview")
async def report_stats(db: Database) -> dict[str, Any]:
    return await report_service.report_stats(db)


@router.get("/{report_id}")
async def get_report(report_id: UUID, db: Database) -> dict[str, Any]:
    return await report_service.get_report(db, str(report_id))


@router.patch("/{report_id}/status")
async def update_report_status(
    report_id: UUID,
    payload: ReportStatusUpdate,
    db: Database,
    user: Annotated[CurrentUser, Depends(require_roles("admin"))],
) -> dict[str, Any]:
    return await report_service.update_status(db, str(report_id), payload, updated_by=user.id)
