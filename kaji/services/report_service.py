"""User report intake with best-effort AI triage, review and statistics."""

from __future__ import annotations

import logging
from typing import Any

from kaji.adapters.database.gateway import DatabaseGateway, Row
from kaji.core.errors import AppError, NotFoundAppError
from kaji.schemas.common import Page
from kaji.schemas.reports import ReportCreate, ReportStatusUpdate
from kaji.services.ai_service import AIService
from kaji.services.pagination import paginate

logger = logging.getLogger(__name__)

_REPORT_SELECT = """
    SELECT ur.*, u.username, e.title AS exploit_title
    FROM user_reports ur
    LEFT JOIN users u ON ur.user_id = u.id
    LEFT JOIN exploits e ON ur.exploit_id = e.id
"""


async def create_report(
    db: DatabaseGateway,
    payload: ReportCreate,
    *,
    user_id: str | None,
    ai: AIService | None,
) -> Row:
    """Store a report, then attach the AI's analysis when available.

    AI failures are logged and never fail the request; the stored report is
    returned either way.
    """
    row = await db.fetch_one(
        """
        INSERT INTO user_reports (user_id, report_type, title, description, exploit_id, chromeos_version_id)
        VALUES (:user_id, :report_type, :title, :description, :exploit_id, :chromeos_version_id)
        RETURNING *
        """,
        {"user_id": user_id, **payload.model_dump()},
    )

    if ai is None:
        return row

    try:
        verdict = await ai.validate_report(
            f"{payload.title}: {payload.description}",
            exploit_id=payload.exploit_id,
        )
        updated = await db.fetch_one(
            "UPDATE user_reports SET ai_analysis = :analysis WHERE id = :id RETURNING *",
            {"analysis": verdict.analysis, "id": row["id"]},
        )
    except AppError as exc:
        logger.error(
            "report.ai_analysis_failed",
            extra={"report_id": str(row["id"]), "error_code": exc.code, "error_message": exc.message},
        )
        return row

    logger.info(
        "report.created",
        extra={
            "report_id": str(row["id"]),
            "report_type": payload.report_type,
            "ai_valid": verdict.is_valid,
            "ai_confidence": verdict.confidence,
        },
    )
    return updated or row


async def list_reports(
    db: DatabaseGateway,
    *,
    page: int,
    limit: int,
    status: str | None = None,
    report_type: str | None = None,
    user_id: str | None = None,
) -> Page:
    where: list[str] = []
    params: dict[str, Any] = {}
    if status:
        where.append("ur.status = :status")
        params["status"] = status
    if report_type:
        where.append("ur.report_type = :report_type")
        params["report_type"] = report_type
    if user_id:
        where.append("ur.user_id = :user_id")
        params["user_id"] = user_id

    return await paginate(
        db,
        select=_REPORT_SELECT,
        count_from="FROM user_reports ur",
        where=where,
        params=params,
        order_by="ur.created_at DESC",
        page=page,
        limit=limit,
    )


async def get_report(db: DatabaseGateway, report_id: str) -> Row:
    row = await db.fetch_one(
        """
        SELECT ur.*, u.username, e.title AS exploit_title, cv.version AS chromeos_version
        FROM user_reports ur
        LEFT JOIN users u ON ur.user_id = u.id
        LEFT JOIN exploits e ON ur.exploit_id = e.id
        LEFT JOIN chromeos_versions cv ON ur.chromeos_version_id = cv.id
        WHERE ur.id = :id
        """,
        {"id": report_id},
    )
    if row is None:
        raise NotFoundAppError(code="report_not_found", message="Report not found")
    return row


async def update_status(
    db: DatabaseGateway,
    report_id: str,
    payload: ReportStatusUpdate,
    *,
    updated_by: str,
) -> Row:
    row = await db.fetch_one(
        """
        UPDATE user_reports
        SET status = :status, admin_notes = :admin_notes, updated_at = CURRENT_TIMESTAMP
        WHERE id = :id
        RETURNING *
        """,
        {"status": payload.status, "admin_notes": payload.admin_notes, "id": report_id},
    )
    if row is None:
        raise NotFoundAppError(code="report_not_found", message="Report not found")

    logger.info(
        "report.status_updated",
        extra={"report_id": report_id, "new_status": payload.status, "user_id": updated_by},
    )
    return row


async def report_stats(db: DatabaseGateway) -> dict[str, Any]:
    """Counts by status and type, plus a 30-day per-status timeline."""
    overview = await db.fetch_one(
        """
        SELECT COUNT(*) AS total_reports,
               COUNT(CASE WHEN status = 'pending' THEN 1 END) AS pending_count,
               COUNT(CASE WHEN status = 'reviewing' THEN 1 END) AS reviewing_count,
               COUNT(CASE WHEN status = 'accepted' THEN 1 END) AS accepted_count,
               COUNT(CASE WHEN status = 'rejected' THEN 1 END) AS rejected_count,
               COUNT(CASE WHEN report_type = 'error' THEN 1 END) AS error_reports,
               COUNT(CASE WHEN report_type = 'false_positive' THEN 1 END) AS false_positive_reports,
               COUNT(CASE WHEN report_type = 'missing_exploit' THEN 1 END) AS missing_exploit_reports,
               COUNT(CASE WHEN report_type = 'suggestion' THEN 1 END) AS suggestion_reports,
               COUNT(CASE WHEN created_at >= CURRENT_DATE - INTERVAL '7 days' THEN 1 END) AS recent_reports
        FROM user_reports
        """
    )
    timeline = await db.fetch_all(
        """
        SELECT DATE(created_at) AS date, status, COUNT(*) AS count
        FROM user_reports
        WHERE created_at >= CURRENT_DATE - INTERVAL '30 days'
        GROUP BY DATE(created_at), status
        ORDER BY date DESC
        """
    )
    return {"overview": overview, "timeline": timeline}
