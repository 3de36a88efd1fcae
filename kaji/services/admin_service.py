"""Administrative views: platform statistics, logs, AI training data and accounts."""

from __future__ import annotations

import logging
from typing import Any

from kaji.adapters.database.gateway import DatabaseGateway, Row
from kaji.core.errors import NotFoundAppError
from kaji.schemas.common import Page
from kaji.schemas.users import UserPublic
from kaji.services.pagination import paginate

logger = logging.getLogger(__name__)

# Activity feed window and size for the stats overview
ACTIVITY_DAYS = 7
ACTIVITY_LIMIT = 20


async def platform_stats(db: DatabaseGateway) -> dict[str, Any]:
    overview = await db.fetch_one(
        """
        SELECT (SELECT COUNT(*) FROM users) AS total_users,
               (SELECT COUNT(*) FROM exploits) AS total_exploits,
               (SELECT COUNT(*) FROM user_reports) AS total_reports,
               (SELECT COUNT(*) FROM chat_sessions) AS total_chat_sessions,
               (SELECT COUNT(*) FROM chromeos_versions) AS total_versions,
               (SELECT COUNT(*) FROM ai_training_data) AS total_training_data,
               (SELECT COUNT(*) FROM system_logs
                WHERE level = 'error' AND created_at >= CURRENT_DATE - make_interval(days => :days)
               ) AS recent_errors
        """,
        {"days": ACTIVITY_DAYS},
    )
    activity = await db.fetch_all(
        """
        SELECT 'exploit' AS type, title AS name, created_at FROM exploits
        WHERE created_at >= CURRENT_DATE - make_interval(days => :days)
        UNION ALL
        SELECT 'report' AS type, title AS name, created_at FROM user_reports
        WHERE created_at >= CURRENT_DATE - make_interval(days => :days)
        UNION ALL
        SELECT 'user' AS type, username AS name, created_at FROM users
        WHERE created_at >= CURRENT_DATE - make_interval(days => :days)
        ORDER BY created_at DESC
        LIMIT :limit
        """,
        {"days": ACTIVITY_DAYS, "limit": ACTIVITY_LIMIT},
    )
    return {"overview": overview, "recent_activity": activity}


async def list_logs(db: DatabaseGateway, *, page: int, limit: int, level: str | None = None) -> Page:
    where: list[str] = []
    params: dict[str, Any] = {}
    if level:
        where.append("level = :level")
        params["level"] = level
    return await paginate(
        db,
        select="SELECT * FROM system_logs",
        count_from="FROM system_logs",
        where=where,
        params=params,
        order_by="created_at DESC",
        page=page,
        limit=limit,
    )


async def list_training_data(
    db: DatabaseGateway,
    *,
    page: int,
    limit: int,
    validated_only: bool = False,
) -> Page:
    return await paginate(
        db,
        select="""
            SELECT atd.*, e.title AS exploit_title, e.severity
            FROM ai_training_data atd
            LEFT JOIN exploits e ON atd.exploit_id = e.id
        """,
        count_from="FROM ai_training_data atd",
        where=["atd.is_validated = true"] if validated_only else [],
        params={},
        order_by="atd.created_at DESC",
        page=page,
        limit=limit,
    )


async def set_training_validation(
    db: DatabaseGateway,
    training_id: str,
    *,
    is_validated: bool,
    updated_by: str,
) -> Row:
    row = await db.fetch_one(
        "UPDATE ai_training_data SET is_validated = :is_validated WHERE id = :id RETURNING *",
        {"is_validated": is_validated, "id": training_id},
    )
    if row is None:
        raise NotFoundAppError(code="training_data_not_found", message="Training data not found")

    logger.info(
        "admin.training_data_validated",
        extra={"training_id": training_id, "is_validated": is_validated, "user_id": updated_by},
    )
    return row


async def list_users(
    db: DatabaseGateway,
    *,
    page: int,
    limit: int,
    role: str | None = None,
    active_only: bool = True,
) -> Page:
    """Accounts with their contribution counts. Password hashes are never selected."""
    where: list[str] = []
    params: dict[str, Any] = {}
    if role:
        where.append("u.role = :role")
        params["role"] = role
    if active_only:
        where.append("u.is_active = true")

    return await paginate(
        db,
        select="""
            SELECT u.id, u.username, u.email, u.role, u.is_active, u.created_at, u.updated_at,
                   COUNT(DISTINCT e.id) AS exploits_created,
                   COUNT(DISTINCT ur.id) AS reports_submitted
            FROM users u
            LEFT JOIN exploits e ON u.id = e.created_by
            LEFT JOIN user_reports ur ON u.id = ur.user_id
        """,
        count_from="FROM users u",
        where=where,
        params=params,
        group_by="u.id",
        order_by="u.created_at DESC",
        page=page,
        limit=limit,
    )


async def update_user_role(db: DatabaseGateway, user_id: str, role: str, *, updated_by: str) -> UserPublic:
    row = await db.fetch_one(
        """
        UPDATE users SET role = :role, updated_at = CURRENT_TIMESTAMP
        WHERE id = :id
        RETURNING id, username, email, role, created_at, updated_at
        """,
        {"role": role, "id": user_id},
    )
    if row is None:
        raise NotFoundAppError(code="user_not_found", message="User not found")

    logger.info("admin.role_updated", extra={"target_user_id": user_id, "new_role": role, "user_id": updated_by})
    return UserPublic.model_validate(row)
