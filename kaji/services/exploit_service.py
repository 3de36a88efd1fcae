"""Exploit and ChromeOS version queries.

All filters are appended as bound parameters; column names in dynamic
UPDATE statements come only from the ``ExploitUpdate`` and ``VersionUpdate``
schemas.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from kaji.adapters.database.gateway import DatabaseGateway, Row
from kaji.core.errors import ConflictAppError, NotFoundAppError, ValidationAppError
from kaji.schemas.common import Page
from kaji.schemas.exploits import ExploitCreate, ExploitUpdate, VersionCreate, VersionUpdate
from kaji.services.pagination import paginate

logger = logging.getLogger(__name__)

_JSONB_COLUMNS = {"references"}

_EXPLOIT_SELECT = """
    SELECT e.*,
           vc.name AS category_name,
           cv.version AS chromeos_version,
           u.username AS created_by_username
    FROM exploits e
    LEFT JOIN vulnerability_categories vc ON e.category_id = vc.id
    LEFT JOIN chromeos_versions cv ON e.chromeos_version_id = cv.id
    LEFT JOIN users u ON e.created_by = u.id
"""

_VERSION_SELECT = """
    SELECT cv.*,
           COUNT(e.id) AS exploit_count,
           COUNT(CASE WHEN e.severity = 'critical' THEN 1 END) AS critical_exploits,
           COUNT(CASE WHEN e.severity = 'high' THEN 1 END) AS high_exploits,
           COUNT(CASE WHEN e.severity = 'medium' THEN 1 END) AS medium_exploits,
           COUNT(CASE WHEN e.severity = 'low' THEN 1 END) AS low_exploits
    FROM chromeos_versions cv
    LEFT JOIN exploits e ON cv.id = e.chromeos_version_id AND e.is_public = true
"""


def _column(name: str) -> str:
    # "references" is a reserved word in PostgreSQL
    return f'"{name}"' if name == "references" else name


def _bind_value(column: str, value: Any) -> Any:
    return json.dumps(value) if column in _JSONB_COLUMNS else value


def _placeholder(column: str) -> str:
    return f"CAST(:{column} AS jsonb)" if column in _JSONB_COLUMNS else f":{column}"


async def list_exploits(
    db: DatabaseGateway,
    *,
    page: int,
    limit: int,
    severity: str | None = None,
    search: str | None = None,
    version_id: str | None = None,
) -> Page:
    """Page through public exploits, newest first."""
    where = ["e.is_public = true"]
    params: dict[str, Any] = {}
    if severity:
        where.append("e.severity = :severity")
        params["severity"] = severity
    if search:
        where.append("(e.title ILIKE :search OR e.description ILIKE :search OR e.cve_id ILIKE :search)")
        params["search"] = f"%{search}%"
    if version_id:
        where.append("e.chromeos_version_id = :version_id")
        params["version_id"] = version_id

    return await paginate(
        db,
        select=_EXPLOIT_SELECT,
        count_from="FROM exploits e",
        where=where,
        params=params,
        order_by="e.discovered_date DESC NULLS LAST, e.created_at DESC",
        page=page,
        limit=limit,
    )


async def get_exploit(db: DatabaseGateway, exploit_id: str) -> Row:
    row = await db.fetch_one(f"{_EXPLOIT_SELECT} WHERE e.id = :id", {"id": exploit_id})
    if row is None:
        raise NotFoundAppError(
            code="exploit_not_found",
            message="Exploit not found",
            details={"resource": "exploit", "resource_id": exploit_id},
        )
    return row


async def create_exploit(db: DatabaseGateway, payload: ExploitCreate, *, created_by: str) -> Row:
    values = payload.model_dump()
    values["created_by"] = created_by
    columns = list(values)

    row = await db.fetch_one(
        f"""
        INSERT INTO exploits ({', '.join(_column(c) for c in columns)})
        VALUES ({', '.join(_placeholder(c) for c in columns)})
        RETURNING *
        """,
        {c: _bind_value(c, values[c]) for c in columns},
    )
    logger.info(
        "exploit.created",
        extra={"exploit_id": str(row["id"]) if row else None, "severity": payload.severity, "user_id": created_by},
    )
    return row


async def update_exploit(db: DatabaseGateway, exploit_id: str, payload: ExploitUpdate) -> Row:
    """Apply the fields present in ``payload``.

    Raises:
        ValidationAppError: If no fields were supplied.
        NotFoundAppError: If the exploit does not exist.
    """
    changes = payload.changes()
    if not changes:
        raise ValidationAppError(code="no_fields", message="No fields to update")

    assignments = ", ".join(f"{_column(c)} = {_placeholder(c)}" for c in changes)
    params = {c: _bind_value(c, v) for c, v in changes.items()}
    params["id"] = exploit_id

    row = await db.fetch_one(
        f"UPDATE exploits SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = :id RETURNING *",
        params,
    )
    if row is None:
        raise NotFoundAppError(code="exploit_not_found", message="Exploit not found")

    logger.info("exploit.updated", extra={"exploit_id": exploit_id, "fields": sorted(changes)})
    return row


async def delete_exploit(db: DatabaseGateway, exploit_id: str) -> None:
    deleted = await db.execute("DELETE FROM exploits WHERE id = :id", {"id": exploit_id})
    if not deleted:
        raise NotFoundAppError(code="exploit_not_found", message="Exploit not found")
    logger.info("exploit.deleted", extra={"exploit_id": exploit_id})


async def list_versions(db: DatabaseGateway, *, current_only: bool = False) -> list[Row]:
    where = "WHERE cv.is_current = true" if current_only else ""
    return await db.fetch_all(
        f"{_VERSION_SELECT} {where} GROUP BY cv.id ORDER BY cv.release_date DESC NULLS LAST"
    )


async def get_version(db: DatabaseGateway, version_id: str) -> Row:
    row = await db.fetch_one(f"{_VERSION_SELECT} WHERE cv.id = :id GROUP BY cv.id", {"id": version_id})
    if row is None:
        raise NotFoundAppError(code="version_not_found", message="ChromeOS version not found")
    return row


async def create_version(db: DatabaseGateway, payload: VersionCreate) -> Row:
    """Register a ChromeOS release.

    Raises:
        ConflictAppError: If the version string is already registered.
    """
    existing = await db.fetch_one(
        "SELECT id FROM chromeos_versions WHERE version = :version",
        {"version": payload.version},
    )
    if existing:
        raise ConflictAppError(code="version_exists", message="ChromeOS version already exists")

    row = await db.fetch_one(
        """
        INSERT INTO chromeos_versions (version, build_number, release_date, end_of_life_date, is_stable)
        VALUES (:version, :build_number, :release_date, :end_of_life_date, :is_stable)
        RETURNING *
        """,
        payload.model_dump(),
    )
    logger.info(
        "version.created",
        extra={"version_id": str(row["id"]) if row else None, "version": payload.version},
    )
    return row


async def update_version(db: DatabaseGateway, version_id: str, payload: VersionUpdate) -> Row:
    changes = payload.changes()
    if not changes:
        raise ValidationAppError(code="no_fields", message="No fields to update")

    assignments = ", ".join(f"{column} = :{column}" for column in changes)
    row = await db.fetch_one(
        f"UPDATE chromeos_versions SET {assignments}, updated_at = CURRENT_TIMESTAMP "
        "WHERE id = :id RETURNING *",
        {**changes, "id": version_id},
    )
    if row is None:
        raise NotFoundAppError(code="version_not_found", message="ChromeOS version not found")

    logger.info("version.updated", extra={"version_id": version_id, "fields": sorted(changes)})
    return row


async def set_current_version(db: DatabaseGateway, version_id: str, *, updated_by: str) -> Row:
    """Make ``version_id`` the only release flagged ``is_current``.

    Both updates share one transaction, so a missing id leaves the previous
    current release untouched.
    """
    async with db.transaction() as tx:
        await tx.execute("UPDATE chromeos_versions SET is_current = false WHERE is_current = true")
        row = await tx.fetch_one(
            "UPDATE chromeos_versions SET is_current = true, updated_at = CURRENT_TIMESTAMP "
            "WHERE id = :id RETURNING *",
            {"id": version_id},
        )
        if row is None:
            raise NotFoundAppError(code="version_not_found", message="ChromeOS version not found")

    logger.info("version.current_changed", extra={"version_id": version_id, "user_id": updated_by})
    return row


async def version_stats(db: DatabaseGateway) -> dict[str, Any]:
    overview = await db.fetch_one(
        """
        SELECT COUNT(*) AS total_versions,
               COUNT(CASE WHEN is_current = true THEN 1 END) AS current_versions,
               COUNT(CASE WHEN is_stable = true THEN 1 END) AS stable_versions,
               COUNT(CASE WHEN end_of_life_date < CURRENT_DATE THEN 1 END) AS eol_versions,
               COUNT(CASE WHEN release_date >= CURRENT_DATE - INTERVAL '1 year' THEN 1 END) AS recent_versions
        FROM chromeos_versions
        """
    )
    distribution = await db.fetch_all(
        """
        SELECT cv.version, cv.is_current,
               COUNT(e.id) AS exploit_count,
               COUNT(CASE WHEN e.severity = 'critical' THEN 1 END) AS critical_count
        FROM chromeos_versions cv
        LEFT JOIN exploits e ON cv.id = e.chromeos_version_id AND e.is_public = true
        GROUP BY cv.id, cv.version, cv.is_current
        ORDER BY cv.release_date DESC NULLS LAST
        LIMIT 10
        """
    )
    return {"overview": overview, "version_distribution": distribution}
