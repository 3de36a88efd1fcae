"""Paged SELECT helper shared by the list endpoints."""

from __future__ import annotations

from typing import Any

from kaji.adapters.database.gateway import DatabaseGateway
from kaji.schemas.common import Page, Pagination, page_offset


async def paginate(
    db: DatabaseGateway,
    *,
    select: str,
    count_from: str,
    where: list[str],
    params: dict[str, Any],
    order_by: str,
    page: int,
    limit: int,
    group_by: str = "",
) -> Page:
    """Run ``select`` for one page and count the full result set.

    ``where`` clauses are ANDed and shared by both statements; ``params``
    must hold only their bind values (``limit``/``offset`` are added here).
    """
    where_clause = f"WHERE {' AND '.join(where)}" if where else ""
    group_clause = f"GROUP BY {group_by}" if group_by else ""
    rows = await db.fetch_all(
        f"{select} {where_clause} {group_clause} ORDER BY {order_by} LIMIT :limit OFFSET :offset",
        {**params, "limit": limit, "offset": page_offset(page, limit)},
    )
    count_row = await db.fetch_one(f"SELECT COUNT(*) AS total {count_from} {where_clause}", params)
    total = int(count_row["total"]) if count_row else 0
    return Page(items=rows, pagination=Pagination.build(page=page, limit=limit, total=total))
