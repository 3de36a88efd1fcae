"""PostgreSQL gateway executing parameterized SQL.

Queries use SQLAlchemy ``text()`` with named bind parameters (``:name``);
values are never interpolated into SQL strings. Rows come back as plain
dicts. Driver errors are logged with the statement and re-raised as
``DatabaseAppError`` so handlers can return a redacted 500.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from kaji.core.config import DatabaseSettings
from kaji.core.errors import DatabaseAppError

logger = logging.getLogger(__name__)

Row = dict[str, Any]


async def _run(
    conn: AsyncConnection,
    query: str,
    params: Mapping[str, Any] | None,
) -> tuple[list[Row], int]:
    start = time.perf_counter()
    try:
        result = await conn.execute(text(query), dict(params or {}))
    except SQLAlchemyError as exc:
        logger.error(
            "db.query_failed",
            extra={"statement": " ".join(query.split()), "error_msg": str(exc)},
        )
        raise DatabaseAppError(code="database_error", message=str(exc)) from exc

    rows = [dict(row) for row in result.mappings().all()] if result.returns_rows else []
    logger.debug(
        "db.query_executed",
        extra={
            "statement": " ".join(query.split())[:200],
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            "rows": len(rows) if result.returns_rows else result.rowcount,
        },
    )
    return rows, result.rowcount


class DatabaseSession:
    """Query surface bound to one connection (used inside transactions)."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def fetch_all(self, query: str, params: Mapping[str, Any] | None = None) -> list[Row]:
        rows, _ = await _run(self._conn, query, params)
        return rows

    async def fetch_one(self, query: str, params: Mapping[str, Any] | None = None) -> Row | None:
        rows, _ = await _run(self._conn, query, params)
        return rows[0] if rows else None

    async def execute(self, query: str, params: Mapping[str, Any] | None = None) -> int:
        _, rowcount = await _run(self._conn, query, params)
        return rowcount


class DatabaseGateway:
    """Pooled access to the relational store.

    Each standalone call runs in its own short transaction. Use
    ``transaction()`` to group several statements atomically.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @classmethod
    def from_settings(cls, database_settings: DatabaseSettings) -> "DatabaseGateway":
        # The engine connects lazily; building it never touches the network.
        engine = create_async_engine(
            database_settings.url,
            pool_size=database_settings.pool_size,
            max_overflow=0,
            pool_timeout=database_settings.pool_timeout,
            pool_pre_ping=True,
            echo=database_settings.echo,
        )
        return cls(engine)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[DatabaseSession]:
        """Yield a session whose statements commit together or roll back on error."""
        try:
            async with self._engine.begin() as conn:
                yield DatabaseSession(conn)
        except (SQLAlchemyError, OSError) as exc:
            # OSError covers refused connections and connect timeouts from the driver
            logger.error(
                "db.transaction_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise DatabaseAppError(code="database_error", message=str(exc)) from exc

    async def fetch_all(self, query: str, params: Mapping[str, Any] | None = None) -> list[Row]:
        async with self.transaction() as session:
            return await session.fetch_all(query, params)

    async def fetch_one(self, query: str, params: Mapping[str, Any] | None = None) -> Row | None:
        async with self.transaction() as session:
            return await session.fetch_one(query, params)

    async def execute(self, query: str, params: Mapping[str, Any] | None = None) -> int:
        async with self.transaction() as session:
            return await session.execute(query, params)

    async def test_connection(self) -> bool:
        """Return True when ``SELECT NOW()`` succeeds."""
        try:
            row = await self.fetch_one("SELECT NOW() AS now")
        except DatabaseAppError:
            return False
        logger.info("db.connection_ok", extra={"server_time": row["now"] if row else None})
        return True

    async def close(self) -> None:
        await self._engine.dispose()
