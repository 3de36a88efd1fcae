"""Unit tests for the database gateway with a mocked SQLAlchemy engine."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from kaji.adapters.database import DatabaseGateway
from kaji.core.errors import DatabaseAppError


def _engine_with(conn: MagicMock) -> MagicMock:
    engine = MagicMock()
    engine.begin.return_value.__aenter__.return_value = conn
    engine.dispose = AsyncMock()
    return engine


def _result(rows: list[dict], rowcount: int | None = None) -> MagicMock:
    result = MagicMock()
    result.returns_rows = bool(rows)
    result.mappings.return_value.all.return_value = rows
    result.rowcount = len(rows) if rowcount is None else rowcount
    return result


@pytest.mark.asyncio
async def test_fetch_one_returns_first_row_as_dict() -> None:
    conn = MagicMock()
    conn.execute = AsyncMock(return_value=_result([{"id": 1, "title": "Sandbox escape"}]))
    gateway = DatabaseGateway(_engine_with(conn))

    row = await gateway.fetch_one("SELECT * FROM exploits WHERE id = :id", {"id": 1})

    assert row == {"id": 1, "title": "Sandbox escape"}
    statement, params = conn.execute.call_args.args
    assert str(statement) == "SELECT * FROM exploits WHERE id = :id"
    assert params == {"id": 1}


@pytest.mark.asyncio
async def test_fetch_one_without_rows_is_none() -> None:
    conn = MagicMock()
    conn.execute = AsyncMock(return_value=_result([]))
    gateway = DatabaseGateway(_engine_with(conn))

    assert await gateway.fetch_one("SELECT 1 WHERE false") is None


@pytest.mark.asyncio
async def test_execute_returns_rowcount() -> None:
    conn = MagicMock()
    conn.execute = AsyncMock(return_value=_result([], rowcount=2))
    gateway = DatabaseGateway(_engine_with(conn))

    assert await gateway.execute("DELETE FROM exploits WHERE severity = :s", {"s": "low"}) == 2


@pytest.mark.asyncio
async def test_driver_error_becomes_database_app_error() -> None:
    conn = MagicMock()
    conn.execute = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")))
    gateway = DatabaseGateway(_engine_with(conn))

    with pytest.raises(DatabaseAppError) as exc:
        await gateway.fetch_all("SELECT 1")
    assert exc.value.code == "database_error"


@pytest.mark.asyncio
async def test_transaction_shares_one_connection() -> None:
    conn = MagicMock()
    conn.execute = AsyncMock(return_value=_result([], rowcount=1))
    engine = _engine_with(conn)
    gateway = DatabaseGateway(engine)

    async with gateway.transaction() as tx:
        await tx.execute("UPDATE chat_sessions SET updated_at = now() WHERE id = :id", {"id": "s"})
        await tx.execute("DELETE FROM chat_messages WHERE session_id = :id", {"id": "s"})

    assert engine.begin.call_count == 1
    assert conn.execute.await_count == 2


@pytest.mark.asyncio
async def test_connection_check() -> None:
    healthy = MagicMock()
    healthy.execute = AsyncMock(return_value=_result([{"now": "2024-01-01T00:00:00Z"}]))
    broken = MagicMock()
    broken.execute = AsyncMock(side_effect=OperationalError("SELECT NOW()", {}, Exception("down")))

    assert await DatabaseGateway(_engine_with(healthy)).test_connection() is True
    assert await DatabaseGateway(_engine_with(broken)).test_connection() is False


@pytest.mark.asyncio
async def test_close_disposes_engine() -> None:
    engine = _engine_with(MagicMock())

    await DatabaseGateway(engine).close()

    engine.dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_unreachable_server_becomes_database_app_error() -> None:
    engine = _engine_with(MagicMock())
    engine.begin.return_value.__aenter__.side_effect = ConnectionRefusedError(111, "Connection refused")
    gateway = DatabaseGateway(engine)

    with pytest.raises(DatabaseAppError) as exc:
        await gateway.fetch_one("SELECT 1")
    assert exc.value.code == "database_error"
    assert await gateway.test_connection() is False
