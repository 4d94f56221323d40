"""Shared fixtures: recording handles for unit tests, SQLite engines for integration."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from cqrs_ddd_sqlbuilder import ConnectionRegistry, ExecResult, TableBinding

SCHEMA = """
create table dev_student (
    id integer primary key autoincrement,
    name text not null,
    age integer not null,
    class_id integer,
    nick text,
    create_time text
)
"""


# ---------------------------------------------------------------------------
# Recording driver
# ---------------------------------------------------------------------------


class RecordingCursor:
    def __init__(
        self,
        rows: list[dict[str, Any]],
        *,
        row_delay: float = 0.0,
        fail_after: int | None = None,
    ) -> None:
        self._rows = rows
        self._row_delay = row_delay
        self._fail_after = fail_after
        self.closed = False

    @property
    def columns(self) -> list[str]:
        return list(self._rows[0]) if self._rows else []

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for i, row in enumerate(self._rows):
            if self._fail_after is not None and i >= self._fail_after:
                raise RuntimeError("connection lost while reading")
            if self._row_delay:
                await asyncio.sleep(self._row_delay)
            yield row

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> RecordingCursor:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class RecordingHandle:
    """ConnectionHandle that records every call instead of talking to a DB."""

    def __init__(
        self,
        name: str,
        rows: list[dict[str, Any]] | None = None,
        *,
        delay: float = 0.0,
        row_delay: float = 0.0,
        fail_after: int | None = None,
    ) -> None:
        self.name = name
        self.rows = rows or []
        self.delay = delay
        self.row_delay = row_delay
        self.fail_after = fail_after
        self.calls: list[tuple[str, str, list[Any]]] = []
        self.cursors: list[RecordingCursor] = []

    async def _record(self, kind: str, sql: str, args: Any) -> None:
        self.calls.append((kind, sql, list(args)))
        if self.delay:
            await asyncio.sleep(self.delay)

    async def fetch_all(self, sql: str, args: Any = ()) -> list[dict[str, Any]]:
        await self._record("fetch_all", sql, args)
        return [dict(r) for r in self.rows]

    async def fetch_one(self, sql: str, args: Any = ()) -> dict[str, Any] | None:
        await self._record("fetch_one", sql, args)
        return dict(self.rows[0]) if self.rows else None

    async def execute(self, sql: str, args: Any = ()) -> ExecResult:
        await self._record("execute", sql, args)
        return ExecResult(rows_affected=len(self.rows), last_insert_id=42)

    async def query(self, sql: str, args: Any = ()) -> RecordingCursor:
        await self._record("query", sql, args)
        cursor = RecordingCursor(
            [dict(r) for r in self.rows],
            row_delay=self.row_delay,
            fail_after=self.fail_after,
        )
        self.cursors.append(cursor)
        return cursor


@pytest.fixture
def make_handle() -> type[RecordingHandle]:
    return RecordingHandle


@pytest.fixture
def fake_registry() -> ConnectionRegistry:
    """Registry with recording ``master`` and ``slave`` handles."""
    registry = ConnectionRegistry()
    registry.init(
        {
            "master": RecordingHandle("master", [{"id": 1, "name": "m"}]),
            "slave": RecordingHandle("slave", [{"id": 2, "name": "s"}]),
        }
    )
    return registry


@pytest.fixture
def binding() -> TableBinding:
    return TableBinding(table_name="dev_student", primary="master", replica="slave")


# ---------------------------------------------------------------------------
# SQLite integration
# ---------------------------------------------------------------------------


@pytest.fixture
async def engines(tmp_path):
    """Separate primary and replica databases with the same schema."""
    master = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'master.db'}")
    slave = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'slave.db'}")
    for eng in (master, slave):
        async with eng.begin() as conn:
            await conn.exec_driver_sql(SCHEMA)
    yield {"master": master, "slave": slave}
    await master.dispose()
    await slave.dispose()


@pytest.fixture
def registry(engines) -> ConnectionRegistry:
    reg = ConnectionRegistry()
    reg.init(engines)
    return reg
