"""
SQLAlchemy implementation of the driver contract.

Statements arrive with ``?`` placeholders.  :func:`to_text` rewrites them to
named binds (``:p0``, ``:p1``, ...) and wraps the result in
:func:`sqlalchemy.text`, so the dialect takes care of its own paramstyle
(``?`` for SQLite, ``%s`` for MySQL drivers) and of ``%`` escaping.

Two handles are provided:

1. :class:`SQLAlchemyConnection` wraps an ``AsyncEngine``.  Reads borrow a
   pooled connection for the duration of one call; mutations run inside
   ``engine.begin()`` and are committed on return.

2. :class:`SQLAlchemyTransaction` wraps one ``AsyncConnection`` with a
   begun transaction.  Every statement runs on that connection until
   :meth:`~SQLAlchemyTransaction.commit` or
   :meth:`~SQLAlchemyTransaction.rollback`::

       tx = await primary.begin()
       async with tx:
           await tx.execute("update t set `n` = ? where `id` = ?", [1, 2])
       # committed here, rolled back if the block raised

Driver exceptions are not caught or wrapped.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from ..exceptions import TransactionError
from ..ports import ExecResult

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from types import TracebackType

    from sqlalchemy import CursorResult, TextClause
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncResult

logger = logging.getLogger("cqrs_ddd.sqlbuilder.transaction")

# The pattern sqlalchemy.text() reads as a bind name.
_BIND_LIKE = re.compile(r"(?<![:\w\\]):(\w+)(?!:)")
_QUOTES = frozenset({"'", '"', "`"})


def to_text(sql: str, args: Sequence[Any]) -> tuple[TextClause, dict[str, Any]]:
    """
    Convert ``?``-style SQL into a ``TextClause`` and its bind dict.

    ``?`` inside quoted literals or back-quoted identifiers is left alone,
    and colons that would otherwise look like binds are escaped.
    """
    escaped = _BIND_LIKE.sub(r"\\:\1", sql)
    out: list[str] = []
    quote: str | None = None
    index = 0
    i = 0
    while i < len(escaped):
        ch = escaped[i]
        if quote is not None:
            out.append(ch)
            if ch == "\\" and quote != "`" and i + 1 < len(escaped):
                out.append(escaped[i + 1])
                i += 1
            elif ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append(f":p{index}")
            index += 1
        else:
            out.append(ch)
        i += 1

    params = {f"p{n}": value for n, value in enumerate(args)}
    return text("".join(out)), params


def _exec_result(result: CursorResult[Any]) -> ExecResult:
    return ExecResult(rows_affected=result.rowcount, last_insert_id=result.lastrowid)


class SQLAlchemyRowCursor:
    """
    Row cursor over an ``AsyncResult``.

    When the cursor was opened on a pooled connection it owns that
    connection and returns it to the pool on :meth:`close`.
    """

    def __init__(
        self,
        result: AsyncResult[Any],
        connection: AsyncConnection | None = None,
    ) -> None:
        self._result = result
        self._connection = connection
        self._closed = False

    @property
    def columns(self) -> list[str]:
        return list(self._result.keys())

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._rows()

    async def _rows(self) -> AsyncIterator[dict[str, Any]]:
        async for row in self._result.mappings():
            yield dict(row)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._result.close()
        finally:
            if self._connection is not None:
                await self._connection.close()

    async def __aenter__(self) -> SQLAlchemyRowCursor:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()


class SQLAlchemyConnection:
    """Connection handle backed by an ``AsyncEngine`` and its pool."""

    def __init__(self, engine: AsyncEngine, name: str = "") -> None:
        self.engine = engine
        self.name = name

    def __repr__(self) -> str:
        return f"SQLAlchemyConnection(name={self.name!r})"

    async def fetch_all(
        self, sql: str, args: Sequence[Any] = ()
    ) -> list[dict[str, Any]]:
        clause, params = to_text(sql, args)
        async with self.engine.connect() as conn:
            result = await conn.execute(clause, params)
            return [dict(row) for row in result.mappings()]

    async def fetch_one(
        self, sql: str, args: Sequence[Any] = ()
    ) -> dict[str, Any] | None:
        clause, params = to_text(sql, args)
        async with self.engine.connect() as conn:
            result = await conn.execute(clause, params)
            row = result.mappings().first()
            return dict(row) if row is not None else None

    async def execute(self, sql: str, args: Sequence[Any] = ()) -> ExecResult:
        clause, params = to_text(sql, args)
        async with self.engine.begin() as conn:
            result = await conn.execute(clause, params)
            return _exec_result(result)

    async def query(self, sql: str, args: Sequence[Any] = ()) -> SQLAlchemyRowCursor:
        clause, params = to_text(sql, args)
        conn = await self.engine.connect()
        try:
            result = await conn.stream(clause, params)
        except BaseException:
            await conn.close()
            raise
        return SQLAlchemyRowCursor(result, conn)

    async def begin(self) -> SQLAlchemyTransaction:
        """Open a dedicated connection and begin a transaction on it."""
        conn = await self.engine.connect()
        try:
            await conn.begin()
        except BaseException:
            await conn.close()
            raise
        logger.debug("Transaction started on %s", self.name)
        return SQLAlchemyTransaction(conn, name=self.name)

    async def dispose(self) -> None:
        await self.engine.dispose()


class SQLAlchemyTransaction:
    """
    Connection handle bound to one in-flight transaction.

    ``commit`` and ``rollback`` are single-shot: once either has been
    called the handle is finished and every further call raises
    :class:`TransactionError`.
    """

    def __init__(
        self,
        connection: AsyncConnection,
        name: str = "",
        *,
        owns_connection: bool = True,
    ) -> None:
        self.connection = connection
        self.name = name
        self._owns_connection = owns_connection
        self._finished = False

    def __repr__(self) -> str:
        state = "finished" if self._finished else "active"
        return f"SQLAlchemyTransaction(name={self.name!r}, {state})"

    @property
    def is_active(self) -> bool:
        return not self._finished

    def _require_active(self) -> AsyncConnection:
        if self._finished:
            raise TransactionError(f"Transaction on {self.name!r} is already finished")
        return self.connection

    # -- ConnectionHandle ----------------------------------------------------

    async def fetch_all(
        self, sql: str, args: Sequence[Any] = ()
    ) -> list[dict[str, Any]]:
        conn = self._require_active()
        clause, params = to_text(sql, args)
        result = await conn.execute(clause, params)
        return [dict(row) for row in result.mappings()]

    async def fetch_one(
        self, sql: str, args: Sequence[Any] = ()
    ) -> dict[str, Any] | None:
        conn = self._require_active()
        clause, params = to_text(sql, args)
        result = await conn.execute(clause, params)
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def execute(self, sql: str, args: Sequence[Any] = ()) -> ExecResult:
        conn = self._require_active()
        clause, params = to_text(sql, args)
        result = await conn.execute(clause, params)
        return _exec_result(result)

    async def query(self, sql: str, args: Sequence[Any] = ()) -> SQLAlchemyRowCursor:
        conn = self._require_active()
        clause, params = to_text(sql, args)
        result = await conn.stream(clause, params)
        return SQLAlchemyRowCursor(result)

    # -- lifecycle -----------------------------------------------------------

    async def commit(self) -> None:
        conn = self._require_active()
        self._finished = True
        try:
            await conn.commit()
            logger.debug("Transaction committed on %s", self.name)
        finally:
            await self._release()

    async def rollback(self) -> None:
        conn = self._require_active()
        self._finished = True
        try:
            await conn.rollback()
            logger.debug("Transaction rolled back on %s", self.name)
        finally:
            await self._release()

    async def _release(self) -> None:
        if self._owns_connection:
            await self.connection.close()

    async def __aenter__(self) -> SQLAlchemyTransaction:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Commit on success, roll back on error; no-op if already finished."""
        if self._finished:
            return
        if exc_type is None:
            await self.commit()
            return
        try:
            await self.rollback()
        except Exception:
            logger.warning(
                "Rollback failed on %s after %s",
                self.name,
                exc_type.__name__,
                exc_info=True,
            )
            raise
