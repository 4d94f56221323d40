"""
Execution orchestrator.

Each operation follows the same steps:

1. check the table binding (``ConfigurationError``),
2. surface deferred ``Wrapper`` errors (``WrapperError``), before any SQL,
3. route to a connection (transaction > force-primary > replica),
4. render the statement,
5. execute it and map the driver result back.

Driver errors propagate unmodified.  ``timeout`` (seconds) bounds the
driver call with :func:`asyncio.wait_for`; cancellation of the calling
task propagates the same way, and open cursors are closed on every exit
path.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from .compiler import (
    build_count,
    build_delete,
    build_insert,
    build_select,
    build_select_one,
    build_update,
)
from .conditions import Condition
from .operators import SqlOperator
from .query_spec import QuerySpec
from .registry import default_registry
from .routing import resolve_connection

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from .compiler import Statement
    from .ports import ConnectionHandle
    from .registry import ConnectionRegistry
    from .settings import TableBinding
    from .wrapper import Wrapper

logger = logging.getLogger("cqrs_ddd.sqlbuilder.executor")

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _prepare(binding: TableBinding, w: Wrapper | None) -> None:
    binding.check()
    if w is None:
        return
    err = w.error()
    if err is not None:
        logger.warning(
            "%s: operation aborted, %d deferred wrapper error(s)",
            binding.table_name,
            len(err.errors),
        )
        raise err


def _route(
    binding: TableBinding,
    registry: ConnectionRegistry | None,
    transaction: ConnectionHandle | None,
    use_primary: bool,
    spec: QuerySpec | None,
) -> ConnectionHandle:
    return resolve_connection(
        binding,
        registry=registry or default_registry(),
        transaction=transaction,
        use_primary=use_primary,
        spec=spec,
    )


async def _run(awaitable: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout)


def _log(statement: Statement) -> None:
    logger.debug("%s [%d args]", statement.sql, len(statement.args))


def _hydrate(into: Callable[..., Any] | None, row: dict[str, Any]) -> Any:
    if into is None:
        return row
    validate = getattr(into, "model_validate", None)
    if validate is not None:
        return validate(row)
    return into(**row)


def _decode(row: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value.decode("utf-8", errors="replace")
        if isinstance(value, bytes | bytearray)
        else value
        for key, value in row.items()
    }


def _mutation_table(binding: TableBinding, w: Wrapper) -> str:
    return w.spec.table_name or binding.table_name


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def select(
    binding: TableBinding,
    w: Wrapper,
    *,
    into: Callable[..., T] | None = None,
    transaction: ConnectionHandle | None = None,
    use_primary: bool = False,
    registry: ConnectionRegistry | None = None,
    timeout: float | None = None,
) -> list[Any]:
    """
    Run a paged SELECT.

    Rows are returned as dicts, or passed through *into*: a pydantic model
    (``model_validate``) or any callable accepting the columns as keywords.
    """
    _prepare(binding, w)
    conn = _route(binding, registry, transaction, use_primary, w.spec)
    statement = build_select(binding.table_name, w.spec)
    _log(statement)
    rows = await _run(conn.fetch_all(statement.sql, statement.args), timeout)
    return [_hydrate(into, row) for row in rows]


async def select_maps(
    binding: TableBinding,
    w: Wrapper,
    *,
    transaction: ConnectionHandle | None = None,
    use_primary: bool = False,
    registry: ConnectionRegistry | None = None,
    timeout: float | None = None,
) -> list[dict[str, Any]]:
    """
    Run a paged SELECT through a cursor and return plain dicts.

    ``bytes`` values are decoded to ``str``; avoid this for BLOB columns.
    """
    _prepare(binding, w)
    conn = _route(binding, registry, transaction, use_primary, w.spec)
    statement = build_select(binding.table_name, w.spec)
    _log(statement)

    async def collect() -> list[dict[str, Any]]:
        cursor = await conn.query(statement.sql, statement.args)
        async with cursor:
            return [_decode(row) async for row in cursor]

    return await _run(collect(), timeout)


async def stream_maps(
    binding: TableBinding,
    w: Wrapper,
    *,
    transaction: ConnectionHandle | None = None,
    use_primary: bool = False,
    registry: ConnectionRegistry | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """Yield rows one by one; the cursor is closed when iteration stops."""
    _prepare(binding, w)
    conn = _route(binding, registry, transaction, use_primary, w.spec)
    statement = build_select(binding.table_name, w.spec)
    _log(statement)

    cursor = await conn.query(statement.sql, statement.args)
    async with cursor:
        async for row in cursor:
            yield _decode(row)


async def select_one(
    binding: TableBinding,
    w: Wrapper,
    *,
    into: Callable[..., T] | None = None,
    transaction: ConnectionHandle | None = None,
    use_primary: bool = False,
    registry: ConnectionRegistry | None = None,
    timeout: float | None = None,
) -> Any | None:
    """Return the first matching row, or ``None``."""
    _prepare(binding, w)
    conn = _route(binding, registry, transaction, use_primary, w.spec)
    statement = build_select_one(binding.table_name, w.spec)
    _log(statement)
    row = await _run(conn.fetch_one(statement.sql, statement.args), timeout)
    return None if row is None else _hydrate(into, row)


async def get_one(
    binding: TableBinding,
    id_key: str,
    id_value: Any,
    *,
    into: Callable[..., T] | None = None,
    transaction: ConnectionHandle | None = None,
    use_primary: bool = False,
    registry: ConnectionRegistry | None = None,
    timeout: float | None = None,
) -> Any | None:
    """Look up one row by any column, e.g. ``get_one(binding, "id", 7)``."""
    binding.check()
    spec = QuerySpec(conditions=[Condition(id_key, SqlOperator.EQ, id_value)])
    conn = _route(binding, registry, transaction, use_primary, spec)
    statement = build_select_one(binding.table_name, spec)
    _log(statement)
    row = await _run(conn.fetch_one(statement.sql, statement.args), timeout)
    return None if row is None else _hydrate(into, row)


async def count(
    binding: TableBinding,
    w: Wrapper,
    *,
    transaction: ConnectionHandle | None = None,
    use_primary: bool = False,
    registry: ConnectionRegistry | None = None,
    timeout: float | None = None,
) -> int:
    """Count matching rows.  The wrapper's own projection is left untouched."""
    _prepare(binding, w)
    conn = _route(binding, registry, transaction, use_primary, w.spec)
    statement = build_count(binding.table_name, w.spec)
    _log(statement)
    row = await _run(conn.fetch_one(statement.sql, statement.args), timeout)
    if row is None:
        return 0
    return int(row["cn"])


# ---------------------------------------------------------------------------
# Mutations (always primary unless a transaction is given)
# ---------------------------------------------------------------------------


async def insert(
    binding: TableBinding,
    w: Wrapper,
    *,
    transaction: ConnectionHandle | None = None,
    registry: ConnectionRegistry | None = None,
    timeout: float | None = None,
) -> int | None:
    """Insert one row and return the driver-reported generated id."""
    _prepare(binding, w)
    conn = _route(binding, registry, transaction, True, None)
    statement = build_insert(_mutation_table(binding, w), w.assignments)
    _log(statement)
    result = await _run(conn.execute(statement.sql, statement.args), timeout)
    logger.debug("%s: inserted id=%s", binding.table_name, result.last_insert_id)
    return result.last_insert_id


async def update(
    binding: TableBinding,
    w: Wrapper,
    *,
    transaction: ConnectionHandle | None = None,
    registry: ConnectionRegistry | None = None,
    timeout: float | None = None,
) -> int:
    """Update matching rows; zero affected rows is a valid outcome."""
    _prepare(binding, w)
    conn = _route(binding, registry, transaction, True, None)
    statement = build_update(
        _mutation_table(binding, w), w.assignments, w.spec.conditions
    )
    _log(statement)
    result = await _run(conn.execute(statement.sql, statement.args), timeout)
    logger.debug("%s: updated %d row(s)", binding.table_name, result.rows_affected)
    return result.rows_affected


async def delete(
    binding: TableBinding,
    w: Wrapper,
    *,
    transaction: ConnectionHandle | None = None,
    registry: ConnectionRegistry | None = None,
    timeout: float | None = None,
) -> int:
    """Delete matching rows; zero affected rows is a valid outcome."""
    _prepare(binding, w)
    conn = _route(binding, registry, transaction, True, None)
    statement = build_delete(_mutation_table(binding, w), w.spec.conditions)
    _log(statement)
    result = await _run(conn.execute(statement.sql, statement.args), timeout)
    logger.debug("%s: deleted %d row(s)", binding.table_name, result.rows_affected)
    return result.rows_affected
