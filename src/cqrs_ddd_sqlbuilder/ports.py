"""
Driver contract consumed by the executor.

A plain pooled connection and a transaction must both satisfy
:class:`ConnectionHandle`, so the router can hand either one to the
executor without the executor noticing the difference.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from types import TracebackType


@dataclass(frozen=True)
class ExecResult:
    """Outcome of an INSERT/UPDATE/DELETE."""

    rows_affected: int
    last_insert_id: int | None = None


@runtime_checkable
class RowCursor(Protocol):
    """
    Open result set with column introspection.

    The cursor holds driver resources until :meth:`close` is awaited; use it
    as an async context manager so it is released on every exit path.
    """

    @property
    def columns(self) -> list[str]:
        """Column labels, in select order."""
        ...

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]: ...

    async def close(self) -> None: ...

    async def __aenter__(self) -> RowCursor: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...


@runtime_checkable
class ConnectionHandle(Protocol):
    """Execute ``?``-parameterized SQL against one database."""

    name: str

    async def fetch_all(
        self, sql: str, args: Sequence[Any] = ()
    ) -> list[dict[str, Any]]:
        """Run a query and return every row as a column → value dict."""
        ...

    async def fetch_one(
        self, sql: str, args: Sequence[Any] = ()
    ) -> dict[str, Any] | None:
        """Run a query and return the first row, or ``None``."""
        ...

    async def execute(self, sql: str, args: Sequence[Any] = ()) -> ExecResult:
        """Run a mutation and report affected rows / generated id."""
        ...

    async def query(self, sql: str, args: Sequence[Any] = ()) -> RowCursor:
        """Run a query and return an open cursor the caller must close."""
        ...
