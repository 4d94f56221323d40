from __future__ import annotations

from typing import TYPE_CHECKING, Any

from . import executor
from .conditions import Condition
from .operators import SqlOperator
from .registry import default_registry
from .transaction import begin
from .utils import to_assignments
from .wrapper import Wrapper

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from .adapters.sqla import SQLAlchemyTransaction
    from .ports import ConnectionHandle
    from .registry import ConnectionRegistry
    from .settings import TableBinding


class TableDao:
    """
    CRUD façade for one table.

    Builds the ``Wrapper`` for the common by-id operations and forwards
    caller-built wrappers to :mod:`~cqrs_ddd_sqlbuilder.executor`.

    Usage::

        students = TableDao(
            TableBinding(table_name="dev_student", primary="master", replica="slave")
        )
        new_id = await students.insert({"name": "a", "age": 30})
        rows = await students.select(get_wrapper().ge("age", 18), into=Student)
    """

    def __init__(
        self,
        binding: TableBinding,
        registry: ConnectionRegistry | None = None,
    ) -> None:
        self.binding = binding
        self._registry = registry

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry or default_registry()

    @property
    def table_name(self) -> str:
        return self.binding.table_name

    async def begin(self) -> SQLAlchemyTransaction:
        """Begin a transaction on this table's primary connection."""
        self.binding.check()
        return await begin(self.binding.primary_name, registry=self.registry)

    # -- writes --------------------------------------------------------------

    async def insert(
        self,
        payload: Any,
        *,
        transaction: ConnectionHandle | None = None,
        timeout: float | None = None,
    ) -> int | None:
        w = Wrapper().set_many(payload)
        return await executor.insert(
            self.binding,
            w,
            transaction=transaction,
            registry=self.registry,
            timeout=timeout,
        )

    async def insert_by_wrapper(
        self,
        w: Wrapper,
        *,
        transaction: ConnectionHandle | None = None,
        timeout: float | None = None,
    ) -> int | None:
        return await executor.insert(
            self.binding,
            w,
            transaction=transaction,
            registry=self.registry,
            timeout=timeout,
        )

    async def update_by_id(
        self,
        payload: Any,
        id_key: str,
        id_value: Any,
        *,
        transaction: ConnectionHandle | None = None,
        timeout: float | None = None,
    ) -> int:
        """Update one row; the ``id_key`` column is dropped from *payload*."""
        w = Wrapper()
        w.assignments.extend(to_assignments(payload, exclude=id_key))
        w.where([Condition(id_key, SqlOperator.EQ, id_value)])
        return await executor.update(
            self.binding,
            w,
            transaction=transaction,
            registry=self.registry,
            timeout=timeout,
        )

    async def update(
        self,
        w: Wrapper,
        *,
        transaction: ConnectionHandle | None = None,
        timeout: float | None = None,
    ) -> int:
        return await executor.update(
            self.binding,
            w,
            transaction=transaction,
            registry=self.registry,
            timeout=timeout,
        )

    async def delete_by_id(
        self,
        id_key: str,
        id_value: Any,
        *,
        transaction: ConnectionHandle | None = None,
        timeout: float | None = None,
    ) -> int:
        w = Wrapper().eq(id_key, id_value)
        return await executor.delete(
            self.binding,
            w,
            transaction=transaction,
            registry=self.registry,
            timeout=timeout,
        )

    async def delete(
        self,
        w: Wrapper,
        *,
        transaction: ConnectionHandle | None = None,
        timeout: float | None = None,
    ) -> int:
        return await executor.delete(
            self.binding,
            w,
            transaction=transaction,
            registry=self.registry,
            timeout=timeout,
        )

    # -- reads ---------------------------------------------------------------

    async def select(
        self,
        w: Wrapper,
        *,
        into: Callable[..., Any] | None = None,
        transaction: ConnectionHandle | None = None,
        use_primary: bool = False,
        timeout: float | None = None,
    ) -> list[Any]:
        return await executor.select(
            self.binding,
            w,
            into=into,
            transaction=transaction,
            use_primary=use_primary,
            registry=self.registry,
            timeout=timeout,
        )

    async def select_maps(
        self,
        w: Wrapper,
        *,
        transaction: ConnectionHandle | None = None,
        use_primary: bool = False,
        timeout: float | None = None,
    ) -> list[dict[str, Any]]:
        return await executor.select_maps(
            self.binding,
            w,
            transaction=transaction,
            use_primary=use_primary,
            registry=self.registry,
            timeout=timeout,
        )

    def stream_maps(
        self,
        w: Wrapper,
        *,
        transaction: ConnectionHandle | None = None,
        use_primary: bool = False,
    ) -> AsyncIterator[dict[str, Any]]:
        return executor.stream_maps(
            self.binding,
            w,
            transaction=transaction,
            use_primary=use_primary,
            registry=self.registry,
        )

    async def select_one(
        self,
        w: Wrapper,
        *,
        into: Callable[..., Any] | None = None,
        transaction: ConnectionHandle | None = None,
        use_primary: bool = False,
        timeout: float | None = None,
    ) -> Any | None:
        return await executor.select_one(
            self.binding,
            w,
            into=into,
            transaction=transaction,
            use_primary=use_primary,
            registry=self.registry,
            timeout=timeout,
        )

    async def get_by_id(
        self,
        id_key: str,
        id_value: Any,
        *,
        into: Callable[..., Any] | None = None,
        transaction: ConnectionHandle | None = None,
        use_primary: bool = False,
        timeout: float | None = None,
    ) -> Any | None:
        return await executor.get_one(
            self.binding,
            id_key,
            id_value,
            into=into,
            transaction=transaction,
            use_primary=use_primary,
            registry=self.registry,
            timeout=timeout,
        )

    async def count(
        self,
        w: Wrapper,
        *,
        transaction: ConnectionHandle | None = None,
        use_primary: bool = False,
        timeout: float | None = None,
    ) -> int:
        return await executor.count(
            self.binding,
            w,
            transaction=transaction,
            use_primary=use_primary,
            registry=self.registry,
            timeout=timeout,
        )
