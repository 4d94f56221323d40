from __future__ import annotations

import pytest

from cqrs_ddd_sqlbuilder import (
    ConfigurationError,
    ConnectionRegistry,
    SQLAlchemyTransaction,
    TableBinding,
    TransactionError,
    Wrapper,
    begin,
    commit,
    executor,
    get_wrapper,
    rollback,
)


def _student(name: str, age: int = 1) -> Wrapper:
    return get_wrapper().set("name", name).set("age", age)


async def _total(registry: ConnectionRegistry, binding: TableBinding) -> int:
    return await executor.count(
        binding, get_wrapper(), use_primary=True, registry=registry
    )


async def test_commit_makes_writes_visible(
    registry: ConnectionRegistry, binding: TableBinding
) -> None:
    tx = await begin("master", registry=registry)
    assert isinstance(tx, SQLAlchemyTransaction)
    assert tx.is_active

    await executor.insert(binding, _student("a"), transaction=tx, registry=registry)
    # reads inside the transaction ignore the replica
    inside = await executor.select(
        binding, get_wrapper(), transaction=tx, registry=registry
    )
    assert [row["name"] for row in inside] == ["a"]

    await commit(tx)
    assert not tx.is_active
    assert await _total(registry, binding) == 1


async def test_rollback_discards_writes(
    registry: ConnectionRegistry, binding: TableBinding
) -> None:
    tx = await begin("master", registry=registry)
    await executor.insert(binding, _student("a"), transaction=tx, registry=registry)
    await executor.insert(binding, _student("b"), transaction=tx, registry=registry)
    await rollback(tx)

    assert await _total(registry, binding) == 0


async def test_context_manager_commits_on_success(
    registry: ConnectionRegistry, binding: TableBinding
) -> None:
    async with await begin("master", registry=registry) as tx:
        await executor.insert(
            binding, _student("a"), transaction=tx, registry=registry
        )

    assert not tx.is_active
    assert await _total(registry, binding) == 1


async def test_context_manager_rolls_back_on_error(
    registry: ConnectionRegistry, binding: TableBinding
) -> None:
    with pytest.raises(RuntimeError, match="boom"):
        async with await begin("master", registry=registry) as tx:
            await executor.insert(
                binding, _student("a"), transaction=tx, registry=registry
            )
            raise RuntimeError("boom")

    assert await _total(registry, binding) == 0


async def test_finished_transaction_is_single_shot(
    registry: ConnectionRegistry, binding: TableBinding
) -> None:
    tx = await begin("master", registry=registry)
    await commit(tx)

    with pytest.raises(TransactionError, match="already finished"):
        await commit(tx)
    with pytest.raises(TransactionError):
        await rollback(tx)
    with pytest.raises(TransactionError):
        await executor.insert(
            binding, _student("a"), transaction=tx, registry=registry
        )


async def test_stream_inside_transaction_keeps_connection(
    registry: ConnectionRegistry, binding: TableBinding
) -> None:
    async with await begin("master", registry=registry) as tx:
        for name in ("a", "b"):
            await executor.insert(
                binding, _student(name), transaction=tx, registry=registry
            )
        w = get_wrapper().select("name").order("id")
        stream = executor.stream_maps(
            binding, w, transaction=tx, registry=registry
        )
        names = [row["name"] async for row in stream]
        # the connection is still usable after the cursor is closed
        await executor.update(
            binding,
            get_wrapper().set("age", 5).eq("name", "a"),
            transaction=tx,
            registry=registry,
        )

    assert names == ["a", "b"]
    assert await _total(registry, binding) == 2


async def test_begin_requires_transactional_handle(make_handle) -> None:
    registry = ConnectionRegistry()
    registry.init({"master": make_handle("master")})

    with pytest.raises(ConfigurationError, match="does not support transactions"):
        await begin("master", registry=registry)


async def test_begin_unknown_connection(registry: ConnectionRegistry) -> None:
    with pytest.raises(ConfigurationError):
        await begin("nope", registry=registry)
