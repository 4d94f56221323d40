from __future__ import annotations

import pytest

from cqrs_ddd_sqlbuilder import (
    ConfigurationError,
    ConnectionRegistry,
    QuerySpec,
    TableBinding,
    resolve_connection,
)


def test_reads_go_to_replica(
    fake_registry: ConnectionRegistry, binding: TableBinding
) -> None:
    assert resolve_connection(binding, registry=fake_registry).name == "slave"


def test_replica_falls_back_to_primary(fake_registry: ConnectionRegistry) -> None:
    binding = TableBinding(table_name="dev_student", primary="master")
    assert resolve_connection(binding, registry=fake_registry).name == "master"


def test_per_call_force_primary(
    fake_registry: ConnectionRegistry, binding: TableBinding
) -> None:
    handle = resolve_connection(binding, registry=fake_registry, use_primary=True)
    assert handle.name == "master"


def test_per_query_force_primary(
    fake_registry: ConnectionRegistry, binding: TableBinding
) -> None:
    spec = QuerySpec(use_primary=True)
    handle = resolve_connection(binding, registry=fake_registry, spec=spec)
    assert handle.name == "master"


def test_transaction_wins_over_everything(
    fake_registry: ConnectionRegistry, binding: TableBinding, make_handle
) -> None:
    tx = make_handle("tx")
    handle = resolve_connection(
        binding,
        registry=fake_registry,
        transaction=tx,
        use_primary=True,
        spec=QuerySpec(use_primary=True),
    )
    assert handle is tx


def test_unknown_connection_name(fake_registry: ConnectionRegistry) -> None:
    binding = TableBinding(table_name="dev_student", primary="master", replica="other")
    with pytest.raises(ConfigurationError, match=r"connect\(other\) is not exist"):
        resolve_connection(binding, registry=fake_registry)
