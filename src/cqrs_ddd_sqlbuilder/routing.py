"""
Connection selection.

Precedence, highest first:

1. an explicit transaction handle is used as-is; routing hints and the
   binding's primary/replica names are ignored because a transaction is
   tied to the connection it began on,
2. a force-primary request (per call or per query) selects the primary,
3. otherwise the replica, which falls back to the primary when unset.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ports import ConnectionHandle
    from .query_spec import QuerySpec
    from .registry import ConnectionRegistry
    from .settings import TableBinding

logger = logging.getLogger("cqrs_ddd.sqlbuilder.routing")


def resolve_connection(
    binding: TableBinding,
    *,
    registry: ConnectionRegistry,
    transaction: ConnectionHandle | None = None,
    use_primary: bool = False,
    spec: QuerySpec | None = None,
) -> ConnectionHandle:
    """Pick the handle that serves one operation on *binding*."""
    if transaction is not None:
        logger.debug("%s: routed to active transaction", binding.table_name)
        return transaction

    if use_primary or (spec is not None and spec.use_primary):
        name = binding.primary_name
    else:
        name = binding.replica_name

    logger.debug("%s: routed to %s", binding.table_name, name)
    return registry.get(name)
