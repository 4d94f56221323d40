"""
Explicit transactions.

Transactions are owned by the caller and passed to every call that should
run inside them::

    tx = await begin("master")
    try:
        await dao.insert({"name": "a"}, transaction=tx)
        await dao.update(w, transaction=tx)
    except Exception:
        await rollback(tx)
        raise
    else:
        await commit(tx)

or, equivalently, ``async with await begin("master") as tx: ...``.

While a transaction is passed, statements run on its connection whatever
the table binding or the ``use_primary`` hint say.  Nested transactions,
retries and deadlock handling are left to the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import ConfigurationError
from .registry import default_registry

if TYPE_CHECKING:
    from .adapters.sqla import SQLAlchemyTransaction
    from .registry import ConnectionRegistry


async def begin(
    name: str, *, registry: ConnectionRegistry | None = None
) -> SQLAlchemyTransaction:
    """Begin a transaction on the named connection."""
    handle = (registry or default_registry()).get(name)
    starter = getattr(handle, "begin", None)
    if starter is None:
        raise ConfigurationError(f"connection {name!r} does not support transactions")
    return await starter()  # type: ignore[no-any-return]


async def commit(tx: SQLAlchemyTransaction) -> None:
    await tx.commit()


async def rollback(tx: SQLAlchemyTransaction) -> None:
    await tx.rollback()
