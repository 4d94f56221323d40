"""Driver adapters implementing :class:`~cqrs_ddd_sqlbuilder.ports.ConnectionHandle`."""

from __future__ import annotations

from .sqla import (
    SQLAlchemyConnection,
    SQLAlchemyRowCursor,
    SQLAlchemyTransaction,
    to_text,
)

__all__ = [
    "SQLAlchemyConnection",
    "SQLAlchemyRowCursor",
    "SQLAlchemyTransaction",
    "to_text",
]
