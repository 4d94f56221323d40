"""
Query specification: the mutable descriptor behind a ``Wrapper``.

``QuerySpec`` holds everything a SELECT needs besides the table binding:
projection, alias, joins, conditions, grouping, ordering and paging, plus
the per-query routing hint.  It is owned by exactly one ``Wrapper``; the
statement builder only reads it.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from .conditions import Condition

DEFAULT_LIMIT = 1024


@dataclass
class QuerySpec:
    """
    Result-shaping parameters for a single statement.

    Attributes:
        select_fields: Columns/expressions to select; empty means ``*``.
        alias: Table alias rendered right after the table name.
        join: Raw join text, accumulated with leading spaces.
        conditions: AND-ed filters, in insertion order.
        group_by: Raw GROUP BY expression.
        having: Raw HAVING expression.
        order_by: Raw ORDER BY expression.
        offset: Rows to skip when ``page`` is not set.
        limit: Maximum rows; ``0`` means ``DEFAULT_LIMIT``.
        page: 1-based page; when greater than 1 it overrides ``offset``.
        table_name: Overrides the bound table name.
        use_primary: Force reads onto the primary connection.
    """

    select_fields: list[str] = field(default_factory=list)
    alias: str = ""
    join: str = ""
    conditions: list[Condition] = field(default_factory=list)
    group_by: str = ""
    having: str = ""
    order_by: str = ""
    offset: int = 0
    limit: int = 0
    page: int = 0
    table_name: str = ""
    use_primary: bool = False

    @property
    def effective_limit(self) -> int:
        return self.limit if self.limit > 0 else DEFAULT_LIMIT

    @property
    def start(self) -> int:
        if self.page > 1:
            return (self.page - 1) * self.effective_limit
        return self.offset

    def with_fields(self, *fields: str) -> QuerySpec:
        """Return a copy with the projection replaced."""
        clone = self.clone()
        clone.select_fields = list(fields)
        return clone

    def clone(self) -> QuerySpec:
        return copy.deepcopy(self)
