"""
Value types for a single filter and a single column assignment.

Both are immutable. Nothing is validated on construction: operators and
values are checked when the statement is rendered, so a fluent chain is
never interrupted half-way.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .operators import SqlOperator


@dataclass(frozen=True)
class Condition:
    """
    One ``<field> <op> <value>`` filter.

    ``field`` is an unquoted column reference, possibly ``alias.column``.
    For ``apply`` the field is empty and ``value`` is
    ``[fragment, arg1, arg2, ...]``.
    """

    field: str
    op: SqlOperator | str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        op = self.op.value if isinstance(self.op, SqlOperator) else self.op
        return {"op": op, "attr": self.field, "val": self.value}


class AssignmentKind(str, Enum):
    """How an assignment's value reaches the statement."""

    VALUE = "value"
    EXPRESSION = "exp"


@dataclass(frozen=True)
class Assignment:
    """
    One ``column = value`` pair for INSERT or UPDATE.

    ``VALUE`` assignments bind a placeholder; ``EXPRESSION`` assignments
    splice ``value`` into the SQL text verbatim (e.g. ``NOW()``).
    """

    field: str
    value: Any
    kind: AssignmentKind = AssignmentKind.VALUE

    @classmethod
    def expression(cls, field: str, sql: str) -> Assignment:
        return cls(field=field, value=sql, kind=AssignmentKind.EXPRESSION)
