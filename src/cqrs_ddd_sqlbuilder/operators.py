from __future__ import annotations

from enum import Enum


class SqlOperator(str, Enum):
    """Supported WHERE operators."""

    # Simple comparison, one bound argument
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    NEQ = "<>"
    LIKE = "like"
    NOT_LIKE = "not like"

    # Sequence membership
    IN = "in"
    NOT_IN = "not in"

    # Ranges, exactly two bound arguments
    BETWEEN = "between"
    NOT_BETWEEN = "not between"

    # Raw boolean fragment with its own arguments
    APPLY = "apply"


SIMPLE_OPERATORS: frozenset[SqlOperator] = frozenset(
    {
        SqlOperator.EQ,
        SqlOperator.NE,
        SqlOperator.LT,
        SqlOperator.LE,
        SqlOperator.GT,
        SqlOperator.GE,
        SqlOperator.NEQ,
        SqlOperator.LIKE,
        SqlOperator.NOT_LIKE,
    }
)
IN_OPERATORS: frozenset[SqlOperator] = frozenset({SqlOperator.IN, SqlOperator.NOT_IN})
BETWEEN_OPERATORS: frozenset[SqlOperator] = frozenset(
    {SqlOperator.BETWEEN, SqlOperator.NOT_BETWEEN}
)

VALID_OPERATORS: frozenset[str] = frozenset(m.value for m in SqlOperator)
