"""
Render a ``QuerySpec`` and its assignments into SQL text plus arguments.

Every function here is pure: it reads its inputs and returns a
:class:`Statement`.  Values are always bound through ``?`` placeholders and
appended to ``Statement.args`` in the same left-to-right order as the
placeholders.  Raw fragments (joins, GROUP/HAVING/ORDER expressions,
``apply`` text, expression assignments) are trusted and spliced verbatim.

Clause order for SELECT::

    select <fields> from <table>[ <alias>][ <join>][ where <cond>]
        [ group by <g>][ having <h>][ order by <o>] limit <start>,<count>

Per-operator WHERE rendering is table-driven: each operator family maps to
a small renderer in ``_RENDERERS``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .conditions import AssignmentKind
from .exceptions import (
    ConfigurationError,
    EmptyAssignmentError,
    MalformedQueryError,
    UnsafeMutationError,
    UnsupportedOperatorError,
    ValueArityError,
)
from .operators import (
    BETWEEN_OPERATORS,
    IN_OPERATORS,
    SIMPLE_OPERATORS,
    VALID_OPERATORS,
    SqlOperator,
)
from .utils import quote_identifier

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from .conditions import Assignment, Condition
    from .query_spec import QuerySpec

    Renderer = Callable[[str, str, SqlOperator, Any, list[Any]], str]

COUNT_FIELD = "count(1) as cn"


@dataclass(frozen=True)
class Statement:
    """SQL text and its positional arguments."""

    sql: str
    args: list[Any] = field(default_factory=list)

    def __iter__(self) -> Iterator[Any]:
        return iter((self.sql, self.args))


# ---------------------------------------------------------------------------
# WHERE
# ---------------------------------------------------------------------------


def build_where(conditions: Sequence[Condition]) -> Statement:
    """
    Render AND-ed conditions without the ``where`` keyword.

    An empty list renders as an empty string with no arguments.
    """
    args: list[Any] = []
    return Statement(_render_where(conditions, args), args)


def _render_where(conditions: Sequence[Condition], args: list[Any]) -> str:
    clauses: list[str] = []
    for cond in conditions:
        if isinstance(cond.value, Mapping):
            raise MalformedQueryError(
                f"where value type is not allow map: {cond.to_dict()}",
                field=cond.field,
            )
        op = _resolve_operator(cond)
        renderer = _RENDERERS[_family(op)]
        column = quote_identifier(cond.field) if cond.field else ""
        clauses.append(renderer(cond.field, column, op, cond.value, args))
    return " and ".join(clauses)


def _resolve_operator(cond: Condition) -> SqlOperator:
    if isinstance(cond.op, SqlOperator):
        return cond.op
    normalized = " ".join(str(cond.op).split()).lower()
    try:
        return SqlOperator(normalized)
    except ValueError:
        raise UnsupportedOperatorError(
            str(cond.op), sorted(VALID_OPERATORS), field=cond.field
        ) from None


def _family(op: SqlOperator) -> str:
    if op in SIMPLE_OPERATORS:
        return "simple"
    if op in IN_OPERATORS:
        return "in"
    if op in BETWEEN_OPERATORS:
        return "between"
    return "apply"


def _as_sequence(name: str, value: Any, what: str) -> Sequence[Any]:
    if isinstance(value, str | bytes | bytearray) or not isinstance(value, Sequence):
        raise ValueArityError(
            f"[{name or 'apply'}] {what} value must be a list or tuple, "
            f"not {type(value).__name__}",
            field=name,
        )
    return value


def _render_simple(
    name: str, column: str, op: SqlOperator, value: Any, args: list[Any]
) -> str:
    args.append(value)
    return f"{column} {op.value} ?"


def _render_in(
    name: str, column: str, op: SqlOperator, value: Any, args: list[Any]
) -> str:
    items = _as_sequence(name, value, op.value)
    if not items:
        raise ValueArityError(f"[{name}] where in is not allow empty", field=name)
    args.extend(items)
    placeholders = ", ".join("?" for _ in items)
    return f"{column} {op.value} ({placeholders})"


def _render_between(
    name: str, column: str, op: SqlOperator, value: Any, args: list[Any]
) -> str:
    items = _as_sequence(name, value, op.value)
    if len(items) != 2:
        raise ValueArityError(
            f"[{name}] {op.value} needs exactly 2 values, got {len(items)}",
            field=name,
        )
    args.extend(items)
    return f"{column} {op.value} ? and ?"


def _render_apply(
    name: str, column: str, op: SqlOperator, value: Any, args: list[Any]
) -> str:
    items = _as_sequence(name, value, op.value)
    if not items:
        raise ValueArityError(
            f"[{name or 'apply'}] apply needs a sql fragment", field=name
        )
    fragment = items[0]
    if not isinstance(fragment, str):
        raise ValueArityError(
            f"[{name or 'apply'}] apply fragment must be str, "
            f"not {type(fragment).__name__}",
            field=name,
        )
    args.extend(items[1:])
    return f"({fragment})"


_RENDERERS: dict[str, Renderer] = {
    "simple": _render_simple,
    "in": _render_in,
    "between": _render_between,
    "apply": _render_apply,
}


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------


def _resolve_table(table: str, spec: QuerySpec) -> str:
    name = spec.table_name or table
    if not name:
        raise ConfigurationError("table name is empty")
    return name


def _head(table: str, spec: QuerySpec) -> str:
    fields = ",".join(spec.select_fields) if spec.select_fields else "*"
    sql = f"select {fields} from {_resolve_table(table, spec)}"
    if spec.alias:
        sql += f" {spec.alias}"
    if spec.join:
        sql += f" {spec.join}"
    return sql


def build_select(table: str, spec: QuerySpec) -> Statement:
    """Render a paged multi-row SELECT.  A LIMIT is always emitted."""
    args: list[Any] = []
    sql = _head(table, spec)
    if spec.conditions:
        sql += " where " + _render_where(spec.conditions, args)
    if spec.group_by:
        sql += f" group by {spec.group_by}"
    if spec.having:
        sql += f" having {spec.having}"
    if spec.order_by:
        sql += f" order by {spec.order_by}"
    sql += f" limit {spec.start},{spec.effective_limit}"
    return Statement(sql, args)


def build_select_one(table: str, spec: QuerySpec) -> Statement:
    """Render a single-row SELECT: no grouping, no paging, ``limit 0,1``."""
    args: list[Any] = []
    sql = _head(table, spec)
    if spec.conditions:
        sql += " where " + _render_where(spec.conditions, args)
    if spec.order_by:
        sql += f" order by {spec.order_by}"
    sql += " limit 0,1"
    return Statement(sql, args)


def build_count(table: str, spec: QuerySpec) -> Statement:
    """Render ``select count(1) as cn ...`` without touching *spec*."""
    return build_select_one(table, spec.with_fields(COUNT_FIELD))


# ---------------------------------------------------------------------------
# INSERT / UPDATE / DELETE
# ---------------------------------------------------------------------------


def _render_value(item: Assignment, args: list[Any]) -> str:
    if item.kind is AssignmentKind.EXPRESSION:
        return str(item.value)
    args.append(item.value)
    return "?"


def build_insert(table: str, assignments: Sequence[Assignment]) -> Statement:
    """Render ``insert into `t`(`a`, `b`) values (?, ?)``."""
    if not table:
        raise ConfigurationError("table name is empty")
    if not assignments:
        raise EmptyAssignmentError("insert data is not allow empty")

    args: list[Any] = []
    columns = ", ".join(quote_identifier(item.field) for item in assignments)
    values = ", ".join(_render_value(item, args) for item in assignments)
    sql = f"insert into {quote_identifier(table)}({columns}) values ({values})"
    return Statement(sql, args)


def build_update(
    table: str,
    assignments: Sequence[Assignment],
    conditions: Sequence[Condition],
) -> Statement:
    """
    Render ``update t set `a` = ?, `b` = NOW() where ...``.

    Assignment arguments come first, WHERE arguments after them.
    A full-table update is refused.
    """
    if not table:
        raise ConfigurationError("table name is empty")
    if not assignments:
        raise EmptyAssignmentError("update data is not allow empty")
    if not conditions:
        raise UnsafeMutationError(f"not support update all records from {table}")

    args: list[Any] = []
    sets = ", ".join(
        f"{quote_identifier(item.field)} = {_render_value(item, args)}"
        for item in assignments
    )
    where = _render_where(conditions, args)
    return Statement(f"update {table} set {sets} where {where}", args)


def build_delete(table: str, conditions: Sequence[Condition]) -> Statement:
    """Render ``delete from t where ...``.  A full-table delete is refused."""
    if not table:
        raise ConfigurationError("table name is empty")
    if not conditions:
        raise UnsafeMutationError(f"not support delete all records from {table}")

    args: list[Any] = []
    where = _render_where(conditions, args)
    return Statement(f"delete from {table} where {where}", args)
