"""
Fluent builder for statement conditions, projections and assignments.

Example::

    w = (
        get_wrapper()
        .select("id", "name")
        .eq("age", 30)
        .in_("id", [1, 2, 3])
        .order("id desc")
        .page(2)
        .limit(20)
    )
    # → select id,name from <table> where `age` = ? and `id` in (?, ?, ?)
    #   order by id desc limit 20,20

    w = get_wrapper().set("name", "a").set_exp("updated_at", "NOW()").eq("id", 7)
    # → update <table> set `name` = ?, `updated_at` = NOW() where `id` = ?

Mutating methods never raise.  Anything that cannot be accepted (for
example a value that cannot be JSON-encoded) is recorded and reported by
:meth:`Wrapper.error` / :meth:`Wrapper.raise_for_errors`, which the
executor calls before any SQL is issued.  Operators and value shapes are
checked later still, when the statement is rendered.

A ``Wrapper`` describes one statement.  Do not share an instance between
call sites or tasks; take a fresh one from :func:`get_wrapper` instead.
"""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any

from .compiler import build_select
from .conditions import Assignment, Condition
from .exceptions import MalformedQueryError, WrapperError
from .operators import SqlOperator
from .query_spec import QuerySpec
from .utils import to_assignments

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .compiler import Statement


class Wrapper:
    """Fluent, single-use statement description."""

    def __init__(self) -> None:
        self._spec = QuerySpec()
        self._assignments: list[Assignment] = []
        self._errors: list[str] = []

    # -- state ---------------------------------------------------------------

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    @property
    def assignments(self) -> list[Assignment]:
        return self._assignments

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(self._errors)

    def error(self) -> WrapperError | None:
        """Return the deferred errors as one exception, or ``None``."""
        if not self._errors:
            return None
        return WrapperError(self._errors)

    def raise_for_errors(self) -> None:
        err = self.error()
        if err is not None:
            raise err

    def copy(self) -> Wrapper:
        """Deep copy, so the clone can be changed independently."""
        return copy.deepcopy(self)

    def to_select_sql(self) -> Statement:
        """Render the SELECT for this wrapper alone (needs ``table_name``)."""
        return build_select("", self._spec)

    # -- shape ---------------------------------------------------------------

    def table_name(self, name: str) -> Wrapper:
        self._spec.table_name = name
        return self

    def select(self, *fields: str) -> Wrapper:
        self._spec.select_fields = list(fields) if fields else ["*"]
        return self

    def alias(self, name: str) -> Wrapper:
        self._spec.alias = name
        return self

    def join(self, clause: str) -> Wrapper:
        """Append a raw join, e.g. ``left join class as c on s.class_id = c.id``."""
        self._spec.join = f"{self._spec.join} {clause}".strip()
        return self

    def group(self, expr: str) -> Wrapper:
        self._spec.group_by = expr
        return self

    def having(self, expr: str) -> Wrapper:
        self._spec.having = expr
        return self

    def order(self, expr: str) -> Wrapper:
        self._spec.order_by = expr
        return self

    def limit(self, limit: int) -> Wrapper:
        self._spec.limit = limit
        return self

    def offset(self, offset: int) -> Wrapper:
        self._spec.offset = offset
        return self

    def page(self, page: int) -> Wrapper:
        self._spec.page = page
        return self

    def use_primary(self, flag: bool = True) -> Wrapper:
        """Force reads for this statement onto the primary connection."""
        self._spec.use_primary = flag
        return self

    # -- conditions ----------------------------------------------------------

    def condition(
        self, column: str, op: SqlOperator | str, value: Any = None
    ) -> Wrapper:
        self._spec.conditions.append(Condition(column, op, value))
        return self

    def where(self, conditions: Iterable[Condition]) -> Wrapper:
        """Replace every condition added so far."""
        self._spec.conditions = list(conditions)
        return self

    def eq(self, column: str, value: Any) -> Wrapper:
        return self.condition(column, SqlOperator.EQ, value)

    def ne(self, column: str, value: Any) -> Wrapper:
        return self.condition(column, SqlOperator.NE, value)

    def neq(self, column: str, value: Any) -> Wrapper:
        return self.condition(column, SqlOperator.NEQ, value)

    def gt(self, column: str, value: Any) -> Wrapper:
        return self.condition(column, SqlOperator.GT, value)

    def ge(self, column: str, value: Any) -> Wrapper:
        return self.condition(column, SqlOperator.GE, value)

    def lt(self, column: str, value: Any) -> Wrapper:
        return self.condition(column, SqlOperator.LT, value)

    def le(self, column: str, value: Any) -> Wrapper:
        return self.condition(column, SqlOperator.LE, value)

    def between(self, column: str, start: Any, end: Any) -> Wrapper:
        return self.condition(column, SqlOperator.BETWEEN, [start, end])

    def not_between(self, column: str, start: Any, end: Any) -> Wrapper:
        return self.condition(column, SqlOperator.NOT_BETWEEN, [start, end])

    def like(self, column: str, value: str) -> Wrapper:
        return self.condition(column, SqlOperator.LIKE, f"%{value}%")

    def not_like(self, column: str, value: str) -> Wrapper:
        return self.condition(column, SqlOperator.NOT_LIKE, f"%{value}%")

    def like_left(self, column: str, value: str) -> Wrapper:
        return self.condition(column, SqlOperator.LIKE, f"%{value}")

    def like_right(self, column: str, value: str) -> Wrapper:
        return self.condition(column, SqlOperator.LIKE, f"{value}%")

    def in_(self, column: str, values: Any) -> Wrapper:
        return self.condition(column, SqlOperator.IN, values)

    def not_in(self, column: str, values: Any) -> Wrapper:
        return self.condition(column, SqlOperator.NOT_IN, values)

    def apply(self, fragment: str, *args: Any) -> Wrapper:
        """
        Add a raw boolean fragment with its own ``?`` placeholders.

        ``apply("a = ? or b > ?", 1, 2)`` renders ``(a = ? or b > ?)``.
        Placeholder and argument counts are not checked.
        """
        return self.condition("", SqlOperator.APPLY, [fragment, *args])

    # -- assignments ---------------------------------------------------------

    def set(self, column: str, value: Any) -> Wrapper:
        self._assignments.append(Assignment(column, value))
        return self

    def set_json(self, column: str, value: Any) -> Wrapper:
        """Store *value* JSON-encoded."""
        try:
            data = json.dumps(value)
        except (TypeError, ValueError) as e:
            self._errors.append(f"{column}: {e}({value!r})")
            return self
        self._assignments.append(Assignment(column, data))
        return self

    def set_exp(self, column: str, sql: str) -> Wrapper:
        """Assign a raw SQL expression, e.g. ``set_exp("hits", "hits + 1")``."""
        self._assignments.append(Assignment.expression(column, sql))
        return self

    def set_many(self, payload: Any) -> Wrapper:
        """Add value assignments from a mapping, pairs or a pydantic model."""
        try:
            self._assignments.extend(to_assignments(payload))
        except MalformedQueryError as e:
            self._errors.append(e.message)
        return self


def get_wrapper() -> Wrapper:
    """Return a fresh, empty ``Wrapper``."""
    return Wrapper()


def copy_wrapper(src: Wrapper) -> Wrapper:
    return src.copy()
