"""
Shared helpers for building statements.

These are pure-Python functions with no connection dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .conditions import Assignment
from .exceptions import MalformedQueryError

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


def quote_identifier(name: str) -> str:
    """Back-quote every dotted segment: ``a.b`` → ```a`.`b```."""
    return ".".join(f"`{part}`" for part in name.split("."))


def field_name(name: str) -> str:
    """Strip a leading qualifier: ``u.name`` → ``name``."""
    _, _, tail = name.partition(".")
    return tail or name


# ---------------------------------------------------------------------------
# NULL handling for projections
# ---------------------------------------------------------------------------


def null_to_default_string(name: str, default: str) -> str:
    """
    Select expression replacing NULL with a string default.

    ``null_to_default_string("u.nick", "")`` → ``ifnull(u.nick, '') as nick``
    Quotes and backslashes in *default* are escaped for a MySQL string literal.
    """
    literal = default.replace("\\", "\\\\").replace("'", "''")
    return f"ifnull({name}, '{literal}') as {field_name(name)}"


def null_to_default_number(name: str, default: int | float) -> str:
    """
    Select expression replacing NULL with a numeric default.

    ``null_to_default_number("score", 0)`` → ``ifnull(score, 0) as score``
    """
    if isinstance(default, bool) or not isinstance(default, int | float):
        raise TypeError(f"numeric default expected, got {type(default).__name__}")
    return f"ifnull({name}, {default}) as {field_name(name)}"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


def to_assignments(payload: Any, *, exclude: str | None = None) -> list[Assignment]:
    """
    Turn an INSERT/UPDATE payload into value assignments.

    Supports:
    - mappings (insertion order is kept)
    - iterables of ``(column, value)`` pairs
    - pydantic models (``model_dump(by_alias=True)``)

    ``exclude`` drops one column, typically the id of an update-by-id.
    """
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(by_alias=True)

    if isinstance(payload, Mapping):
        pairs: Iterable[Any] = payload.items()
    elif isinstance(payload, str | bytes) or not isinstance(payload, Iterable):
        raise MalformedQueryError(
            "payload must be a mapping, (column, value) pairs or a pydantic "
            f"model, not {type(payload).__name__}"
        )
    else:
        pairs = payload

    result: list[Assignment] = []
    for pair in pairs:
        try:
            column, value = pair
        except (TypeError, ValueError) as e:
            raise MalformedQueryError(f"invalid (column, value) pair: {pair!r}") from e
        if column == exclude:
            continue
        result.append(Assignment(field=str(column), value=value))
    return result
