"""
Exception hierarchy for the SQL builder.

Three families are distinguished:

* configuration errors (``ConfigurationError``) raised before any routing
  happens,
* malformed-query errors (``MalformedQueryError`` and subclasses) raised
  while rendering, before any SQL reaches a connection,
* driver errors, which are never wrapped and reach the caller unmodified.

All exceptions provide ``to_dict()`` for API-friendly error responses.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class SQLBuilderError(Exception):
    """Base exception for all SQL builder errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class ConfigurationError(SQLBuilderError):
    """Table binding or connection registry is not usable."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "CONFIGURATION_ERROR",
            "message": str(self),
        }


class TransactionError(SQLBuilderError):
    """Raised when a finished transaction is committed or rolled back again."""


class MalformedQueryError(SQLBuilderError):
    """The accumulated query cannot be rendered into SQL."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "MALFORMED_QUERY",
            "message": self.message,
            "field": self.field,
        }


class UnsupportedOperatorError(MalformedQueryError):
    """
    Unknown operator specified.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    def __init__(
        self,
        operator: str,
        valid_operators: list[str],
        field: str | None = None,
    ) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.suggestions = get_close_matches(operator, valid_operators, n=3, cutoff=0.6)

        if operator:
            message = f"Unsupported operator '{operator}' [field: {field}]."
        else:
            message = f"Operator must not be empty [field: {field}]."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Valid operators: {', '.join(sorted(valid_operators))}"
        super().__init__(message, field=field)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_OPERATOR",
            "operator": self.operator,
            "field": self.field,
            "suggestions": self.suggestions,
            "valid_operators": sorted(self.valid_operators),
        }


class ValueArityError(MalformedQueryError):
    """Wrong shape or element count for ``in``, ``between`` or ``apply``."""


class UnsafeMutationError(MalformedQueryError):
    """UPDATE or DELETE without any WHERE condition."""


class EmptyAssignmentError(MalformedQueryError):
    """INSERT or UPDATE without any column assignment."""


class WrapperError(MalformedQueryError):
    """
    Errors deferred while a ``Wrapper`` was being built.

    The message concatenates every deferred error so a single exception
    reports all of them.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        message = "Wrapper error: " + "".join(f"{e}; " for e in self.errors)
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "WRAPPER_ERROR",
            "message": self.message,
            "errors": self.errors,
        }


__all__: list[str] = [
    "ConfigurationError",
    "EmptyAssignmentError",
    "MalformedQueryError",
    "SQLBuilderError",
    "TransactionError",
    "UnsafeMutationError",
    "UnsupportedOperatorError",
    "ValueArityError",
    "WrapperError",
]
