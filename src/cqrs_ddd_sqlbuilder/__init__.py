"""Fluent SQL statement builder with primary/replica routing."""

from .adapters.sqla import SQLAlchemyConnection, SQLAlchemyTransaction
from .compiler import (
    Statement,
    build_count,
    build_delete,
    build_insert,
    build_select,
    build_select_one,
    build_update,
    build_where,
)
from .conditions import Assignment, AssignmentKind, Condition
from .dao import TableDao
from .exceptions import (
    ConfigurationError,
    EmptyAssignmentError,
    MalformedQueryError,
    SQLBuilderError,
    TransactionError,
    UnsafeMutationError,
    UnsupportedOperatorError,
    ValueArityError,
    WrapperError,
)
from .operators import SqlOperator
from .ports import ConnectionHandle, ExecResult, RowCursor
from .query_spec import DEFAULT_LIMIT, QuerySpec
from .registry import ConnectionRegistry, get_connection, init_connections
from .routing import resolve_connection
from .settings import DatabaseSettings, TableBinding, create_engines
from .transaction import begin, commit, rollback
from .utils import null_to_default_number, null_to_default_string, quote_identifier
from .wrapper import Wrapper, copy_wrapper, get_wrapper

__all__ = [
    # Fluent API
    "Wrapper",
    "get_wrapper",
    "copy_wrapper",
    # Condition model
    "SqlOperator",
    "Condition",
    "Assignment",
    "AssignmentKind",
    "QuerySpec",
    "DEFAULT_LIMIT",
    # Statement builder
    "Statement",
    "build_where",
    "build_select",
    "build_select_one",
    "build_count",
    "build_insert",
    "build_update",
    "build_delete",
    # Connections & routing
    "ConnectionHandle",
    "RowCursor",
    "ExecResult",
    "SQLAlchemyConnection",
    "SQLAlchemyTransaction",
    "ConnectionRegistry",
    "init_connections",
    "get_connection",
    "resolve_connection",
    "begin",
    "commit",
    "rollback",
    # Configuration
    "TableBinding",
    "DatabaseSettings",
    "create_engines",
    # Façade
    "TableDao",
    # Exceptions
    "SQLBuilderError",
    "ConfigurationError",
    "MalformedQueryError",
    "UnsupportedOperatorError",
    "ValueArityError",
    "UnsafeMutationError",
    "EmptyAssignmentError",
    "WrapperError",
    "TransactionError",
    # Utilities
    "quote_identifier",
    "null_to_default_string",
    "null_to_default_number",
]
