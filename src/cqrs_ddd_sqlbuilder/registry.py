"""
Process-wide registry of named connection handles.

The registry is filled exactly once at start-up and is read-only
afterwards, so lookups need no locking.  A second initialisation is an
error rather than a silent overwrite.

Usage::

    init_connections({"master": master_engine, "slave": slave_engine})
    handle = get_connection("slave")

Tests and applications that need isolation create their own
:class:`ConnectionRegistry` and pass it as ``registry=`` to the executor.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

from .adapters.sqla import SQLAlchemyConnection
from .exceptions import ConfigurationError
from .ports import ConnectionHandle

logger = logging.getLogger("cqrs_ddd.sqlbuilder.registry")


class ConnectionRegistry:
    """Single-shot mapping of connection name → :class:`ConnectionHandle`."""

    def __init__(self) -> None:
        self._handles: Mapping[str, ConnectionHandle] | None = None

    @property
    def is_initialized(self) -> bool:
        return self._handles is not None

    def init(self, connections: Mapping[str, AsyncEngine | ConnectionHandle]) -> None:
        """
        Register every connection.  Engines are wrapped in
        :class:`SQLAlchemyConnection`; other values must already satisfy
        :class:`ConnectionHandle`.
        """
        if self._handles is not None:
            raise ConfigurationError("db manager is already initialized")

        handles: dict[str, ConnectionHandle] = {}
        for name, value in connections.items():
            handles[name] = _as_handle(name, value)
        self._handles = MappingProxyType(handles)
        logger.info("Connection registry initialized: %s", ", ".join(sorted(handles)))

    def get(self, name: str) -> ConnectionHandle:
        if self._handles is None:
            raise ConfigurationError("db connect is not init")
        try:
            return self._handles[name]
        except KeyError:
            raise ConfigurationError(f"this db connect({name}) is not exist") from None

    def names(self) -> list[str]:
        return sorted(self._handles or {})

    async def dispose(self) -> None:
        """Dispose every engine-backed handle (shutdown helper)."""
        for handle in (self._handles or {}).values():
            if isinstance(handle, SQLAlchemyConnection):
                await handle.dispose()


def _as_handle(name: str, value: Any) -> ConnectionHandle:
    if isinstance(value, AsyncEngine):
        return SQLAlchemyConnection(value, name=name)
    if isinstance(value, ConnectionHandle):
        return value
    raise ConfigurationError(
        f"connection {name!r} must be an AsyncEngine or ConnectionHandle, "
        f"not {type(value).__name__}"
    )


_default_registry = ConnectionRegistry()


def default_registry() -> ConnectionRegistry:
    return _default_registry


def init_connections(connections: Mapping[str, AsyncEngine | ConnectionHandle]) -> None:
    """Initialise the process-wide registry.  Callable once."""
    _default_registry.init(connections)


def get_connection(name: str) -> ConnectionHandle:
    return _default_registry.get(name)
