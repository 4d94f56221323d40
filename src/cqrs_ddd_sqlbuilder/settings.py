"""
Configuration models.

``TableBinding`` ties a logical table to its primary and replica
connection names.  ``DatabaseSettings`` describes one named engine and
builds it; :func:`create_engines` turns a list of settings into the
mapping :func:`~cqrs_ddd_sqlbuilder.registry.init_connections` expects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncEngine


class TableBinding(BaseModel):
    """
    Static routing configuration for one table.

    ``table_name`` and ``primary`` are mandatory before the first
    operation; they may be filled in after construction.  ``replica``
    falls back to ``primary`` when unset.
    """

    model_config = ConfigDict(validate_assignment=True)

    table_name: str = ""
    primary: str = ""
    replica: str | None = None

    @property
    def primary_name(self) -> str:
        return self.primary

    @property
    def replica_name(self) -> str:
        return self.replica or self.primary

    def check(self) -> None:
        """Raise ``ConfigurationError`` unless table and primary are set."""
        if not self.table_name or not self.primary:
            raise ConfigurationError("table name or db name is not allow empty")


class DatabaseSettings(BaseModel):
    """Connection settings for one named database."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    echo: bool = False
    pool_size: int | None = Field(default=None, gt=0)
    pool_recycle: int | None = None
    connect_args: dict[str, Any] = Field(default_factory=dict)

    def create_engine(self) -> AsyncEngine:
        from sqlalchemy.ext.asyncio import create_async_engine

        kwargs: dict[str, Any] = {"echo": self.echo}
        if self.pool_size is not None:
            kwargs["pool_size"] = self.pool_size
        if self.pool_recycle is not None:
            kwargs["pool_recycle"] = self.pool_recycle
        if self.connect_args:
            kwargs["connect_args"] = dict(self.connect_args)
        return create_async_engine(self.url, **kwargs)


def create_engines(settings: Iterable[DatabaseSettings]) -> dict[str, AsyncEngine]:
    """Build one engine per settings entry, keyed by name."""
    engines: dict[str, AsyncEngine] = {}
    for item in settings:
        if item.name in engines:
            raise ConfigurationError(f"duplicate database name: {item.name!r}")
        engines[item.name] = item.create_engine()
    return engines
