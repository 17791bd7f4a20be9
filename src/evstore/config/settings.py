"""Config settings – 12-factor dataclass settings for the event store."""
from __future__ import annotations

import dataclasses
from typing import ClassVar

from evstore.config.errors import InvalidSettingValueError


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings.

    ``_prefix`` is prepended (with ``_``) to every field name to form the
    environment variable, e.g. ``EVSTORE_DATABASE_URL``.
    """

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


@dataclasses.dataclass
class EventStoreSettings(Settings):
    """Runtime configuration for the event store and its collaborators."""

    _prefix: ClassVar[str] = "EVSTORE"

    database_url: str
    redis_url: str | None = None
    cache_namespace: str = "event-store"
    cache_ttl_seconds: int = 3600
    snapshot_interval: int = 100
    snapshot_retain_count: int = 3
    log_level: str = "INFO"
    log_json: bool = True
    echo_sql: bool = False

    def _validate(self) -> None:
        if not self.database_url:
            raise InvalidSettingValueError("database_url", self.database_url, "must not be empty")
        if self.cache_ttl_seconds <= 0:
            raise InvalidSettingValueError(
                "cache_ttl_seconds", self.cache_ttl_seconds, "must be a positive number of seconds"
            )
        if self.snapshot_interval <= 0:
            raise InvalidSettingValueError("snapshot_interval", self.snapshot_interval, "must be positive")
        if self.snapshot_retain_count < 1:
            raise InvalidSettingValueError(
                "snapshot_retain_count", self.snapshot_retain_count, "must keep at least one snapshot"
            )
        if not self.cache_namespace:
            raise InvalidSettingValueError("cache_namespace", self.cache_namespace, "must not be empty")


__all__ = ["EventStoreSettings", "Settings"]
