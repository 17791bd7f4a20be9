"""Config loaders – build settings dataclasses from the environment."""
from __future__ import annotations

import abc
import dataclasses
import os
import types
import typing
from collections.abc import Mapping
from typing import Any, TypeVar

from evstore.config.errors import ConfigError, InvalidSettingValueError, MissingRequiredSettingError
from evstore.config.settings import EventStoreSettings, Settings

T = TypeVar("T", bound=Settings)

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


class SettingsLoader(abc.ABC):
    """Port: load settings from an external source."""

    @abc.abstractmethod
    def load(self, settings_class: type[T]) -> T: ...


class EnvSettingsLoader(SettingsLoader):
    """Load settings from environment variables.

    *environ* defaults to :data:`os.environ`; tests pass a plain dict.
    Empty strings count as unset for optional fields.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def load(self, settings_class: type[T]) -> T:
        prefix = getattr(settings_class, "_prefix", "").upper()
        hints = typing.get_type_hints(settings_class)
        kwargs: dict[str, Any] = {}

        for field in dataclasses.fields(settings_class):  # type: ignore[arg-type]
            env_key = f"{prefix}_{field.name}".upper().lstrip("_")
            raw = self._environ.get(env_key)

            if raw is None or raw == "":
                if (
                    field.default is dataclasses.MISSING
                    and field.default_factory is dataclasses.MISSING  # type: ignore[misc]
                ):
                    raise MissingRequiredSettingError(env_key)
                continue

            kwargs[field.name] = self._coerce(env_key, raw, hints.get(field.name, str))

        try:
            return settings_class(**kwargs)
        except ConfigError:
            raise
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Failed to load {settings_class.__name__}: {exc}", cause=exc) from exc

    def _coerce(self, env_key: str, value: str, type_hint: Any) -> Any:
        if isinstance(type_hint, types.UnionType) or typing.get_origin(type_hint) is typing.Union:
            args = [a for a in typing.get_args(type_hint) if a is not type(None)]
            type_hint = args[0] if len(args) == 1 else str
        if type_hint is bool:
            lowered = value.strip().lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise InvalidSettingValueError(env_key, value, "expected a boolean")
        if type_hint is int:
            try:
                return int(value)
            except ValueError as exc:
                raise InvalidSettingValueError(env_key, value, "expected an integer") from exc
        return value


def load_event_store_settings(environ: Mapping[str, str] | None = None) -> EventStoreSettings:
    """Shorthand for ``EnvSettingsLoader(environ).load(EventStoreSettings)``."""
    return EnvSettingsLoader(environ).load(EventStoreSettings)


__all__ = ["EnvSettingsLoader", "SettingsLoader", "load_event_store_settings"]
