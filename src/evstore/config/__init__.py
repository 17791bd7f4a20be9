"""Config – 12-factor settings and loaders."""

from evstore.config.errors import ConfigError, InvalidSettingValueError, MissingRequiredSettingError
from evstore.config.loaders import EnvSettingsLoader, SettingsLoader, load_event_store_settings
from evstore.config.settings import EventStoreSettings, Settings

__all__ = [
    "ConfigError",
    "EnvSettingsLoader",
    "EventStoreSettings",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "Settings",
    "SettingsLoader",
    "load_event_store_settings",
]
