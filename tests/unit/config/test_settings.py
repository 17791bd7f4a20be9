"""Unit tests for event store settings and the environment loader."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import ClassVar

import pytest

from evstore.config import (
    ConfigError,
    EnvSettingsLoader,
    EventStoreSettings,
    InvalidSettingValueError,
    MissingRequiredSettingError,
    Settings,
    load_event_store_settings,
)


@dataclass
class AppSettings(Settings):
    _prefix: ClassVar[str] = "APP"

    host: str = "localhost"
    port: int = 8080
    debug: bool = False
    token: str | None = None


class TestEnvSettingsLoader:
    def test_defaults_when_unset(self) -> None:
        settings = EnvSettingsLoader({}).load(AppSettings)
        assert settings == AppSettings()

    def test_coerces_int_and_bool(self) -> None:
        env = {"APP_PORT": "9000", "APP_DEBUG": "yes", "APP_HOST": "example.com"}
        settings = EnvSettingsLoader(env).load(AppSettings)
        assert settings.port == 9000
        assert settings.debug is True
        assert settings.host == "example.com"

    def test_optional_str(self) -> None:
        assert EnvSettingsLoader({"APP_TOKEN": "t"}).load(AppSettings).token == "t"

    def test_empty_string_counts_as_unset(self) -> None:
        assert EnvSettingsLoader({"APP_PORT": ""}).load(AppSettings).port == 8080

    def test_bad_int_raises(self) -> None:
        with pytest.raises(InvalidSettingValueError) as info:
            EnvSettingsLoader({"APP_PORT": "eighty"}).load(AppSettings)
        assert info.value.setting_name == "APP_PORT"

    def test_bad_bool_raises(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            EnvSettingsLoader({"APP_DEBUG": "maybe"}).load(AppSettings)

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_PORT", "1234")
        assert EnvSettingsLoader().load(AppSettings).port == 1234


class TestEventStoreSettings:
    def test_prefix_is_not_a_field(self) -> None:
        names = [f.name for f in dataclasses.fields(EventStoreSettings)]
        assert "_prefix" not in names
        assert names[0] == "database_url"
        assert EventStoreSettings._prefix == "EVSTORE"
        assert EventStoreSettings("sqlite://").database_url == "sqlite://"

    def test_loads_with_defaults(self) -> None:
        settings = load_event_store_settings({"EVSTORE_DATABASE_URL": "sqlite+aiosqlite:///:memory:"})
        assert settings.database_url == "sqlite+aiosqlite:///:memory:"
        assert settings.redis_url is None
        assert settings.cache_namespace == "event-store"
        assert settings.cache_ttl_seconds == 3600
        assert settings.snapshot_interval == 100
        assert settings.snapshot_retain_count == 3
        assert settings.log_json is True

    def test_overrides(self) -> None:
        settings = load_event_store_settings(
            {
                "EVSTORE_DATABASE_URL": "postgresql+asyncpg://db/events",
                "EVSTORE_REDIS_URL": "redis://cache:6379/0",
                "EVSTORE_CACHE_TTL_SECONDS": "60",
                "EVSTORE_LOG_JSON": "false",
            }
        )
        assert settings.redis_url == "redis://cache:6379/0"
        assert settings.cache_ttl_seconds == 60
        assert settings.log_json is False

    def test_database_url_required(self) -> None:
        with pytest.raises(MissingRequiredSettingError) as info:
            load_event_store_settings({})
        assert info.value.setting_name == "EVSTORE_DATABASE_URL"
        assert isinstance(info.value, ConfigError)

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("cache_ttl_seconds", 0),
            ("snapshot_interval", -1),
            ("snapshot_retain_count", 0),
            ("cache_namespace", ""),
        ],
    )
    def test_validation(self, field: str, value: object) -> None:
        with pytest.raises(InvalidSettingValueError) as info:
            EventStoreSettings(database_url="sqlite://", **{field: value})  # type: ignore[arg-type]
        assert info.value.setting_name == field

    def test_validation_through_loader(self) -> None:
        with pytest.raises(InvalidSettingValueError):
            load_event_store_settings(
                {"EVSTORE_DATABASE_URL": "sqlite://", "EVSTORE_CACHE_TTL_SECONDS": "0"}
            )
