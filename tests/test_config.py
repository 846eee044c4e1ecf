"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from mapscache.config import Settings, load_settings
from mapscache.constants import DEFAULT_CACHE_MAX_SIZE, DEFAULT_DAILY_BUDGET
from mapscache.domain.exceptions import ConfigurationError
from mapscache.enums import UsageCategory


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.cache_max_size == DEFAULT_CACHE_MAX_SIZE
        assert settings.daily_budget == DEFAULT_DAILY_BUDGET
        assert settings.singleflight_enabled is True
        assert settings.cost_overrides() == {}

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("CACHE_MAX_SIZE", "25")
        monkeypatch.setenv("CACHE_DEFAULT_TTL_SECONDS", "120")
        monkeypatch.setenv("DAILY_BUDGET", "12.5")
        monkeypatch.setenv("SINGLEFLIGHT_ENABLED", "false")
        monkeypatch.setenv("COST_PER_UNIT", '{"geocoding": 0.01, "map_load": 0}')

        settings = Settings()

        assert settings.cache_max_size == 25
        assert settings.cache_default_ttl_seconds == 120
        assert settings.daily_budget == 12.5
        assert settings.singleflight_enabled is False
        assert settings.cost_overrides() == {
            UsageCategory.GEOCODING: 0.01,
            UsageCategory.MAP_LOAD: 0.0,
        }

    def test_redact_fields_comma_separated(self, monkeypatch) -> None:
        monkeypatch.setenv("REDACT_LOG_FIELDS", "key, authorization ,")
        assert Settings().redact_log_fields == ["key", "authorization"]

    def test_unknown_cost_category_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("COST_PER_UNIT", '{"street_view": 0.01}')
        with pytest.raises(ValidationError):
            Settings()

    def test_negative_cost_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("COST_PER_UNIT", '{"geocoding": -1}')
        with pytest.raises(ValidationError):
            Settings()

    @pytest.mark.parametrize(
        "name, value",
        [
            ("CACHE_MAX_SIZE", "0"),
            ("CACHE_DEFAULT_TTL_SECONDS", "-1"),
            ("DAILY_BUDGET", "-5"),
        ],
    )
    def test_invalid_limits_rejected(self, monkeypatch, name: str, value: str) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings()


class TestLoadSettings:
    def test_returns_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("CACHE_MAX_SIZE", "9")
        assert load_settings().cache_max_size == 9

    def test_wraps_validation_errors(self, monkeypatch) -> None:
        monkeypatch.setenv("CACHE_MAX_SIZE", "0")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

        assert exc_info.value.config_key == "CACHE_MAX_SIZE"
        assert isinstance(exc_info.value.__cause__, ValidationError)
