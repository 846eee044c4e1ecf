from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices, ValidationError, field_validator
from typing import Dict, Optional, List, Union

from .constants import (
    AUTOCOMPLETE_MAX_SESSIONS,
    AUTOCOMPLETE_SESSION_TTL_SECONDS,
    DEFAULT_CACHE_CLEANUP_INTERVAL_SECONDS,
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_DAILY_BUDGET,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_LEDGER_FLUSH_INTERVAL_SECONDS,
    DEFAULT_MAPS_BASE_URL,
    DEFAULT_SNAPSHOT_INTERVAL_SECONDS,
    DEFAULT_SNAPSHOT_MAX_AGE_SECONDS,
    DEFAULT_SNAPSHOT_MAX_ENTRIES,
)
from .domain.exceptions import ConfigurationError
from .enums import UsageCategory


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", env_prefix="", case_sensitive=False
    )

    app_name: str = "mapscache"
    app_version: str = "1.0.0"
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    log_file_path: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("LOG_FILE_PATH")
    )
    error_log_file_path: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ERROR_LOG_FILE_PATH")
    )
    log_pretty_console: bool = Field(
        default=False, validation_alias=AliasChoices("LOG_PRETTY_CONSOLE")
    )
    redact_log_fields: Union[List[str], str] = Field(
        default_factory=lambda: ["google_maps_api_key", "key"],
        validation_alias=AliasChoices("REDACT_LOG_FIELDS"),
    )
    host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("HOST"))
    port: int = Field(default=8080, validation_alias=AliasChoices("PORT"))

    # Maps provider
    google_maps_api_key: str = Field(
        default="", validation_alias=AliasChoices("GOOGLE_MAPS_API_KEY")
    )
    maps_base_url: str = Field(
        default=DEFAULT_MAPS_BASE_URL, validation_alias=AliasChoices("MAPS_BASE_URL")
    )
    http_timeout_seconds: float = Field(
        default=DEFAULT_HTTP_TIMEOUT_SECONDS,
        gt=0,
        validation_alias=AliasChoices("HTTP_TIMEOUT_SECONDS"),
    )
    pool_max_keepalive_connections: int = Field(
        default=20, validation_alias=AliasChoices("POOL_MAX_KEEPALIVE_CONNECTIONS")
    )
    pool_max_connections: int = Field(
        default=100, validation_alias=AliasChoices("POOL_MAX_CONNECTIONS")
    )
    pool_keepalive_expiry: float = Field(
        default=60.0, validation_alias=AliasChoices("POOL_KEEPALIVE_EXPIRY")
    )

    # Cache store
    cache_max_size: int = Field(
        default=DEFAULT_CACHE_MAX_SIZE,
        gt=0,
        validation_alias=AliasChoices("CACHE_MAX_SIZE"),
    )
    cache_default_ttl_seconds: float = Field(
        default=DEFAULT_CACHE_TTL_SECONDS,
        gt=0,
        validation_alias=AliasChoices("CACHE_DEFAULT_TTL_SECONDS"),
    )
    cache_cleanup_interval_seconds: float = Field(
        default=DEFAULT_CACHE_CLEANUP_INTERVAL_SECONDS,
        gt=0,
        validation_alias=AliasChoices("CACHE_CLEANUP_INTERVAL_SECONDS"),
    )

    # Cache snapshots
    cache_snapshot_path: Optional[str] = Field(
        default=".mapscache/cache.json",
        validation_alias=AliasChoices("CACHE_SNAPSHOT_PATH"),
    )
    cache_snapshot_max_entries: int = Field(
        default=DEFAULT_SNAPSHOT_MAX_ENTRIES,
        ge=0,
        validation_alias=AliasChoices("CACHE_SNAPSHOT_MAX_ENTRIES"),
    )
    cache_snapshot_max_age_seconds: float = Field(
        default=DEFAULT_SNAPSHOT_MAX_AGE_SECONDS,
        gt=0,
        validation_alias=AliasChoices("CACHE_SNAPSHOT_MAX_AGE_SECONDS"),
    )
    cache_snapshot_interval_seconds: float = Field(
        default=DEFAULT_SNAPSHOT_INTERVAL_SECONDS,
        gt=0,
        validation_alias=AliasChoices("CACHE_SNAPSHOT_INTERVAL_SECONDS"),
    )

    # Usage ledger
    ledger_path: Optional[str] = Field(
        default=".mapscache/usage.json", validation_alias=AliasChoices("LEDGER_PATH")
    )
    ledger_flush_interval_seconds: float = Field(
        default=DEFAULT_LEDGER_FLUSH_INTERVAL_SECONDS,
        ge=0,
        validation_alias=AliasChoices("LEDGER_FLUSH_INTERVAL_SECONDS"),
    )
    daily_budget: float = Field(
        default=DEFAULT_DAILY_BUDGET,
        ge=0,
        validation_alias=AliasChoices("DAILY_BUDGET"),
    )
    cost_per_unit: Dict[str, float] = Field(
        default_factory=dict, validation_alias=AliasChoices("COST_PER_UNIT")
    )

    singleflight_enabled: bool = Field(
        default=True, validation_alias=AliasChoices("SINGLEFLIGHT_ENABLED")
    )
    autocomplete_max_sessions: int = Field(
        default=AUTOCOMPLETE_MAX_SESSIONS,
        gt=0,
        validation_alias=AliasChoices("AUTOCOMPLETE_MAX_SESSIONS"),
    )
    autocomplete_session_ttl_seconds: float = Field(
        default=AUTOCOMPLETE_SESSION_TTL_SECONDS,
        gt=0,
        validation_alias=AliasChoices("AUTOCOMPLETE_SESSION_TTL_SECONDS"),
    )

    @field_validator("redact_log_fields")
    @classmethod
    def parse_comma_separated(cls, v: Union[List[str], str]) -> List[str]:
        """Parse comma-separated string values into lists for configuration fields.

        Handles both string inputs (splitting by commas) and already-list inputs.
        Empty strings are converted to empty lists.
        """
        if isinstance(v, str):
            if v.strip() == "":
                return []
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("cost_per_unit")
    @classmethod
    def validate_cost_categories(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Reject cost overrides for unknown categories or negative prices."""
        known = {c.value for c in UsageCategory}
        unknown = sorted(set(v) - known)
        if unknown:
            raise ValueError(
                f"Unknown usage categories in COST_PER_UNIT: {', '.join(unknown)}"
            )
        negative = sorted(k for k, cost in v.items() if cost < 0)
        if negative:
            raise ValueError(
                f"Negative costs in COST_PER_UNIT: {', '.join(negative)}"
            )
        return v

    def cost_overrides(self) -> Dict[UsageCategory, float]:
        """Return the configured cost overrides keyed by category."""
        return {UsageCategory(k): cost for k, cost in self.cost_per_unit.items()}


def load_settings() -> Settings:
    """Load settings from the environment, reporting the first invalid key."""
    try:
        return Settings()
    except ValidationError as e:
        errors = e.errors()
        config_key = None
        if errors and errors[0].get("loc"):
            config_key = str(errors[0]["loc"][0]).upper()
        raise ConfigurationError(
            f"Invalid configuration: {e}",
            config_key=config_key,
            details={"errors": len(errors)},
        ) from e
