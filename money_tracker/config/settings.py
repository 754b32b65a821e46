"""
Configuration Management for Money Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Limits, reserved labels and storage location are visible in one place
and validated when first loaded.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Durable key-value store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MONEY_TRACKER_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        pattern="^(json|memory)$",
        description="Store backend: 'json' (one file per key) or 'memory'"
    )
    data_dir: Path = Field(
        default=Path("money_tracker_data"),
        description="Directory holding the JSON store files"
    )
    write_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a file replace that hits a PermissionError"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONEY_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Built-in type labels (reserved, cannot be used as tag names)
    income_label: str = Field(
        default="Income",
        min_length=1,
        description="Label shown for untagged income rows"
    )
    expense_label: str = Field(
        default="Expense",
        min_length=1,
        description="Label shown for untagged expense rows"
    )

    # Amount parsing
    strict_amounts: bool = Field(
        default=False,
        description="Reject decimal input instead of stripping the decimal point"
    )

    # Field limits
    max_name_length: int = Field(default=8, ge=1)
    max_item_length: int = Field(default=12, ge=1)
    max_tag_length: int = Field(default=4, ge=1)

    # Period navigation lower bound
    min_year: int = Field(
        default=2000,
        ge=1900,
        description="Earliest year that can be selected"
    )

    export_prefix: str = Field(
        default="money-tracker",
        min_length=1,
        description="Prefix of exported file names"
    )

    @field_validator('export_prefix')
    @classmethod
    def validate_export_prefix(cls, v: str) -> str:
        """Exported file names must not contain path separators."""
        if "/" in v or "\\" in v:
            raise ValueError("export_prefix must not contain path separators")
        return v

    @property
    def reserved_labels(self) -> tuple[str, str]:
        """Labels a custom tag may not use."""
        return (self.income_label, self.expense_label)


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MONEY_TRACKER_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (console renderer otherwise)"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def store(self) -> StoreSettings:
        return StoreSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("store", "app", "logging"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
