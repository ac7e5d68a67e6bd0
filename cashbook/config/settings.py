"""
Configuration Management for Cashbook

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see where data is written and ensures
configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CASHBOOK_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        pattern="^(json|memory)$",
        description="Where records live: a JSON file, or memory only"
    )
    data_dir: str = Field(
        default=".cashbook",
        description="Directory holding the storage slot and audit log"
    )
    slot_name: str = Field(
        default="daily_cash_records",
        min_length=1,
        description="Name of the storage slot holding the record collection"
    )
    audit_log_name: str = Field(
        default="audit_log",
        min_length=1,
        description="Name of the append-only audit log file"
    )
    fsync: bool = Field(
        default=True,
        description="fsync the slot before replacing it"
    )

    @field_validator("slot_name", "audit_log_name")
    @classmethod
    def validate_plain_name(cls, v: str) -> str:
        """Slot names become file names, so no path separators."""
        if "/" in v or "\\" in v or v in {".", ".."}:
            raise ValueError(f"Invalid storage name: {v!r}")
        return v

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    @property
    def slot_path(self) -> Path:
        return self.data_path / f"{self.slot_name}.json"

    @property
    def audit_log_path(self) -> Path:
        return self.data_path / f"{self.audit_log_name}.jsonl"


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CASHBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Input handling
    strict_numeric_input: bool = Field(
        default=False,
        description="Reject non-numeric amounts instead of treating them as zero"
    )

    # Validation thresholds
    max_amount_warning: float = Field(
        default=1000000.0,
        gt=0,
        description="Amounts above this are flagged for a second look"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future a count date can be"
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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


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

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
