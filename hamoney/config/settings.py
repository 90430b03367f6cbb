"""
Configuration Management for HaMoney

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine itself needs very little (a tolerance, a few storage keys),
but the storage backends need credentials and paths, and all of it
should be validated at startup rather than on first use.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Split engine settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="HAMONEY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Reconciliation
    amount_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        le=1,
        description="Tolerance for percentage and amount sum checks"
    )

    # Debts
    default_due_days: int = Field(
        default=7,
        ge=0,
        le=365,
        description="Days until a newly recorded debt is due"
    )
    currency_symbol: str = Field(
        default="HK$",
        description="Currency symbol used in summaries"
    )

    # Persistence keys
    ledger_key: str = Field(
        default="debts",
        min_length=1,
        description="Key under which the debt entries are stored"
    )
    payments_key: str = Field(
        default="payments",
        min_length=1,
        description="Key under which repayment records are stored"
    )
    audit_key: str = Field(
        default="audit_log",
        min_length=1,
        description="Key under which audit events are stored"
    )
    max_audit_events: int = Field(
        default=1000,
        ge=0,
        description="Audit events kept in storage (oldest dropped first)"
    )


class StorageSettings(BaseSettings):
    """Which persistence backend to use, and where."""

    model_config = SettingsConfigDict(
        env_prefix="HAMONEY_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="memory",
        pattern="^(memory|json_file|google_sheets)$",
        description="Storage backend"
    )
    data_dir: str = Field(
        default="data",
        description="Directory for the json_file backend"
    )
    key_prefix: str = Field(
        default="hamoney_",
        description="Prefix applied to every storage key"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    storage_sheet_name: str = Field(
        default="Storage",
        description="Name of the key-value worksheet"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


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

    # Sub-settings are loaded lazily so Google Sheets credentials
    # are only required when that backend is actually used.

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()


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
    Google Sheets is only checked when it is the selected backend.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.engine
        results["engine"] = True
    except Exception as e:
        results["engine"] = False
        results["engine_error"] = str(e)

    try:
        storage = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)
        return results

    if storage.backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    return results
