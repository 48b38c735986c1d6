"""
Configuration Management for the Expense Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Thresholds, page sizes, timeouts and notification durations live in one
place so the engines never hard-code them.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets ledger store configuration."""

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

    # Sheet names within the spreadsheet
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expenses"
    )
    budgets_sheet_name: str = Field(
        default="Budgets",
        description="Name of the sheet for budgets"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Name of the sheet for categories"
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


class LedgerSettings(BaseSettings):
    """
    Main ledger settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Currencies (amounts are always stored as USD base-cents)
    default_display_currency: str = Field(
        default="USD",
        description="Display currency used when the user has not chosen one"
    )

    # Budget thresholds
    warning_threshold_percent: float = Field(
        default=80.0,
        gt=0.0,
        description="Percentage of the limit at which a budget enters WARNING"
    )
    exceeded_threshold_percent: float = Field(
        default=100.0,
        gt=0.0,
        description="Percentage of the limit at which a budget is EXCEEDED"
    )

    # Listing
    default_page_size: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Expenses per page in the expense list"
    )
    recent_expenses_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of recent expenses shown on the dashboard"
    )
    max_description_length: int = Field(
        default=200,
        ge=1,
        description="Maximum expense description length"
    )

    # Store calls
    store_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Timeout applied to every ledger store call"
    )

    # Notification display durations (ms)
    exceeded_duration_ms: int = Field(default=8000, ge=0)
    warning_duration_ms: int = Field(default=6000, ge=0)
    summary_exceeded_duration_ms: int = Field(default=10000, ge=0)
    summary_warning_duration_ms: int = Field(default=8000, ge=0)

    @model_validator(mode='after')
    def validate_thresholds(self) -> 'LedgerSettings':
        """The warning band must sit below the exceeded threshold."""
        if self.warning_threshold_percent >= self.exceeded_threshold_percent:
            raise ValueError(
                "warning_threshold_percent must be below exceeded_threshold_percent"
            )
        return self


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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()


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

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    return results
