"""
Configuration Management for the Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

Only the bootstrap factory (expense_tracker.orchestrator.create_tracker)
reads settings. The store, aggregator and validator take explicit
arguments so they can be built in tests without an environment.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local SQLite database configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_DB_",
        extra="ignore"
    )
    
    path: str = Field(
        default="MyExpenseTracker.db",
        description="Path to the SQLite database file (':memory:' for a throwaway store)"
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )
    
    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject a path whose parent directory does not exist."""
        if v != ":memory:":
            parent = Path(v).expanduser().parent
            if not parent.exists():
                raise ValueError(f"Database directory does not exist: {parent}")
        return v
    
    @property
    def url(self) -> str:
        """SQLAlchemy async URL for the configured database."""
        if self.path == ":memory:":
            return "sqlite+aiosqlite:///:memory:"
        return f"sqlite+aiosqlite:///{Path(self.path).expanduser()}"


class AppSettings(BaseSettings):
    """
    Main application settings.
    
    Loads configuration from environment variables and .env file.
    """
    
    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    # Validation thresholds
    max_expense_amount: Decimal = Field(
        default=Decimal("100000"),
        gt=0,
        description="Amounts above this are flagged for a second look"
    )
    future_date_tolerance_days: int = Field(
        default=0,
        ge=0,
        description="How many days in the future an expense date can be"
    )
    max_description_length: int = Field(
        default=500,
        ge=1,
        description="Maximum length of an expense description"
    )
    
    currency_symbol: str = Field(
        default="S$",
        description="Currency symbol shown next to amounts"
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
    def storage(self) -> StorageSettings:
        return StorageSettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.
    
    Returns a dict of {setting_name: is_valid}, with a
    "<setting_name>_error" entry for each failure.
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
