"""
Configuration Management for the Finance Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Policy constants the service contract leaves open (invite expiry window,
who may manage budgets and registries, username length) live here too,
so a deployment states them explicitly instead of relying on hidden defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


NANOS_PER_HOUR = 3_600 * 1_000_000_000


class LedgerSettings(BaseSettings):
    """Ledger policy configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Invites
    invite_expiry_hours: int = Field(
        default=72,
        ge=1,
        le=24 * 90,
        description="How long an invite token stays valid after issuance"
    )
    invite_token_bytes: int = Field(
        default=24,
        ge=16,
        le=64,
        description="Random bytes per invite token"
    )
    invite_generation_attempts: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Attempts to draw a unique token before giving up"
    )
    max_outstanding_invites: int = Field(
        default=1000,
        ge=1,
        description="Unused, unexpired invites allowed at once"
    )

    # Identity
    min_username_length: int = Field(
        default=3,
        ge=3,
        description="Shortest username accepted on invite acceptance"
    )
    bootstrap_admin_principal: Optional[str] = Field(
        default=None,
        description="Principal registered as the first Admin"
    )
    bootstrap_admin_username: str = Field(
        default="admin",
        min_length=3,
        description="Username of the bootstrap Admin"
    )

    # Access policy
    budget_admin_only: bool = Field(
        default=True,
        description="Only Admins may set or delete budgets"
    )
    registry_admin_only: bool = Field(
        default=True,
        description="Only Admins may manage categories and payment methods"
    )

    # Budgets
    default_budget_warning_threshold: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Alert threshold for users without notification settings"
    )
    max_trend_months: int = Field(
        default=120,
        ge=1,
        le=1200,
        description="Longest window a spending trend covers; larger requests are capped"
    )

    # Seed data
    default_categories: str = Field(
        default="Food,Transport,Housing,Utilities,Entertainment,Health,Other",
        description="Comma-separated categories registered at initialization"
    )
    default_payment_methods: str = Field(
        default="Cash,Credit Card,Debit Card,Bank Transfer",
        description="Comma-separated payment methods registered at initialization"
    )

    @property
    def invite_expiry_ns(self) -> int:
        """Invite window in nanoseconds."""
        return self.invite_expiry_hours * NANOS_PER_HOUR

    @property
    def default_categories_list(self) -> list[str]:
        """Get seed categories as a list."""
        return [c.strip() for c in self.default_categories.split(",") if c.strip()]

    @property
    def default_payment_methods_list(self) -> list[str]:
        """Get seed payment methods as a list."""
        return [m.strip() for m in self.default_payment_methods.split(",") if m.strip()]


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets audit sink configuration."""

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
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the service."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging and audit
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for structured logs"
    )
    audit_to_sheets: bool = Field(
        default=False,
        description="Persist audit events to Google Sheets"
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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
