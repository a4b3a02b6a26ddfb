"""Tests for configuration loading."""

import pytest

from finledger.config import LedgerSettings, get_settings, validate_all_settings
from finledger.config.settings import NANOS_PER_HOUR


class TestLedgerSettings:
    """Tests for ledger policy settings."""

    def test_defaults(self):
        settings = LedgerSettings(_env_file=None)
        assert settings.invite_expiry_hours == 72
        assert settings.invite_expiry_ns == 72 * NANOS_PER_HOUR
        assert settings.budget_admin_only is True
        assert "Food" in settings.default_categories_list

    def test_seed_lists_are_trimmed(self):
        settings = LedgerSettings(default_payment_methods=" Cash , ,Card ")
        assert settings.default_payment_methods_list == ["Cash", "Card"]

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("LEDGER_INVITE_EXPIRY_HOURS", "12")
        monkeypatch.setenv("LEDGER_BUDGET_ADMIN_ONLY", "false")
        settings = LedgerSettings()
        assert settings.invite_expiry_hours == 12
        assert settings.budget_admin_only is False

    def test_invalid_threshold_is_rejected(self):
        with pytest.raises(ValueError):
            LedgerSettings(default_budget_warning_threshold=150)

    def test_username_minimum_cannot_drop_below_three(self):
        with pytest.raises(ValueError):
            LedgerSettings(min_username_length=2)

    def test_trend_cap(self):
        assert LedgerSettings(_env_file=None).max_trend_months == 120
        with pytest.raises(ValueError):
            LedgerSettings(max_trend_months=0)


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_missing_sheets_configuration_is_reported(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()

        assert results["ledger"] is True
        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results
