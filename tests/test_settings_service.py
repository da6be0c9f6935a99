from decimal import Decimal

import pytest

from app.errors import AppError, InvalidAmount
from app.extensions import db
from app.models import PlatformSetting
from app.services.settings_service import THRESHOLD_CURRENCY_KEY, THRESHOLD_KEY, SettingsService


class TestPayoutSettings:
    def test_defaults_come_from_config(self, app):
        settings = SettingsService.get_payout_settings()
        assert settings.payout_frequency == "weekly"
        assert settings.minimum_threshold.amount == Decimal("5000")
        assert settings.minimum_threshold.currency == "NGN"
        assert settings.auto_process is False

    def test_update_persists_and_records_editor(self, app):
        settings = SettingsService.update_payout_settings(
            payout_frequency="Monthly",
            minimum_threshold="2500.505",
            auto_process="true",
            updated_by=42,
        )
        assert settings.payout_frequency == "monthly"
        assert settings.minimum_threshold.amount == Decimal("2500.51")
        assert settings.auto_process is True
        assert db.session.get(PlatformSetting, THRESHOLD_KEY).updated_by == 42

    def test_invalid_update_changes_nothing(self, app):
        with pytest.raises(AppError):
            SettingsService.update_payout_settings(minimum_threshold="100", payout_frequency="hourly")
        assert SettingsService.get_payout_settings().minimum_threshold.amount == Decimal("5000")

    def test_negative_threshold(self, app):
        with pytest.raises(InvalidAmount):
            SettingsService.update_payout_settings(minimum_threshold="-1")

    def test_corrupt_stored_threshold_falls_back(self, app):
        SettingsService.set_setting(THRESHOLD_KEY, "lots")
        assert SettingsService.get_payout_settings().minimum_threshold.amount == Decimal("5000")

    def test_corrupt_stored_currency_falls_back(self, app, caplog):
        SettingsService.set_setting(THRESHOLD_CURRENCY_KEY, "naira")
        settings = SettingsService.get_payout_settings()
        assert settings.minimum_threshold.currency == "NGN"
        assert settings.minimum_threshold.amount == Decimal("5000")
        assert "invalid currency code" in caplog.text

    def test_to_dict(self, app):
        assert SettingsService.get_payout_settings().to_dict() == {
            "payout_frequency": "weekly",
            "minimum_threshold": {"amount": "5000.00", "currency": "NGN"},
            "auto_process": False,
        }
