from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from flask import current_app

from app.errors import AppError, InvalidAmount
from app.extensions import db
from app.models import PlatformSetting
from app.services.money import Money, round_money

PAYOUT_FREQUENCIES = ("daily", "weekly", "biweekly", "monthly")

FREQUENCY_KEY = "payout_frequency"
THRESHOLD_KEY = "payout_minimum_threshold"
THRESHOLD_CURRENCY_KEY = "payout_threshold_currency"
AUTO_PROCESS_KEY = "payout_auto_process"


@dataclass(frozen=True)
class PayoutSettings:
    """Payout configuration, read once per payout run and passed along explicitly."""

    payout_frequency: str
    minimum_threshold: Money
    auto_process: bool

    def to_dict(self):
        return {
            "payout_frequency": self.payout_frequency,
            "minimum_threshold": {
                "amount": str(round_money(self.minimum_threshold.amount)),
                "currency": self.minimum_threshold.currency,
            },
            "auto_process": self.auto_process,
        }


def _parse_bool(raw):
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


class SettingsService:
    @staticmethod
    def get_setting(key, default=None):
        setting = db.session.get(PlatformSetting, key)
        if not setting:
            return default
        return setting.value

    @staticmethod
    def get_decimal(key, default):
        raw = SettingsService.get_setting(key, str(default))
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            current_app.logger.warning("Setting %s has a non-numeric value %r; using default.", key, raw)
            return Decimal(str(default))

    @staticmethod
    def get_currency(key, default):
        raw = SettingsService.get_setting(key, default)
        try:
            return Money.zero(raw).currency
        except AppError:
            current_app.logger.warning("Setting %s has an invalid currency code %r; using default.", key, raw)
            return Money.zero(default).currency

    @staticmethod
    def set_setting(key, value, updated_by=None):
        setting = db.session.get(PlatformSetting, key)
        if setting:
            setting.value = str(value)
            setting.updated_by = updated_by
        else:
            setting = PlatformSetting(key=key, value=str(value), updated_by=updated_by)
            db.session.add(setting)
        return setting

    @staticmethod
    def get_payout_settings():
        config = current_app.config
        currency = SettingsService.get_currency(THRESHOLD_CURRENCY_KEY, config["DEFAULT_CURRENCY"])
        threshold = SettingsService.get_decimal(THRESHOLD_KEY, config["PAYOUT_MINIMUM_THRESHOLD"])
        return PayoutSettings(
            payout_frequency=SettingsService.get_setting(FREQUENCY_KEY, config["PAYOUT_FREQUENCY"]),
            minimum_threshold=Money(threshold, currency),
            auto_process=_parse_bool(SettingsService.get_setting(AUTO_PROCESS_KEY, config["PAYOUT_AUTO_PROCESS"])),
        )

    @staticmethod
    def update_payout_settings(
        payout_frequency=None,
        minimum_threshold=None,
        currency=None,
        auto_process=None,
        updated_by=None,
    ):
        changes = {}
        if payout_frequency is not None:
            payout_frequency = str(payout_frequency).strip().lower()
            if payout_frequency not in PAYOUT_FREQUENCIES:
                raise AppError(f"Payout frequency must be one of: {', '.join(PAYOUT_FREQUENCIES)}.", 400)
            changes[FREQUENCY_KEY] = payout_frequency
        if minimum_threshold is not None:
            threshold = round_money(minimum_threshold)
            if threshold < 0:
                raise InvalidAmount("Minimum payout threshold cannot be negative.")
            changes[THRESHOLD_KEY] = threshold
        if currency is not None:
            changes[THRESHOLD_CURRENCY_KEY] = Money.zero(currency).currency
        if auto_process is not None:
            changes[AUTO_PROCESS_KEY] = "true" if _parse_bool(auto_process) else "false"

        for key, value in changes.items():
            SettingsService.set_setting(key, value, updated_by)
        db.session.commit()
        return SettingsService.get_payout_settings()
