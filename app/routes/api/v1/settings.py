from flask import Blueprint, jsonify, request

from app.services import SettingsService

api_settings_bp = Blueprint("api_settings", __name__)


@api_settings_bp.get("/payouts")
def payout_settings():
    return jsonify(SettingsService.get_payout_settings().to_dict())


@api_settings_bp.put("/payouts")
def update_payout_settings():
    payload = request.get_json(silent=True) or {}
    settings = SettingsService.update_payout_settings(
        payout_frequency=payload.get("payout_frequency"),
        minimum_threshold=payload.get("minimum_threshold"),
        currency=payload.get("currency"),
        auto_process=payload.get("auto_process"),
        updated_by=payload.get("updated_by"),
    )
    return jsonify(settings.to_dict())
