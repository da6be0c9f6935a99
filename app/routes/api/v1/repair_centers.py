from flask import Blueprint, jsonify, request

from app.errors import AppError
from app.routes.api.v1.serializers import bank_account_payload
from app.services import BankAccountService

api_repair_center_bp = Blueprint("api_repair_center", __name__)


@api_repair_center_bp.get("/<int:center_id>/bank-account")
def get_bank_account(center_id):
    account = BankAccountService.active_account(center_id)
    if account is None:
        raise AppError(f"Repair center #{center_id} has no bank account on file.", 404)
    return jsonify(bank_account_payload(account))


@api_repair_center_bp.put("/<int:center_id>/bank-account")
def register_bank_account(center_id):
    payload = request.get_json(silent=True) or {}
    account = BankAccountService.register_account(
        center_id,
        payload.get("bank_name"),
        payload.get("account_number"),
        payload.get("account_name"),
    )
    return jsonify(bank_account_payload(account))
