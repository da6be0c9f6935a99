from flask import Blueprint, jsonify, request

from app.extensions import limiter
from app.routes.api.v1.serializers import payment_payload
from app.services import PaymentService

api_payment_bp = Blueprint("api_payment", __name__)


@api_payment_bp.post("/webhook")
@limiter.limit("60 per minute")
def gateway_webhook():
    payload = request.get_json(silent=True) or {}
    payment = PaymentService.apply_gateway_status(payload.get("payment_reference"), payload.get("status"))
    return jsonify(payment_payload(payment))


@api_payment_bp.get("/<reference>")
def get_payment(reference):
    return jsonify(payment_payload(PaymentService.get_by_reference(reference)))
