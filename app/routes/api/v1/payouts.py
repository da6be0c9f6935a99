from flask import Blueprint, jsonify, request

from app.errors import AppError
from app.extensions import limiter
from app.routes.api.v1.serializers import money_str, payout_payload
from app.services import PayoutService, SettingsService, SettlementService

api_payout_bp = Blueprint("api_payout", __name__)


def _payout_ids(raw):
    if not isinstance(raw, list):
        raise AppError("payout_ids must be a list of payout IDs.", 400)
    ids = []
    for item in raw:
        try:
            ids.append(int(item))
        except (TypeError, ValueError) as exc:
            raise AppError(f"Invalid payout ID: {item!r}.", 400) from exc
    return ids


@api_payout_bp.get("/<int:payout_id>")
def get_payout(payout_id):
    return jsonify(payout_payload(SettlementService.get_payout(payout_id)))


@api_payout_bp.get("/eligible")
def eligible_payouts():
    settings = SettingsService.get_payout_settings()
    records = PayoutService.list_eligible(settings)
    return jsonify(
        {
            "settings": settings.to_dict(),
            "payouts": [payout_payload(record) for record in records],
        }
    )


@api_payout_bp.get("/summary")
def payout_summary():
    settings = SettingsService.get_payout_settings()
    summary = PayoutService.summarize_by_center(PayoutService.list_eligible(settings), settings)
    return jsonify(
        [{**entry, "total_pending_net": money_str(entry["total_pending_net"])} for entry in summary]
    )


@api_payout_bp.post("/<int:payout_id>/process")
@limiter.limit("30 per minute")
def process_payout(payout_id):
    payload = request.get_json(silent=True) or {}
    record = PayoutService.process_single(
        payout_id,
        payload.get("payout_reference"),
        method=payload.get("payout_method"),
        notes=payload.get("notes"),
    )
    return jsonify(payout_payload(record))


@api_payout_bp.post("/batch")
@limiter.limit("10 per minute")
def process_batch():
    payload = request.get_json(silent=True) or {}
    result = PayoutService.process_batch(
        _payout_ids(payload.get("payout_ids")),
        payload.get("batch_reference"),
        method=payload.get("payout_method"),
        notes=payload.get("notes"),
    )
    return jsonify(result.to_dict())


@api_payout_bp.post("/<int:payout_id>/dispute")
def raise_dispute(payout_id):
    payload = request.get_json(silent=True) or {}
    record = SettlementService.raise_dispute(payout_id, payload.get("reason"), notes=payload.get("notes"))
    return jsonify(payout_payload(record))


@api_payout_bp.post("/<int:payout_id>/retry")
def retry_payout(payout_id):
    return jsonify(payout_payload(PayoutService.retry_payout(payout_id)))
