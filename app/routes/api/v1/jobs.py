from flask import Blueprint, jsonify, request

from app.routes.api.v1.serializers import history_payload, job_payload, payment_payload, payout_payload
from app.services import JobService, PaymentService, QuoteService, SettlementService

api_job_bp = Blueprint("api_job", __name__)


@api_job_bp.post("")
def create_job():
    payload = request.get_json(silent=True) or {}
    job = JobService.create_job(
        customer_id=payload.get("customer_id"),
        repair_center_id=payload.get("repair_center_id"),
        appliance_type=payload.get("appliance_type"),
        description=payload.get("description"),
        estimated_cost=payload.get("estimated_cost"),
        currency=payload.get("currency"),
        pickup_address=payload.get("pickup_address"),
        delivery_address=payload.get("delivery_address"),
        request_quote=payload.get("request_quote", True),
    )
    return jsonify(job_payload(job)), 201


@api_job_bp.get("/<int:job_id>")
def get_job(job_id):
    return jsonify(job_payload(JobService.get_job(job_id)))


@api_job_bp.get("/<int:job_id>/history")
def job_history(job_id):
    return jsonify([history_payload(entry) for entry in JobService.status_history(job_id)])


@api_job_bp.patch("/<int:job_id>/status")
def update_status(job_id):
    payload = request.get_json(silent=True) or {}
    job = JobService.transition_job(
        job_id,
        payload.get("status"),
        expected_version=payload.get("version"),
        final_cost=payload.get("final_cost"),
        notes=payload.get("notes"),
    )
    return jsonify(job_payload(job))


@api_job_bp.post("/<int:job_id>/confirmations")
def confirm_completion(job_id):
    payload = request.get_json(silent=True) or {}
    job = JobService.confirm_completion(
        job_id,
        payload.get("confirmation_type"),
        rating=payload.get("satisfaction_rating"),
        feedback=payload.get("satisfaction_feedback"),
    )
    return jsonify(job_payload(job))


@api_job_bp.post("/<int:job_id>/quote")
def issue_quote(job_id):
    payload = request.get_json(silent=True) or {}
    job = QuoteService.issue_quote(job_id, payload.get("quoted_cost"), notes=payload.get("quote_notes"))
    return jsonify(job_payload(job))


@api_job_bp.post("/<int:job_id>/quote/respond")
def respond_to_quote(job_id):
    payload = request.get_json(silent=True) or {}
    job = QuoteService.respond(job_id, payload.get("response"), customer_notes=payload.get("customer_notes"))
    return jsonify(job_payload(job))


@api_job_bp.get("/<int:job_id>/quote/breakdown")
def quote_breakdown(job_id):
    return jsonify(QuoteService.quote_breakdown(job_id))


@api_job_bp.post("/<int:job_id>/payments")
def record_payment(job_id):
    payload = request.get_json(silent=True) or {}
    payment = PaymentService.record_payment(
        job_id,
        payload.get("payment_reference"),
        payload.get("amount"),
        currency=payload.get("currency"),
    )
    return jsonify(payment_payload(payment)), 201


@api_job_bp.post("/<int:job_id>/settle")
def settle_payment(job_id):
    payload = request.get_json(silent=True) or {}
    record = SettlementService.settle_job_payment(job_id, payload.get("payment_reference"))
    return jsonify(payout_payload(record)), 201


@api_job_bp.post("/<int:job_id>/payout")
def materialize_payout(job_id):
    payload = request.get_json(silent=True) or {}
    record = SettlementService.materialize_payout(job_id, payload.get("gross_amount"))
    return jsonify(payout_payload(record)), 201
