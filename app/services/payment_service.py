from app.errors import AppError, CurrencyMismatch, InvalidAmount, InvalidState
from app.extensions import db
from app.models import Payment
from app.models.base import utcnow
from app.services.job_service import JobService
from app.services.money import Money, round_money

GATEWAY_STATUSES = {"completed", "failed"}


class PaymentService:
    @staticmethod
    def get_by_reference(reference):
        payment = Payment.query.filter_by(payment_reference=reference).first()
        if not payment:
            raise AppError(f"Payment {reference} not found.", 404)
        return payment

    @staticmethod
    def record_payment(job_id, reference, amount, currency=None):
        job = JobService.get_job(job_id)
        reference = (reference or "").strip()
        if not reference:
            raise AppError("Payment reference is required.", 400)
        if job.final_cost is None:
            raise InvalidState(f"Job #{job.id} has no final cost to pay yet.")

        amount = round_money(amount)
        if amount <= 0:
            raise InvalidAmount("Payment amount must be greater than zero.")
        currency = Money.zero(currency or job.currency).currency
        if currency != job.currency:
            raise CurrencyMismatch(f"Job #{job.id} is billed in {job.currency}, not {currency}.")

        existing = Payment.query.filter_by(payment_reference=reference).first()
        if existing:
            if existing.repair_job_id != job.id:
                raise AppError(f"Payment reference {reference} belongs to another job.", 409)
            return existing

        payment = Payment(
            repair_job_id=job.id,
            payment_reference=reference,
            amount=amount,
            currency=currency,
            payment_status="pending",
        )
        db.session.add(payment)
        db.session.commit()
        return payment

    @staticmethod
    def apply_gateway_status(reference, status, now=None):
        """Record the outcome reported by the payment gateway webhook."""
        status = (status or "").strip().lower()
        if status not in GATEWAY_STATUSES:
            raise AppError("Payment status must be completed or failed.", 400)
        payment = PaymentService.get_by_reference(reference)
        if payment.payment_status == status:
            return payment
        if payment.payment_status == "completed":
            raise InvalidState(f"Payment {reference} is already completed.")

        payment.payment_status = status
        if status == "completed":
            payment.payment_date = now or utcnow()
        db.session.commit()
        return payment
