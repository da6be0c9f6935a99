from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from app.errors import (
    AlreadyDisputed,
    AppError,
    ConcurrentModification,
    CurrencyMismatch,
    InvalidAmount,
    InvalidState,
    PaymentNotConfirmed,
)
from app.extensions import db
from app.models import Payment, PayoutRecord
from app.models.base import utcnow
from app.services.collaborators import PAYMENT_COMPLETED, dispatch_events, get_collaborators
from app.services.events import DisputeRaised, PayoutMaterialized
from app.services.job_service import JobService
from app.services.job_state import JobStatus
from app.services.money import Money, round_money, split_payout

DISPUTED = "disputed"


def settlement_period(moment):
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


class SettlementService:
    @staticmethod
    def get_payout(payout_id):
        record = db.session.get(PayoutRecord, payout_id)
        if not record:
            raise AppError(f"Payout #{payout_id} not found.", 404)
        return record

    @staticmethod
    def _verified(reference):
        verifier = get_collaborators().payment_verifier
        try:
            status = verifier.verify_payment(reference)
        except Exception as exc:
            current_app.logger.warning("Payment verification failed for %s: %s", reference, exc)
            raise PaymentNotConfirmed(f"Payment {reference} could not be verified.") from exc
        if status != PAYMENT_COMPLETED:
            raise PaymentNotConfirmed(f"Payment {reference} is {status}.")

    @staticmethod
    def _require_payable(job):
        if job.status == JobStatus.CANCELLED.value:
            raise InvalidState(f"Job #{job.id} is cancelled and cannot be paid out.")
        if job.final_cost is None:
            raise InvalidState(f"Job #{job.id} has no final cost yet.")

    @staticmethod
    def _confirmed_payment(job, payment_id=None):
        query = job.payments.filter(Payment.payment_status == PAYMENT_COMPLETED)
        if payment_id is not None:
            query = query.filter(Payment.id == payment_id)
        payment = query.order_by(Payment.id.desc()).first()
        if payment is None:
            raise PaymentNotConfirmed(f"Job #{job.id} has no completed payment.")
        SettlementService._verified(payment.payment_reference)
        return payment

    @staticmethod
    def settle_job_payment(job_id, payment_reference, now=None):
        """Verify the customer's payment and record what the repair center is owed."""
        now = now or utcnow()
        job = JobService.get_job(job_id)
        payment = Payment.query.filter_by(payment_reference=payment_reference, repair_job_id=job.id).first()
        if not payment:
            raise AppError(f"Payment {payment_reference} not found for job #{job.id}.", 404)
        SettlementService._require_payable(job)
        SettlementService._verified(payment_reference)

        if payment.payment_status != PAYMENT_COMPLETED:
            payment.payment_status = PAYMENT_COMPLETED
            payment.payment_date = now
            db.session.commit()
        return SettlementService.materialize_payout(job_id, job.final_cost, payment_id=payment.id, now=now)

    @staticmethod
    def materialize_payout(job_id, gross_amount, payment_id=None, now=None):
        """Create the payout record for a paid job, or return the one that already exists.

        The job must not be cancelled and must carry a completed payment that the
        payment verifier confirms.
        """
        now = now or utcnow()
        job = JobService.get_job(job_id)
        existing = PayoutRecord.query.filter_by(repair_job_id=job.id).first()
        if existing:
            return existing
        SettlementService._require_payable(job)
        payment = SettlementService._confirmed_payment(job, payment_id)

        if isinstance(gross_amount, Money):
            if gross_amount.currency != job.currency:
                raise CurrencyMismatch(f"Job #{job.id} is billed in {job.currency}, not {gross_amount.currency}.")
            gross_amount = gross_amount.amount
        gross = round_money(gross_amount)
        if gross <= 0:
            raise InvalidAmount("Payout gross amount must be greater than zero.")
        gross, commission_amount, net = split_payout(gross)

        record = PayoutRecord(
            repair_center_id=job.repair_center_id,
            repair_job_id=job.id,
            payment_id=payment.id,
            gross_amount=gross,
            commission_amount=commission_amount,
            net_amount=net,
            currency=job.currency,
            settlement_period=settlement_period(now),
            payout_status="pending",
        )
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            existing = PayoutRecord.query.filter_by(repair_job_id=job_id).first()
            if existing:
                return existing
            raise

        dispatch_events(
            [
                PayoutMaterialized(
                    occurred_at=now,
                    payout_id=record.id,
                    repair_job_id=record.repair_job_id,
                    repair_center_id=record.repair_center_id,
                    net_amount=str(net),
                    currency=record.currency,
                )
            ]
        )
        return record

    @staticmethod
    def raise_dispute(payout_id, reason, notes=None, now=None):
        now = now or utcnow()
        record = SettlementService.get_payout(payout_id)
        reason = (reason or "").strip()
        if not reason:
            raise AppError("Dispute reason is required.", 400)
        if record.is_disputed:
            raise AlreadyDisputed(f"Payout #{record.id} is already disputed.")
        if record.payout_status != "pending":
            raise InvalidState(f"Only pending payouts can be disputed; payout #{record.id} is {record.payout_status}.")

        result = db.session.execute(
            update(PayoutRecord)
            .where(
                PayoutRecord.id == record.id,
                PayoutRecord.payout_status == "pending",
                PayoutRecord.dispute_status.is_(None),
            )
            .values(
                dispute_status=DISPUTED,
                dispute_reason=reason,
                dispute_notes=(notes or "").strip() or None,
                disputed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise ConcurrentModification(f"Payout #{record.id} changed while raising the dispute.")
        db.session.commit()

        dispatch_events(
            [DisputeRaised(occurred_at=now, payout_id=record.id, repair_center_id=record.repair_center_id, reason=reason)]
        )
        return record
