from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from app.errors import (
    AppError,
    ConcurrentModification,
    InvalidAmount,
    InvalidState,
    InvalidTransition,
    PaymentNotConfirmed,
)
from app.extensions import db
from app.models import JobStatusHistory, Payment, RepairJob
from app.models.base import utcnow
from app.services.collaborators import dispatch_events
from app.services.events import JobTransitioned
from app.services.job_state import QUOTE_STATUSES, JobStatus, apply_transition, check_transition
from app.services.money import Money, round_money

CONFIRM_DEVICE_RETURNED = "device_returned"
CONFIRM_REPAIR_SATISFACTION = "repair_satisfaction"


class JobService:
    @staticmethod
    def get_job(job_id):
        job = db.session.get(RepairJob, job_id)
        if not job:
            raise AppError(f"Repair job #{job_id} not found.", 404)
        return job

    @staticmethod
    def create_job(
        customer_id,
        repair_center_id,
        appliance_type,
        description=None,
        estimated_cost=None,
        currency=None,
        pickup_address=None,
        delivery_address=None,
        request_quote=True,
    ):
        if customer_id is None or repair_center_id is None:
            raise AppError("Customer and repair center are required.", 400)
        appliance_type = (appliance_type or "").strip()
        if not appliance_type:
            raise AppError("Appliance type is required.", 400)

        if estimated_cost is not None:
            estimated_cost = round_money(estimated_cost)
            if estimated_cost < 0:
                raise InvalidAmount("Estimated cost cannot be negative.")

        job = RepairJob(
            customer_id=customer_id,
            repair_center_id=repair_center_id,
            appliance_type=appliance_type,
            description=(description or "").strip() or None,
            estimated_cost=estimated_cost,
            currency=Money.zero(currency or current_app.config["DEFAULT_CURRENCY"]).currency,
            pickup_address=(pickup_address or "").strip() or None,
            delivery_address=(delivery_address or "").strip() or None,
            status=(JobStatus.QUOTE_REQUESTED if request_quote else JobStatus.REQUESTED).value,
        )
        db.session.add(job)
        db.session.commit()
        return job

    @staticmethod
    def commit_transition(job, events, notes=None):
        """Persist an applied transition and its audit rows, then notify.

        The UPDATE is conditional on the version the job was read at; if another
        request committed first the caller gets ``ConcurrentModification``.
        """
        for event in events:
            if isinstance(event, JobTransitioned):
                db.session.add(
                    JobStatusHistory(
                        repair_job_id=job.id,
                        from_status=event.old_status,
                        to_status=event.new_status,
                        notes=notes,
                    )
                )
        try:
            db.session.commit()
        except StaleDataError as exc:
            db.session.rollback()
            raise ConcurrentModification(f"Repair job #{job.id} was changed by another request.") from exc
        dispatch_events(events)
        return job

    @staticmethod
    def _require_version(job, expected_version):
        if expected_version is None:
            return
        try:
            expected = int(expected_version)
        except (TypeError, ValueError) as exc:
            raise AppError("Version must be an integer.", 400) from exc
        if expected != job.version_id:
            raise ConcurrentModification(
                f"Repair job #{job.id} is at version {job.version_id}, not {expected}. Reload and retry."
            )

    @staticmethod
    def has_completed_payment(job):
        return job.payments.filter(Payment.payment_status == "completed").first() is not None

    @staticmethod
    def transition_job(job_id, target_status, expected_version=None, final_cost=None, notes=None, now=None):
        now = now or utcnow()
        job = JobService.get_job(job_id)
        JobService._require_version(job, expected_version)

        current, target = check_transition(job, target_status)
        if target in QUOTE_STATUSES or current is JobStatus.QUOTE_ACCEPTED:
            if target is not JobStatus.CANCELLED:
                raise InvalidTransition(
                    f"Job #{job.id} moves from {current.value} to {target.value} through the quote endpoints only."
                )
        if (
            target is JobStatus.RETURNED
            and current_app.config["REQUIRE_PAYMENT_BEFORE_RETURN"]
            and not JobService.has_completed_payment(job)
        ):
            raise PaymentNotConfirmed("Payment must be completed before the item can be returned.")

        events = apply_transition(job, target, now, final_cost=final_cost)
        if notes:
            job.notes = notes
        return JobService.commit_transition(job, events, notes=notes)

    @staticmethod
    def confirm_completion(job_id, confirmation_type, rating=None, feedback=None, now=None):
        now = now or utcnow()
        job = JobService.get_job(job_id)
        if job.status != JobStatus.RETURNED.value:
            raise InvalidState('Job must be in "returned" status for confirmation.')

        if confirmation_type == CONFIRM_DEVICE_RETURNED:
            if job.device_returned_confirmed:
                raise InvalidState("Device return already confirmed.")
            job.device_returned_confirmed = True
            job.device_returned_confirmed_at = now
        elif confirmation_type == CONFIRM_REPAIR_SATISFACTION:
            if not job.device_returned_confirmed:
                raise InvalidState("Device return must be confirmed first.")
            if job.repair_satisfaction_confirmed:
                raise InvalidState("Satisfaction already confirmed.")
            try:
                rating_int = int(rating)
            except (TypeError, ValueError) as exc:
                raise AppError("Valid satisfaction rating (1-5) is required.", 400) from exc
            if rating_int < 1 or rating_int > 5:
                raise AppError("Valid satisfaction rating (1-5) is required.", 400)
            job.repair_satisfaction_confirmed = True
            job.repair_satisfaction_confirmed_at = now
            job.satisfaction_rating = rating_int
            job.satisfaction_feedback = (feedback or "").strip() or None
        else:
            raise AppError(f"Unknown confirmation type: {confirmation_type!r}.", 400)

        events = []
        if job.device_returned_confirmed and job.repair_satisfaction_confirmed:
            job.customer_confirmed = True
            events = apply_transition(job, JobStatus.COMPLETED, now)
        return JobService.commit_transition(job, events)

    @staticmethod
    def status_history(job_id):
        job = JobService.get_job(job_id)
        return job.history.all()
