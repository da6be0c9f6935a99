from flask import current_app

from app.errors import AppError, InvalidAmount, InvalidState, QuoteExpired, TerminalState
from app.extensions import cache
from app.models.base import as_utc, utcnow
from app.services.collaborators import get_collaborators
from app.services.job_service import JobService
from app.services.job_state import (
    QUOTE_RESPONSE_WINDOW,
    TERMINAL_STATUSES,
    JobStatus,
    apply_transition,
    coerce_status,
    forward,
)
from app.services.money import Money, customer_total, delivery_commission, round_money, service_fee

DELIVERY_PENDING_NOTE = "Delivery cost confirmed after acceptance"

QUOTABLE_STATUSES = (JobStatus.QUOTE_REQUESTED, JobStatus.QUOTE_NEGOTIATING)


def _require_status(job, allowed, message):
    current = coerce_status(job.status)
    if current in allowed:
        return current
    if current in TERMINAL_STATUSES:
        raise TerminalState(f"Job #{job.id} is already {current.value}.")
    raise InvalidState(message.format(job_id=job.id, status=current.value))


class QuoteService:
    @staticmethod
    def issue_quote(job_id, amount, notes=None, now=None):
        now = now or utcnow()
        job = JobService.get_job(job_id)
        _require_status(job, QUOTABLE_STATUSES, "Job #{job_id} is {status} and cannot be quoted.")

        amount = round_money(amount)
        if amount <= 0:
            raise InvalidAmount("Quoted cost must be greater than zero.")

        events = apply_transition(job, JobStatus.QUOTE_PENDING_REVIEW, now)
        job.quoted_cost = amount
        job.quote_notes = (notes or "").strip() or None
        job.quote_provided_at = now
        job.quote_response_deadline = now + QUOTE_RESPONSE_WINDOW
        return JobService.commit_transition(job, events)

    @staticmethod
    def _require_pending_review(job):
        _require_status(
            job,
            (JobStatus.QUOTE_PENDING_REVIEW,),
            "Job #{job_id} is {status}; there is no quote awaiting a response.",
        )

    @staticmethod
    def accept_quote(job_id, now=None):
        now = now or utcnow()
        job = JobService.get_job(job_id)
        QuoteService._require_pending_review(job)

        if job.is_quote_expired(now):
            deadline = as_utc(job.quote_response_deadline)
            if current_app.config["QUOTE_EXPIRY_AUTO_FORWARD"]:
                events = forward(
                    job,
                    [JobStatus.QUOTE_ACCEPTED, JobStatus.REQUESTED, JobStatus.PICKUP_SCHEDULED],
                    now,
                )
                JobService.commit_transition(job, events, notes="Quote expired without a response.")
                current_app.logger.info("Quote for job #%s expired; forwarded to pickup scheduling.", job_id)
            raise QuoteExpired(f"Quote for job #{job_id} expired at {deadline.isoformat()}.")

        events = forward(job, [JobStatus.QUOTE_ACCEPTED, JobStatus.REQUESTED], now)
        job.quote_accepted_at = now
        return JobService.commit_transition(job, events)

    @staticmethod
    def reject_quote(job_id, customer_notes=None, now=None):
        return QuoteService._respond(job_id, JobStatus.QUOTE_REJECTED, customer_notes, now)

    @staticmethod
    def negotiate_quote(job_id, customer_notes=None, now=None):
        return QuoteService._respond(job_id, JobStatus.QUOTE_NEGOTIATING, customer_notes, now)

    @staticmethod
    def _respond(job_id, target, customer_notes, now):
        now = now or utcnow()
        job = JobService.get_job(job_id)
        QuoteService._require_pending_review(job)
        events = apply_transition(job, target, now)
        if customer_notes:
            job.customer_notes = f"Customer response: {customer_notes.strip()}"
        return JobService.commit_transition(job, events)

    @staticmethod
    def respond(job_id, response, customer_notes=None, now=None):
        response = (response or "").strip().lower()
        if response == "accept":
            return QuoteService.accept_quote(job_id, now=now)
        if response == "reject":
            return QuoteService.reject_quote(job_id, customer_notes, now=now)
        if response == "negotiate":
            return QuoteService.negotiate_quote(job_id, customer_notes, now=now)
        raise AppError("Invalid response type. Use accept, reject or negotiate.", 400)

    @staticmethod
    def delivery_estimate(job):
        """Informational delivery cost; ``None`` whenever the provider has nothing."""
        if not job.pickup_address or not job.delivery_address:
            return None

        cache_key = f"delivery-quote:{job.pickup_address}|{job.delivery_address}|{job.currency}"
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        provider = get_collaborators().delivery_quotes
        try:
            quote = provider.get_delivery_quote(job.pickup_address, job.delivery_address)
        except Exception as exc:
            current_app.logger.warning("Delivery quote lookup failed for job #%s: %s", job.id, exc)
            return None
        if not quote or quote.get("estimated_cost") is None:
            return None

        try:
            cost = Money(round_money(quote["estimated_cost"]), job.currency)
        except AppError as exc:
            current_app.logger.warning("Ignoring malformed delivery quote for job #%s: %s", job.id, exc)
            return None
        estimate = {
            "estimated_cost": str(cost.amount),
            "commission": str(delivery_commission(cost).amount),
            "currency": cost.currency,
        }
        cache.set(cache_key, estimate, timeout=current_app.config["DELIVERY_QUOTE_CACHE_SECONDS"])
        return estimate

    @staticmethod
    def quote_breakdown(job_id):
        job = JobService.get_job(job_id)
        if job.quoted_cost is None:
            raise InvalidState(f"Job #{job_id} has not been quoted yet.")

        repair = Money(round_money(job.quoted_cost), job.currency)
        deadline = as_utc(job.quote_response_deadline)
        payload = {
            "job_id": job.id,
            "currency": repair.currency,
            "quoted_cost": str(repair.amount),
            "service_fee": str(service_fee(repair).amount),
            "customer_total": str(customer_total(repair).amount),
            "quote_notes": job.quote_notes,
            "quote_response_deadline": deadline.isoformat() if deadline else None,
            "delivery": QuoteService.delivery_estimate(job),
        }
        if payload["delivery"] is None:
            payload["delivery_note"] = DELIVERY_PENDING_NOTE
        return payload
