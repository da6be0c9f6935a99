from datetime import timedelta
from decimal import Decimal

import pytest

from app.errors import AppError, InvalidAmount, InvalidState, QuoteExpired, TerminalState
from app.extensions import db
from app.models import RepairJob
from app.services.job_service import JobService
from app.services.quote_service import DELIVERY_PENDING_NOTE, QuoteService


@pytest.fixture
def quoted_job(make_job, now):
    job = make_job()
    return QuoteService.issue_quote(job.id, "10000", notes="Replace drum bearings", now=now)


class TestIssueQuote:
    def test_moves_to_pending_review_with_deadline(self, quoted_job, now):
        assert quoted_job.status == "quote_pending_review"
        assert quoted_job.quoted_cost == Decimal("10000.00")
        assert quoted_job.quote_notes == "Replace drum bearings"
        assert quoted_job.is_quote_expired(now + timedelta(hours=24)) is False
        assert quoted_job.is_quote_expired(now + timedelta(hours=24, seconds=1)) is True

    @pytest.mark.parametrize("amount", ["0", "-5", None, "ten"])
    def test_amount_must_be_positive(self, make_job, amount):
        job = make_job()
        with pytest.raises(InvalidAmount):
            QuoteService.issue_quote(job.id, amount)

    def test_cannot_quote_a_job_that_skipped_quoting(self, make_job):
        job = make_job(request_quote=False)
        with pytest.raises(InvalidState):
            QuoteService.issue_quote(job.id, "100")

    def test_requote_after_negotiation(self, quoted_job, now):
        QuoteService.negotiate_quote(quoted_job.id, "Can you do 8000?", now=now)
        job = QuoteService.issue_quote(quoted_job.id, "8500", now=now)
        assert job.status == "quote_pending_review"
        assert job.quoted_cost == Decimal("8500.00")


class TestRespond:
    def test_accept_enters_the_workflow(self, quoted_job, collaborators, now):
        job = QuoteService.respond(quoted_job.id, "accept", now=now + timedelta(hours=2))
        assert job.status == "requested"
        assert job.quote_accepted_at is not None
        steps = [(h.from_status, h.to_status) for h in JobService.status_history(job.id)]
        assert steps[-2:] == [("quote_pending_review", "quote_accepted"), ("quote_accepted", "requested")]

    def test_reject_is_terminal(self, quoted_job, now):
        job = QuoteService.respond(quoted_job.id, "reject", customer_notes="Too expensive", now=now)
        assert job.status == "quote_rejected"
        assert job.customer_notes == "Customer response: Too expensive"
        with pytest.raises(TerminalState):
            QuoteService.respond(job.id, "accept", now=now)

    def test_negotiate(self, quoted_job, now):
        job = QuoteService.respond(quoted_job.id, "negotiate", customer_notes="Lower please", now=now)
        assert job.status == "quote_negotiating"

    def test_unknown_response(self, quoted_job):
        with pytest.raises(AppError) as excinfo:
            QuoteService.respond(quoted_job.id, "maybe")
        assert excinfo.value.status_code == 400

    def test_respond_without_pending_quote(self, make_job):
        job = make_job()
        with pytest.raises(InvalidState):
            QuoteService.accept_quote(job.id)


class TestExpiry:
    def test_expired_quote_is_forwarded_to_pickup(self, quoted_job, collaborators, now):
        with pytest.raises(QuoteExpired):
            QuoteService.accept_quote(quoted_job.id, now=now + timedelta(hours=25))

        db.session.expire_all()
        job = db.session.get(RepairJob, quoted_job.id)
        assert job.status == "pickup_scheduled"
        assert [c["new_status"] for c in collaborators.notifier.of_type("job_transitioned")][-3:] == [
            "quote_accepted",
            "requested",
            "pickup_scheduled",
        ]

    def test_expired_quote_left_alone_when_forwarding_is_off(self, app, quoted_job, now):
        app.config["QUOTE_EXPIRY_AUTO_FORWARD"] = False
        with pytest.raises(QuoteExpired):
            QuoteService.accept_quote(quoted_job.id, now=now + timedelta(days=2))
        db.session.expire_all()
        assert db.session.get(RepairJob, quoted_job.id).status == "quote_pending_review"


class TestBreakdown:
    def test_breakdown_without_delivery_quote(self, quoted_job):
        breakdown = QuoteService.quote_breakdown(quoted_job.id)
        assert breakdown["quoted_cost"] == "10000.00"
        assert breakdown["service_fee"] == "750.00"
        assert breakdown["customer_total"] == "10750.00"
        assert breakdown["delivery"] is None
        assert breakdown["delivery_note"] == DELIVERY_PENDING_NOTE

    def test_breakdown_with_delivery_quote(self, quoted_job, collaborators):
        collaborators.delivery_quotes.quote = {"estimated_cost": "1500"}
        breakdown = QuoteService.quote_breakdown(quoted_job.id)
        assert breakdown["delivery"] == {"estimated_cost": "1500.00", "commission": "75.00", "currency": "NGN"}
        assert "delivery_note" not in breakdown

    def test_delivery_provider_errors_are_not_fatal(self, quoted_job, collaborators):
        collaborators.delivery_quotes.error = ConnectionError("courier API down")
        breakdown = QuoteService.quote_breakdown(quoted_job.id)
        assert breakdown["delivery"] is None

    def test_malformed_delivery_quote_is_ignored(self, quoted_job, collaborators):
        collaborators.delivery_quotes.quote = {"estimated_cost": "free"}
        assert QuoteService.quote_breakdown(quoted_job.id)["delivery"] is None

    def test_unquoted_job(self, make_job):
        job = make_job()
        with pytest.raises(InvalidState):
            QuoteService.quote_breakdown(job.id)
