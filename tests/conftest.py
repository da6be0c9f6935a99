"""
Pytest fixtures for the repair desk tests.

Every test gets a fresh app on in-memory SQLite with scripted collaborators,
so notifications, payment verification, delivery quotes and disbursements can
be observed and steered without any outside service.
"""

from datetime import datetime, timezone

import pytest

from app import create_app
from app.extensions import db
from app.services.bank_account_service import BankAccountService
from app.services.collaborators import DisbursementResult
from app.services.job_service import JobService
from app.services.job_state import JobStatus
from app.services.payment_service import PaymentService
from app.services.quote_service import QuoteService
from app.services.settlement_service import SettlementService

MONDAY = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class RecordingNotifier:
    def __init__(self):
        self.events = []
        self.fail = False

    def notify(self, event_type, context):
        if self.fail:
            raise RuntimeError("notification service unavailable")
        self.events.append((event_type, context))

    def of_type(self, event_type):
        return [context for kind, context in self.events if kind == event_type]


class ScriptedPaymentVerifier:
    def __init__(self):
        self.statuses = {}
        self.default = "completed"
        self.error = None

    def verify_payment(self, reference):
        if self.error:
            raise self.error
        return self.statuses.get(reference, self.default)


class ScriptedDeliveryQuotes:
    def __init__(self):
        self.quote = None
        self.error = None
        self.calls = 0

    def get_delivery_quote(self, pickup_address, delivery_address):
        self.calls += 1
        if self.error:
            raise self.error
        return self.quote


class ScriptedDisburser:
    def __init__(self):
        self.rejections = {}
        self.explode_on = set()
        self.paid = []

    def disburse(self, record, reference, method):
        if record.id in self.explode_on:
            raise RuntimeError("bank connection reset")
        if record.id in self.rejections:
            return DisbursementResult(ok=False, reason=self.rejections[record.id])
        self.paid.append((record.id, reference, method))
        return DisbursementResult(ok=True)


class Collaborators:
    def __init__(self):
        self.notifier = RecordingNotifier()
        self.payment_verifier = ScriptedPaymentVerifier()
        self.delivery_quotes = ScriptedDeliveryQuotes()
        self.disburser = ScriptedDisburser()


@pytest.fixture
def collaborators():
    return Collaborators()


@pytest.fixture
def app(collaborators):
    app = create_app(
        "testing",
        notifier=collaborators.notifier,
        payment_verifier=collaborators.payment_verifier,
        delivery_quotes=collaborators.delivery_quotes,
        disburser=collaborators.disburser,
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def now():
    return MONDAY


@pytest.fixture
def make_job(app):
    def _make(customer_id=1, repair_center_id=10, request_quote=True, **kwargs):
        kwargs.setdefault("appliance_type", "Washing machine")
        kwargs.setdefault("pickup_address", "12 Allen Avenue, Ikeja")
        kwargs.setdefault("delivery_address", "12 Allen Avenue, Ikeja")
        return JobService.create_job(
            customer_id=customer_id,
            repair_center_id=repair_center_id,
            request_quote=request_quote,
            **kwargs,
        )

    return _make


@pytest.fixture
def advance():
    def _advance(job, *statuses, now=None):
        for status in statuses:
            job = JobService.transition_job(job.id, status, now=now)
        return job

    return _advance


@pytest.fixture
def repaired_job(make_job, advance, now):
    """A job quoted at 10000 and taken through to ``repair_completed``."""

    def _make(quoted_cost="10000", **kwargs):
        job = make_job(**kwargs)
        QuoteService.issue_quote(job.id, quoted_cost, now=now)
        QuoteService.accept_quote(job.id, now=now)
        return advance(
            job,
            JobStatus.PICKUP_SCHEDULED,
            JobStatus.PICKED_UP,
            JobStatus.IN_REPAIR,
            JobStatus.REPAIR_COMPLETED,
            now=now,
        )

    return _make


@pytest.fixture
def paid_job(repaired_job, now):
    """A repaired job whose customer payment the gateway has completed."""

    def _make(**kwargs):
        job = repaired_job(**kwargs)
        reference = f"PAY-{job.id}"
        PaymentService.record_payment(job.id, reference, job.final_cost)
        PaymentService.apply_gateway_status(reference, "completed", now=now)
        return job

    return _make


@pytest.fixture
def make_payout(paid_job, now):
    def _make(gross="10000", repair_center_id=10, currency=None, bank_account=True):
        kwargs = {"repair_center_id": repair_center_id}
        if currency:
            kwargs["currency"] = currency
        if bank_account and BankAccountService.active_account(repair_center_id) is None:
            BankAccountService.register_account(repair_center_id, "GTBank", "0123456789", "Fixit Repairs", now=now)
        job = paid_job(**kwargs)
        return SettlementService.materialize_payout(job.id, gross, now=now)

    return _make
