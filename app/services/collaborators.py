"""External collaborators consumed by the job and payout services.

Each collaborator is a narrow protocol with a default implementation. The
active set lives on ``app.extensions`` so tests and deployments can swap any
of them without touching the services.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Protocol

from flask import current_app

from app.extensions import db
from app.models import Payment
from app.services.notification_service import NotificationService

EXTENSION_KEY = "repair_collaborators"

PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"
PAYMENT_PENDING = "pending"


class Notifier(Protocol):
    def notify(self, event_type: str, context: Dict[str, Any]) -> Any:
        ...


class PaymentVerifier(Protocol):
    def verify_payment(self, reference: str) -> str:
        """Return ``completed``, ``failed`` or ``pending``."""
        ...


class DeliveryQuoteProvider(Protocol):
    def get_delivery_quote(self, pickup_address: str, delivery_address: str) -> Optional[Dict[str, Any]]:
        """Return ``{"estimated_cost": ...}`` or ``None`` when no quote is available."""
        ...


@dataclass(frozen=True)
class DisbursementResult:
    ok: bool
    reason: Optional[str] = None


class PayoutDisburser(Protocol):
    def disburse(self, record, reference: str, method: str) -> DisbursementResult:
        ...


class LedgerPaymentVerifier:
    """Reads the status recorded by the payment gateway webhook."""

    def verify_payment(self, reference):
        payment = Payment.query.filter_by(payment_reference=reference).first()
        if payment is None:
            return PAYMENT_PENDING
        return payment.payment_status


class UnavailableDeliveryQuoteProvider:
    def get_delivery_quote(self, pickup_address, delivery_address):
        return None


class ManualDisburser:
    """Transfers are made off-platform by an admin who supplies the reference."""

    def disburse(self, record, reference, method):
        return DisbursementResult(ok=True)


@dataclass(frozen=True)
class Collaborators:
    notifier: Any
    payment_verifier: Any
    delivery_quotes: Any
    disburser: Any


def default_collaborators():
    return Collaborators(
        notifier=NotificationService(),
        payment_verifier=LedgerPaymentVerifier(),
        delivery_quotes=UnavailableDeliveryQuoteProvider(),
        disburser=ManualDisburser(),
    )


def init_collaborators(app, **overrides):
    app.extensions[EXTENSION_KEY] = replace(default_collaborators(), **overrides)
    return app.extensions[EXTENSION_KEY]


def get_collaborators():
    return current_app.extensions[EXTENSION_KEY]


def dispatch_events(events):
    """Send events to the notifier after the state change has been committed.

    A failing notifier is logged and skipped; it never undoes the change.
    """
    notifier = get_collaborators().notifier
    delivered = 0
    for event in events:
        try:
            notifier.notify(event.event_type, event.context())
            delivered += 1
        except Exception as exc:
            db.session.rollback()
            current_app.logger.warning("Notification for %s failed: %s", event.event_type, exc)
    return delivered
