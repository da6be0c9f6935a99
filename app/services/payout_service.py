"""Payout processing for repair centers.

A payout record moves ``pending -> processing -> completed`` (or ``failed``,
which an admin can send back to ``pending``). The ``pending -> processing``
step is a conditional UPDATE, so two overlapping runs can never both pay the
same record; any unexpected error while a record is ``processing`` puts it
back to ``pending``.
"""

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy import update

from app.errors import (
    AppError,
    BelowThreshold,
    ConcurrentModification,
    CurrencyMismatch,
    InvalidState,
    MissingBankAccount,
    MissingReference,
    PayoutDisputed,
    PayoutFailed,
)
from app.extensions import db
from app.models import PayoutRecord
from app.models.base import utcnow
from app.services.bank_account_service import BankAccountService
from app.services.collaborators import dispatch_events, get_collaborators
from app.services.events import PayoutCompleted
from app.services.events import PayoutFailed as PayoutFailedEvent
from app.services.money import Money, round_money
from app.services.settings_service import SettingsService
from app.services.settlement_service import SettlementService

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

DEFAULT_PAYOUT_METHOD = "bank_transfer"


@dataclass
class BatchResult:
    successful: list = field(default_factory=list)
    failures: list = field(default_factory=list)

    @property
    def success_count(self):
        return len(self.successful)

    @property
    def failure_count(self):
        return len(self.failures)

    def to_dict(self):
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "successful": list(self.successful),
            "failures": list(self.failures),
        }


def eligibility_error(record, settings):
    """Return the reason ``record`` cannot be paid out now, or ``None``."""
    if record.payout_status != PENDING:
        return InvalidState(f"Payout #{record.id} is {record.payout_status}, not pending.")
    if record.is_disputed:
        return PayoutDisputed(f"Payout #{record.id} is disputed: {record.dispute_reason}.")
    net = Money(record.net_amount, record.currency)
    threshold = settings.minimum_threshold
    if net.currency != threshold.currency:
        return CurrencyMismatch(
            f"Payout #{record.id} is in {net.currency} but the payout threshold is in {threshold.currency}."
        )
    if net < threshold:
        return BelowThreshold(f"Payout #{record.id} of {net} is below the minimum payout of {threshold}.")
    try:
        BankAccountService.payout_account(record.repair_center_id)
    except MissingBankAccount as exc:
        return exc
    return None


def eligible_for_payout(record, settings):
    return eligibility_error(record, settings) is None


def is_payout_day(frequency, moment):
    if frequency == "daily":
        return True
    if frequency == "weekly":
        return moment.weekday() == 0
    if frequency == "biweekly":
        return moment.weekday() == 0 and moment.isocalendar()[1] % 2 == 0
    if frequency == "monthly":
        return moment.day == 1
    return False


class PayoutService:
    @staticmethod
    def _claim(record):
        result = db.session.execute(
            update(PayoutRecord)
            .where(
                PayoutRecord.id == record.id,
                PayoutRecord.payout_status == PENDING,
                PayoutRecord.dispute_status.is_(None),
            )
            .values(payout_status=PROCESSING)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise ConcurrentModification(f"Payout #{record.id} is already being processed.")
        db.session.commit()

    @staticmethod
    def _release(payout_id):
        db.session.rollback()
        db.session.execute(
            update(PayoutRecord)
            .where(PayoutRecord.id == payout_id, PayoutRecord.payout_status == PROCESSING)
            .values(payout_status=PENDING)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()

    @staticmethod
    def process_single(payout_id, reference, method=None, notes=None, settings=None, now=None):
        now = now or utcnow()
        reference = (reference or "").strip()
        if not reference:
            raise MissingReference()
        settings = settings or SettingsService.get_payout_settings()
        record = SettlementService.get_payout(payout_id)
        error = eligibility_error(record, settings)
        if error:
            raise error
        method = (method or "").strip() or DEFAULT_PAYOUT_METHOD
        account = BankAccountService.payout_account(record.repair_center_id)

        PayoutService._claim(record)
        try:
            outcome = get_collaborators().disburser.disburse(record, reference, method)
            record.payout_reference = reference
            record.payout_method = method
            record.notes = (notes or "").strip() or None
            if outcome.ok:
                record.payout_status = COMPLETED
                record.payout_date = now
                record.failure_reason = None
                event = PayoutCompleted(
                    occurred_at=now,
                    payout_id=record.id,
                    repair_center_id=record.repair_center_id,
                    net_amount=str(round_money(record.net_amount)),
                    currency=record.currency,
                    payout_reference=reference,
                    payout_method=method,
                )
            else:
                record.payout_status = FAILED
                record.failure_reason = outcome.reason or "Transfer was rejected."
                event = PayoutFailedEvent(
                    occurred_at=now,
                    payout_id=record.id,
                    repair_center_id=record.repair_center_id,
                    reason=record.failure_reason,
                )
            db.session.commit()
        except Exception:
            PayoutService._release(payout_id)
            raise

        dispatch_events([event])
        if not outcome.ok:
            current_app.logger.warning("Payout #%s failed: %s", payout_id, outcome.reason)
            raise PayoutFailed(f"Payout #{payout_id} failed: {record.failure_reason}")
        current_app.logger.info(
            "Payout #%s completed to %s %s with reference %s",
            payout_id,
            account.bank_name,
            account.masked_account_number,
            reference,
        )
        return record

    @staticmethod
    def process_batch(payout_ids, reference, method=None, notes=None, settings=None, now=None):
        """Pay each record on its own; one bad record never stops the rest.

        Every requested id ends up in ``successful`` or ``failures``; repeats of
        an id are reported as ``duplicate`` failures.
        """
        if not payout_ids:
            raise AppError("No payout IDs provided.", 400)
        reference = (reference or "").strip()
        if not reference:
            raise MissingReference()
        settings = settings or SettingsService.get_payout_settings()
        notes = notes or f"Batch {reference}"

        result = BatchResult()
        seen = set()
        for payout_id in payout_ids:
            if payout_id in seen:
                result.failures.append(
                    {"payout_id": payout_id, "error": "Payout ID appears more than once in the batch.", "code": "duplicate"}
                )
                continue
            seen.add(payout_id)
            try:
                PayoutService.process_single(
                    payout_id,
                    f"{reference}-{payout_id}",
                    method=method,
                    notes=notes,
                    settings=settings,
                    now=now,
                )
                result.successful.append(payout_id)
            except AppError as exc:
                result.failures.append({"payout_id": payout_id, "error": exc.message, "code": exc.code})
            except Exception:
                db.session.rollback()
                current_app.logger.exception("Unexpected error processing payout #%s", payout_id)
                result.failures.append(
                    {"payout_id": payout_id, "error": "Unexpected error while processing payout.", "code": "server_error"}
                )

        current_app.logger.info(
            "Batch %s processed: %s successful, %s failed",
            reference,
            result.success_count,
            result.failure_count,
        )
        return result

    @staticmethod
    def retry_payout(payout_id):
        record = SettlementService.get_payout(payout_id)
        if record.payout_status != FAILED:
            raise InvalidState(f"Only failed payouts can be retried; payout #{record.id} is {record.payout_status}.")
        record.payout_status = PENDING
        record.failure_reason = None
        db.session.commit()
        return record

    @staticmethod
    def list_eligible(settings=None):
        settings = settings or SettingsService.get_payout_settings()
        candidates = (
            PayoutRecord.query.filter(
                PayoutRecord.payout_status == PENDING,
                PayoutRecord.dispute_status.is_(None),
                PayoutRecord.currency == settings.minimum_threshold.currency,
            )
            .order_by(PayoutRecord.created_at.asc(), PayoutRecord.id.asc())
            .all()
        )
        return [record for record in candidates if eligible_for_payout(record, settings)]

    @staticmethod
    def summarize_by_center(records, settings):
        totals = {}
        for record in records:
            if not eligible_for_payout(record, settings):
                continue
            key = (record.repair_center_id, record.currency)
            entry = totals.setdefault(
                key,
                {
                    "repair_center_id": record.repair_center_id,
                    "currency": record.currency,
                    "total_pending_net": Money.zero(record.currency),
                    "count": 0,
                },
            )
            entry["total_pending_net"] = entry["total_pending_net"] + Money(record.net_amount, record.currency)
            entry["count"] += 1

        summary = []
        for key in sorted(totals):
            entry = totals[key]
            summary.append({**entry, "total_pending_net": round_money(entry["total_pending_net"].amount)})
        return summary

    @staticmethod
    def run_auto_payouts(now=None, force=False):
        now = now or utcnow()
        settings = SettingsService.get_payout_settings()
        if not settings.auto_process:
            current_app.logger.info("Automatic payouts are disabled; nothing to do.")
            return None
        if not force and not is_payout_day(settings.payout_frequency, now):
            current_app.logger.info("%s is not a %s payout day.", now.date().isoformat(), settings.payout_frequency)
            return None

        records = PayoutService.list_eligible(settings)
        if not records:
            return BatchResult()
        return PayoutService.process_batch(
            [record.id for record in records],
            f"AUTO-{now:%Y%m%d}",
            method=DEFAULT_PAYOUT_METHOD,
            notes="Automatic payout run",
            settings=settings,
            now=now,
        )
