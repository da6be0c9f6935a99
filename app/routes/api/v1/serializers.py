from app.models.base import as_utc, utcnow
from app.services.job_state import allowed_targets, is_terminal
from app.services.money import round_money


def money_str(value):
    if value is None:
        return None
    return str(round_money(value))


def iso(value):
    value = as_utc(value)
    return value.isoformat() if value else None


def job_payload(job, now=None):
    now = now or utcnow()
    return {
        "id": job.id,
        "version": job.version_id,
        "customer_id": job.customer_id,
        "repair_center_id": job.repair_center_id,
        "status": job.status,
        "next_statuses": [] if is_terminal(job.status) else allowed_targets(job.status),
        "appliance_type": job.appliance_type,
        "description": job.description,
        "currency": job.currency,
        "estimated_cost": money_str(job.estimated_cost),
        "quoted_cost": money_str(job.quoted_cost),
        "final_cost": money_str(job.final_cost),
        "app_commission": money_str(job.app_commission),
        "payment_deadline": iso(job.payment_deadline),
        "payment_overdue": job.is_payment_overdue(now),
        "quote_notes": job.quote_notes,
        "quote_response_deadline": iso(job.quote_response_deadline),
        "quote_expired": job.status == "quote_pending_review" and job.is_quote_expired(now),
        "quote_accepted_at": iso(job.quote_accepted_at),
        "customer_confirmed": job.customer_confirmed,
        "device_returned_confirmed": job.device_returned_confirmed,
        "repair_satisfaction_confirmed": job.repair_satisfaction_confirmed,
        "satisfaction_rating": job.satisfaction_rating,
        "completion_date": iso(job.completion_date),
        "created_at": iso(job.created_at),
    }


def history_payload(entry):
    return {
        "from_status": entry.from_status,
        "to_status": entry.to_status,
        "notes": entry.notes,
        "created_at": iso(entry.created_at),
    }


def payment_payload(payment):
    return {
        "id": payment.id,
        "repair_job_id": payment.repair_job_id,
        "payment_reference": payment.payment_reference,
        "amount": money_str(payment.amount),
        "currency": payment.currency,
        "payment_status": payment.payment_status,
        "payment_date": iso(payment.payment_date),
    }


def payout_payload(record):
    return {
        "id": record.id,
        "repair_center_id": record.repair_center_id,
        "repair_job_id": record.repair_job_id,
        "gross_amount": money_str(record.gross_amount),
        "commission_amount": money_str(record.commission_amount),
        "net_amount": money_str(record.net_amount),
        "currency": record.currency,
        "settlement_period": record.settlement_period,
        "payout_status": record.payout_status,
        "payout_method": record.payout_method,
        "payout_reference": record.payout_reference,
        "payout_date": iso(record.payout_date),
        "failure_reason": record.failure_reason,
        "dispute_status": record.dispute_status,
        "dispute_reason": record.dispute_reason,
        "disputed_at": iso(record.disputed_at),
        "created_at": iso(record.created_at),
    }


def bank_account_payload(account):
    return {
        "id": account.id,
        "repair_center_id": account.repair_center_id,
        "bank_name": account.bank_name,
        "account_number": account.masked_account_number,
        "account_name": account.account_name,
        "whitelisted_at": iso(account.whitelisted_at),
        "updated_at": iso(account.updated_at),
    }
