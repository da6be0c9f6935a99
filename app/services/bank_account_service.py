import math
from datetime import timedelta

from flask import current_app

from app.errors import AppError, InvalidState, MissingBankAccount
from app.extensions import db
from app.models import RepairCenterBankAccount
from app.models.base import as_utc, utcnow

ACCOUNT_CHANGE_COOLDOWN = timedelta(days=14)


class BankAccountService:
    @staticmethod
    def active_account(repair_center_id):
        return (
            RepairCenterBankAccount.query.filter_by(repair_center_id=repair_center_id, is_active=True)
            .order_by(RepairCenterBankAccount.id.desc())
            .first()
        )

    @staticmethod
    def payout_account(repair_center_id):
        """The account a payout for this center goes to, or ``MissingBankAccount``."""
        account = BankAccountService.active_account(repair_center_id)
        if account is None or account.whitelisted_at is None:
            raise MissingBankAccount(
                f"Repair center #{repair_center_id} has no whitelisted bank account. "
                "Add bank account details before processing payouts."
            )
        return account

    @staticmethod
    def register_account(repair_center_id, bank_name, account_number, account_name, now=None):
        """Whitelist a payout account, replacing the current one at most every two weeks."""
        now = now or utcnow()
        bank_name = (bank_name or "").strip()
        account_number = (account_number or "").strip()
        account_name = (account_name or "").strip()
        if repair_center_id is None or not bank_name or not account_name:
            raise AppError("Repair center, bank name and account name are required.", 400)
        if not account_number.isdigit() or len(account_number) < 6:
            raise AppError("Account number must be at least 6 digits.", 400)

        current = BankAccountService.active_account(repair_center_id)
        if current is not None:
            changed_at = as_utc(current.updated_at)
            if now < changed_at + ACCOUNT_CHANGE_COOLDOWN:
                days_left = math.ceil((changed_at + ACCOUNT_CHANGE_COOLDOWN - now) / timedelta(days=1))
                raise InvalidState(f"Bank account can only be changed after 2 weeks. {days_left} days remaining.")
            current.is_active = False

        account = RepairCenterBankAccount(
            repair_center_id=repair_center_id,
            bank_name=bank_name,
            account_number=account_number,
            account_name=account_name,
            is_active=True,
            whitelisted_at=now,
            created_at=now,
            updated_at=now,
        )
        db.session.add(account)
        db.session.commit()
        current_app.logger.info(
            "Whitelisted %s account %s for repair center #%s",
            bank_name,
            account.masked_account_number,
            repair_center_id,
        )
        return account
