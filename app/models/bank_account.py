from app.extensions import db
from app.models.base import PKType, TimestampMixin


class RepairCenterBankAccount(TimestampMixin, db.Model):
    __tablename__ = "repair_center_bank_accounts"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    repair_center_id = db.Column(PKType, nullable=False, index=True)
    bank_name = db.Column(db.String(120), nullable=False)
    account_number = db.Column(db.String(34), nullable=False)
    account_name = db.Column(db.String(160), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    # Payouts are only sent to an account once it has been whitelisted.
    whitelisted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (db.Index("ix_bank_accounts_center_active", "repair_center_id", "is_active"),)

    @property
    def masked_account_number(self):
        return f"****{self.account_number[-4:]}"
