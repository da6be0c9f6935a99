from app.extensions import db
from app.models.base import MoneyType, PKType, TimestampMixin


class PayoutRecord(TimestampMixin, db.Model):
    __tablename__ = "repair_center_payouts"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    repair_center_id = db.Column(PKType, nullable=False, index=True)
    repair_job_id = db.Column(
        PKType, db.ForeignKey("repair_jobs.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    payment_id = db.Column(PKType, db.ForeignKey("payments.id", ondelete="SET NULL"), nullable=True)

    gross_amount = db.Column(MoneyType, nullable=False)
    commission_amount = db.Column(MoneyType, nullable=False)
    net_amount = db.Column(MoneyType, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="NGN")
    settlement_period = db.Column(db.String(10), nullable=True, index=True)

    payout_status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    payout_method = db.Column(db.String(32), nullable=True)
    payout_reference = db.Column(db.String(120), nullable=True)
    payout_date = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    failure_reason = db.Column(db.Text, nullable=True)

    dispute_status = db.Column(db.String(16), nullable=True, index=True)
    dispute_reason = db.Column(db.String(255), nullable=True)
    dispute_notes = db.Column(db.Text, nullable=True)
    disputed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    repair_job = db.relationship("RepairJob", back_populates="payout")
    payment = db.relationship("Payment")

    __table_args__ = (
        db.Index("ix_payouts_center_status", "repair_center_id", "payout_status"),
        db.CheckConstraint("gross_amount >= 0", name="ck_payout_gross_non_negative"),
        db.CheckConstraint("commission_amount >= 0", name="ck_payout_commission_non_negative"),
        db.CheckConstraint("net_amount >= 0", name="ck_payout_net_non_negative"),
    )

    @property
    def is_disputed(self):
        return self.dispute_status == "disputed"
