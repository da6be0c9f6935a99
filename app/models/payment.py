from app.extensions import db
from app.models.base import MoneyType, PKType, TimestampMixin


class Payment(TimestampMixin, db.Model):
    __tablename__ = "payments"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    repair_job_id = db.Column(
        PKType, db.ForeignKey("repair_jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    payment_reference = db.Column(db.String(64), nullable=False, unique=True, index=True)
    amount = db.Column(MoneyType, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="NGN")
    payment_status = db.Column(db.String(24), nullable=False, default="pending", index=True)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=True)

    repair_job = db.relationship("RepairJob", back_populates="payments")

    __table_args__ = (db.CheckConstraint("amount > 0", name="ck_payment_amount_positive"),)
