from app.extensions import db
from app.models.base import MoneyType, PKType, TimestampMixin, as_utc


class RepairJob(TimestampMixin, db.Model):
    __tablename__ = "repair_jobs"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    customer_id = db.Column(PKType, nullable=False, index=True)
    repair_center_id = db.Column(PKType, nullable=False, index=True)

    status = db.Column(db.String(32), nullable=False, default="quote_requested", index=True)
    appliance_type = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    pickup_address = db.Column(db.String(255), nullable=True)
    delivery_address = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    customer_notes = db.Column(db.Text, nullable=True)

    currency = db.Column(db.String(3), nullable=False, default="NGN")
    estimated_cost = db.Column(MoneyType, nullable=True)
    quoted_cost = db.Column(MoneyType, nullable=True)
    final_cost = db.Column(MoneyType, nullable=True)
    app_commission = db.Column(MoneyType, nullable=True)
    payment_deadline = db.Column(db.DateTime(timezone=True), nullable=True)

    quote_notes = db.Column(db.Text, nullable=True)
    quote_provided_at = db.Column(db.DateTime(timezone=True), nullable=True)
    quote_response_deadline = db.Column(db.DateTime(timezone=True), nullable=True)
    quote_accepted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    customer_confirmed = db.Column(db.Boolean, nullable=False, default=False)
    device_returned_confirmed = db.Column(db.Boolean, nullable=False, default=False)
    device_returned_confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    repair_satisfaction_confirmed = db.Column(db.Boolean, nullable=False, default=False)
    repair_satisfaction_confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    satisfaction_rating = db.Column(db.SmallInteger, nullable=True)
    satisfaction_feedback = db.Column(db.Text, nullable=True)

    completion_date = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False)

    history = db.relationship(
        "JobStatusHistory",
        back_populates="repair_job",
        lazy="dynamic",
        order_by="JobStatusHistory.id",
        cascade="all, delete-orphan",
    )
    payments = db.relationship("Payment", back_populates="repair_job", lazy="dynamic")
    payout = db.relationship("PayoutRecord", back_populates="repair_job", uselist=False)

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        db.Index("ix_repair_jobs_center_status", "repair_center_id", "status"),
        db.Index("ix_repair_jobs_customer_status", "customer_id", "status"),
        db.CheckConstraint(
            "satisfaction_rating IS NULL OR (satisfaction_rating >= 1 AND satisfaction_rating <= 5)",
            name="ck_repair_job_rating_range",
        ),
    )

    def is_quote_expired(self, now):
        deadline = as_utc(self.quote_response_deadline)
        return deadline is not None and now > deadline

    def is_payment_overdue(self, now):
        deadline = as_utc(self.payment_deadline)
        return deadline is not None and self.status == "repair_completed" and now > deadline
