from app.extensions import db
from app.models.base import PKType, TimestampMixin


class JobStatusHistory(TimestampMixin, db.Model):
    __tablename__ = "job_status_history"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    repair_job_id = db.Column(
        PKType, db.ForeignKey("repair_jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status = db.Column(db.String(32), nullable=False)
    to_status = db.Column(db.String(32), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    repair_job = db.relationship("RepairJob", back_populates="history")
