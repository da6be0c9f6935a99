from app.extensions import db
from app.models.base import PKType, TimestampMixin


class Notification(TimestampMixin, db.Model):
    __tablename__ = "notifications"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    recipient_type = db.Column(db.String(24), nullable=False)
    recipient_id = db.Column(PKType, nullable=False)
    event_type = db.Column(db.String(48), nullable=False, index=True)
    title = db.Column(db.String(180), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False, index=True)

    __table_args__ = (db.Index("ix_notifications_recipient", "recipient_type", "recipient_id"),)
