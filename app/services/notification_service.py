from app.extensions import db
from app.models import Notification

CUSTOMER = "customer"
REPAIR_CENTER = "repair_center"


def _label(status):
    return (status or "").replace("_", " ").title()


def _job_messages(context):
    job_id = context["job_id"]
    new_status = context["new_status"]
    title = f"Repair job #{job_id}: {_label(new_status)}"
    message = f"Job #{job_id} moved from {_label(context['old_status'])} to {_label(new_status)}."
    return [
        (CUSTOMER, context["customer_id"], title, message),
        (REPAIR_CENTER, context["repair_center_id"], title, message),
    ]


def _payout_messages(event_type, context):
    if event_type == "payout_materialized":
        center_id = context["repair_center_id"]
        return [
            (
                REPAIR_CENTER,
                center_id,
                "Payout scheduled",
                f"{context['currency']} {context['net_amount']} was added to your pending payouts "
                f"for job #{context['repair_job_id']}.",
            )
        ]
    if event_type == "payout_completed":
        center_id, payout_id = context["repair_center_id"], context["payout_id"]
        return [
            (
                REPAIR_CENTER,
                center_id,
                "Payout processed",
                f"Payout #{payout_id} of {context['currency']} {context['net_amount']} was sent "
                f"via {context['payout_method']}. Reference {context['payout_reference']}.",
            )
        ]
    if event_type == "payout_failed":
        center_id, payout_id = context["repair_center_id"], context["payout_id"]
        return [(REPAIR_CENTER, center_id, "Payout failed", f"Payout #{payout_id} failed: {context['reason']}.")]
    if event_type == "dispute_raised":
        center_id, payout_id = context["repair_center_id"], context["payout_id"]
        return [
            (
                REPAIR_CENTER,
                center_id,
                "Payout on hold",
                f"Payout #{payout_id} is on hold pending dispute review: {context['reason']}.",
            )
        ]
    return []


class NotificationService:
    @staticmethod
    def push(recipient_type, recipient_id, event_type, title, message):
        notification = Notification(
            recipient_type=recipient_type,
            recipient_id=recipient_id,
            event_type=event_type,
            title=title,
            message=message,
        )
        db.session.add(notification)
        db.session.flush()
        return notification

    @staticmethod
    def notify(event_type, context):
        if event_type == "job_transitioned":
            messages = _job_messages(context)
        else:
            messages = _payout_messages(event_type, context)
        for recipient_type, recipient_id, title, message in messages:
            NotificationService.push(recipient_type, recipient_id, event_type, title, message)
        db.session.commit()
        return len(messages)

    @staticmethod
    def unread_count(recipient_type, recipient_id):
        return Notification.query.filter_by(
            recipient_type=recipient_type, recipient_id=recipient_id, is_read=False
        ).count()

    @staticmethod
    def latest_for_recipient(recipient_type, recipient_id, limit=20):
        return (
            Notification.query.filter_by(recipient_type=recipient_type, recipient_id=recipient_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def mark_all_read(recipient_type, recipient_id):
        Notification.query.filter_by(
            recipient_type=recipient_type, recipient_id=recipient_id, is_read=False
        ).update({"is_read": True})
        db.session.commit()
