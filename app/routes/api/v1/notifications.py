from flask import Blueprint, jsonify

from app.errors import AppError
from app.services import NotificationService
from app.services.notification_service import CUSTOMER, REPAIR_CENTER

api_notification_bp = Blueprint("api_notification", __name__)

RECIPIENT_TYPES = {"customers": CUSTOMER, "repair-centers": REPAIR_CENTER}


def _recipient_type(kind):
    recipient_type = RECIPIENT_TYPES.get(kind)
    if not recipient_type:
        raise AppError("Unknown recipient type.", 404)
    return recipient_type


@api_notification_bp.get("/<kind>/<int:recipient_id>")
def recipient_notifications(kind, recipient_id):
    recipient_type = _recipient_type(kind)
    items = NotificationService.latest_for_recipient(recipient_type, recipient_id)
    return jsonify(
        {
            "unread_count": NotificationService.unread_count(recipient_type, recipient_id),
            "items": [
                {
                    "id": n.id,
                    "event_type": n.event_type,
                    "title": n.title,
                    "message": n.message,
                    "is_read": n.is_read,
                    "created_at": n.created_at.isoformat(),
                }
                for n in items
            ],
        }
    )


@api_notification_bp.post("/<kind>/<int:recipient_id>/read")
def mark_all_read(kind, recipient_id):
    NotificationService.mark_all_read(_recipient_type(kind), recipient_id)
    return jsonify({"ok": True})
