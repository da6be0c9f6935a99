from datetime import datetime, timezone

import pytest

from app.extensions import db
from app.services.collaborators import dispatch_events
from app.services.events import JobTransitioned, PayoutCompleted
from app.services.notification_service import CUSTOMER, REPAIR_CENTER, NotificationService

MOMENT = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def _transitioned():
    return JobTransitioned(
        occurred_at=MOMENT,
        job_id=5,
        customer_id=1,
        repair_center_id=10,
        old_status="in_repair",
        new_status="repair_completed",
    )


class TestNotificationService:
    def test_job_transition_notifies_both_parties(self, app):
        event = _transitioned()
        assert NotificationService.notify(event.event_type, event.context()) == 2

        [customer_note] = NotificationService.latest_for_recipient(CUSTOMER, 1)
        assert customer_note.title == "Repair job #5: Repair Completed"
        assert customer_note.message == "Job #5 moved from In Repair to Repair Completed."
        assert NotificationService.unread_count(REPAIR_CENTER, 10) == 1

    def test_payout_completed_goes_to_repair_center(self, app):
        event = PayoutCompleted(
            occurred_at=MOMENT,
            payout_id=3,
            repair_center_id=10,
            net_amount="9250.00",
            currency="NGN",
            payout_reference="TRF-9",
            payout_method="bank_transfer",
        )
        NotificationService.notify(event.event_type, event.context())
        [note] = NotificationService.latest_for_recipient(REPAIR_CENTER, 10)
        assert note.title == "Payout processed"
        assert "TRF-9" in note.message
        assert NotificationService.unread_count(CUSTOMER, 1) == 0

    def test_mark_all_read(self, app):
        event = _transitioned()
        NotificationService.notify(event.event_type, event.context())
        NotificationService.mark_all_read(CUSTOMER, 1)
        assert NotificationService.unread_count(CUSTOMER, 1) == 0
        assert NotificationService.unread_count(REPAIR_CENTER, 10) == 1

    @pytest.mark.parametrize("context", [{}, {"repair_center_id": 10}, {"payout_id": 3}])
    def test_unknown_event_is_ignored(self, app, context):
        assert NotificationService.notify("bank_account_whitelisted", context) == 0
        assert NotificationService.unread_count(REPAIR_CENTER, 10) == 0


class TestDispatch:
    def test_failures_are_counted_not_raised(self, app, collaborators):
        collaborators.notifier.fail = True
        assert dispatch_events([_transitioned()]) == 0

    def test_delivers_in_order(self, app, collaborators):
        dispatch_events([_transitioned(), _transitioned()])
        assert len(collaborators.notifier.of_type("job_transitioned")) == 2
