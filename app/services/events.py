from dataclasses import asdict, dataclass
from datetime import datetime


@dataclass(frozen=True)
class Event:
    occurred_at: datetime

    event_type = "event"

    def context(self):
        data = asdict(self)
        data["occurred_at"] = self.occurred_at.isoformat()
        return data


@dataclass(frozen=True)
class JobTransitioned(Event):
    job_id: int
    customer_id: int
    repair_center_id: int
    old_status: str
    new_status: str

    event_type = "job_transitioned"


@dataclass(frozen=True)
class PayoutMaterialized(Event):
    payout_id: int
    repair_job_id: int
    repair_center_id: int
    net_amount: str
    currency: str

    event_type = "payout_materialized"


@dataclass(frozen=True)
class PayoutCompleted(Event):
    payout_id: int
    repair_center_id: int
    net_amount: str
    currency: str
    payout_reference: str
    payout_method: str

    event_type = "payout_completed"


@dataclass(frozen=True)
class PayoutFailed(Event):
    payout_id: int
    repair_center_id: int
    reason: str

    event_type = "payout_failed"


@dataclass(frozen=True)
class DisputeRaised(Event):
    payout_id: int
    repair_center_id: int
    reason: str

    event_type = "dispute_raised"
