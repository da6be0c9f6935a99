"""Repair job workflow.

Pure state machine: validates a status change against the transition table,
applies it to the job in memory and returns the resulting events. Persistence,
locking and notification dispatch live in ``JobService``.
"""

import enum
from datetime import timedelta

from app.errors import InvalidAmount, InvalidTransition, TerminalState
from app.services.events import JobTransitioned
from app.services.money import round_money, service_fee

QUOTE_RESPONSE_WINDOW = timedelta(hours=24)
PAYMENT_WINDOW = timedelta(hours=48)


class JobStatus(str, enum.Enum):
    QUOTE_REQUESTED = "quote_requested"
    QUOTE_PENDING_REVIEW = "quote_pending_review"
    QUOTE_ACCEPTED = "quote_accepted"
    QUOTE_REJECTED = "quote_rejected"
    QUOTE_NEGOTIATING = "quote_negotiating"
    REQUESTED = "requested"
    PICKUP_SCHEDULED = "pickup_scheduled"
    PICKED_UP = "picked_up"
    IN_REPAIR = "in_repair"
    REPAIR_COMPLETED = "repair_completed"
    RETURNED = "returned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self):
        return self.value


JOB_TRANSITIONS = {
    JobStatus.QUOTE_REQUESTED: frozenset({JobStatus.QUOTE_PENDING_REVIEW, JobStatus.CANCELLED}),
    JobStatus.QUOTE_PENDING_REVIEW: frozenset(
        {
            JobStatus.QUOTE_ACCEPTED,
            JobStatus.QUOTE_REJECTED,
            JobStatus.QUOTE_NEGOTIATING,
            JobStatus.CANCELLED,
        }
    ),
    JobStatus.QUOTE_NEGOTIATING: frozenset({JobStatus.QUOTE_PENDING_REVIEW, JobStatus.CANCELLED}),
    JobStatus.QUOTE_ACCEPTED: frozenset({JobStatus.REQUESTED, JobStatus.CANCELLED}),
    JobStatus.QUOTE_REJECTED: frozenset(),
    JobStatus.REQUESTED: frozenset({JobStatus.PICKUP_SCHEDULED, JobStatus.CANCELLED}),
    JobStatus.PICKUP_SCHEDULED: frozenset({JobStatus.PICKED_UP, JobStatus.CANCELLED}),
    JobStatus.PICKED_UP: frozenset({JobStatus.IN_REPAIR, JobStatus.CANCELLED}),
    JobStatus.IN_REPAIR: frozenset({JobStatus.REPAIR_COMPLETED, JobStatus.CANCELLED}),
    JobStatus.REPAIR_COMPLETED: frozenset({JobStatus.RETURNED, JobStatus.CANCELLED}),
    JobStatus.RETURNED: frozenset({JobStatus.COMPLETED, JobStatus.CANCELLED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in JOB_TRANSITIONS.items() if not targets)

QUOTE_STATUSES = frozenset(
    {
        JobStatus.QUOTE_REQUESTED,
        JobStatus.QUOTE_PENDING_REVIEW,
        JobStatus.QUOTE_ACCEPTED,
        JobStatus.QUOTE_REJECTED,
        JobStatus.QUOTE_NEGOTIATING,
    }
)


def _check_transition_table(table):
    missing = set(JobStatus) - set(table)
    if missing:
        raise RuntimeError(f"Transition table has no entry for: {sorted(s.value for s in missing)}")
    for status, targets in table.items():
        if status in targets:
            raise RuntimeError(f"{status.value} may not transition to itself")
        if targets and JobStatus.CANCELLED not in targets:
            raise RuntimeError(f"{status.value} is not terminal but cannot be cancelled")


_check_transition_table(JOB_TRANSITIONS)


def coerce_status(value):
    if isinstance(value, JobStatus):
        return value
    try:
        return JobStatus(str(value or "").strip().lower())
    except ValueError as exc:
        raise InvalidTransition(f"Unknown job status: {value!r}.") from exc


def allowed_targets(status):
    return sorted(target.value for target in JOB_TRANSITIONS[coerce_status(status)])


def is_terminal(status):
    return coerce_status(status) in TERMINAL_STATUSES


def _settle_costs(job, final_cost, now):
    if job.final_cost is not None:
        return
    base = final_cost if final_cost is not None else job.quoted_cost
    if base is None:
        raise InvalidAmount("Job has no quoted cost to complete the repair against.")
    amount = round_money(base)
    if amount <= 0:
        raise InvalidAmount("Final cost must be greater than zero.")
    job.final_cost = amount
    job.app_commission = service_fee(amount)
    job.payment_deadline = now + PAYMENT_WINDOW


def check_transition(job, target):
    """Raise unless ``job`` may move to ``target``; return ``(current, target)`` as statuses."""
    current = coerce_status(job.status)
    target = coerce_status(target)

    if current in TERMINAL_STATUSES:
        raise TerminalState(f"Job #{job.id} is already {current.value}.")
    if target == current:
        raise InvalidTransition(f"Job #{job.id} is already {current.value}.")
    if target is not JobStatus.CANCELLED and target not in JOB_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Invalid status transition from {current.value} to {target.value}. "
            f"Valid next statuses: {', '.join(allowed_targets(current))}."
        )
    return current, target


def apply_transition(job, target, now, final_cost=None):
    current, target = check_transition(job, target)
    if final_cost is not None and target is not JobStatus.REPAIR_COMPLETED:
        raise InvalidAmount("Final cost can only be set when the repair is completed.")

    if target is JobStatus.REPAIR_COMPLETED:
        _settle_costs(job, final_cost, now)
    elif target is JobStatus.CANCELLED:
        job.cancelled_at = now
    elif target is JobStatus.COMPLETED:
        job.completion_date = now

    job.status = target.value
    return [
        JobTransitioned(
            occurred_at=now,
            job_id=job.id,
            customer_id=job.customer_id,
            repair_center_id=job.repair_center_id,
            old_status=current.value,
            new_status=target.value,
        )
    ]


def forward(job, targets, now):
    """Apply several transitions in order, e.g. an accepted quote into the workflow."""
    events = []
    for target in targets:
        events.extend(apply_transition(job, target, now))
    return events
