from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.errors import InvalidAmount, InvalidTransition, TerminalState
from app.services.events import JobTransitioned
from app.services.job_state import (
    JOB_TRANSITIONS,
    TERMINAL_STATUSES,
    JobStatus,
    allowed_targets,
    apply_transition,
    coerce_status,
    forward,
)


def _job(status, quoted_cost=None, final_cost=None):
    return SimpleNamespace(
        id=7,
        customer_id=1,
        repair_center_id=10,
        status=status.value,
        quoted_cost=quoted_cost,
        final_cost=final_cost,
        app_commission=None,
        payment_deadline=None,
        cancelled_at=None,
        completion_date=None,
    )


ALL_EDGES = [(source, target) for source, targets in JOB_TRANSITIONS.items() for target in targets]
NON_EDGES = [
    (source, target)
    for source in JobStatus
    for target in JobStatus
    if source not in TERMINAL_STATUSES and target != source and target not in JOB_TRANSITIONS[source]
]


class TestTransitionTable:
    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {JobStatus.QUOTE_REJECTED, JobStatus.COMPLETED, JobStatus.CANCELLED}

    def test_every_live_status_can_be_cancelled(self):
        for status, targets in JOB_TRANSITIONS.items():
            if status not in TERMINAL_STATUSES:
                assert JobStatus.CANCELLED in targets

    def test_allowed_targets_are_sorted_values(self):
        assert allowed_targets("requested") == ["cancelled", "pickup_scheduled"]

    def test_unknown_status(self):
        with pytest.raises(InvalidTransition):
            coerce_status("teleported")
        with pytest.raises(InvalidTransition):
            coerce_status(None)


class TestApplyTransition:
    @pytest.mark.parametrize("source,target", ALL_EDGES)
    def test_every_edge_is_accepted(self, source, target, now):
        job = _job(source, quoted_cost=Decimal("100.00"))
        events = apply_transition(job, target, now)
        assert job.status == target.value
        assert events == [
            JobTransitioned(
                occurred_at=now,
                job_id=7,
                customer_id=1,
                repair_center_id=10,
                old_status=source.value,
                new_status=target.value,
            )
        ]

    @pytest.mark.parametrize("source,target", NON_EDGES)
    def test_everything_else_is_rejected(self, source, target, now):
        job = _job(source)
        with pytest.raises(InvalidTransition):
            apply_transition(job, target, now)
        assert job.status == source.value

    def test_requested_cannot_jump_to_in_repair(self, now):
        with pytest.raises(InvalidTransition):
            apply_transition(_job(JobStatus.REQUESTED), JobStatus.IN_REPAIR, now)

    def test_same_status_is_rejected(self, now):
        with pytest.raises(InvalidTransition):
            apply_transition(_job(JobStatus.IN_REPAIR), "in_repair", now)

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    def test_terminal_jobs_never_move(self, terminal, now):
        job = _job(terminal)
        with pytest.raises(TerminalState):
            apply_transition(job, JobStatus.CANCELLED, now)
        assert job.status == terminal.value

    def test_repair_completed_settles_costs_from_quote(self, now):
        job = _job(JobStatus.IN_REPAIR, quoted_cost=Decimal("10000"))
        apply_transition(job, JobStatus.REPAIR_COMPLETED, now)
        assert job.final_cost == Decimal("10000.00")
        assert job.app_commission == Decimal("750.00")
        assert job.payment_deadline == now + timedelta(hours=48)

    def test_explicit_final_cost_wins_over_quote(self, now):
        job = _job(JobStatus.IN_REPAIR, quoted_cost=Decimal("10000"))
        apply_transition(job, JobStatus.REPAIR_COMPLETED, now, final_cost="12000")
        assert job.final_cost == Decimal("12000.00")
        assert job.app_commission == Decimal("900.00")

    def test_repair_completed_without_any_cost(self, now):
        job = _job(JobStatus.IN_REPAIR)
        with pytest.raises(InvalidAmount):
            apply_transition(job, JobStatus.REPAIR_COMPLETED, now)
        assert job.status == JobStatus.IN_REPAIR.value

    def test_final_cost_only_on_repair_completed(self, now):
        with pytest.raises(InvalidAmount):
            apply_transition(_job(JobStatus.REQUESTED), JobStatus.PICKUP_SCHEDULED, now, final_cost="10")

    def test_cancel_and_complete_stamp_times(self, now):
        cancelled = _job(JobStatus.PICKED_UP)
        apply_transition(cancelled, JobStatus.CANCELLED, now)
        assert cancelled.cancelled_at == now

        completed = _job(JobStatus.RETURNED)
        apply_transition(completed, JobStatus.COMPLETED, now)
        assert completed.completion_date == now

    def test_forward_emits_one_event_per_step(self, now):
        job = _job(JobStatus.QUOTE_PENDING_REVIEW)
        events = forward(job, [JobStatus.QUOTE_ACCEPTED, JobStatus.REQUESTED], now)
        assert [e.new_status for e in events] == ["quote_accepted", "requested"]
        assert job.status == "requested"
