"""Tests for transition guard rules"""

import pytest

from marine_workorders.exceptions import GuardFailed
from marine_workorders.models import WorkOrder, WorkOrderStatus
from marine_workorders.services.guards import (
    NOTE_REQUIRED,
    REPORT_REQUIRED,
    GuardAction,
    GuardKind,
    TransitionGuard,
)


def make_work_order(clock, **overrides):
    fields = {
        "id": "wo1",
        "client_id": "c1",
        "reported_defect": "Leak",
        "created_at": clock.now,
        "updated_at": clock.now,
        "status_updated_at": clock.now,
    }
    fields.update(overrides)
    return WorkOrder.model_validate(fields)


class TestTransitionGuard:
    """Test the default rule table"""

    def test_done_requires_report(self, clock):
        guard = TransitionGuard()
        work_order = make_work_order(clock)

        assert guard.evaluate(work_order, WorkOrderStatus.DONE) == [REPORT_REQUIRED]
        assert REPORT_REQUIRED.kind == GuardKind.PRECONDITION
        assert REPORT_REQUIRED.action == GuardAction.OPEN_WORK_ORDER

    def test_whitespace_report_does_not_count(self, clock):
        guard = TransitionGuard()
        work_order = make_work_order(clock, service_report="   ")

        with pytest.raises(GuardFailed) as exc_info:
            guard.check(work_order, WorkOrderStatus.DONE)

        assert exc_info.value.reason == "report-required"
        assert exc_info.value.action == "open_work_order"
        assert exc_info.value.prompt

    def test_done_with_report_passes(self, clock):
        guard = TransitionGuard()
        work_order = make_work_order(clock, service_report="Replaced seal")

        guard.check(work_order, WorkOrderStatus.DONE)

    @pytest.mark.parametrize(
        "target",
        [WorkOrderStatus.AWAITING_PART, WorkOrderStatus.AWAITING_BUDGET_APPROVAL],
    )
    def test_awaiting_requires_note(self, clock, target):
        guard = TransitionGuard()
        work_order = make_work_order(clock)

        assert guard.requires_note(target)
        assert guard.evaluate(work_order, target, note="") == [NOTE_REQUIRED]
        assert guard.evaluate(work_order, target, note="Waiting on seal kit") == []

        with pytest.raises(GuardFailed) as exc_info:
            guard.check(work_order, target, note=None)
        assert exc_info.value.reason == "note-required"
        assert exc_info.value.action == "supply_note"

    @pytest.mark.parametrize(
        "target",
        [WorkOrderStatus.UNDER_REVIEW, WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.CANCELED],
    )
    def test_unguarded_targets(self, clock, target):
        guard = TransitionGuard()

        assert not guard.requires_note(target)
        assert guard.evaluate(make_work_order(clock), target) == []

    def test_preconditions_reported_first(self, clock):
        guard = TransitionGuard(rules={WorkOrderStatus.DONE: [NOTE_REQUIRED, REPORT_REQUIRED]})

        unmet = guard.evaluate(make_work_order(clock), WorkOrderStatus.DONE)

        assert unmet == [REPORT_REQUIRED, NOTE_REQUIRED]

    def test_custom_rule_table(self, clock):
        guard = TransitionGuard(rules={})

        guard.check(make_work_order(clock), WorkOrderStatus.DONE)
