"""Guard rules checked by callers before asking the engine for a transition"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from marine_workorders.exceptions import GuardFailed
from marine_workorders.models import WorkOrder, WorkOrderStatus
from marine_workorders.monitoring.metrics import metrics_collector

logger = logging.getLogger(__name__)


class GuardKind(str, enum.Enum):
    """How a caller resolves an unmet guard"""
    # The work order itself must change first; the move is rejected
    PRECONDITION = "precondition"
    # The caller can collect the missing input and retry the same move
    INPUT = "input"


class GuardAction(str, enum.Enum):
    """Action offered to the user alongside the prompt"""
    OPEN_WORK_ORDER = "open_work_order"
    SUPPLY_NOTE = "supply_note"


@dataclass(frozen=True)
class GuardRule:
    reason: str
    kind: GuardKind
    action: GuardAction
    prompt: str
    # (work_order, note) -> True when satisfied
    predicate: Callable[[WorkOrder, Optional[str]], bool]

    def is_satisfied(self, work_order: WorkOrder, note: Optional[str]) -> bool:
        return self.predicate(work_order, note)

    def failure(self) -> GuardFailed:
        return GuardFailed(self.reason, self.prompt, self.action.value)


def _has_note(work_order: WorkOrder, note: Optional[str]) -> bool:
    return bool((note or "").strip())


def _has_report(work_order: WorkOrder, note: Optional[str]) -> bool:
    return work_order.has_service_report


REPORT_REQUIRED = GuardRule(
    reason="report-required",
    kind=GuardKind.PRECONDITION,
    action=GuardAction.OPEN_WORK_ORDER,
    prompt="Fill in the service report before moving the work order to Done.",
    predicate=_has_report,
)

NOTE_REQUIRED = GuardRule(
    reason="note-required",
    kind=GuardKind.INPUT,
    action=GuardAction.SUPPLY_NOTE,
    prompt="Add a note explaining what the work order is waiting for.",
    predicate=_has_note,
)

DEFAULT_RULES: Dict[WorkOrderStatus, List[GuardRule]] = {
    WorkOrderStatus.DONE: [REPORT_REQUIRED],
    WorkOrderStatus.AWAITING_PART: [NOTE_REQUIRED],
    WorkOrderStatus.AWAITING_BUDGET_APPROVAL: [NOTE_REQUIRED],
}


class TransitionGuard:
    """Evaluates the guard rule table for a proposed transition"""

    def __init__(self, rules: Optional[Dict[WorkOrderStatus, List[GuardRule]]] = None):
        self.rules = DEFAULT_RULES if rules is None else rules

    def rules_for(self, target: WorkOrderStatus) -> List[GuardRule]:
        return list(self.rules.get(target, []))

    def requires_note(self, target: WorkOrderStatus) -> bool:
        return any(rule.kind == GuardKind.INPUT for rule in self.rules_for(target))

    def evaluate(
        self,
        work_order: WorkOrder,
        target: WorkOrderStatus,
        note: Optional[str] = None,
    ) -> List[GuardRule]:
        """Unmet rules, preconditions first"""
        unmet = [rule for rule in self.rules_for(target) if not rule.is_satisfied(work_order, note)]
        unmet.sort(key=lambda rule: rule.kind != GuardKind.PRECONDITION)
        return unmet

    def check(
        self,
        work_order: WorkOrder,
        target: WorkOrderStatus,
        note: Optional[str] = None,
    ) -> None:
        """
        Raise GuardFailed for the first unmet rule.

        Raises:
            GuardFailed: If any rule for the target status is unmet
        """
        unmet = self.evaluate(work_order, target, note)
        if unmet:
            rule = unmet[0]
            logger.warning(
                f"Guard {rule.reason} blocked {work_order.id}: "
                f"{work_order.status.value} -> {target.value}"
            )
            metrics_collector.record_guard_rejection(rule.reason)
            raise rule.failure()
