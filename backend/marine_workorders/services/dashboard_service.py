"""Operations dashboard: KPIs, focus list and work queue"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from marine_workorders.models import WorkOrderPriority, WorkOrderStatus, utcnow
from marine_workorders.services.repository import Clock
from marine_workorders.services.work_order_views import WorkOrderRow, sort_by_priority

FOCUS_LIMIT = 8
QUEUE_LIMIT = 12

URGENT_PRIORITIES = frozenset({WorkOrderPriority.CRITICAL, WorkOrderPriority.HIGH})


def age_label(since: datetime, now: datetime) -> str:
    """Relative age: 'now', 'N min', 'N h' or 'N d'"""
    minutes = int((now - since).total_seconds() // 60)
    if minutes < 1:
        return "now"
    if minutes < 60:
        return f"{minutes} min"
    hours = minutes // 60
    if hours < 24:
        return f"{hours} h"
    return f"{hours // 24} d"


@dataclass
class DashboardKpis:
    active: int = 0
    in_progress: int = 0
    awaiting_part: int = 0
    awaiting_budget_approval: int = 0
    urgent: int = 0


@dataclass
class DashboardItem:
    row: WorkOrderRow
    age: str

    def to_dict(self) -> Dict:
        return {**self.row.to_dict(), "age": self.age}


@dataclass
class Dashboard:
    kpis: DashboardKpis
    focus_now: List[DashboardItem] = field(default_factory=list)
    queue: List[DashboardItem] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "kpis": asdict(self.kpis),
            "focus_now": [item.to_dict() for item in self.focus_now],
            "queue": [item.to_dict() for item in self.queue],
        }


class DashboardService:
    """Computes the dashboard from enriched rows; nothing is stored"""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utcnow

    def build(self, rows: Iterable[WorkOrderRow]) -> Dashboard:
        now = self.clock()
        active = [row for row in rows if row.work_order.is_active]

        kpis = DashboardKpis(active=len(active))
        for row in active:
            status = row.work_order.status
            if status == WorkOrderStatus.IN_PROGRESS:
                kpis.in_progress += 1
            elif status == WorkOrderStatus.AWAITING_PART:
                kpis.awaiting_part += 1
            elif status == WorkOrderStatus.AWAITING_BUDGET_APPROVAL:
                kpis.awaiting_budget_approval += 1
            if row.work_order.priority in URGENT_PRIORITIES:
                kpis.urgent += 1

        focus = sorted(
            (row for row in active if row.work_order.priority in URGENT_PRIORITIES),
            key=lambda row: row.work_order.updated_at,
            reverse=True,
        )[:FOCUS_LIMIT]
        queue = sort_by_priority(active)[:QUEUE_LIMIT]

        return Dashboard(
            kpis=kpis,
            focus_now=[self._item(row, now) for row in focus],
            queue=[self._item(row, now) for row in queue],
        )

    @staticmethod
    def _item(row: WorkOrderRow, now: datetime) -> DashboardItem:
        return DashboardItem(row=row, age=age_label(row.work_order.updated_at, now))
