"""Read-side projections of work orders for lists, board cards and dashboard"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from marine_workorders.models import (
    PRIORITY_RANK,
    Client,
    Equipment,
    Vessel,
    WorkOrder,
    WorkOrderPriority,
    WorkOrderStatus,
)

MISSING_NAME = "-"


@dataclass
class WorkOrderRow:
    """Work order joined with the names of the records it references"""

    work_order: WorkOrder
    client_name: str = MISSING_NAME
    vessel_name: str = MISSING_NAME
    equipment_name: str = MISSING_NAME

    @property
    def search_text(self) -> str:
        parts = [
            self.work_order.code,
            self.client_name,
            self.vessel_name,
            self.equipment_name,
            self.work_order.reported_defect,
        ]
        return " ".join(parts).lower()

    def to_dict(self) -> Dict:
        return {
            **self.work_order.model_dump(mode="json", exclude={"photos"}),
            "photo_count": len(self.work_order.photos),
            "client_name": self.client_name,
            "vessel_name": self.vessel_name,
            "equipment_name": self.equipment_name,
        }


def build_rows(
    work_orders: Iterable[WorkOrder],
    clients: Sequence[Client] = (),
    vessels: Sequence[Vessel] = (),
    equipment: Sequence[Equipment] = (),
) -> List[WorkOrderRow]:
    """Resolve reference names for each work order; unknown ids show as '-'"""
    client_names = {c.id: c.name for c in clients}
    vessel_names = {v.id: v.name for v in vessels}
    equipment_names = {e.id: e.name for e in equipment}

    return [
        WorkOrderRow(
            work_order=wo,
            client_name=client_names.get(wo.client_id, MISSING_NAME),
            vessel_name=vessel_names.get(wo.vessel_id, MISSING_NAME),
            equipment_name=equipment_names.get(wo.equipment_id, MISSING_NAME),
        )
        for wo in work_orders
    ]


def filter_rows(
    rows: Iterable[WorkOrderRow],
    query: Optional[str] = None,
    status: Optional[WorkOrderStatus] = None,
    priority: Optional[WorkOrderPriority] = None,
) -> List[WorkOrderRow]:
    """Keep rows matching every given filter. Query matching is case-insensitive."""
    needle = (query or "").strip().lower()
    result = []
    for row in rows:
        if status is not None and row.work_order.status != status:
            continue
        if priority is not None and row.work_order.priority != priority:
            continue
        if needle and needle not in row.search_text:
            continue
        result.append(row)
    return result


def _recency(value: datetime) -> float:
    return -value.timestamp()


def priority_key(work_order: WorkOrder):
    """Sort key: priority rank descending, then updated_at descending"""
    return (-PRIORITY_RANK[work_order.priority], _recency(work_order.updated_at))


def sort_by_priority(rows: Iterable[WorkOrderRow]) -> List[WorkOrderRow]:
    return sorted(rows, key=lambda row: priority_key(row.work_order))
