"""Work order aggregate model"""

import enum
from datetime import datetime
from typing import Any, ClassVar, Dict, Optional, Set

from pydantic import Field, field_validator

from marine_workorders.models.base import TimestampedModel
from marine_workorders.models.photo import Photo

PENDING_CODE = "PENDING"


class WorkOrderStatus(str, enum.Enum):
    """Work order status lifecycle"""
    UNDER_REVIEW = "UNDER_REVIEW"
    AWAITING_PART = "AWAITING_PART"
    AWAITING_BUDGET_APPROVAL = "AWAITING_BUDGET_APPROVAL"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELED = "CANCELED"


class WorkOrderPriority(str, enum.Enum):
    """Work order priority"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Board and queue ordering, highest first
PRIORITY_RANK: Dict[WorkOrderPriority, int] = {
    WorkOrderPriority.CRITICAL: 4,
    WorkOrderPriority.HIGH: 3,
    WorkOrderPriority.MEDIUM: 2,
    WorkOrderPriority.LOW: 1,
}

CLOSED_STATUSES = frozenset({WorkOrderStatus.DONE, WorkOrderStatus.CANCELED})


class WorkOrder(TimestampedModel):
    """
    Work order aggregate tracked through its service lifecycle.

    ``status``, ``status_updated_at``, ``updated_at`` and ``photos`` are written
    only by the work order services; everything else goes through
    ``WorkOrderService.update``.
    """

    store_excluded: ClassVar[Set[str]] = {"id", "photos"}

    code: str = PENDING_CODE
    client_id: str
    vessel_id: Optional[str] = None
    equipment_id: Optional[str] = None
    assignee_uid: Optional[str] = None
    reported_defect: str
    service_report: Optional[str] = None
    priority: WorkOrderPriority = WorkOrderPriority.MEDIUM
    status: WorkOrderStatus = WorkOrderStatus.UNDER_REVIEW
    photos: Dict[str, Photo] = Field(default_factory=dict)
    created_by: Optional[str] = None
    status_updated_at: datetime

    @field_validator("photos", mode="before")
    @classmethod
    def _key_photos(cls, value: Any) -> Any:
        # Photo metadata is keyed by photo id in the store
        if not isinstance(value, dict):
            return value
        return {
            photo_id: {**photo, "id": photo_id} if isinstance(photo, dict) else photo
            for photo_id, photo in value.items()
        }

    @property
    def is_active(self) -> bool:
        return self.status not in CLOSED_STATUSES

    @property
    def has_service_report(self) -> bool:
        return bool((self.service_report or "").strip())

    def __repr__(self):
        return f"<WorkOrder(id={self.id}, status={self.status.value})>"
