"""Store record models package"""

from marine_workorders.models.base import BaseModel, TimestampedModel, utcnow
from marine_workorders.models.client import Client
from marine_workorders.models.vessel import Vessel
from marine_workorders.models.equipment import Equipment, SystemType
from marine_workorders.models.photo import Photo
from marine_workorders.models.work_order import (
    CLOSED_STATUSES,
    PENDING_CODE,
    PRIORITY_RANK,
    WorkOrder,
    WorkOrderPriority,
    WorkOrderStatus,
)
from marine_workorders.models.status_event import StatusEvent

# Export all models
__all__ = [
    "BaseModel",
    "TimestampedModel",
    "utcnow",
    "Client",
    "Vessel",
    "Equipment",
    "SystemType",
    "Photo",
    "WorkOrder",
    "WorkOrderPriority",
    "WorkOrderStatus",
    "PENDING_CODE",
    "PRIORITY_RANK",
    "CLOSED_STATUSES",
    "StatusEvent",
]
