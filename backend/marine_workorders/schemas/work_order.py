"""Work order API schemas"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from marine_workorders.models import (
    StatusEvent,
    WorkOrder,
    WorkOrderPriority,
    WorkOrderStatus,
)
from marine_workorders.schemas.photo import PhotoResponse


class WorkOrderCreate(BaseModel):
    """Request schema for creating a work order"""

    model_config = ConfigDict(extra="forbid")

    client_id: str = Field(..., min_length=1, description="Client that owns the work")
    reported_defect: str = Field(..., min_length=1, description="Defect as reported by the client")
    vessel_id: Optional[str] = Field(None, description="Vessel the work is on")
    equipment_id: Optional[str] = Field(None, description="Equipment being serviced")
    assignee_uid: Optional[str] = Field(None, description="Assigned technician")
    service_report: Optional[str] = Field(None, description="Technician's service report")
    priority: WorkOrderPriority = Field(WorkOrderPriority.MEDIUM, description="Priority")
    status: WorkOrderStatus = Field(WorkOrderStatus.UNDER_REVIEW, description="Initial status")


class WorkOrderResponse(BaseModel):
    """Response schema for work order details"""

    id: str
    code: str
    client_id: str
    vessel_id: Optional[str] = None
    equipment_id: Optional[str] = None
    assignee_uid: Optional[str] = None
    reported_defect: str
    service_report: Optional[str] = None
    priority: WorkOrderPriority
    status: WorkOrderStatus
    photos: List[PhotoResponse] = Field(default_factory=list, description="Newest first")
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    status_updated_at: datetime

    @classmethod
    def from_model(cls, work_order: WorkOrder) -> "WorkOrderResponse":
        photos = sorted(work_order.photos.values(), key=lambda p: p.created_at, reverse=True)
        return cls(
            **work_order.model_dump(exclude={"photos"}),
            photos=[PhotoResponse.from_model(photo) for photo in photos],
        )


class WorkOrderRowResponse(BaseModel):
    """Work order list row with resolved reference names"""

    model_config = ConfigDict(extra="allow")

    id: str
    code: str
    status: WorkOrderStatus
    priority: WorkOrderPriority
    client_name: str
    vessel_name: str
    equipment_name: str
    photo_count: int


class WorkOrderCreatedResponse(BaseModel):
    id: str


class TransitionRequest(BaseModel):
    """Request schema for a status transition"""

    target_status: WorkOrderStatus = Field(..., description="Status to move to")
    note: Optional[str] = Field(None, max_length=2000, description="Reason for the change")


class StatusEventResponse(BaseModel):
    """One status history entry"""

    id: str
    from_status: Optional[WorkOrderStatus] = Field(None, serialization_alias="from")
    to_status: WorkOrderStatus = Field(..., serialization_alias="to")
    note: Optional[str] = None
    changed_at: datetime
    changed_by: Optional[str] = None

    @classmethod
    def from_model(cls, event: StatusEvent) -> "StatusEventResponse":
        return cls(**event.model_dump())


class HistoryResponse(BaseModel):
    """Status history plus its consistency with the work order"""

    work_order_id: str
    consistency: str
    events: List[StatusEventResponse]

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
