"""Status history event model"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from marine_workorders.models.base import BaseModel
from marine_workorders.models.work_order import WorkOrderStatus


class StatusEvent(BaseModel):
    """
    Immutable record of one status change.

    ``from_status`` is None only for the initial event written at creation.
    Persisted under the ``from``/``to`` keys.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    from_status: Optional[WorkOrderStatus] = Field(None, alias="from")
    to_status: WorkOrderStatus = Field(..., alias="to")
    note: Optional[str] = None
    changed_at: datetime
    changed_by: Optional[str] = None

    def __repr__(self):
        return f"<StatusEvent(id={self.id}, from={self.from_status}, to={self.to_status})>"
