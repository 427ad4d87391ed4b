"""Kanban board API schemas"""

from typing import Optional
from pydantic import BaseModel, Field

from marine_workorders.models import WorkOrderStatus


class MoveRequest(BaseModel):
    """A card dropped on a column"""

    work_order_id: str = Field(..., min_length=1)
    target_status: WorkOrderStatus


class ConfirmMoveRequest(BaseModel):
    """Note supplied for a move held for one"""

    note: Optional[str] = Field(None, max_length=2000)
