"""API schemas package"""

from .photo import PhotoListResponse, PhotoResponse
from .work_order import (
    HistoryResponse,
    StatusEventResponse,
    TransitionRequest,
    WorkOrderCreate,
    WorkOrderCreatedResponse,
    WorkOrderResponse,
    WorkOrderRowResponse,
)
from .reference import ClientCreate, CreatedResponse, EquipmentCreate, VesselCreate
from .board import ConfirmMoveRequest, MoveRequest

__all__ = [
    "PhotoListResponse",
    "PhotoResponse",
    "HistoryResponse",
    "StatusEventResponse",
    "TransitionRequest",
    "WorkOrderCreate",
    "WorkOrderCreatedResponse",
    "WorkOrderResponse",
    "WorkOrderRowResponse",
    "ClientCreate",
    "CreatedResponse",
    "EquipmentCreate",
    "VesselCreate",
    "ConfirmMoveRequest",
    "MoveRequest",
]
