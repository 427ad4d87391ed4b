"""Services package"""

from .history_service import HistoryConsistency, HistoryService, SortOrder
from .work_order_service import WorkOrderService
from .transition_service import StatusTransitionEngine
from .guards import TransitionGuard
from .photo_service import PhotoFile, PhotoService
from .reference_service import ClientService, EquipmentService, VesselService
from .kanban_service import KanbanBoard, MoveOutcome, MoveResult
from .dashboard_service import DashboardService
from .retry import RetryPolicy
from .container import ServiceContainer

__all__ = [
    "HistoryConsistency",
    "HistoryService",
    "SortOrder",
    "WorkOrderService",
    "StatusTransitionEngine",
    "TransitionGuard",
    "PhotoFile",
    "PhotoService",
    "ClientService",
    "EquipmentService",
    "VesselService",
    "KanbanBoard",
    "MoveOutcome",
    "MoveResult",
    "DashboardService",
    "RetryPolicy",
    "ServiceContainer",
]
