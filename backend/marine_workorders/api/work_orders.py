"""Work order API routes: CRUD, transitions and status history"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from marine_workorders.api.dependencies import get_actor_id, get_container
from marine_workorders.api.errors import PROBLEM_RESPONSES
from marine_workorders.models import WorkOrderPriority, WorkOrderStatus
from marine_workorders.schemas import (
    HistoryResponse,
    StatusEventResponse,
    TransitionRequest,
    WorkOrderCreate,
    WorkOrderCreatedResponse,
    WorkOrderResponse,
    WorkOrderRowResponse,
)
from marine_workorders.services import HistoryService, ServiceContainer, SortOrder
from marine_workorders.services.work_order_views import filter_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/work-orders", tags=["work-orders"], responses=PROBLEM_RESPONSES)


@router.post("", response_model=WorkOrderCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_work_order(
    request: WorkOrderCreate,
    actor_id: Optional[str] = Depends(get_actor_id),
    container: ServiceContainer = Depends(get_container),
) -> WorkOrderCreatedResponse:
    """
    Create a work order.

    The code stays "PENDING" and the initial status history event is written
    alongside the record.

    Raises:
        HTTPException 400: Missing client or defect
        HTTPException 502: Work order created but its initial event failed
    """
    work_order_id = await container.work_orders.create(
        request.model_dump(exclude_unset=True), created_by=actor_id
    )
    return WorkOrderCreatedResponse(id=work_order_id)


@router.get("", response_model=List[WorkOrderRowResponse])
async def list_work_orders(
    q: Optional[str] = Query(None, description="Free-text search over code, names and defect"),
    status_filter: Optional[WorkOrderStatus] = Query(None, alias="status"),
    priority: Optional[WorkOrderPriority] = Query(None),
    container: ServiceContainer = Depends(get_container),
) -> List[Dict[str, Any]]:
    """List work orders with resolved reference names, most recently updated first"""
    rows = filter_rows(await container.rows(), query=q, status=status_filter, priority=priority)
    return [row.to_dict() for row in rows]


@router.get("/{work_order_id}", response_model=WorkOrderResponse)
async def get_work_order(
    work_order_id: str,
    container: ServiceContainer = Depends(get_container),
) -> WorkOrderResponse:
    work_order = await container.work_orders.get(work_order_id)
    return WorkOrderResponse.from_model(work_order)


@router.patch("/{work_order_id}", response_model=WorkOrderResponse)
async def update_work_order(
    work_order_id: str,
    fields: Dict[str, Any] = Body(..., description="Partial work order fields"),
    container: ServiceContainer = Depends(get_container),
) -> WorkOrderResponse:
    """
    Update editable fields.

    Raises:
        HTTPException 409: Fields include status or another repository-owned field
        HTTPException 400: Unknown or invalid fields
        HTTPException 404: Work order not found
    """
    await container.work_orders.update(work_order_id, fields)
    return WorkOrderResponse.from_model(await container.work_orders.get(work_order_id))


@router.delete("/{work_order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_work_order(
    work_order_id: str,
    container: ServiceContainer = Depends(get_container),
) -> Response:
    """Delete a work order and its status history. Deleting twice is allowed."""
    await container.work_orders.delete(work_order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{work_order_id}/transitions",
    response_model=StatusEventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def transition_work_order(
    work_order_id: str,
    request: TransitionRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    container: ServiceContainer = Depends(get_container),
) -> StatusEventResponse:
    """
    Move a work order to another status.

    Raises:
        HTTPException 404: Work order not found
        HTTPException 409: Already in the target status
        HTTPException 422: A guard is unmet (service report or note missing)
        HTTPException 502: History event written but status write failed
    """
    work_order = await container.work_orders.get(work_order_id)
    if work_order.status != request.target_status:
        container.guard.check(work_order, request.target_status, request.note)

    event = await container.engine.transition(
        work_order_id, request.target_status, note=request.note, changed_by=actor_id
    )
    return StatusEventResponse.from_model(event)


@router.get("/{work_order_id}/history", response_model=HistoryResponse)
async def get_status_history(
    work_order_id: str,
    order: SortOrder = Query(SortOrder.ASCENDING, description="ascending for timelines, descending for audit"),
    container: ServiceContainer = Depends(get_container),
) -> HistoryResponse:
    """Status history of a work order and whether it agrees with the current status"""
    work_order = await container.work_orders.get(work_order_id)
    events = await container.history.list(work_order_id, order)
    return HistoryResponse(
        work_order_id=work_order_id,
        consistency=HistoryService.reconcile(work_order, events).value,
        events=[StatusEventResponse.from_model(event) for event in events],
    )
