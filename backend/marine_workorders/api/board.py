"""Kanban board API routes"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from marine_workorders.api.dependencies import get_actor_id, get_container
from marine_workorders.api.errors import PROBLEM_RESPONSES
from marine_workorders.models import WorkOrderPriority
from marine_workorders.schemas import ConfirmMoveRequest, MoveRequest
from marine_workorders.services import KanbanBoard, ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/board", tags=["board"], responses=PROBLEM_RESPONSES)


def serialize_columns(columns) -> Dict[str, List[Dict[str, Any]]]:
    return {status.value: [row.to_dict() for row in rows] for status, rows in columns.items()}


async def current_board(container: ServiceContainer) -> KanbanBoard:
    if not container.board.attached:
        await container.board.refresh()
    return container.board


@router.get("")
async def get_board(
    q: Optional[str] = Query(None, description="Free-text search"),
    priority: Optional[WorkOrderPriority] = Query(None),
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Six status columns, cards ordered by priority then recency"""
    board = await current_board(container)
    return {"columns": serialize_columns(board.columns(query=q, priority=priority))}


@router.post("/moves")
async def move_card(
    request: MoveRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """
    Drop a card on a column.

    Returns the outcome: no_op, rejected (with prompt and action),
    note_required (with pending_move_id) or committed (with the event).
    """
    result = await container.board.move(request.work_order_id, request.target_status, changed_by=actor_id)
    return result.to_dict()


@router.post("/moves/{pending_move_id}/confirm")
async def confirm_move(
    pending_move_id: str,
    request: ConfirmMoveRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    """Supply the note for a held move. An empty note keeps it held."""
    result = await container.board.confirm(pending_move_id, request.note, changed_by=actor_id)
    return result.to_dict()


@router.delete("/moves/{pending_move_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_move(
    pending_move_id: str,
    container: ServiceContainer = Depends(get_container),
) -> Response:
    """Discard a held move without writing anything"""
    container.board.cancel(pending_move_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
