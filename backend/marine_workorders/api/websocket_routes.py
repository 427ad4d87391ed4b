"""WebSocket routes for live work order, history and board snapshots"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from marine_workorders.api.dependencies import get_container
from marine_workorders.api.board import serialize_columns
from marine_workorders.models import StatusEvent, WorkOrder
from marine_workorders.schemas import StatusEventResponse, WorkOrderResponse
from marine_workorders.services import HistoryService, SortOrder
from marine_workorders.services.work_order_views import build_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/ws", tags=["websocket"])


async def send_snapshot(websocket: WebSocket, message_type: str, data: Any) -> None:
    await websocket.send_json({"type": message_type, "data": data})


async def serve_until_disconnect(websocket: WebSocket, release: Callable[[], None]) -> None:
    """
    Answer pings until the client goes away, then release the watch.
    Snapshots are pushed by the watch callback meanwhile.
    """
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected from {websocket.url.path}")
    finally:
        release()


@router.websocket("/work-orders")
async def websocket_work_orders(websocket: WebSocket):
    """Full work order list (with reference names) on every change"""
    container = get_container(websocket)
    await websocket.accept()

    async def on_change(work_orders: List[WorkOrder]) -> None:
        rows = build_rows(
            work_orders,
            await container.clients.list(),
            await container.vessels.list(),
            await container.equipment.list(),
        )
        await send_snapshot(websocket, "work_orders", [row.to_dict() for row in rows])

    subscription = await container.work_orders.subscribe(None, on_change)
    await serve_until_disconnect(websocket, subscription.unsubscribe)


@router.websocket("/work-orders/{work_order_id}")
async def websocket_work_order(websocket: WebSocket, work_order_id: str):
    """One work order on every change; data is null once it is deleted"""
    container = get_container(websocket)
    await websocket.accept()

    async def on_change(work_order: Optional[WorkOrder]) -> None:
        data = WorkOrderResponse.from_model(work_order).model_dump(mode="json") if work_order else None
        await send_snapshot(websocket, "work_order", data)

    subscription = await container.work_orders.subscribe(work_order_id, on_change)
    await serve_until_disconnect(websocket, subscription.unsubscribe)


@router.websocket("/work-orders/{work_order_id}/history")
async def websocket_history(websocket: WebSocket, work_order_id: str, order: SortOrder = SortOrder.ASCENDING):
    """Complete status history on every change, with its consistency against the work order"""
    container = get_container(websocket)
    await websocket.accept()

    async def on_change(events: List[StatusEvent]) -> None:
        work_order = await container.work_orders.find(work_order_id)
        payload: Dict[str, Any] = {
            "work_order_id": work_order_id,
            "consistency": HistoryService.reconcile(work_order, events).value if work_order else None,
            "events": [
                StatusEventResponse.from_model(event).model_dump(mode="json", by_alias=True)
                for event in events
            ],
        }
        await send_snapshot(websocket, "history", payload)

    subscription = await container.history.subscribe(work_order_id, on_change, order)
    await serve_until_disconnect(websocket, subscription.unsubscribe)


@router.websocket("/board")
async def websocket_board(websocket: WebSocket):
    """Board columns on every work order change"""
    container = get_container(websocket)
    await websocket.accept()

    board = container.board
    await board.attach()

    async def on_columns(columns) -> None:
        await send_snapshot(websocket, "board", serialize_columns(columns))

    remove = board.add_listener(on_columns)
    await on_columns(board.columns())
    await serve_until_disconnect(websocket, remove)
