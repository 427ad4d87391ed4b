"""Kanban board: derived status columns and guarded drag-and-drop moves"""

import enum
import inspect
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Union
from uuid import uuid4

from marine_workorders.config import settings
from marine_workorders.exceptions import NoOp, NotFound, StoreUnavailable
from marine_workorders.models import (
    Client,
    Equipment,
    StatusEvent,
    Vessel,
    WorkOrder,
    WorkOrderPriority,
    WorkOrderStatus,
    utcnow,
)
from marine_workorders.monitoring.metrics import metrics_collector
from marine_workorders.services.guards import GuardKind, GuardRule, TransitionGuard
from marine_workorders.services.reference_service import (
    ClientService,
    EquipmentService,
    VesselService,
)
from marine_workorders.services.repository import Clock
from marine_workorders.services.transition_service import StatusTransitionEngine, coerce_status
from marine_workorders.services.work_order_service import WorkOrderService
from marine_workorders.services.work_order_views import (
    WorkOrderRow,
    build_rows,
    filter_rows,
    sort_by_priority,
)
from marine_workorders.store import Subscription

logger = logging.getLogger(__name__)

Columns = Dict[WorkOrderStatus, List[WorkOrderRow]]
ColumnsListener = Callable[[Columns], Any]


class MoveOutcome(str, enum.Enum):
    NO_OP = "no_op"
    REJECTED = "rejected"
    NOTE_REQUIRED = "note_required"
    COMMITTED = "committed"


@dataclass
class MoveResult:
    outcome: MoveOutcome
    work_order_id: str
    target_status: WorkOrderStatus
    event: Optional[StatusEvent] = None
    pending_move_id: Optional[str] = None
    reason: Optional[str] = None
    prompt: Optional[str] = None
    action: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "work_order_id": self.work_order_id,
            "target_status": self.target_status.value,
            "event": self.event.model_dump(mode="json", by_alias=True) if self.event else None,
            "pending_move_id": self.pending_move_id,
            "reason": self.reason,
            "prompt": self.prompt,
            "action": self.action,
        }


@dataclass
class PendingMove:
    id: str
    work_order_id: str
    target_status: WorkOrderStatus
    rule: GuardRule
    changed_by: Optional[str] = None
    created_at: Any = field(default_factory=utcnow)


class KanbanBoard:
    """
    One column per status, derived from a live work order snapshot.

    Moves go through the guard table before the engine. Moves waiting for a
    note are held in memory by id, so several users can each have one open
    at the same time; nothing about a pending move is persisted, and one left
    unresolved for longer than pending_ttl seconds is dropped.
    """

    def __init__(
        self,
        work_orders: WorkOrderService,
        engine: StatusTransitionEngine,
        guard: Optional[TransitionGuard] = None,
        clients: Optional[ClientService] = None,
        vessels: Optional[VesselService] = None,
        equipment: Optional[EquipmentService] = None,
        default_note: Optional[str] = None,
        clock: Optional[Clock] = None,
        pending_ttl: Optional[int] = None,
    ):
        self.work_orders = work_orders
        self.engine = engine
        self.guard = guard or TransitionGuard()
        self.clients = clients
        self.vessels = vessels
        self.equipment = equipment
        self.default_note = default_note or settings.board_default_note
        self.clock = clock or utcnow
        self.pending_ttl = timedelta(
            seconds=pending_ttl if pending_ttl is not None else settings.board_pending_move_ttl_seconds
        )

        self._work_orders: List[WorkOrder] = []
        self._clients: List[Client] = []
        self._vessels: List[Vessel] = []
        self._equipment: List[Equipment] = []
        self._subscriptions: List[Subscription] = []
        self._listeners: List[ColumnsListener] = []
        self._pending: Dict[str, PendingMove] = {}

    @property
    def attached(self) -> bool:
        return bool(self._subscriptions)

    @property
    def pending_moves(self) -> List[PendingMove]:
        self._expire_pending()
        return list(self._pending.values())

    async def attach(self) -> None:
        """Start following the work order and reference collections"""
        if self.attached:
            return
        self._subscriptions.append(await self.work_orders.subscribe(None, self._on_work_orders))
        for service, attr in (
            (self.clients, "_clients"),
            (self.vessels, "_vessels"),
            (self.equipment, "_equipment"),
        ):
            if service is not None:
                self._subscriptions.append(await service.subscribe(None, self._setter(attr)))
        logger.info("Kanban board attached")

    def detach(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self._listeners = []
        logger.info("Kanban board detached")

    async def refresh(self) -> None:
        """One-off reload for a board that is not attached"""
        self._work_orders = await self.work_orders.list()
        if self.clients is not None:
            self._clients = await self.clients.list()
        if self.vessels is not None:
            self._vessels = await self.vessels.list()
        if self.equipment is not None:
            self._equipment = await self.equipment.list()

    def add_listener(self, listener: ColumnsListener) -> Callable[[], None]:
        """Call listener with fresh columns after every work order snapshot"""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def rows(self) -> List[WorkOrderRow]:
        return build_rows(self._work_orders, self._clients, self._vessels, self._equipment)

    def columns(
        self,
        query: Optional[str] = None,
        priority: Optional[WorkOrderPriority] = None,
    ) -> Columns:
        """Cards per status, ordered by priority rank then most recently updated"""
        rows = filter_rows(self.rows(), query=query, priority=priority)
        columns: Columns = {status: [] for status in WorkOrderStatus}
        for row in sort_by_priority(rows):
            columns[row.work_order.status].append(row)
        return columns

    async def move(
        self,
        work_order_id: str,
        target_status: Union[str, WorkOrderStatus],
        changed_by: Optional[str] = None,
    ) -> MoveResult:
        """
        Handle a card dropped on a column.

        Returns:
            MoveResult with outcome no_op, rejected, note_required or committed

        Raises:
            NotFound: Work order does not exist
            StoreUnavailable: Nothing was written
            PartialFailure: History event written, status not
        """
        target = coerce_status(target_status)
        work_order = await self.work_orders.get(work_order_id)

        if work_order.status == target:
            return MoveResult(MoveOutcome.NO_OP, work_order_id, target)

        unmet = self.guard.evaluate(work_order, target, note=None)
        preconditions = [rule for rule in unmet if rule.kind == GuardKind.PRECONDITION]
        if preconditions:
            return self._rejected(work_order, target, preconditions[0])

        self._expire_pending()
        if unmet:
            rule = unmet[0]
            pending = PendingMove(
                id=uuid4().hex,
                work_order_id=work_order_id,
                target_status=target,
                rule=rule,
                changed_by=changed_by,
                created_at=self.clock(),
            )
            self._pending[pending.id] = pending
            logger.info(f"Move {pending.id} of {work_order_id} to {target.value} waiting for a note")
            return MoveResult(
                MoveOutcome.NOTE_REQUIRED,
                work_order_id,
                target,
                pending_move_id=pending.id,
                reason=rule.reason,
                prompt=rule.prompt,
                action=rule.action.value,
            )

        return await self._commit(work_order_id, target, self.default_note, changed_by)

    async def confirm(
        self,
        pending_move_id: str,
        note: Optional[str],
        changed_by: Optional[str] = None,
    ) -> MoveResult:
        """
        Complete a move held for a note. An empty note keeps it pending.

        Raises:
            NotFound: Unknown or already resolved pending move
        """
        self._expire_pending()
        pending = self._pending.get(pending_move_id)
        if pending is None:
            raise NotFound("Pending move", pending_move_id)

        if not (note or "").strip():
            return MoveResult(
                MoveOutcome.NOTE_REQUIRED,
                pending.work_order_id,
                pending.target_status,
                pending_move_id=pending.id,
                reason=pending.rule.reason,
                prompt=pending.rule.prompt,
                action=pending.rule.action.value,
            )

        work_order = await self.work_orders.get(pending.work_order_id)
        unmet = self.guard.evaluate(work_order, pending.target_status, note)
        if unmet:
            del self._pending[pending.id]
            return self._rejected(work_order, pending.target_status, unmet[0])

        del self._pending[pending.id]
        try:
            return await self._commit(
                pending.work_order_id,
                pending.target_status,
                note,
                changed_by or pending.changed_by,
            )
        except StoreUnavailable:
            # Nothing was written; the same move can be confirmed again
            self._pending[pending.id] = pending
            raise

    def cancel(self, pending_move_id: str) -> None:
        """
        Raises:
            NotFound: Unknown or already resolved pending move
        """
        self._expire_pending()
        pending = self._pending.pop(pending_move_id, None)
        if pending is None:
            raise NotFound("Pending move", pending_move_id)
        logger.info(f"Canceled move {pending_move_id} of {pending.work_order_id}")

    def _expire_pending(self) -> None:
        cutoff = self.clock() - self.pending_ttl
        for pending in [p for p in self._pending.values() if p.created_at < cutoff]:
            del self._pending[pending.id]
            logger.info(f"Pending move {pending.id} of {pending.work_order_id} expired")

    async def _commit(
        self,
        work_order_id: str,
        target: WorkOrderStatus,
        note: str,
        changed_by: Optional[str],
    ) -> MoveResult:
        try:
            event = await self.engine.transition(work_order_id, target, note=note, changed_by=changed_by)
        except NoOp:
            return MoveResult(MoveOutcome.NO_OP, work_order_id, target)
        return MoveResult(MoveOutcome.COMMITTED, work_order_id, target, event=event)

    def _rejected(self, work_order: WorkOrder, target: WorkOrderStatus, rule: GuardRule) -> MoveResult:
        logger.warning(
            f"Board move of {work_order.id} to {target.value} rejected: {rule.reason}"
        )
        metrics_collector.record_guard_rejection(rule.reason)
        return MoveResult(
            MoveOutcome.REJECTED,
            work_order.id,
            target,
            reason=rule.reason,
            prompt=rule.prompt,
            action=rule.action.value,
        )

    def _setter(self, attr: str):
        def update(records):
            setattr(self, attr, records)
            return self._notify()

        return update

    async def _on_work_orders(self, records: List[WorkOrder]) -> None:
        self._work_orders = records
        await self._notify()

    async def _notify(self) -> None:
        if not self._listeners:
            return
        columns = self.columns()
        for listener in list(self._listeners):
            try:
                result = listener(columns)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Board listener failed")
