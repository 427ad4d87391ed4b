"""Status transition engine"""

import logging
from typing import Dict, Optional, Set, Union

from marine_workorders.exceptions import (
    InvalidTransition,
    NoOp,
    NotFound,
    PartialFailure,
    StoreUnavailable,
    ValidationFailed,
)
from marine_workorders.models import StatusEvent, WorkOrderStatus
from marine_workorders.models.base import encode_timestamp
from marine_workorders.monitoring.metrics import metrics_collector
from marine_workorders.services.history_service import HistoryService
from marine_workorders.services.repository import Clock
from marine_workorders.services.retry import RetryPolicy
from marine_workorders.services.work_order_service import WorkOrderService

logger = logging.getLogger(__name__)

TransitionTable = Dict[WorkOrderStatus, Set[WorkOrderStatus]]


def coerce_status(value: Union[str, WorkOrderStatus]) -> WorkOrderStatus:
    try:
        return WorkOrderStatus(value)
    except ValueError:
        raise ValidationFailed(f"Unknown status: {value}")


def normalize_note(note: Optional[str]) -> Optional[str]:
    if note is None or not note.strip():
        return None
    return note.strip()


class StatusTransitionEngine:
    """
    Validates and applies status changes.

    Each transition is two store writes on different paths:

    1. the StatusEvent, written under its own pre-generated id (write-if-absent)
    2. ``status``, ``status_updated_at`` and ``updated_at`` on the work order

    A failure in step 1 means nothing happened. A failure in step 2 after
    retries raises PartialFailure carrying the event; ``replay`` finishes it
    without ever appending the event twice.

    Guards (report/note requirements) are the caller's job; see
    ``services.guards``. Any-to-any transitions are allowed unless an
    ``allowed_transitions`` table is supplied.
    """

    def __init__(
        self,
        work_orders: WorkOrderService,
        history: HistoryService,
        clock: Optional[Clock] = None,
        retry: Optional[RetryPolicy] = None,
        allowed_transitions: Optional[TransitionTable] = None,
    ):
        self.work_orders = work_orders
        self.history = history
        self.clock = clock or work_orders.clock
        self.retry = retry or RetryPolicy.from_settings()
        self.allowed_transitions = allowed_transitions

    async def transition(
        self,
        work_order_id: str,
        target_status: Union[str, WorkOrderStatus],
        note: Optional[str] = None,
        changed_by: Optional[str] = None,
    ) -> StatusEvent:
        """
        Move a work order to target_status.

        Returns:
            The recorded StatusEvent

        Raises:
            ValidationFailed: Unknown target status
            NotFound: Work order does not exist, or was deleted mid-transition
                (its history stream is purged again)
            NoOp: Target equals the current status (nothing is written)
            InvalidTransition: Target not allowed by the transition table
            StoreUnavailable: History event could not be written (nothing happened)
            PartialFailure: Event written, status fields not; payload is the event
        """
        target = coerce_status(target_status)
        work_order = await self.work_orders.get(work_order_id)

        if work_order.status == target:
            logger.info(f"Work order {work_order_id} already {target.value}, ignoring transition")
            metrics_collector.record_noop(target.value)
            raise NoOp(work_order_id, target.value)

        self._check_allowed(work_order.status, target)

        event = StatusEvent(
            id=self.history.new_event_id(),
            from_status=work_order.status,
            to_status=target,
            note=normalize_note(note),
            changed_at=self.clock(),
            changed_by=changed_by,
        )

        await self.retry.call(self.history.append, work_order_id, event)

        try:
            applied = await self.retry.call(self._apply_status, work_order_id, event)
        except StoreUnavailable as e:
            logger.error(
                f"Transition {event.id} of {work_order_id} recorded in history "
                f"but status write failed: {e}"
            )
            metrics_collector.record_partial_failure("transition")
            raise PartialFailure("transition", ["history_event"], str(e), payload=event)

        if not applied:
            await self._discard_orphaned_history(work_order_id, event)

        metrics_collector.record_transition(work_order.status.value, target.value)
        logger.info(f"Work order {work_order_id}: {work_order.status.value} -> {target.value}")
        return event

    async def replay(self, work_order_id: str, event: StatusEvent) -> bool:
        """
        Finish a transition that raised PartialFailure.

        The event is appended only if missing. Its status write is skipped when
        a newer status change has already landed.

        Returns:
            True if the status fields were written, False if skipped
        """
        work_order = await self.work_orders.get(work_order_id)
        await self.retry.call(self.history.append, work_order_id, event)

        if work_order.status_updated_at > event.changed_at:
            logger.warning(
                f"Not replaying {event.id} on {work_order_id}: a newer status change already landed"
            )
            return False
        if work_order.status == event.to_status and work_order.status_updated_at == event.changed_at:
            return False

        if not await self.retry.call(self._apply_status, work_order_id, event):
            await self._discard_orphaned_history(work_order_id, event)
        metrics_collector.record_transition(
            event.from_status.value if event.from_status else None, event.to_status.value
        )
        logger.info(f"Replayed transition {event.id} on {work_order_id}")
        return True

    def _check_allowed(self, current: WorkOrderStatus, target: WorkOrderStatus) -> None:
        if self.allowed_transitions is None:
            return
        if target not in self.allowed_transitions.get(current, set()):
            raise InvalidTransition(f"Transition {current.value} -> {target.value} is not allowed")

    async def _apply_status(self, work_order_id: str, event: StatusEvent) -> bool:
        stamp = encode_timestamp(event.changed_at)
        return await self.work_orders.store.merge_existing(
            self.work_orders.record_path(work_order_id),
            {
                "status": event.to_status.value,
                "status_updated_at": stamp,
                "updated_at": stamp,
            },
        )

    async def _discard_orphaned_history(self, work_order_id: str, event: StatusEvent) -> None:
        """
        The work order was deleted after our event was appended. Purge the
        stream the delete already purged once, then report the work order gone.

        Raises:
            NotFound: Always, once the stream is purged
            PartialFailure: The purge failed; payload is the orphaned event
        """
        logger.warning(f"Work order {work_order_id} deleted during transition {event.id}, purging its history")
        try:
            await self.history.delete_all(work_order_id)
        except StoreUnavailable as e:
            logger.error(f"Orphaned history event {event.id} left for deleted work order {work_order_id}: {e}")
            metrics_collector.record_partial_failure("transition")
            raise PartialFailure("transition", ["history_event"], str(e), payload=event)
        raise NotFound(self.work_orders.entity_name, work_order_id)
