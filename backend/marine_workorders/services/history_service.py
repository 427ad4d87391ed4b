"""Append-only status history stream per work order"""

import enum
import logging
from typing import Any, Callable, List, Optional

from marine_workorders.models import StatusEvent, WorkOrder
from marine_workorders.services.retry import RetryPolicy
from marine_workorders.store import RealtimeStore, Subscription, TenantPaths

logger = logging.getLogger(__name__)


class SortOrder(str, enum.Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class HistoryConsistency(str, enum.Enum):
    """How the history stream relates to the aggregate's current status"""
    CONSISTENT = "consistent"
    # Newest event is later than the status write: its second phase has not
    # landed (still pending, or overwritten by a racing writer)
    HISTORY_AHEAD = "history_ahead"
    # Status changed after the newest observed event: history push not seen yet
    HISTORY_BEHIND = "history_behind"
    # Same instant, different status: concurrent writers stamped the same time
    DIVERGED = "diverged"


def decode_events(snapshot: Any) -> List[StatusEvent]:
    """Decode a history snapshot in key (creation) order"""
    if not snapshot:
        return []
    return [StatusEvent.from_snapshot(event_id, snapshot[event_id]) for event_id in sorted(snapshot)]


def timeline(events: List[StatusEvent]) -> List[StatusEvent]:
    """Oldest first, for timeline rendering"""
    return sorted(events, key=lambda e: (e.changed_at, e.id))


def audit_listing(events: List[StatusEvent]) -> List[StatusEvent]:
    """Newest first, for raw audit listing"""
    return sorted(events, key=lambda e: (e.changed_at, e.id), reverse=True)


def apply_order(events: List[StatusEvent], order: Optional[SortOrder]) -> List[StatusEvent]:
    if order == SortOrder.ASCENDING:
        return timeline(events)
    if order == SortOrder.DESCENDING:
        return audit_listing(events)
    return events


class HistoryService:
    """
    Status history stored at workOrdersStatusHistory/{work_order_id}/{event_id}.

    Events are only ever appended (write-if-absent) or purged with their work
    order; a single event is never rewritten or removed.
    """

    def __init__(self, store: RealtimeStore, paths: TenantPaths, retry: Optional[RetryPolicy] = None):
        self.store = store
        self.paths = paths
        self.retry = retry or RetryPolicy.from_settings()

    def new_event_id(self) -> str:
        return self.store.generate_id()

    async def list(self, work_order_id: str, order: Optional[SortOrder] = None) -> List[StatusEvent]:
        snapshot = await self.store.read(self.paths.history(work_order_id))
        return apply_order(decode_events(snapshot), order)

    async def get(self, work_order_id: str, event_id: str) -> Optional[StatusEvent]:
        value = await self.store.read(self.paths.history_event(work_order_id, event_id))
        return StatusEvent.from_snapshot(event_id, value) if value else None

    async def append(self, work_order_id: str, event: StatusEvent) -> bool:
        """
        Persist event under its own id unless it is already there.

        Returns:
            True if written, False if the event already existed (replay)
        """
        path = self.paths.history_event(work_order_id, event.id)
        if await self.store.read(path) is not None:
            logger.info(f"History event {event.id} already recorded for {work_order_id}")
            return False
        await self.store.write(path, event.to_store())
        logger.info(
            f"Appended history event {event.id} for {work_order_id}: "
            f"{event.from_status.value if event.from_status else None} -> {event.to_status.value}"
        )
        return True

    async def delete_all(self, work_order_id: str) -> None:
        """Purge the whole stream; only used when the work order itself is deleted"""
        await self.retry.call(self.store.remove, self.paths.history(work_order_id))
        logger.info(f"Deleted status history for {work_order_id}")

    async def subscribe(
        self,
        work_order_id: str,
        callback: Callable[[List[StatusEvent]], Any],
        order: Optional[SortOrder] = None,
    ) -> Subscription:
        """Deliver the complete event list on every change"""

        def on_snapshot(snapshot):
            return callback(apply_order(decode_events(snapshot), order))

        return await self.store.subscribe(self.paths.history(work_order_id), on_snapshot)

    @staticmethod
    def reconcile(work_order: WorkOrder, events: List[StatusEvent]) -> HistoryConsistency:
        """
        Compare the two independently pushed streams by timestamps, never by
        arrival order.
        """
        if not events:
            return HistoryConsistency.HISTORY_BEHIND

        ordered = timeline(events)
        last = ordered[-1]
        if last.to_status == work_order.status and last.changed_at >= work_order.status_updated_at:
            return HistoryConsistency.CONSISTENT

        if last.changed_at == work_order.status_updated_at:
            return HistoryConsistency.DIVERGED
        if last.changed_at > work_order.status_updated_at:
            return HistoryConsistency.HISTORY_AHEAD
        return HistoryConsistency.HISTORY_BEHIND
