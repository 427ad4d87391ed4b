"""Work order repository: creation, field updates, deletion and live streams"""

import logging
from typing import Any, Dict, List, Optional

from marine_workorders.exceptions import (
    InvalidTransition,
    NotFound,
    PartialFailure,
    StoreUnavailable,
    ValidationFailed,
)
from marine_workorders.models import PENDING_CODE, Photo, StatusEvent, WorkOrder
from marine_workorders.models.base import encode_timestamp
from marine_workorders.monitoring.metrics import metrics_collector
from marine_workorders.services.history_service import HistoryService
from marine_workorders.services.repository import Clock, CollectionRepository
from marine_workorders.services.retry import RetryPolicy
from marine_workorders.store import RealtimeStore, TenantPaths
from marine_workorders.store import paths as store_paths

logger = logging.getLogger(__name__)

# Written only by this service and the transition engine
REPOSITORY_OWNED_FIELDS = frozenset(
    {"id", "code", "created_at", "updated_at", "status_updated_at", "photos", "created_by"}
)

REQUIRED_TEXT_FIELDS = ("client_id", "reported_defect")


class WorkOrderService(CollectionRepository[WorkOrder]):
    """
    Sole owner of the work order aggregate in the store.

    Status never changes through ``update``; every status change goes through
    ``StatusTransitionEngine.transition`` so it always carries a history event.
    """

    model = WorkOrder
    collection = store_paths.WORK_ORDERS
    entity_name = "Work order"

    def __init__(
        self,
        store: RealtimeStore,
        paths: TenantPaths,
        history: HistoryService,
        clock: Optional[Clock] = None,
        retry: Optional[RetryPolicy] = None,
    ):
        super().__init__(store, paths, clock)
        self.history = history
        self.retry = retry or RetryPolicy.from_settings()

    async def create(self, fields: Dict[str, Any], created_by: Optional[str] = None) -> str:
        """
        Create a work order with code PENDING and the implicit initial history event.

        Args:
            fields: client_id and reported_defect are required; status defaults
                to UNDER_REVIEW and priority to medium
            created_by: Optional actor id

        Returns:
            Store-generated work order id

        Raises:
            ValidationFailed: Missing required text or invalid values
            StoreUnavailable: The work order write failed (nothing was created)
            PartialFailure: The work order exists but its initial event could not be written
        """
        owned = REPOSITORY_OWNED_FIELDS & set(fields)
        if owned:
            raise ValidationFailed(f"Fields {sorted(owned)} are assigned by the repository")
        self.reject_unknown(fields)
        self._require_text(fields, REQUIRED_TEXT_FIELDS)

        now = self.clock()
        work_order = self.build(
            {
                **fields,
                "code": PENDING_CODE,
                "created_by": created_by,
                "created_at": now,
                "updated_at": now,
                "status_updated_at": now,
            }
        )

        work_order_id = await self.store.append_unique(self.collection_path(), work_order.to_store())
        logger.info(f"Created work order {work_order_id} in {work_order.status.value}")

        initial_event = StatusEvent(
            id=self.history.new_event_id(),
            from_status=None,
            to_status=work_order.status,
            changed_at=now,
            changed_by=created_by,
        )
        try:
            await self.retry.call(self.history.append, work_order_id, initial_event)
        except StoreUnavailable as e:
            logger.error(f"Work order {work_order_id} created without its initial history event: {e}")
            metrics_collector.record_partial_failure("create_work_order")
            raise PartialFailure(
                "create_work_order",
                ["work_order"],
                str(e),
                payload={"work_order_id": work_order_id, "event": initial_event},
            )
        metrics_collector.record_transition(None, work_order.status.value)
        return work_order_id

    async def update(self, work_order_id: str, fields: Dict[str, Any]) -> None:
        """
        Merge partial fields and stamp updated_at.

        Raises:
            InvalidTransition: If fields include status or a repository-owned field
            ValidationFailed: Unknown fields, invalid values, or blanked required text
            NotFound: If the work order does not exist
        """
        if "status" in fields:
            raise InvalidTransition("Status can only change through a transition")
        owned = REPOSITORY_OWNED_FIELDS & set(fields)
        if owned:
            raise InvalidTransition(f"Fields {sorted(owned)} are managed by the repository")
        self.reject_unknown(fields)
        self._require_text(
            fields, [name for name in REQUIRED_TEXT_FIELDS if name in fields]
        )

        existing = await self.get(work_order_id)
        merged = self.build({**existing.model_dump(exclude={"id"}), **fields}).to_store()
        payload = {key: merged.get(key) for key in fields}
        payload["updated_at"] = encode_timestamp(self.clock())

        # Deleted since it was read: never recreate it from the partial
        if not await self.store.merge_existing(self.record_path(work_order_id), payload):
            raise NotFound(self.entity_name, work_order_id)
        logger.info(f"Updated work order {work_order_id}: {sorted(fields)}")

    async def delete(self, work_order_id: str) -> None:
        """
        Remove the work order, then its whole history stream. Safe to repeat.

        Raises:
            StoreUnavailable: The work order could not be removed
            PartialFailure: The work order is gone but its history remains
        """
        await self.store.remove(self.record_path(work_order_id))
        logger.info(f"Deleted work order {work_order_id}")

        try:
            await self.history.delete_all(work_order_id)
        except StoreUnavailable as e:
            logger.error(f"Orphaned status history left for deleted work order {work_order_id}: {e}")
            metrics_collector.record_partial_failure("delete_work_order")
            raise PartialFailure(
                "delete_work_order",
                ["work_order"],
                str(e),
                payload={"work_order_id": work_order_id},
            )

    async def list_photos(self, work_order_id: str) -> List[Photo]:
        """Photos of a work order, newest first"""
        work_order = await self.get(work_order_id)
        return sorted(work_order.photos.values(), key=lambda p: p.created_at, reverse=True)

    @staticmethod
    def _require_text(fields: Dict[str, Any], names) -> None:
        missing = [name for name in names if not str(fields.get(name) or "").strip()]
        if missing:
            raise ValidationFailed(f"Required fields are empty: {missing}")
