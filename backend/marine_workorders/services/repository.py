"""Shared plumbing for keyed collections in the realtime store"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import ValidationError

from marine_workorders.exceptions import NotFound, ValidationFailed
from marine_workorders.models import TimestampedModel, utcnow
from marine_workorders.store import RealtimeStore, Subscription, TenantPaths

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=TimestampedModel)

Clock = Callable[[], datetime]


def validation_message(error: ValidationError) -> str:
    """Flatten a pydantic error into 'field: message' pairs"""
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in error.errors()
    )


class CollectionRepository(Generic[RecordT]):
    """
    Decoding, sorting and subscription helpers for one store collection.

    Lists are always sorted by ``updated_at`` descending (most recently
    touched first).
    """

    model: Type[RecordT]
    collection: str
    entity_name: str = "Record"

    def __init__(self, store: RealtimeStore, paths: TenantPaths, clock: Optional[Clock] = None):
        self.store = store
        self.paths = paths
        self.clock = clock or utcnow

    def collection_path(self) -> str:
        return self.paths.collection(self.collection)

    def record_path(self, record_id: str) -> str:
        return self.paths.record(self.collection, record_id)

    def decode(self, record_id: str, value: Any) -> Optional[RecordT]:
        """Decode one record; malformed records are skipped, not fatal to the stream"""
        if not isinstance(value, dict):
            return None
        try:
            return self.model.from_snapshot(record_id, value)
        except ValidationError as e:
            logger.warning(f"Skipping malformed {self.entity_name} {record_id}: {validation_message(e)}")
            return None

    def decode_list(self, snapshot: Any) -> List[RecordT]:
        records = [self.decode(record_id, value) for record_id, value in (snapshot or {}).items()]
        records = [record for record in records if record is not None]
        records.sort(key=lambda r: r.updated_at, reverse=True)
        return records

    def reject_unknown(self, fields: Dict[str, Any]) -> None:
        unknown = set(fields) - set(self.model.model_fields)
        if unknown:
            raise ValidationFailed(f"Unknown {self.entity_name} fields: {sorted(unknown)}")

    def build(self, fields: Dict[str, Any]) -> RecordT:
        """Validate fields into a model, mapping pydantic errors to ValidationFailed"""
        try:
            return self.model.model_validate({"id": "new", **fields})
        except ValidationError as e:
            raise ValidationFailed(validation_message(e))

    async def find(self, record_id: str) -> Optional[RecordT]:
        value = await self.store.read(self.record_path(record_id))
        return self.decode(record_id, value) if value is not None else None

    async def get(self, record_id: str) -> RecordT:
        """
        Raises:
            NotFound: If the record does not exist
        """
        record = await self.find(record_id)
        if record is None:
            raise NotFound(self.entity_name, record_id)
        return record

    async def list(self) -> List[RecordT]:
        return self.decode_list(await self.store.read(self.collection_path()))

    async def subscribe(
        self,
        record_id: Optional[str],
        callback: Callable[[Any], Any],
    ) -> Subscription:
        """
        Live stream of one record (None once deleted) or, when record_id is
        None, of the whole sorted collection.
        """
        if record_id is None:
            return await self.store.subscribe(
                self.collection_path(), lambda snapshot: callback(self.decode_list(snapshot))
            )

        def on_record(value):
            return callback(self.decode(record_id, value) if value is not None else None)

        return await self.store.subscribe(self.record_path(record_id), on_record)
