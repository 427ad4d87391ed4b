"""Repositories for clients, vessels and equipment"""

import logging
from typing import Any, Dict

from marine_workorders.exceptions import NotFound, ValidationFailed
from marine_workorders.models import Client, Equipment, Vessel
from marine_workorders.models.base import encode_timestamp
from marine_workorders.services.repository import CollectionRepository
from marine_workorders.store import paths as store_paths

logger = logging.getLogger(__name__)

READ_ONLY_FIELDS = {"id", "created_at", "updated_at"}


class ReferenceService(CollectionRepository):
    """
    Keyed collection without lifecycle rules.
    Deleting never cascades to work orders or child entities.
    """

    async def create(self, fields: Dict[str, Any]) -> str:
        """
        Create a record stamped with created_at == updated_at == now.

        Returns:
            Store-generated id
        """
        self.reject_unknown(fields)
        now = self.clock()
        record = self.build({**fields, "created_at": now, "updated_at": now})
        record_id = await self.store.append_unique(self.collection_path(), record.to_store())
        logger.info(f"Created {self.entity_name} {record_id}")
        return record_id

    async def update(self, record_id: str, fields: Dict[str, Any]) -> None:
        """
        Merge partial fields and stamp updated_at.

        Raises:
            NotFound: If the record does not exist
        """
        read_only = READ_ONLY_FIELDS & set(fields)
        if read_only:
            raise ValidationFailed(f"Fields {sorted(read_only)} cannot be updated")
        self.reject_unknown(fields)

        existing = await self.get(record_id)
        merged = self.build({**existing.model_dump(exclude={"id"}), **fields}).to_store()
        payload = {key: merged.get(key) for key in fields}
        payload["updated_at"] = encode_timestamp(self.clock())
        if not await self.store.merge_existing(self.record_path(record_id), payload):
            raise NotFound(self.entity_name, record_id)
        logger.info(f"Updated {self.entity_name} {record_id}")

    async def delete(self, record_id: str) -> None:
        await self.store.remove(self.record_path(record_id))
        logger.info(f"Deleted {self.entity_name} {record_id}")


class ClientService(ReferenceService):
    model = Client
    collection = store_paths.CLIENTS
    entity_name = "Client"


class VesselService(ReferenceService):
    model = Vessel
    collection = store_paths.VESSELS
    entity_name = "Vessel"


class EquipmentService(ReferenceService):
    model = Equipment
    collection = store_paths.EQUIPMENT
    entity_name = "Equipment"
