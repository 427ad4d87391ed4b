"""Base model with common fields for all store records"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Optional, Set

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, TypeAdapter

_timestamp_adapter = TypeAdapter(datetime)


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def encode_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Encode a timestamp the same way records encode theirs"""
    if value is None:
        return None
    return _timestamp_adapter.dump_python(value, mode="json")


class BaseModel(PydanticBaseModel):
    """
    Base for records decoded from realtime store snapshots.

    The store keys records by id, so ``id`` is never part of the persisted value.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Fields never persisted inline with the record
    store_excluded: ClassVar[Set[str]] = {"id"}

    id: str

    @classmethod
    def from_snapshot(cls, record_id: str, value: Dict[str, Any]):
        """Decode a store value into a model, injecting the key as id"""
        return cls.model_validate({**value, "id": record_id})

    def to_store(self) -> Dict[str, Any]:
        """Encode the record as a JSON-compatible store value"""
        return self.model_dump(mode="json", by_alias=True, exclude=self.store_excluded)

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampedModel(BaseModel):
    """Record carrying created/updated timestamps stamped by its repository"""

    created_at: datetime
    updated_at: datetime
