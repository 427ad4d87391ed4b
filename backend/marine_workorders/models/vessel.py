"""Vessel model"""

from typing import Optional

from marine_workorders.models.base import TimestampedModel


class Vessel(TimestampedModel):
    """Vessel belonging to a client"""

    client_id: Optional[str] = None
    name: str
    registration: Optional[str] = None
    type: Optional[str] = None
    notes: Optional[str] = None
