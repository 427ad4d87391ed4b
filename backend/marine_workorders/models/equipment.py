"""Equipment model"""

import enum
from typing import Optional

from marine_workorders.models.base import TimestampedModel


class SystemType(str, enum.Enum):
    """Equipment system family"""
    HYDRAULIC = "hydraulic"
    ELECTRONIC = "electronic"
    OFFSHORE = "offshore"


class Equipment(TimestampedModel):
    """Serviceable equipment, optionally installed on a vessel"""

    client_id: Optional[str] = None
    vessel_id: Optional[str] = None
    name: str
    model: Optional[str] = None
    serial: Optional[str] = None
    system_type: Optional[SystemType] = None
    notes: Optional[str] = None
