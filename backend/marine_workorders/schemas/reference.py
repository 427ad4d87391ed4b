"""Client, vessel and equipment API schemas"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from marine_workorders.models import SystemType


class ClientCreate(BaseModel):
    """Request schema for creating a client"""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class VesselCreate(BaseModel):
    """Request schema for creating a vessel"""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    client_id: Optional[str] = None
    registration: Optional[str] = None
    type: Optional[str] = None
    notes: Optional[str] = None


class EquipmentCreate(BaseModel):
    """Request schema for creating equipment"""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    client_id: Optional[str] = None
    vessel_id: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    system_type: Optional[SystemType] = None
    notes: Optional[str] = None


class CreatedResponse(BaseModel):
    id: str
