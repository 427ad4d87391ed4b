"""Client model"""

from typing import Optional

from marine_workorders.models.base import TimestampedModel


class Client(TimestampedModel):
    """Customer owning vessels and equipment"""

    name: str
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
