"""Photo model"""

from datetime import datetime
from typing import Optional

from marine_workorders.models.base import BaseModel


class Photo(BaseModel):
    """
    Photo evidence attached to a work order.
    ``path`` is the durable blob key, ``url`` the resolved download location.
    """

    url: str
    path: str
    name: str
    created_at: datetime
    created_by: Optional[str] = None

    @property
    def extension(self) -> str:
        return self.path.rsplit(".", 1)[-1] if "." in self.path else ""
