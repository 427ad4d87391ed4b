"""Photo API schemas"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from marine_workorders.models import Photo


class PhotoResponse(BaseModel):
    """Response schema for photo details"""

    id: str = Field(..., description="Photo ID")
    url: str = Field(..., description="Download URL of the photo")
    path: str = Field(..., description="Blob key of the photo")
    name: str = Field(..., description="Original file name")
    created_at: datetime = Field(..., description="Upload timestamp")
    created_by: Optional[str] = Field(None, description="Uploader")

    @classmethod
    def from_model(cls, photo: Photo) -> "PhotoResponse":
        return cls(**photo.model_dump())


class PhotoListResponse(BaseModel):
    """Photos of one work order, newest first"""

    photos: List[PhotoResponse]
    total: int
