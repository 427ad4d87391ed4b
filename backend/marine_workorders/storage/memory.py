"""In-process blob storage for development and tests"""

from dataclasses import dataclass
from typing import Dict

from marine_workorders.storage.base import BlobStorage


@dataclass
class StoredObject:
    data: bytes
    content_type: str
    cache_control: str


class InMemoryBlobStorage(BlobStorage):
    """Keeps objects in a dict and serves them under a fake base URL"""

    def __init__(self, base_url: str = "memory://blobs"):
        self.base_url = base_url.rstrip("/")
        self.objects: Dict[str, StoredObject] = {}

    async def put_object(self, path, data, content_type, cache_control=""):
        self.objects[path] = StoredObject(data, content_type, cache_control)

    async def get_public_url(self, path):
        return f"{self.base_url}/{path}"

    async def delete_object(self, path):
        self.objects.pop(path, None)
