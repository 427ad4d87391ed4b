"""Binary object storage contract"""

from abc import ABC, abstractmethod


class BlobStorage(ABC):
    """Durable binary storage for photo files"""

    @abstractmethod
    async def put_object(
        self,
        path: str,
        data: bytes,
        content_type: str,
        cache_control: str = "",
    ) -> None:
        """Store bytes under path, replacing any existing object"""

    @abstractmethod
    async def get_public_url(self, path: str) -> str:
        """Durable access URL for the object at path"""

    @abstractmethod
    async def delete_object(self, path: str) -> None:
        """Delete the object; deleting a missing object succeeds"""
