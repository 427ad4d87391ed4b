"""Binary object storage adapters"""

from marine_workorders.storage.base import BlobStorage
from marine_workorders.storage.memory import InMemoryBlobStorage
from marine_workorders.storage.s3 import S3BlobStorage

__all__ = ["BlobStorage", "InMemoryBlobStorage", "S3BlobStorage"]
