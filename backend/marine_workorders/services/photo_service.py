"""Photo attachments: blob storage plus metadata under the work order"""

import logging
import mimetypes
from dataclasses import dataclass
from typing import Iterable, List, Optional
from uuid import uuid4

from marine_workorders.config import settings
from marine_workorders.exceptions import InvalidPhoto, NotFound, PartialFailure, StoreUnavailable
from marine_workorders.models import Photo
from marine_workorders.monitoring.metrics import metrics_collector
from marine_workorders.services.repository import Clock
from marine_workorders.services.retry import RetryPolicy
from marine_workorders.services.work_order_service import WorkOrderService
from marine_workorders.storage import BlobStorage
from marine_workorders.store.paths import PHOTOS, join

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic"}
DEFAULT_MIME_TYPE = "image/jpeg"
DEFAULT_EXTENSION = "jpg"


@dataclass
class PhotoFile:
    """One file of an upload batch"""

    data: bytes
    filename: str
    content_type: Optional[str] = None


def file_extension(filename: str) -> str:
    """Lower-cased extension of filename, jpg when it has none"""
    if "." not in filename:
        return DEFAULT_EXTENSION
    extension = filename.rsplit(".", 1)[-1].lower()
    return extension if extension.isalnum() else DEFAULT_EXTENSION


class PhotoService:
    """
    Keeps blobs and photo metadata in step.

    Upload writes the blob before the metadata and delete removes the blob
    before the metadata, so metadata never points at a blob that was never
    stored. The reverse gaps (orphaned blob, dangling metadata) are logged
    and surfaced as PartialFailure.
    """

    def __init__(
        self,
        work_orders: WorkOrderService,
        storage: BlobStorage,
        clock: Optional[Clock] = None,
        retry: Optional[RetryPolicy] = None,
        max_bytes: Optional[int] = None,
        cache_control: Optional[str] = None,
    ):
        self.work_orders = work_orders
        self.storage = storage
        self.paths = work_orders.paths
        self.store = work_orders.store
        self.clock = clock or work_orders.clock
        self.retry = retry or RetryPolicy.from_settings()
        self.max_bytes = max_bytes or settings.photo_max_bytes
        self.cache_control = cache_control if cache_control is not None else settings.photo_cache_control

    def validate_file(self, size: int, content_type: str) -> None:
        """
        Raises:
            InvalidPhoto: Empty, too large, or not an allowed image type
        """
        if size <= 0:
            raise InvalidPhoto("Photo file is empty")
        if size > self.max_bytes:
            raise InvalidPhoto(f"Photo size {size} bytes exceeds maximum of {self.max_bytes} bytes")
        if content_type not in ALLOWED_MIME_TYPES:
            raise InvalidPhoto(f"MIME type {content_type} not allowed. Allowed types: {sorted(ALLOWED_MIME_TYPES)}")

    @staticmethod
    def resolve_content_type(filename: str, content_type: Optional[str]) -> str:
        if content_type and content_type != "application/octet-stream":
            return content_type
        guessed, _ = mimetypes.guess_type(filename)
        return guessed or DEFAULT_MIME_TYPE

    async def upload(
        self,
        work_order_id: str,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
        uploaded_by: Optional[str] = None,
    ) -> Photo:
        """
        Store the binary, resolve its URL, then record its metadata.

        Raises:
            InvalidPhoto: File failed validation
            NotFound: Work order does not exist
            StoreUnavailable: Blob upload failed (nothing was stored)
            NotFound: Work order deleted while uploading (blob removed again)
            PartialFailure: Blob stored but metadata write failed (orphaned blob)
        """
        content_type = self.resolve_content_type(filename, content_type)
        self.validate_file(len(data), content_type)
        await self.work_orders.get(work_order_id)

        photo_id = uuid4().hex
        path = self.paths.photo_blob(work_order_id, photo_id, file_extension(filename))

        try:
            await self.storage.put_object(path, data, content_type, self.cache_control)
            url = await self.storage.get_public_url(path)
        except StoreUnavailable:
            metrics_collector.record_photo_upload("failed")
            raise

        photo = Photo(
            id=photo_id,
            url=url,
            path=path,
            name=filename,
            created_at=self.clock(),
            created_by=uploaded_by,
        )

        try:
            # Written through the work order so a deleted one is not recreated
            attached = await self.retry.call(
                self.store.merge_existing,
                self.paths.work_order(work_order_id),
                {join(PHOTOS, photo_id): photo.to_store()},
            )
        except StoreUnavailable as e:
            logger.error(f"Orphaned photo blob {path} for work order {work_order_id}: {e}")
            metrics_collector.record_photo_upload("orphaned")
            metrics_collector.record_partial_failure("upload_photo")
            raise PartialFailure("upload_photo", ["blob"], str(e), payload={"path": path})

        if not attached:
            await self._discard_blob(work_order_id, path)

        metrics_collector.record_photo_upload("success")
        logger.info(f"Attached photo {photo_id} ({len(data)} bytes) to work order {work_order_id}")
        return photo

    async def upload_many(
        self,
        work_order_id: str,
        files: Iterable[PhotoFile],
        uploaded_by: Optional[str] = None,
    ) -> List[Photo]:
        """
        Upload files one after another. The first failure stops the batch;
        photos uploaded before it stay committed.

        Raises:
            PartialFailure: A later file failed; payload lists committed photos
        """
        committed: List[Photo] = []
        for item in files:
            try:
                photo = await self.upload(
                    work_order_id, item.data, item.filename, item.content_type, uploaded_by
                )
            except (InvalidPhoto, StoreUnavailable, PartialFailure) as e:
                if not committed:
                    raise
                logger.error(
                    f"Photo batch for {work_order_id} stopped at {item.filename} "
                    f"after {len(committed)} uploads: {e}"
                )
                metrics_collector.record_partial_failure("upload_photos")
                raise PartialFailure(
                    "upload_photos",
                    [p.name for p in committed],
                    str(e),
                    payload={"committed": committed, "failed": item.filename},
                )
            committed.append(photo)
        return committed

    async def delete(self, work_order_id: str, photo: Photo) -> None:
        """
        Delete the blob, then the metadata entry. Safe to call again after a
        failure; both deletes are idempotent.

        Raises:
            StoreUnavailable: Blob delete failed (nothing changed)
            PartialFailure: Blob gone, metadata still listed (dangling reference)
        """
        try:
            await self.storage.delete_object(photo.path)
        except StoreUnavailable:
            metrics_collector.record_photo_delete("failed")
            raise

        try:
            await self.retry.call(self.store.remove, self.paths.photo(work_order_id, photo.id))
        except StoreUnavailable as e:
            logger.error(f"Dangling photo metadata {photo.id} on work order {work_order_id}: {e}")
            metrics_collector.record_photo_delete("dangling")
            metrics_collector.record_partial_failure("delete_photo")
            raise PartialFailure("delete_photo", ["blob"], str(e), payload={"photo_id": photo.id})

        metrics_collector.record_photo_delete("success")
        logger.info(f"Deleted photo {photo.id} from work order {work_order_id}")

    async def _discard_blob(self, work_order_id: str, path: str) -> None:
        """
        Remove a blob whose work order was deleted during the upload.

        Raises:
            NotFound: Always, once the blob is removed
            PartialFailure: The blob could not be removed (orphaned blob)
        """
        logger.warning(f"Work order {work_order_id} deleted during photo upload, removing blob {path}")
        metrics_collector.record_photo_upload("failed")
        try:
            await self.storage.delete_object(path)
        except StoreUnavailable as e:
            logger.error(f"Orphaned photo blob {path} for deleted work order {work_order_id}: {e}")
            metrics_collector.record_partial_failure("upload_photo")
            raise PartialFailure("upload_photo", ["blob"], str(e), payload={"path": path})
        raise NotFound(self.work_orders.entity_name, work_order_id)

    async def get(self, work_order_id: str, photo_id: str) -> Optional[Photo]:
        value = await self.store.read(self.paths.photo(work_order_id, photo_id))
        return Photo.from_snapshot(photo_id, value) if value else None
