"""Photo attachment API routes"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from marine_workorders.api.dependencies import get_actor_id, get_container
from marine_workorders.api.errors import PROBLEM_RESPONSES
from marine_workorders.exceptions import InvalidPhoto, NotFound
from marine_workorders.schemas import PhotoListResponse, PhotoResponse
from marine_workorders.services import PhotoFile, ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/work-orders/{work_order_id}/photos",
    tags=["photos"],
    responses=PROBLEM_RESPONSES,
)


async def read_limited(upload: UploadFile, max_bytes: int) -> bytes:
    """
    Read an upload without buffering more than max_bytes + 1 bytes.

    Raises:
        InvalidPhoto: File is larger than max_bytes
    """
    if upload.size is not None and upload.size > max_bytes:
        raise InvalidPhoto(f"Photo size {upload.size} bytes exceeds maximum of {max_bytes} bytes")
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise InvalidPhoto(f"Photo {upload.filename} exceeds maximum of {max_bytes} bytes")
    return data


@router.post("", response_model=PhotoListResponse, status_code=status.HTTP_201_CREATED)
async def upload_photos(
    work_order_id: str,
    files: List[UploadFile] = File(..., description="Image files"),
    actor_id: Optional[str] = Depends(get_actor_id),
    container: ServiceContainer = Depends(get_container),
) -> PhotoListResponse:
    """
    Attach one or more photos to a work order.

    Files are uploaded one after another; a failure stops the batch and the
    photos uploaded before it stay attached. An oversized file rejects the
    whole request before anything is uploaded.

    Raises:
        HTTPException 400: Empty, oversized or non-image file
        HTTPException 404: Work order not found
        HTTPException 502: Batch stopped part way, or metadata write failed
        HTTPException 503: Blob storage unavailable
    """
    batch = [
        PhotoFile(
            data=await read_limited(upload, container.photos.max_bytes),
            filename=upload.filename or "photo",
            content_type=upload.content_type,
        )
        for upload in files
    ]
    photos = await container.photos.upload_many(work_order_id, batch, uploaded_by=actor_id)
    return PhotoListResponse(
        photos=[PhotoResponse.from_model(photo) for photo in photos],
        total=len(photos),
    )


@router.get("", response_model=PhotoListResponse)
async def list_photos(
    work_order_id: str,
    container: ServiceContainer = Depends(get_container),
) -> PhotoListResponse:
    """Photos of a work order, newest first"""
    photos = await container.work_orders.list_photos(work_order_id)
    return PhotoListResponse(
        photos=[PhotoResponse.from_model(photo) for photo in photos],
        total=len(photos),
    )


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    work_order_id: str,
    photo_id: str,
    container: ServiceContainer = Depends(get_container),
) -> Response:
    """
    Delete the photo binary, then its metadata.

    Raises:
        HTTPException 404: Photo not found on this work order
        HTTPException 502: Binary deleted but metadata removal failed
    """
    photo = await container.photos.get(work_order_id, photo_id)
    if photo is None:
        raise NotFound("Photo", photo_id)
    await container.photos.delete(work_order_id, photo)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
