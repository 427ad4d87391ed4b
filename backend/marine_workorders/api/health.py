"""Health check and metrics endpoints"""

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from marine_workorders.api.dependencies import get_container
from marine_workorders.config import settings
from marine_workorders.exceptions import StoreUnavailable
from marine_workorders.services import ServiceContainer
from marine_workorders.storage import S3BlobStorage

router = APIRouter(tags=["Health"])

VERSION = "1.0.0"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/health", status_code=status.HTTP_200_OK)
async def basic_health_check():
    """
    Basic health check endpoint

    Returns simple health status and timestamp
    """
    return {
        "status": "healthy",
        "timestamp": _timestamp()
    }


@router.get("/api/v1/health", status_code=status.HTTP_200_OK)
async def detailed_health_check(container: ServiceContainer = Depends(get_container)):
    """
    Detailed health check with dependency status

    Checks connectivity to:
    - Realtime store (in-memory or Redis)
    - Blob storage (in-memory or S3)

    Returns overall status and individual service statuses
    """
    services = {}
    overall_status = "healthy"

    # Check realtime store connectivity
    try:
        await container.store.read(container.paths.work_orders())
        services["store"] = f"connected ({settings.store_backend})"
    except StoreUnavailable as e:
        services["store"] = f"disconnected: {e.detail}"
        overall_status = "degraded"

    # Check blob storage connectivity
    if isinstance(container.storage, S3BlobStorage):
        try:
            await asyncio.to_thread(container.storage.check_bucket)
            services["storage"] = "connected (s3)"
        except StoreUnavailable as e:
            services["storage"] = f"disconnected: {e.detail}"
            overall_status = "degraded"
    else:
        services["storage"] = f"connected ({settings.storage_backend})"

    return {
        "status": overall_status,
        "version": VERSION,
        "tenant_id": container.paths.tenant_id,
        "timestamp": _timestamp(),
        "services": services
    }


@router.get("/metrics")
async def metrics():
    """Prometheus metrics in text exposition format"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
