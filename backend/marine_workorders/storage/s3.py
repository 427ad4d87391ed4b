"""S3 blob storage for work order photos"""

import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from marine_workorders.config import settings
from marine_workorders.exceptions import StoreUnavailable
from marine_workorders.monitoring.metrics import metrics_collector
from marine_workorders.storage.base import BlobStorage

logger = logging.getLogger(__name__)


class S3BlobStorage(BlobStorage):
    """Blob storage on S3 (or MinIO through aws_endpoint_url)"""

    def __init__(self, bucket: str = None):
        """Initialize S3 client with retry configuration"""
        self.bucket = bucket or settings.s3_bucket

        retry_config = Config(
            retries={
                "max_attempts": 3,
                "mode": "standard",
            },
            connect_timeout=5,
            read_timeout=10,
        )

        client_kwargs = {
            "region_name": settings.aws_region,
            "config": retry_config,
        }

        # Add credentials if provided (not needed for IAM roles)
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

        # Use custom endpoint for local development (MinIO)
        if settings.aws_endpoint_url:
            client_kwargs["endpoint_url"] = settings.aws_endpoint_url

        try:
            self.s3_client = boto3.client("s3", **client_kwargs)
            logger.info(f"S3 client initialized for bucket: {self.bucket}")
        except Exception as e:
            logger.error(f"Failed to initialize S3 client: {e}")
            raise StoreUnavailable("s3_init", str(e))

    async def put_object(self, path, data, content_type, cache_control=""):
        """
        Upload bytes to S3.

        Raises:
            StoreUnavailable: If upload fails
        """
        params = {
            "Bucket": self.bucket,
            "Key": path,
            "Body": data,
            "ContentType": content_type,
        }
        if cache_control:
            params["CacheControl"] = cache_control

        try:
            await asyncio.to_thread(self.s3_client.put_object, **params)
            logger.info(f"Uploaded {len(data)} bytes to {path}")
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Error uploading object: {error_code} - {e}")
            metrics_collector.record_store_failure("put_object")
            raise StoreUnavailable("put_object", error_code)
        except BotoCoreError as e:
            logger.error(f"Unexpected error uploading object: {e}")
            metrics_collector.record_store_failure("put_object")
            raise StoreUnavailable("put_object", str(e))

    async def get_public_url(self, path):
        """Resolve the durable URL of an object"""
        if settings.public_base_url:
            return f"{settings.public_base_url.rstrip('/')}/{path}"
        if settings.aws_endpoint_url:
            # For local development with MinIO
            return f"{settings.aws_endpoint_url}/{self.bucket}/{path}"
        return f"https://{self.bucket}.s3.{settings.aws_region}.amazonaws.com/{path}"

    async def delete_object(self, path):
        """
        Delete an object from S3. S3 deletes are idempotent.

        Raises:
            StoreUnavailable: If deletion fails
        """
        try:
            await asyncio.to_thread(self.s3_client.delete_object, Bucket=self.bucket, Key=path)
            logger.info(f"Deleted object: {path}")
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Error deleting object: {error_code} - {e}")
            metrics_collector.record_store_failure("delete_object")
            raise StoreUnavailable("delete_object", error_code)
        except BotoCoreError as e:
            logger.error(f"Unexpected error deleting object: {e}")
            metrics_collector.record_store_failure("delete_object")
            raise StoreUnavailable("delete_object", str(e))

    def check_bucket(self) -> None:
        """Raise StoreUnavailable unless the bucket is reachable"""
        try:
            self.s3_client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise StoreUnavailable("head_bucket", error_code)
