"""
S3 client for dataset bucket operations.

Reads raw data source files, writes produced datasets and hands out
presigned download URLs. Used as the 's3' dataset storage backend.

Dependencies: boto3
System role: Object storage for data source files and datasets
"""

import logging
from datetime import datetime, timedelta, timezone

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from backend.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class S3DatasetClient:
    """S3 client for the dataset bucket."""

    def __init__(
        self,
        bucket: str,
        region: str = "ap-southeast-2",
        endpoint_url: str | None = None,
        download_url_expiry_seconds: int = 3600,
    ) -> None:
        """
        Initialize S3 client for the dataset bucket.

        Args:
            bucket: S3 bucket name
            region: AWS region for the bucket
            endpoint_url: Custom endpoint (MinIO, LocalStack)
            download_url_expiry_seconds: Default lifetime of download URLs
        """
        self._bucket = bucket
        self._region = region
        self._expiry = download_url_expiry_seconds
        self._s3_client = boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

    def read_bytes(self, key: str) -> bytes:
        """
        Download an object's content.

        Raises:
            StorageError: If the object is missing or the request fails
        """
        try:
            response = self._s3_client.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to read s3://{self._bucket}/{key}: {e}", key=key) from e

    def write_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> int:
        """
        Upload an object, replacing any existing content.

        Returns:
            int: Number of bytes written

        Raises:
            StorageError: If the upload fails
        """
        try:
            self._s3_client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to write s3://{self._bucket}/{key}: {e}", key=key) from e
        logger.debug("Wrote %d bytes to s3://%s/%s", len(data), self._bucket, key)
        return len(data)

    def delete(self, key: str) -> None:
        """Delete an object. Missing objects are not an error."""
        try:
            self._s3_client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete s3://{self._bucket}/{key}: {e}", key=key) from e

    def exists(self, key: str) -> bool:
        """
        Check if an object exists in S3.

        Args:
            key: S3 object key to check

        Returns:
            bool: True if object exists, False otherwise
        """
        try:
            self._s3_client.head_object(Bucket=self._bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey"):
                return False
            raise StorageError(f"Failed to stat s3://{self._bucket}/{key}: {e}", key=key) from e

    def download_url(self, key: str, filename: str | None = None) -> tuple[str, datetime]:
        """
        Generate presigned URL for downloading a dataset.

        Args:
            key: S3 object key
            filename: Name offered to the browser via Content-Disposition

        Returns:
            tuple[str, datetime]: (presigned_url, expires_at)
        """
        params = {"Bucket": self._bucket, "Key": key}
        if filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'
        try:
            url = self._s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params=params,
                ExpiresIn=self._expiry,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to sign download for {key}: {e}", key=key) from e
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self._expiry)
        return url, expires_at
