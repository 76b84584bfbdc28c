"""
Object storage service (S3 compatible) for certificates and course files
"""
import logging
from typing import List, Optional
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lms.config import settings
from lms.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)


class StorageService:
    """
    Thin wrapper over an S3 bucket

    upload/download/list/delete raise StorageError on backend failure;
    get_public_url is pure string construction.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client=None
    ):
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.public_base_url = (public_base_url or settings.STORAGE_PUBLIC_URL).rstrip("/")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=settings.STORAGE_ENDPOINT_URL,
                aws_access_key_id=settings.STORAGE_ACCESS_KEY,
                aws_secret_access_key=settings.STORAGE_SECRET_KEY,
                region_name=settings.STORAGE_REGION,
            )
        return self._client

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Store data at path"""
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
            logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{path}")
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Upload failed for {path}: {str(e)}")
            raise StorageError(f"Failed to upload {path}") from e

    def get_public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{path}"

    def path_from_url(self, url: str) -> Optional[str]:
        """
        Object key of a public URL; None when the URL is not in this bucket

        Matches on the "/{bucket}/" path segment rather than the configured
        base URL, so links written before a base URL change still resolve.
        """
        if not url:
            return None

        marker = f"/{self.bucket}/"
        url_path = urlparse(url).path
        if marker not in url_path:
            return None

        key = url_path.split(marker, 1)[1]
        return key or None

    def download(self, path: str) -> bytes:
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=path)
            return resp["Body"].read()
        except ClientError as e:
            code = (e.response.get("Error") or {}).get("Code")
            if code in ("404", "NoSuchKey", "NotFound"):
                raise NotFoundError(f"File not found: {path}") from e
            logger.error(f"Download failed for {path}: {str(e)}")
            raise StorageError(f"Failed to download {path}") from e
        except BotoCoreError as e:
            logger.error(f"Download failed for {path}: {str(e)}")
            raise StorageError(f"Failed to download {path}") from e

    def list(self, prefix: str) -> List[str]:
        """All object keys under prefix"""
        keys = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Listing failed for {prefix}: {str(e)}")
            raise StorageError(f"Failed to list {prefix}") from e
        return keys

    def delete(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
            logger.info(f"Deleted {self.bucket}/{path}")
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Delete failed for {path}: {str(e)}")
            raise StorageError(f"Failed to delete {path}") from e


# Global instance
storage_service = StorageService()
