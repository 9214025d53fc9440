import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from docspace.storage.base import FileStorage

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3FileStorage(FileStorage):
    """Objects stored in an S3 bucket (or any S3-compatible endpoint)"""

    def __init__(self, bucket: str, client: Optional[Any] = None, **client_kwargs: Any):
        self.bucket = bucket
        self.client = client or boto3.client("s3", **client_kwargs)

    async def save(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            logger.error("Error uploading %s to S3: %s", key, e, exc_info=True)
            raise
        logger.info("Successfully uploaded %s to S3", key)
        return key

    async def read(self, key: str) -> bytes:
        try:
            response = await asyncio.to_thread(
                self.client.get_object, Bucket=self.bucket, Key=key
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                raise FileNotFoundError(key) from e
            raise
        body = response["Body"]
        try:
            return await asyncio.to_thread(body.read)
        finally:
            body.close()

    async def exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise
        return True

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            logger.error("Error deleting %s from S3: %s", key, e)
            raise
        logger.info("Successfully deleted %s from S3", key)
