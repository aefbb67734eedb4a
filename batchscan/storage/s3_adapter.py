from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from batchscan.storage.base import BaseBlobStore
from batchscan.storage.exceptions import BlobNotFoundError, BlobStoreError

_MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3BlobStore(BaseBlobStore):
    """Stores blobs in a single S3 (or S3-compatible) bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        region: str | None = None,
        endpoint_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("S3 bucket name is required for the s3 blob backend")
        self._bucket = bucket
        self._client = client or boto3.client(
            "s3",
            region_name=region or None,
            endpoint_url=endpoint_url or None,
        )

    def put(self, path: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise BlobStoreError(f"S3 upload of '{path}' failed: {exc}") from exc

    def get(self, path: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=path)
            return response["Body"].read()
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                raise BlobNotFoundError(f"Blob not found: {path}") from exc
            raise BlobStoreError(f"S3 download of '{path}' failed: {exc}") from exc
        except BotoCoreError as exc:
            raise BlobStoreError(f"S3 download of '{path}' failed: {exc}") from exc

    def delete(self, path: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            raise BlobStoreError(f"S3 delete of '{path}' failed: {exc}") from exc

    def signed_url(self, path: str, ttl_seconds: int) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": path},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            raise BlobStoreError(f"Cannot sign URL for '{path}': {exc}") from exc
