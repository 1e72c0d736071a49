"""S3 object store adapter.

Thin wrapper around a boto3 S3 client bound to one bucket. It exposes
exactly what the file manager needs (prefix listing, idempotent deletes,
folder-marker writes, presigned URLs) and translates every botocore failure
into ``StorageError`` so services never see boto exceptions.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Iterable, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import settings
from ..exceptions import StorageError

logger = logging.getLogger(__name__)

# S3 DeleteObjects hard limit.
MAX_DELETE_BATCH = 1000

# Error codes that mean "already gone" for a delete.
_MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


@dataclass(frozen=True)
class ObjectRecord:
    """One object as reported by a listing."""
    key: str
    size: int = 0


@dataclass
class ObjectPage:
    """A single page of a prefix listing."""
    objects: List[ObjectRecord] = field(default_factory=list)
    is_truncated: bool = False
    next_token: Optional[str] = None


def _chunks(keys: List[str], size: int) -> Iterable[List[str]]:
    for i in range(0, len(keys), size):
        yield keys[i:i + size]


class S3ObjectStore:
    """Object store backed by an S3 bucket.

    Args:
        client: A boto3 S3 client (or anything with the same methods).
        bucket: Bucket name all operations are scoped to.
        delete_batch_size: Keys per DeleteObjects request, capped at 1000.
        max_list_pages: Safety cap on pages fetched by ``list_objects``.
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        delete_batch_size: int = MAX_DELETE_BATCH,
        max_list_pages: int = 10000,
    ):
        self.client = client
        self.bucket = bucket
        self.delete_batch_size = max(1, min(delete_batch_size, MAX_DELETE_BATCH))
        self.max_list_pages = max_list_pages

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_page(
        self,
        prefix: str = "",
        max_keys: int = 1000,
        continuation_token: Optional[str] = None,
    ) -> ObjectPage:
        """Fetch one page of objects under *prefix*."""
        params: dict[str, Any] = {"Bucket": self.bucket, "MaxKeys": max_keys}
        if prefix:
            params["Prefix"] = prefix
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            response = self.client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to list objects in bucket '{self.bucket}'", e) from e

        objects = [
            ObjectRecord(key=item["Key"], size=int(item.get("Size") or 0))
            for item in response.get("Contents", [])
            if item.get("Key")
        ]
        return ObjectPage(
            objects=objects,
            is_truncated=bool(response.get("IsTruncated")),
            next_token=response.get("NextContinuationToken"),
        )

    def list_objects(self, prefix: str = "") -> List[ObjectRecord]:
        """Return every object under *prefix*, following continuation tokens.

        Fails closed: any page error raises, so callers never act on a
        partial inventory.
        """
        objects: List[ObjectRecord] = []
        token: Optional[str] = None

        for _ in range(self.max_list_pages):
            page = self.list_page(prefix=prefix, continuation_token=token)
            objects.extend(page.objects)

            if not page.is_truncated:
                return objects

            # Truncated listing without a token would loop forever or lose objects.
            if not page.next_token:
                raise StorageError(
                    f"Listing of bucket '{self.bucket}' truncated without a continuation token"
                )
            token = page.next_token

        raise StorageError(
            f"Listing of bucket '{self.bucket}' exceeded {self.max_list_pages} pages"
        )

    # ------------------------------------------------------------------
    # Deletes (idempotent)
    # ------------------------------------------------------------------

    def delete_object(self, key: str) -> None:
        """Delete a single object. A missing key is not an error."""
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _MISSING_KEY_CODES:
                logger.debug("Object already absent", extra={"key": key})
                return
            raise StorageError(f"Failed to delete object '{key}'", e, key=key) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to delete object '{key}'", e, key=key) from e

    def delete_objects_batch(self, keys: List[str]) -> int:
        """Delete *keys*, chunked to the DeleteObjects limit.

        Returns the number of keys submitted. Per-key ``NoSuchKey`` errors
        count as deleted; any other per-key error raises ``StorageError``.
        """
        if not keys:
            return 0

        for chunk in _chunks(keys, self.delete_batch_size):
            try:
                response = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k} for k in chunk], "Quiet": True},
                )
            except (ClientError, BotoCoreError) as e:
                raise StorageError(f"Batch delete of {len(chunk)} objects failed", e) from e

            errors = [
                err for err in response.get("Errors", [])
                if err.get("Code") not in _MISSING_KEY_CODES
            ]
            if errors:
                first = errors[0]
                raise StorageError(
                    f"Batch delete left {len(errors)} object(s) in place: {first.get('Message', first.get('Code'))}",
                    key=first.get("Key"),
                )

        return len(keys)

    # ------------------------------------------------------------------
    # Writes and URLs
    # ------------------------------------------------------------------

    def put_object(self, key: str, body: bytes = b"", content_type: Optional[str] = None) -> None:
        """Write an object (used for zero-byte folder markers)."""
        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to write object '{key}'", e, key=key) from e

    def presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        try:
            return self.client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to sign upload URL for '{key}'", e, key=key) from e

    def presigned_download_url(self, key: str, filename: str, inline: bool, expires_in: int) -> str:
        disposition = "inline" if inline else f'attachment; filename="{filename}"'
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "ResponseContentDisposition": disposition,
                },
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to sign download URL for '{key}'", e, key=key) from e


def build_s3_client():
    """Create a boto3 S3 client from settings with bounded timeouts and retries."""
    config = BotoConfig(
        connect_timeout=5,
        read_timeout=30,
        retries={"max_attempts": 3, "mode": "standard"},
    )
    kwargs: dict[str, Any] = {"region_name": settings.aws_region, "config": config}
    if settings.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.s3_endpoint_url
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    return boto3.client("s3", **kwargs)


@lru_cache(maxsize=1)
def get_object_store() -> S3ObjectStore:
    """FastAPI dependency returning the process-wide store for the configured bucket."""
    return S3ObjectStore(
        build_s3_client(),
        settings.aws_bucket_name,
        delete_batch_size=settings.s3_delete_batch_size,
        max_list_pages=settings.s3_max_list_pages,
    )
