"""S3 blob store.

Stores blobs as objects in S3 with optional namespace prefix::

    s3://{bucket}/{prefix}/blobs/{key}

When prefix is None, the path collapses to::

    s3://{bucket}/blobs/{key}

Uses ``anyio.to_thread.run_sync`` to run boto3 calls in the thread pool,
matching the same async pattern as LocalBlobStore.

Conditional writes map onto S3's ``If-Match`` / ``If-None-Match: *`` PUT
headers.  Some S3-compatible services reject them; pass
``conditional_writes=False`` there and the write protocol degrades to
last-writer-wins.
"""

from __future__ import annotations

from functools import partial
from typing import Any

import boto3
from anyio import to_thread
from botocore.config import Config
from botocore.exceptions import ClientError

from actionboard.dashboard_service.errors import PreconditionFailedError
from actionboard.dashboard_service.store.base import BlobObject

# 412 is the documented answer; 409 comes back when two conditional
# writes to the same key overlap.
_PRECONDITION_CODES = frozenset({"PreconditionFailed", "412", "ConditionalRequestConflict", "409"})


def _create_s3_client(
    endpoint_url: str | None,
    access_key: str | None,
    secret_key: str | None,
    region: str | None = None,
    path_style: bool = False,
) -> Any:
    """Create a boto3 S3 client.

    Args:
        endpoint_url: S3 endpoint URL (None for AWS default).
        access_key: AWS access key ID (None to use the default credential chain).
        secret_key: AWS secret access key.
        region: AWS region name (optional, some endpoints require it).
        path_style: Use path-style addressing instead of virtual-hosted.
            Required by MinIO and some S3-compatible services.
    """
    config = Config(
        request_checksum_calculation="when_required",
        response_checksum_validation="when_required",
        s3={"addressing_style": "path" if path_style else "auto"},
    )

    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=region,
        config=config,
    )


class S3BlobStore:
    """S3 implementation of the BlobStore protocol.

    Layout::

        s3://{bucket}/{key_prefix}blobs/{key}

    Where ``key_prefix`` is ``{prefix}/`` if prefix is set, or empty string.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        prefix: str | None = None,
        region: str | None = None,
        path_style: bool = False,
        conditional_writes: bool = True,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._client = client or _create_s3_client(
            endpoint_url, access_key, secret_key, region=region, path_style=path_style
        )
        self._key_prefix = f"{prefix}/blobs/" if prefix else "blobs/"
        self.supports_conditional_writes = conditional_writes

    def _object_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    # -- Read ------------------------------------------------------------------

    async def get(self, key: str) -> BlobObject:
        object_key = self._object_key(key)
        return await to_thread.run_sync(partial(self._get_object, object_key))

    def _get_object(self, object_key: str) -> BlobObject:
        """Get object and read body in the same thread.

        Reading the streaming body must happen in the same thread as
        get_object to avoid issues with chunked transfer encoding.
        """
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=object_key)
        except self._client.exceptions.NoSuchKey:
            msg = f"Blob not found: {object_key}"
            raise FileNotFoundError(msg) from None
        return BlobObject(data=resp["Body"].read(), etag=resp["ETag"])

    # -- Write -----------------------------------------------------------------

    async def put(
        self,
        key: str,
        data: bytes,
        *,
        if_match: str | None = None,
        if_none_match: bool = False,
    ) -> str:
        kwargs: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self._object_key(key),
            "Body": data,
            "ContentType": "application/json",
        }
        if self.supports_conditional_writes:
            if if_match is not None:
                kwargs["IfMatch"] = if_match
            elif if_none_match:
                kwargs["IfNoneMatch"] = "*"

        try:
            resp = await to_thread.run_sync(partial(self._client.put_object, **kwargs))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _PRECONDITION_CODES:
                msg = f"Conditional write rejected for {kwargs['Key']}"
                raise PreconditionFailedError(msg) from e
            raise
        return resp["ETag"]

    # -- Utilities -------------------------------------------------------------

    async def exists(self, key: str) -> bool:
        object_key = self._object_key(key)
        try:
            await to_thread.run_sync(partial(self._client.head_object, Bucket=self._bucket, Key=object_key))
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
        else:
            return True
