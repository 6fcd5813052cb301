"""Tests for S3BlobStore.

The first group drives the store against a mocked boto3 client.  The
``s3``-marked group runs against a real endpoint and needs:

    ACTIONBOARD_TEST_S3_ENDPOINT
    ACTIONBOARD_TEST_S3_BUCKET
    ACTIONBOARD_TEST_S3_ACCESS_KEY
    ACTIONBOARD_TEST_S3_SECRET_KEY

Those tests use a unique prefix and clean up after themselves.
"""

from __future__ import annotations

import io
import os
import uuid
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from actionboard.dashboard_service.errors import PreconditionFailedError
from actionboard.dashboard_service.store.s3 import S3BlobStore


class _NoSuchKey(Exception):
    pass


def _client_error(code: str, operation: str = "PutObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    client.exceptions.NoSuchKey = _NoSuchKey
    return client


@pytest.fixture
def mocked_store(s3_client: MagicMock) -> S3BlobStore:
    return S3BlobStore(bucket="bucket", prefix="team", client=s3_client)


async def test_get_reads_body_and_etag(mocked_store: S3BlobStore, s3_client: MagicMock) -> None:
    s3_client.get_object.return_value = {"Body": io.BytesIO(b"{}"), "ETag": '"abc"'}

    blob = await mocked_store.get("workflows.json")

    assert blob.data == b"{}"
    assert blob.etag == '"abc"'
    s3_client.get_object.assert_called_once_with(Bucket="bucket", Key="team/blobs/workflows.json")


async def test_get_missing_raises_file_not_found(mocked_store: S3BlobStore, s3_client: MagicMock) -> None:
    s3_client.get_object.side_effect = _NoSuchKey()
    with pytest.raises(FileNotFoundError):
        await mocked_store.get("workflows.json")


async def test_put_sends_if_match(mocked_store: S3BlobStore, s3_client: MagicMock) -> None:
    s3_client.put_object.return_value = {"ETag": '"new"'}

    etag = await mocked_store.put("workflows.json", b"{}", if_match='"old"')

    assert etag == '"new"'
    kwargs = s3_client.put_object.call_args.kwargs
    assert kwargs["IfMatch"] == '"old"'
    assert "IfNoneMatch" not in kwargs


async def test_put_sends_if_none_match(mocked_store: S3BlobStore, s3_client: MagicMock) -> None:
    s3_client.put_object.return_value = {"ETag": '"new"'}
    await mocked_store.put("workflows.json", b"{}", if_none_match=True)
    assert s3_client.put_object.call_args.kwargs["IfNoneMatch"] == "*"


@pytest.mark.parametrize("code", ["PreconditionFailed", "412", "ConditionalRequestConflict"])
async def test_put_precondition_failure(mocked_store: S3BlobStore, s3_client: MagicMock, code: str) -> None:
    s3_client.put_object.side_effect = _client_error(code)
    with pytest.raises(PreconditionFailedError):
        await mocked_store.put("workflows.json", b"{}", if_match='"old"')


async def test_put_other_errors_propagate(mocked_store: S3BlobStore, s3_client: MagicMock) -> None:
    s3_client.put_object.side_effect = _client_error("AccessDenied")
    with pytest.raises(ClientError):
        await mocked_store.put("workflows.json", b"{}")


async def test_conditional_writes_disabled(s3_client: MagicMock) -> None:
    store = S3BlobStore(bucket="bucket", client=s3_client, conditional_writes=False)
    s3_client.put_object.return_value = {"ETag": '"new"'}

    await store.put("workflows.json", b"{}", if_match='"old"')

    assert store.supports_conditional_writes is False
    kwargs = s3_client.put_object.call_args.kwargs
    assert kwargs["Key"] == "blobs/workflows.json"
    assert "IfMatch" not in kwargs


async def test_exists_maps_404(mocked_store: S3BlobStore, s3_client: MagicMock) -> None:
    s3_client.head_object.side_effect = _client_error("404", "HeadObject")
    assert await mocked_store.exists("workflows.json") is False

    s3_client.head_object.side_effect = None
    assert await mocked_store.exists("workflows.json") is True


# -- Real endpoint -------------------------------------------------------------

_S3_ENDPOINT = os.environ.get("ACTIONBOARD_TEST_S3_ENDPOINT")
_S3_BUCKET = os.environ.get("ACTIONBOARD_TEST_S3_BUCKET")
_S3_ACCESS_KEY = os.environ.get("ACTIONBOARD_TEST_S3_ACCESS_KEY")
_S3_SECRET_KEY = os.environ.get("ACTIONBOARD_TEST_S3_SECRET_KEY")

_s3_configured = all([_S3_ENDPOINT, _S3_BUCKET, _S3_ACCESS_KEY, _S3_SECRET_KEY])
_skip_reason = "S3 tests require ACTIONBOARD_TEST_S3_ENDPOINT, _BUCKET, _ACCESS_KEY and _SECRET_KEY"


@pytest.fixture
def s3_store() -> Iterator[S3BlobStore]:
    """S3 store with a unique test prefix; its objects are removed afterwards."""
    assert _S3_ENDPOINT and _S3_BUCKET and _S3_ACCESS_KEY and _S3_SECRET_KEY
    store = S3BlobStore(
        bucket=_S3_BUCKET,
        endpoint_url=_S3_ENDPOINT,
        access_key=_S3_ACCESS_KEY,
        secret_key=_S3_SECRET_KEY,
        prefix=f"test-{uuid.uuid4().hex[:8]}",
        path_style=True,
    )
    yield store
    store._client.delete_object(Bucket=_S3_BUCKET, Key=store._object_key("workflows.json"))


@pytest.mark.s3
@pytest.mark.skipif(not _s3_configured, reason=_skip_reason)
async def test_real_put_get(s3_store: S3BlobStore) -> None:
    assert await s3_store.exists("workflows.json") is False
    etag = await s3_store.put("workflows.json", b'{"dashboards": []}')
    blob = await s3_store.get("workflows.json")
    assert blob.data == b'{"dashboards": []}'
    assert blob.etag == etag
    assert await s3_store.exists("workflows.json") is True


@pytest.mark.s3
@pytest.mark.skipif(not _s3_configured, reason=_skip_reason)
async def test_real_conditional_write(s3_store: S3BlobStore) -> None:
    first = await s3_store.put("workflows.json", b"v1", if_none_match=True)
    await s3_store.put("workflows.json", b"v2", if_match=first)
    with pytest.raises(PreconditionFailedError):
        await s3_store.put("workflows.json", b"v3", if_match=first)
