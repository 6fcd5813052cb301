"""Blob store interface for the configuration document.

The blob store holds named byte objects and nothing else: no transactions, no
locks.  Concurrency control is opt-in through conditional writes -- a store
that sets ``supports_conditional_writes`` honours ``if_match`` /
``if_none_match`` and raises ``PreconditionFailedError`` when the stored
object changed since it was read.  The document store turns that into
optimistic concurrency with bounded retry; without it, the last writer wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class BlobObject:
    """Stored bytes plus the opaque version tag they were read at."""

    data: bytes
    etag: str


@runtime_checkable
class BlobStore(Protocol):
    """Async protocol for reading and writing named blobs."""

    supports_conditional_writes: bool

    async def get(self, key: str) -> BlobObject:
        """Read a blob.  Raises ``FileNotFoundError`` if not found."""
        ...

    async def put(
        self,
        key: str,
        data: bytes,
        *,
        if_match: str | None = None,
        if_none_match: bool = False,
    ) -> str:
        """Write a blob and return its new etag.

        ``if_match`` writes only if the stored etag equals it; ``if_none_match``
        writes only if the key does not exist yet.  Either precondition failing
        raises ``PreconditionFailedError``.  Stores without conditional-write
        support ignore both.
        """
        ...

    async def exists(self, key: str) -> bool:
        """Check whether a blob exists."""
        ...
