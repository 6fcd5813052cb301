"""Local filesystem blob store.

Stores blobs as files under a data root with optional namespace prefix::

    {data_root}/{prefix}/blobs/{key}

When prefix is None, the path collapses to::

    {data_root}/blobs/{key}

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.

Writes are atomic: data is written to a temporary file in the same directory,
then renamed to the target path.  Conditional writes hold an exclusive
``fcntl`` lock on a sibling ``.lock`` file while they compare the current
etag (sha256 of the content) and replace the file, so several processes
sharing one data root still get compare-and-swap semantics.
"""

from __future__ import annotations

import contextlib
import fcntl
import hashlib
import os
import tempfile
from functools import partial
from pathlib import Path, PurePosixPath

from anyio import to_thread

from actionboard.dashboard_service.errors import PreconditionFailedError
from actionboard.dashboard_service.store.base import BlobObject


class LocalBlobStore:
    """Local filesystem implementation of the BlobStore protocol.

    Layout::

        {base}/blobs/{key}

    Where ``base`` is ``data_root / prefix`` (or just ``data_root`` if no prefix).
    """

    supports_conditional_writes = True

    def __init__(self, data_root: str | Path, prefix: str | None = None) -> None:
        base = Path(data_root)
        if prefix:
            base = base / prefix
        self._base = base / "blobs"

    def _blob_path(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or ".." in parts:
            msg = f"Invalid blob key: {key!r}"
            raise ValueError(msg)
        return self._base.joinpath(*parts)

    # -- Read ------------------------------------------------------------------

    async def get(self, key: str) -> BlobObject:
        path = self._blob_path(key)
        data = await to_thread.run_sync(partial(_read_file, path))
        return BlobObject(data=data, etag=content_etag(data))

    # -- Write -----------------------------------------------------------------

    async def put(
        self,
        key: str,
        data: bytes,
        *,
        if_match: str | None = None,
        if_none_match: bool = False,
    ) -> str:
        path = self._blob_path(key)
        if if_match is None and not if_none_match:
            await to_thread.run_sync(partial(_atomic_write, path, data))
        else:
            await to_thread.run_sync(partial(_conditional_write, path, data, if_match, if_none_match))
        return content_etag(data)

    # -- Utilities -------------------------------------------------------------

    async def exists(self, key: str) -> bool:
        path = self._blob_path(key)
        return await to_thread.run_sync(path.exists)


def content_etag(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


# -- Sync helpers (run in thread pool) -----------------------------------------


def _atomic_write(path: Path, data: bytes) -> None:
    """Write data atomically: temp file + rename.

    Ensures readers never see a partially-written file.  The temp file is
    created in the same directory so ``os.replace`` is atomic on POSIX.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up temp file on any failure.
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def _conditional_write(path: Path, data: bytes, if_match: str | None, if_none_match: bool) -> None:
    """Compare-and-swap under an exclusive lock on ``{path}.lock``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = path.with_name(path.name + ".lock")
    with open(lock_path, "a+b") as lock:
        fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
        try:
            try:
                current: str | None = content_etag(path.read_bytes())
            except FileNotFoundError:
                current = None

            if if_none_match and current is not None:
                msg = f"{path.name} already exists"
                raise PreconditionFailedError(msg)
            if if_match is not None and current != if_match:
                msg = f"{path.name} changed since it was read"
                raise PreconditionFailedError(msg)

            _atomic_write(path, data)
        finally:
            fcntl.flock(lock.fileno(), fcntl.LOCK_UN)


def _read_file(path: Path) -> bytes:
    """Read file contents.  Raises ``FileNotFoundError`` if missing."""
    return path.read_bytes()
