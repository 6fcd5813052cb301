"""Blob store implementations for the configuration document."""

from actionboard.dashboard_service.store.base import BlobObject, BlobStore
from actionboard.dashboard_service.store.local import LocalBlobStore

__all__ = ["BlobObject", "BlobStore", "LocalBlobStore"]
