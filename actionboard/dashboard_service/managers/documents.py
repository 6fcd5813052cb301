"""Configuration document store -- the load/migrate/mutate/save cycle.

The document lives in one blob.  There is no shared in-memory copy: every
request loads it, applies at most one mutation and writes the whole thing
back.  Two requests racing on the same base document would silently drop
one change, so when the blob store supports conditional writes the save is
made conditional on the etag the document was loaded at and the whole
cycle is retried (re-load, re-validate, re-apply) up to ``max_attempts``
times.  Stores without conditional writes keep last-writer-wins.

A mutation raising leaves the stored document untouched: the save only
happens after the mutation returns.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from loguru import logger

from actionboard.dashboard_service.errors import (
    DocumentCorruptedError,
    PreconditionFailedError,
    StorageError,
    WriteConflictError,
)
from actionboard.dashboard_service.models.document import (
    ConfigurationDocument,
    default_document,
    parse_document,
    serialize_document,
)
from actionboard.dashboard_service.models.enums import DocumentShape

if TYPE_CHECKING:
    from actionboard.dashboard_service.store.base import BlobStore

T = TypeVar("T")

Mutation = Callable[[ConfigurationDocument], Awaitable[T]]


@dataclass
class LoadedDocument:
    """A document plus the version it was read at."""

    document: ConfigurationDocument
    shape: DocumentShape
    etag: str | None
    """None when the blob did not exist."""

    @property
    def exists(self) -> bool:
        return self.etag is not None

    @property
    def migrated(self) -> bool:
        """True when what is stored differs in layout from ``document``."""
        return not self.exists or self.shape is not DocumentShape.CANONICAL


class ConfigDocumentStore:
    """Loads, migrates and saves the configuration document.

    Instantiated once during app lifespan.  Stateless beyond its reference
    to the blob store.
    """

    def __init__(
        self,
        store: BlobStore,
        key: str = "workflows.json",
        *,
        max_attempts: int = 5,
        persist_migrations: bool = True,
    ) -> None:
        self._store = store
        self._key = key
        self._max_attempts = max(1, max_attempts)
        self._persist_migrations = persist_migrations
        if not store.supports_conditional_writes:
            logger.warning("Blob store has no conditional writes; configuration updates are last-writer-wins")

    @property
    def key(self) -> str:
        return self._key

    # -- Load ------------------------------------------------------------------

    async def load(self) -> LoadedDocument:
        """Fetch and migrate the document; synthesise the default if absent."""
        try:
            blob = await self._store.get(self._key)
        except FileNotFoundError:
            logger.debug("Configuration blob '{}' not found, using default document", self._key)
            return LoadedDocument(document=default_document(), shape=DocumentShape.EMPTY, etag=None)
        except Exception as exc:
            logger.exception("Failed to read configuration blob '{}'", self._key)
            msg = f"Storage access failed: {exc}"
            raise StorageError(msg) from exc

        try:
            document, shape = parse_document(blob.data)
        except DocumentCorruptedError:
            logger.error("Configuration blob '{}' (etag={}) is corrupted", self._key, blob.etag)
            raise
        logger.debug("Loaded configuration '{}' (etag={}, shape={})", self._key, blob.etag, shape)
        return LoadedDocument(document=document, shape=shape, etag=blob.etag)

    async def read(self) -> ConfigurationDocument:
        """Read path: load without mutating.

        When the stored layout needed migration (or nothing was stored yet)
        and ``persist_migrations`` is on, the canonical form is written back
        so later reads see the same dashboard ids.  That write is best
        effort; a failure is logged and the read still succeeds.
        """
        loaded = await self.load()
        if not (self._persist_migrations and loaded.migrated):
            return loaded.document

        try:
            await self._save(loaded)
        except PreconditionFailedError:
            # Someone else wrote first; their version is the one to show.
            logger.info("Configuration changed while persisting migration, re-reading")
            return (await self.load()).document
        except StorageError:
            logger.warning("Could not persist migrated configuration; serving in-memory form")
        else:
            logger.info("Persisted canonical configuration (previous shape={})", loaded.shape)
        return loaded.document

    # -- Mutate ----------------------------------------------------------------

    async def mutate(self, mutation: Mutation[T]) -> T:
        """Run one load -> mutate -> save cycle and return the mutation's result.

        Raises ``WriteConflictError`` if every attempt lost a conditional-write
        race.  Any exception from ``mutation`` propagates and nothing is saved.
        """
        for attempt in range(1, self._max_attempts + 1):
            loaded = await self.load()
            result = await mutation(loaded.document)
            try:
                await self._save(loaded)
            except PreconditionFailedError:
                logger.warning(
                    "Configuration '{}' changed during write (attempt {}/{}), retrying",
                    self._key,
                    attempt,
                    self._max_attempts,
                )
                continue
            return result

        logger.error("Giving up on configuration write after {} attempts", self._max_attempts)
        raise WriteConflictError

    # -- Save ------------------------------------------------------------------

    async def _save(self, loaded: LoadedDocument) -> None:
        data = serialize_document(loaded.document)
        conditional = self._store.supports_conditional_writes
        try:
            etag = await self._store.put(
                self._key,
                data,
                if_match=loaded.etag if conditional else None,
                if_none_match=conditional and not loaded.exists,
            )
        except PreconditionFailedError:
            raise
        except Exception as exc:
            logger.exception("Failed to write configuration blob '{}'", self._key)
            msg = f"Storage write failed: {exc}"
            raise StorageError(msg) from exc
        logger.debug("Saved configuration '{}' ({} bytes, etag={})", self._key, len(data), etag)
