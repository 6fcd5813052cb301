"""Shared fixtures for dashboard-service tests.

No Docker or network needed: the configuration lives in a ``LocalBlobStore``
under ``tmp_path`` and the CI provider is an in-memory fake.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import anyio
import pytest
from httpx import ASGITransport, AsyncClient

from actionboard.dashboard_service.app import app
from actionboard.dashboard_service.errors import UpstreamNotFoundError
from actionboard.dashboard_service.managers.documents import ConfigDocumentStore
from actionboard.dashboard_service.models.status import WorkflowRun
from actionboard.dashboard_service.settings import BoardSettings
from actionboard.dashboard_service.store.local import LocalBlobStore
from actionboard.dashboard_service.upstream.base import Installation, InstallationContext

CONFIG_KEY = "workflows.json"


class FakeCIProvider:
    """In-memory CIStatusProvider.

    ``runs`` maps ``(owner, repo, workflow)`` to a ``WorkflowRun``, ``None``
    (never run) or an exception to raise.  Keys not in ``runs`` have never
    run.  ``unknown_workflows`` makes ``get_workflow`` raise not-found.
    """

    def __init__(self) -> None:
        self.installations: list[Installation] = [Installation(id=1, account_login="octo")]
        self.runs: dict[tuple[str, str, str], Any] = {}
        self.delays: dict[tuple[str, str, str], float] = {}
        self.unknown_workflows: set[tuple[str, str, str]] = set()
        self.workflow_errors: dict[tuple[str, str, str], Exception] = {}
        self.token_errors: dict[int, Exception] = {}
        self.list_error: Exception | None = None

        self.list_calls = 0
        self.context_calls: list[int] = []
        self.run_calls: list[tuple[str, str, str]] = []
        self.workflow_calls: list[tuple[str, str, str]] = []

    async def list_installations(self) -> list[Installation]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.installations)

    async def installation_context(self, installation_id: int) -> InstallationContext:
        self.context_calls.append(installation_id)
        if installation_id in self.token_errors:
            raise self.token_errors[installation_id]
        return InstallationContext(installation_id=installation_id, token=f"token-{installation_id}")

    async def get_latest_run(
        self, ctx: InstallationContext, owner: str, repo: str, workflow: str
    ) -> WorkflowRun | None:
        key = (owner, repo, workflow)
        self.run_calls.append(key)
        if key in self.delays:
            await anyio.sleep(self.delays[key])
        result = self.runs.get(key)
        if isinstance(result, Exception):
            raise result
        return result

    async def get_workflow(self, ctx: InstallationContext, owner: str, repo: str, workflow: str) -> None:
        key = (owner, repo, workflow)
        self.workflow_calls.append(key)
        if key in self.workflow_errors:
            raise self.workflow_errors[key]
        if key in self.unknown_workflows:
            msg = f"GitHub could not find workflow '{workflow}' in {owner}/{repo}."
            raise UpstreamNotFoundError(msg)


class RawDocument:
    """Reads and writes the stored JSON directly, bypassing the document store."""

    def __init__(self, store: LocalBlobStore, key: str = CONFIG_KEY) -> None:
        self._store = store
        self._key = key

    async def write(self, payload: Any) -> None:
        await self._store.put(self._key, json.dumps(payload).encode())

    async def read(self) -> Any:
        return json.loads((await self._store.get(self._key)).data)

    async def exists(self) -> bool:
        return await self._store.exists(self._key)


@pytest.fixture
def raw(blob_store: LocalBlobStore) -> RawDocument:
    return RawDocument(blob_store)


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "data")


@pytest.fixture
def documents(blob_store: LocalBlobStore) -> ConfigDocumentStore:
    return ConfigDocumentStore(blob_store, CONFIG_KEY)


@pytest.fixture
def provider() -> FakeCIProvider:
    return FakeCIProvider()


@pytest.fixture
def settings() -> BoardSettings:
    return BoardSettings(_env_file=None, upstream_timeout=1.0, verify_workflows=True)


@pytest.fixture
async def client(
    documents: ConfigDocumentStore,
    provider: FakeCIProvider,
    settings: BoardSettings,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the app.

    The app lifespan does NOT run under ``ASGITransport``, so state fields
    are pre-set here.
    """
    app.state.settings = settings
    app.state.documents = documents
    app.state.status_provider = provider

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.settings = None
    app.state.documents = None
    app.state.status_provider = None
