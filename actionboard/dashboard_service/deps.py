"""FastAPI dependency injection for the configuration store and CI provider.

Usage in route handlers::

    @router.post("/workflows/add")
    async def add(body: AddWorkflowRequest, documents: Documents) -> AddWorkflowResponse:
        ...

All backends are built once during app lifespan and stored on
``app.state``.  The document store is mandatory and raises HTTP 503 when
missing; the CI provider is optional (None when the GitHub integration is
disabled) and handlers decide what that means.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from actionboard.dashboard_service.managers.documents import ConfigDocumentStore
from actionboard.dashboard_service.settings import BoardSettings, get_settings
from actionboard.dashboard_service.upstream.base import CIStatusProvider


def get_documents(request: Request) -> ConfigDocumentStore:
    """Return the shared configuration document store."""
    documents: ConfigDocumentStore | None = getattr(request.app.state, "documents", None)
    if documents is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Configuration store not initialised.",
        )
    return documents


def get_status_provider(request: Request) -> CIStatusProvider | None:
    """Return the CI status provider, or None when the integration is off."""
    return getattr(request.app.state, "status_provider", None)


def get_board_settings(request: Request) -> BoardSettings:
    """Settings captured at startup; falls back to the cached env settings."""
    settings: BoardSettings | None = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


# -- Annotated type aliases for concise route signatures ---------------------

Documents = Annotated[ConfigDocumentStore, Depends(get_documents)]
"""Annotated dependency: the configuration document store."""

StatusProvider = Annotated[CIStatusProvider | None, Depends(get_status_provider)]
"""Annotated dependency: upstream CI status provider (may be None)."""

Settings = Annotated[BoardSettings, Depends(get_board_settings)]
"""Annotated dependency: service settings."""
