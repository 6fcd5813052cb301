"""Dashboard operations: create, rename, delete, set active.

All name comparisons are on the trimmed name and case-sensitive.  Every
operation keeps the two document invariants: ``dashboards`` is never empty
and ``activeDashboardId`` resolves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from actionboard.dashboard_service.errors import (
    DashboardNotFoundError,
    DuplicateDashboardError,
    LastDashboardError,
)
from actionboard.dashboard_service.models.api import (
    CreateDashboardRequest,
    CreateDashboardResponse,
    DeleteDashboardRequest,
    DeleteDashboardResponse,
    RenameDashboardRequest,
    RenameDashboardResponse,
    SetActiveDashboardRequest,
    SetActiveDashboardResponse,
)
from actionboard.dashboard_service.models.document import ConfigurationDocument, Dashboard, DashboardRef

if TYPE_CHECKING:
    from actionboard.dashboard_service.managers.documents import ConfigDocumentStore


def _require_dashboard(document: ConfigurationDocument, dashboard_id: str) -> Dashboard:
    dashboard = document.find_dashboard(dashboard_id)
    if dashboard is None:
        raise DashboardNotFoundError
    return dashboard


async def create_dashboard(documents: ConfigDocumentStore, body: CreateDashboardRequest) -> CreateDashboardResponse:
    """Append a new, empty dashboard.

    It becomes active when ``setAsActive`` is set or when it is the only
    dashboard.  Raises ``DuplicateDashboardError`` on a name collision.
    """

    async def _apply(document: ConfigurationDocument) -> CreateDashboardResponse:
        if document.name_taken(body.name):
            raise DuplicateDashboardError

        dashboard = Dashboard(name=body.name)
        document.dashboards.append(dashboard)
        if body.set_as_active or len(document.dashboards) == 1:
            document.active_dashboard_id = dashboard.id

        return CreateDashboardResponse(
            dashboard=DashboardRef(id=dashboard.id, name=dashboard.name),
            is_active=document.active_dashboard_id == dashboard.id,
        )

    result = await documents.mutate(_apply)
    logger.info("Created dashboard {} ({!r}, active={})", result.dashboard.id, result.dashboard.name, result.is_active)
    return result


async def rename_dashboard(documents: ConfigDocumentStore, body: RenameDashboardRequest) -> RenameDashboardResponse:
    """Rename a dashboard in place.

    Renaming to its own current name succeeds.  Raises
    ``DashboardNotFoundError`` or ``DuplicateDashboardError``.
    """

    async def _apply(document: ConfigurationDocument) -> RenameDashboardResponse:
        dashboard = _require_dashboard(document, body.dashboard_id)
        if document.name_taken(body.name, exclude_id=dashboard.id):
            raise DuplicateDashboardError
        dashboard.name = body.name
        return RenameDashboardResponse(dashboard=DashboardRef(id=dashboard.id, name=dashboard.name))

    result = await documents.mutate(_apply)
    logger.info("Renamed dashboard {} to {!r}", result.dashboard.id, result.dashboard.name)
    return result


async def delete_dashboard(documents: ConfigDocumentStore, body: DeleteDashboardRequest) -> DeleteDashboardResponse:
    """Delete a dashboard.

    Refuses to delete the last remaining dashboard (``LastDashboardError``).
    If the deleted dashboard was active, the first remaining one in list
    order becomes active.
    """

    async def _apply(document: ConfigurationDocument) -> DeleteDashboardResponse:
        dashboard = _require_dashboard(document, body.dashboard_id)
        if len(document.dashboards) == 1:
            raise LastDashboardError

        document.dashboards = [d for d in document.dashboards if d.id != dashboard.id]
        if document.find_dashboard(document.active_dashboard_id or "") is None:
            document.active_dashboard_id = document.dashboards[0].id

        return DeleteDashboardResponse(
            deleted_dashboard=DashboardRef(id=dashboard.id, name=dashboard.name),
            new_active_dashboard_id=document.active_dashboard_id,
        )

    result = await documents.mutate(_apply)
    logger.info(
        "Deleted dashboard {} ({!r}); active dashboard is {}",
        result.deleted_dashboard.id,
        result.deleted_dashboard.name,
        result.new_active_dashboard_id,
    )
    return result


async def set_active_dashboard(
    documents: ConfigDocumentStore, body: SetActiveDashboardRequest
) -> SetActiveDashboardResponse:
    """Switch the active dashboard.  Raises ``DashboardNotFoundError``."""

    async def _apply(document: ConfigurationDocument) -> SetActiveDashboardResponse:
        dashboard = _require_dashboard(document, body.dashboard_id)
        document.active_dashboard_id = dashboard.id
        return SetActiveDashboardResponse(active_dashboard_id=dashboard.id, dashboard_name=dashboard.name)

    result = await documents.mutate(_apply)
    logger.info("Active dashboard is now {}", result.active_dashboard_id)
    return result
