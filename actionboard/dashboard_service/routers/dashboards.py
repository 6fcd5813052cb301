"""Dashboard endpoints (RPC-style).

All write operations use POST; delete also accepts DELETE.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from actionboard.dashboard_service.deps import Documents
from actionboard.dashboard_service.managers import dashboards
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

router = APIRouter(prefix="/dashboards", tags=["dashboards"])


@router.post("/create", response_model=CreateDashboardResponse, status_code=status.HTTP_201_CREATED)
async def create_dashboard(body: CreateDashboardRequest, documents: Documents) -> CreateDashboardResponse:
    """Create an empty dashboard, optionally making it active."""
    return await dashboards.create_dashboard(documents, body)


@router.post("/rename", response_model=RenameDashboardResponse)
async def rename_dashboard(body: RenameDashboardRequest, documents: Documents) -> RenameDashboardResponse:
    return await dashboards.rename_dashboard(documents, body)


@router.api_route("/delete", methods=["POST", "DELETE"], response_model=DeleteDashboardResponse)
async def delete_dashboard(body: DeleteDashboardRequest, documents: Documents) -> DeleteDashboardResponse:
    """Delete a dashboard; the first remaining one becomes active if needed."""
    return await dashboards.delete_dashboard(documents, body)


@router.post("/set-active", response_model=SetActiveDashboardResponse)
async def set_active_dashboard(body: SetActiveDashboardRequest, documents: Documents) -> SetActiveDashboardResponse:
    return await dashboards.set_active_dashboard(documents, body)
