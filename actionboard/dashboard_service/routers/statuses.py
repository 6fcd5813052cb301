"""Live workflow status endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response

from actionboard.dashboard_service.deps import Documents, Settings, StatusProvider
from actionboard.dashboard_service.managers.statuses import get_workflow_statuses
from actionboard.dashboard_service.models.api import WorkflowStatusesResponse

router = APIRouter(prefix="/statuses", tags=["statuses"])


@router.api_route("/list", methods=["GET", "POST"], response_model=WorkflowStatusesResponse)
async def list_statuses(
    response: Response,
    documents: Documents,
    provider: StatusProvider,
    settings: Settings,
) -> WorkflowStatusesResponse:
    """Latest run of every workflow on the active dashboard."""
    result = await get_workflow_statuses(documents, provider, timeout=settings.upstream_timeout)
    response.headers["Cache-Control"] = f"public, max-age={settings.status_cache_max_age}"
    return result
