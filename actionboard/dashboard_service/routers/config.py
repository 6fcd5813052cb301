"""Configuration read endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from actionboard.dashboard_service.deps import Documents
from actionboard.dashboard_service.managers.workflows import get_active_configuration
from actionboard.dashboard_service.models.api import ActiveConfigurationResponse

router = APIRouter(tags=["config"])


@router.get("/config", response_model=ActiveConfigurationResponse)
async def get_config(documents: Documents) -> ActiveConfigurationResponse:
    """Dashboards (id and name), the active id and the active dashboard's workflows."""
    return await get_active_configuration(documents)
