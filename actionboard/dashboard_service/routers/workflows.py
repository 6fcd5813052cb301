"""Workflow endpoints on the active dashboard (RPC-style).

All write operations use POST; remove also accepts DELETE.
"""

from __future__ import annotations

from functools import partial

from fastapi import APIRouter, status
from loguru import logger

from actionboard.dashboard_service.deps import Documents, Settings, StatusProvider
from actionboard.dashboard_service.managers import workflows
from actionboard.dashboard_service.models.api import (
    AddWorkflowRequest,
    AddWorkflowResponse,
    RemoveWorkflowRequest,
    RemoveWorkflowResponse,
    ReorderWorkflowsRequest,
    ReorderWorkflowsResponse,
    UpdateWorkflowRequest,
    UpdateWorkflowResponse,
)
from actionboard.dashboard_service.upstream.base import verify_workflow

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.post("/add", response_model=AddWorkflowResponse, status_code=status.HTTP_201_CREATED)
async def add_workflow(
    body: AddWorkflowRequest,
    documents: Documents,
    provider: StatusProvider,
    settings: Settings,
) -> AddWorkflowResponse:
    """Append a workflow to the active dashboard, verifying it upstream first."""
    verify = None
    if settings.verify_workflows and provider is not None:
        verify = partial(verify_workflow, provider)
    elif settings.verify_workflows:
        logger.warning("Workflow verification enabled but no CI provider is configured; skipping")

    return await workflows.add_workflow(documents, body, verify=verify)


@router.api_route("/remove", methods=["POST", "DELETE"], response_model=RemoveWorkflowResponse)
async def remove_workflow(body: RemoveWorkflowRequest, documents: Documents) -> RemoveWorkflowResponse:
    """Remove a workflow from the active dashboard."""
    return await workflows.remove_workflow(documents, body)


@router.post("/update", response_model=UpdateWorkflowResponse)
async def update_workflow(body: UpdateWorkflowRequest, documents: Documents) -> UpdateWorkflowResponse:
    """Change the label of a workflow on the active dashboard."""
    return await workflows.update_workflow(documents, body)


@router.post("/reorder", response_model=ReorderWorkflowsResponse)
async def reorder_workflows(body: ReorderWorkflowsRequest, documents: Documents) -> ReorderWorkflowsResponse:
    """Replace the active dashboard's workflow order."""
    return await workflows.reorder_workflows(documents, body)
