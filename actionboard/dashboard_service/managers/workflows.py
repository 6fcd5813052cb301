"""Workflow operations on the active dashboard.

Every mutating function runs exactly one ``ConfigDocumentStore.mutate``
cycle.  Input shape is already checked by the request schema; the checks
here need the loaded document (active dashboard, duplicates, existence)
and run before anything changes, so a failure never reaches the save.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from loguru import logger

from actionboard.dashboard_service.errors import (
    DuplicateWorkflowError,
    ReorderMismatchError,
    WorkflowNotFoundError,
)
from actionboard.dashboard_service.models.api import (
    ActiveConfigurationResponse,
    AddWorkflowRequest,
    AddWorkflowResponse,
    RemoveWorkflowRequest,
    RemoveWorkflowResponse,
    ReorderWorkflowsRequest,
    ReorderWorkflowsResponse,
    UpdateWorkflowRequest,
    UpdateWorkflowResponse,
)
from actionboard.dashboard_service.models.document import (
    ConfigurationDocument,
    DashboardRef,
    WorkflowEntry,
    WorkflowKey,
)

if TYPE_CHECKING:
    from actionboard.dashboard_service.managers.documents import ConfigDocumentStore

WorkflowVerifier = Callable[[WorkflowKey], Awaitable[None]]
"""Best-effort upstream check; raises an ``UpstreamError`` subclass on failure."""


async def get_active_configuration(documents: ConfigDocumentStore) -> ActiveConfigurationResponse:
    """Dashboard list, active id and the active dashboard's workflows."""
    document = await documents.read()
    return active_configuration_of(document)


def active_configuration_of(document: ConfigurationDocument) -> ActiveConfigurationResponse:
    active = document.active_dashboard()
    return ActiveConfigurationResponse(
        dashboards=document.dashboard_refs(),
        active_dashboard_id=active.id,
        workflows=[entry.model_copy() for entry in active.workflows],
    )


async def add_workflow(
    documents: ConfigDocumentStore,
    body: AddWorkflowRequest,
    *,
    verify: WorkflowVerifier | None = None,
) -> AddWorkflowResponse:
    """Append a workflow to the active dashboard.

    Raises ``DuplicateWorkflowError`` if the (owner, repo, workflow) key is
    already present, and whatever ``verify`` raises if the upstream check
    fails.  The verification result is reused if the write has to be retried.
    """
    key = body.key
    verified = False

    async def _apply(document: ConfigurationDocument) -> AddWorkflowResponse:
        nonlocal verified
        dashboard = document.active_dashboard()
        if dashboard.find_workflow(key) is not None:
            logger.info("Workflow already exists: {} (dashboard={})", key, dashboard.id)
            raise DuplicateWorkflowError

        if verify is not None and not verified:
            await verify(key)
            verified = True

        entry = WorkflowEntry(owner=key.owner, repo=key.repo, workflow=key.workflow, label=body.label)
        dashboard.workflows.append(entry)
        return AddWorkflowResponse(
            workflow=entry.model_copy(),
            dashboard=DashboardRef(id=dashboard.id, name=dashboard.name),
        )

    result = await documents.mutate(_apply)
    logger.info("Added workflow {} to dashboard {}", key, result.dashboard.id)
    return result


async def remove_workflow(documents: ConfigDocumentStore, body: RemoveWorkflowRequest) -> RemoveWorkflowResponse:
    """Remove a workflow from the active dashboard.  Raises ``WorkflowNotFoundError``."""
    key = body.key

    async def _apply(document: ConfigurationDocument) -> RemoveWorkflowResponse:
        dashboard = document.active_dashboard()
        index = dashboard.find_workflow(key)
        if index is None:
            raise WorkflowNotFoundError
        removed = dashboard.workflows.pop(index)
        return RemoveWorkflowResponse(workflow=removed)

    result = await documents.mutate(_apply)
    logger.info("Removed workflow {}", key)
    return result


async def update_workflow(documents: ConfigDocumentStore, body: UpdateWorkflowRequest) -> UpdateWorkflowResponse:
    """Change an entry's label in place.  Raises ``WorkflowNotFoundError``."""
    key = body.key

    async def _apply(document: ConfigurationDocument) -> UpdateWorkflowResponse:
        dashboard = document.active_dashboard()
        index = dashboard.find_workflow(key)
        if index is None:
            raise WorkflowNotFoundError
        entry = dashboard.workflows[index]
        entry.label = body.label
        return UpdateWorkflowResponse(
            workflow=entry.model_copy(),
            dashboard=DashboardRef(id=dashboard.id, name=dashboard.name),
        )

    result = await documents.mutate(_apply)
    logger.info("Updated label of workflow {} to {!r}", key, body.label)
    return result


async def reorder_workflows(
    documents: ConfigDocumentStore, body: ReorderWorkflowsRequest
) -> ReorderWorkflowsResponse:
    """Rebuild the active dashboard's workflow list in the given order.

    The input must be a permutation of the current keys.  Any unknown key,
    repeated key or count mismatch raises ``ReorderMismatchError`` and the
    stored order is left as it was.
    """
    keys = [ref.key for ref in body.workflows]

    async def _apply(document: ConfigurationDocument) -> ReorderWorkflowsResponse:
        dashboard = document.active_dashboard()
        by_key = {entry.key: entry for entry in dashboard.workflows}

        for key in keys:
            if key not in by_key:
                msg = (
                    f"Workflow not found: {key}. This may indicate the workflow was removed "
                    "or the client state is outdated."
                )
                raise ReorderMismatchError(msg)
        if len(keys) != len(dashboard.workflows):
            raise ReorderMismatchError
        if len(set(keys)) != len(keys):
            msg = "Reorder must list every workflow exactly once."
            raise ReorderMismatchError(msg)

        dashboard.workflows = [by_key[key] for key in keys]
        return ReorderWorkflowsResponse(
            message=f"Reordered {len(keys)} workflows",
            count=len(keys),
            dashboard_id=dashboard.id,
        )

    result = await documents.mutate(_apply)
    logger.info("Reordered {} workflows in dashboard {}", result.count, result.dashboard_id)
    return result
