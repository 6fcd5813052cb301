"""Status aggregation: the active dashboard's workflows merged with live runs.

Installations are resolved once per distinct owner and tokens once per
installation.  Within a request every latest-run fetch runs concurrently in
one task group, each under its own timeout, and records its own failure as
that entry's error status so one slow or broken workflow never aborts the
batch.  Results keep the dashboard's order.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import anyio
from loguru import logger

from actionboard.dashboard_service.errors import BoardError, UpstreamError, UpstreamUnavailableError
from actionboard.dashboard_service.models.api import WorkflowStatusesResponse
from actionboard.dashboard_service.models.document import WorkflowEntry
from actionboard.dashboard_service.models.status import WorkflowStatus
from actionboard.dashboard_service.upstream.base import CIStatusProvider, InstallationContext, find_installation

if TYPE_CHECKING:
    from actionboard.dashboard_service.managers.documents import ConfigDocumentStore

NO_WORKFLOWS_MESSAGE = "No workflows configured"
INTEGRATION_NOT_CONFIGURED = "GitHub integration not available: no CI provider is configured."


def _not_installed(owner: str) -> str:
    return f"GitHub integration not available: the app is not installed for '{owner}'."


async def get_workflow_statuses(
    documents: ConfigDocumentStore,
    provider: CIStatusProvider | None,
    *,
    timeout: float = 10.0,
) -> WorkflowStatusesResponse:
    """Latest run status for every workflow on the active dashboard.

    Raises ``UpstreamUnavailableError`` only when the installation list itself
    cannot be fetched; every other upstream failure becomes an error entry.
    """
    document = await documents.read()
    active = document.active_dashboard()

    entries: list[WorkflowEntry] = []
    for entry in active.workflows:
        if entry.is_complete():
            entries.append(entry)
        else:
            logger.warning("Skipping malformed workflow entry on dashboard {}: {!r}", active.id, entry)

    results: list[WorkflowStatus | None] = [None] * len(entries)
    if entries:
        if provider is None:
            results = [WorkflowStatus.from_error(entry, INTEGRATION_NOT_CONFIGURED) for entry in entries]
        else:
            await _collect(provider, entries, results, timeout)

    statuses = [status for status in results if status is not None]
    logger.info(
        "Fetched {} workflow statuses for dashboard {} ({} errors)",
        len(statuses),
        active.id,
        sum(1 for status in statuses if status.error is not None),
    )
    return WorkflowStatusesResponse(
        dashboards=document.dashboard_refs(),
        active_dashboard_id=active.id,
        workflows=statuses,
        timestamp=datetime.now(UTC),
        count=len(statuses),
        message=None if statuses else NO_WORKFLOWS_MESSAGE,
    )


async def _collect(
    provider: CIStatusProvider,
    entries: list[WorkflowEntry],
    results: list[WorkflowStatus | None],
    timeout: float,
) -> None:
    try:
        with anyio.fail_after(timeout):
            installations = await provider.list_installations()
    except TimeoutError as exc:
        msg = f"Timed out after {timeout}s listing GitHub App installations."
        raise UpstreamUnavailableError(msg) from exc
    except UpstreamUnavailableError:
        raise
    except UpstreamError as exc:
        logger.error("Failed to list GitHub App installations: {}", exc)
        msg = f"Could not list GitHub App installations: {exc.message}"
        raise UpstreamUnavailableError(msg) from exc

    # One lookup per distinct owner (case-insensitive).
    resolved: dict[str, int | None] = {}
    groups: dict[int, list[int]] = defaultdict(list)
    for index, entry in enumerate(entries):
        owner = entry.owner.lower()
        if owner not in resolved:
            installation = find_installation(installations, entry.owner)
            resolved[owner] = installation.id if installation is not None else None
        installation_id = resolved[owner]
        if installation_id is None:
            results[index] = WorkflowStatus.from_error(entry, _not_installed(entry.owner))
        else:
            groups[installation_id].append(index)

    async with anyio.create_task_group() as tg:
        for installation_id, indexes in groups.items():
            tg.start_soon(_collect_group, provider, installation_id, indexes, entries, results, timeout)


async def _collect_group(
    provider: CIStatusProvider,
    installation_id: int,
    indexes: list[int],
    entries: list[WorkflowEntry],
    results: list[WorkflowStatus | None],
    timeout: float,
) -> None:
    try:
        with anyio.fail_after(timeout):
            ctx = await provider.installation_context(installation_id)
    except TimeoutError:
        error = f"Timed out after {timeout}s obtaining an installation token."
    except BoardError as exc:
        error = f"Could not obtain an installation token: {exc.message}"
    except Exception as exc:
        logger.exception("Unexpected error obtaining a token for installation {}", installation_id)
        error = f"Could not obtain an installation token: unexpected error: {exc}"
    else:
        async with anyio.create_task_group() as tg:
            for index in indexes:
                tg.start_soon(_collect_one, provider, ctx, index, entries[index], results, timeout)
        return

    logger.warning("Installation {} unavailable: {}", installation_id, error)
    for index in indexes:
        results[index] = WorkflowStatus.from_error(entries[index], error)


async def _collect_one(
    provider: CIStatusProvider,
    ctx: InstallationContext,
    index: int,
    entry: WorkflowEntry,
    results: list[WorkflowStatus | None],
    timeout: float,
) -> None:
    try:
        with anyio.fail_after(timeout):
            run = await provider.get_latest_run(ctx, entry.owner, entry.repo, entry.workflow)
    except TimeoutError:
        logger.warning("Timed out fetching latest run of {}", entry.key)
        results[index] = WorkflowStatus.from_error(entry, f"Timed out after {timeout}s fetching the latest run.")
    except BoardError as exc:
        logger.warning("Failed to fetch latest run of {}: {}", entry.key, exc)
        results[index] = WorkflowStatus.from_error(entry, exc.message)
    except Exception as exc:
        logger.exception("Unexpected error fetching latest run of {}", entry.key)
        results[index] = WorkflowStatus.from_error(entry, f"Unexpected error: {exc}")
    else:
        results[index] = WorkflowStatus.from_run(entry, run)
