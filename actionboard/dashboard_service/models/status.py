"""Live run status models and the (status, conclusion) display mapping."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from actionboard.dashboard_service.models.document import CamelModel, WorkflowEntry
from actionboard.dashboard_service.models.enums import DisplayStatus, RunConclusion, RunStatus

# Keyed by plain ``str`` values so lookups with raw upstream strings hash alike.
_RUNNING_STATUSES = frozenset(
    s.value for s in (RunStatus.QUEUED, RunStatus.IN_PROGRESS, RunStatus.WAITING, RunStatus.REQUESTED, RunStatus.PENDING)
)

_COMPLETED_CONCLUSIONS: dict[str, DisplayStatus] = {
    RunConclusion.SUCCESS.value: DisplayStatus.PASSING,
    RunConclusion.FAILURE.value: DisplayStatus.FAILING,
    RunConclusion.CANCELLED.value: DisplayStatus.CANCELLED,
    RunConclusion.SKIPPED.value: DisplayStatus.SKIPPED,
    RunConclusion.TIMED_OUT.value: DisplayStatus.TIMED_OUT,
}


def display_status(status: str | None, conclusion: str | None) -> DisplayStatus:
    """Map a run's (status, conclusion) to its display bucket.

    Total over arbitrary strings: combinations GitHub may add later land in
    ``UNKNOWN`` rather than raising.
    """
    if status == RunStatus.UNKNOWN or conclusion == RunConclusion.UNKNOWN:
        return DisplayStatus.NO_RUNS
    if status == RunStatus.ERROR or conclusion == RunConclusion.ERROR:
        return DisplayStatus.ERROR
    if status is not None and str(status) in _RUNNING_STATUSES:
        return DisplayStatus.RUNNING
    if status == RunStatus.COMPLETED:
        if conclusion is None:
            return DisplayStatus.NOT_RUN
        return _COMPLETED_CONCLUSIONS.get(str(conclusion), DisplayStatus.UNKNOWN)
    return DisplayStatus.UNKNOWN


def workflow_runs_url(owner: str, repo: str, workflow: str) -> str:
    """Link to a workflow's runs page, used when no specific run exists."""
    return f"https://github.com/{owner}/{repo}/actions/workflows/{workflow}"


class WorkflowRun(CamelModel):
    """Latest run of a workflow as reported upstream."""

    status: str | None = None
    conclusion: str | None = None
    url: str
    updated_at: datetime | None = None


class WorkflowStatus(CamelModel):
    """A configured workflow entry merged with its live status."""

    owner: str
    repo: str
    workflow: str
    label: str
    status: str | None
    conclusion: str | None
    url: str
    updated_at: datetime | None = None
    error: str | None = Field(default=None, description="Why the status could not be fetched.")
    display: DisplayStatus

    @classmethod
    def from_run(cls, entry: WorkflowEntry, run: WorkflowRun | None) -> WorkflowStatus:
        if run is None:
            # The workflow exists but has never run.
            return cls._build(
                entry,
                status=RunStatus.UNKNOWN,
                conclusion=RunConclusion.UNKNOWN,
                url=workflow_runs_url(entry.owner, entry.repo, entry.workflow),
            )
        return cls._build(
            entry, status=run.status, conclusion=run.conclusion, url=run.url, updated_at=run.updated_at
        )

    @classmethod
    def from_error(cls, entry: WorkflowEntry, error: str) -> WorkflowStatus:
        return cls._build(
            entry,
            status=RunStatus.ERROR,
            conclusion=RunConclusion.ERROR,
            url=workflow_runs_url(entry.owner, entry.repo, entry.workflow),
            error=error,
        )

    @classmethod
    def _build(
        cls,
        entry: WorkflowEntry,
        *,
        status: str | None,
        conclusion: str | None,
        url: str,
        updated_at: datetime | None = None,
        error: str | None = None,
    ) -> WorkflowStatus:
        return cls(
            owner=entry.owner,
            repo=entry.repo,
            workflow=entry.workflow,
            label=entry.label,
            status=status,
            conclusion=conclusion,
            url=url,
            updated_at=updated_at,
            error=error,
            display=display_status(status, conclusion),
        )
