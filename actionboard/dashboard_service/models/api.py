"""API request / response schemas for the configuration and status endpoints.

Request schemas validate each field through the plain functions in
``validation.py`` (``mode="before"``, so raw JSON values reach them
unconverted).  A failing validator raises ``ConfigValidationError``; pydantic
wraps it and the app turns it into a 400 ``validation_error`` body.

All schemas use camelCase on the wire (``dashboardId``, ``setAsActive``...).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, ValidationInfo, field_validator

from actionboard.dashboard_service.models.document import CamelModel, DashboardRef, WorkflowEntry, WorkflowKey
from actionboard.dashboard_service.models.status import WorkflowStatus
from actionboard.dashboard_service.validation import (
    normalize_dashboard_name,
    parse_repo,
    validate_dashboard_id,
    validate_key_part,
    validate_label,
    validate_workflow_ref,
)

# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


class _RepoWorkflowRequest(CamelModel):
    """``repo`` as ``"owner/repo"`` plus a workflow id or file name."""

    repo: str = Field(description='Repository as "owner/repo".')
    workflow: str = Field(description="Numeric workflow id or .yml/.yaml file name.")

    @field_validator("repo", mode="before")
    @classmethod
    def _check_repo(cls, value: Any) -> str:
        parse_repo(value)
        return value

    @field_validator("workflow", mode="before")
    @classmethod
    def _check_workflow(cls, value: Any) -> str:
        return validate_workflow_ref(value)

    @property
    def key(self) -> WorkflowKey:
        owner, repo = parse_repo(self.repo)
        return WorkflowKey(owner, repo, self.workflow)


class AddWorkflowRequest(_RepoWorkflowRequest):
    label: str

    @field_validator("label", mode="before")
    @classmethod
    def _check_label(cls, value: Any) -> str:
        return validate_label(value)


class RemoveWorkflowRequest(_RepoWorkflowRequest):
    pass


class UpdateWorkflowRequest(_RepoWorkflowRequest):
    """Change the label of an existing entry in place."""

    label: str

    @field_validator("label", mode="before")
    @classmethod
    def _check_label(cls, value: Any) -> str:
        return validate_label(value)


class WorkflowRef(CamelModel):
    """Key-only reference to a workflow entry, as sent by reorder."""

    owner: str
    repo: str
    workflow: str

    @field_validator("owner", "repo", "workflow", mode="before")
    @classmethod
    def _check_part(cls, value: Any, info: ValidationInfo) -> str:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        return validate_key_part(value, info.field_name)

    @property
    def key(self) -> WorkflowKey:
        return WorkflowKey(self.owner, self.repo, self.workflow)


class ReorderWorkflowsRequest(CamelModel):
    workflows: list[WorkflowRef] = Field(description="Every workflow of the active dashboard, in the new order.")


class AddWorkflowResponse(CamelModel):
    success: bool = True
    message: str = "Workflow added successfully"
    workflow: WorkflowEntry
    dashboard: DashboardRef


class RemoveWorkflowResponse(CamelModel):
    success: bool = True
    message: str = "Workflow removed successfully"
    workflow: WorkflowEntry


class UpdateWorkflowResponse(CamelModel):
    success: bool = True
    message: str = "Workflow updated successfully"
    workflow: WorkflowEntry
    dashboard: DashboardRef


class ReorderWorkflowsResponse(CamelModel):
    success: bool = True
    message: str
    count: int
    dashboard_id: str


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------


class CreateDashboardRequest(CamelModel):
    name: str
    set_as_active: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> str:
        return normalize_dashboard_name(value)


class RenameDashboardRequest(CamelModel):
    dashboard_id: str
    name: str

    @field_validator("dashboard_id", mode="before")
    @classmethod
    def _check_id(cls, value: Any) -> str:
        return validate_dashboard_id(value)

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> str:
        return normalize_dashboard_name(value)


class DeleteDashboardRequest(CamelModel):
    dashboard_id: str

    @field_validator("dashboard_id", mode="before")
    @classmethod
    def _check_id(cls, value: Any) -> str:
        return validate_dashboard_id(value)


class SetActiveDashboardRequest(CamelModel):
    dashboard_id: str

    @field_validator("dashboard_id", mode="before")
    @classmethod
    def _check_id(cls, value: Any) -> str:
        return validate_dashboard_id(value)


class CreateDashboardResponse(CamelModel):
    success: bool = True
    message: str = "Dashboard created successfully"
    dashboard: DashboardRef
    is_active: bool


class RenameDashboardResponse(CamelModel):
    success: bool = True
    message: str = "Dashboard renamed successfully"
    dashboard: DashboardRef


class DeleteDashboardResponse(CamelModel):
    success: bool = True
    message: str = "Dashboard deleted successfully"
    deleted_dashboard: DashboardRef
    new_active_dashboard_id: str


class SetActiveDashboardResponse(CamelModel):
    success: bool = True
    message: str = "Active dashboard updated successfully"
    active_dashboard_id: str
    dashboard_name: str


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class ActiveConfigurationResponse(CamelModel):
    """Dashboard list plus the active dashboard's workflows (no live status)."""

    dashboards: list[DashboardRef]
    active_dashboard_id: str
    workflows: list[WorkflowEntry]


class WorkflowStatusesResponse(CamelModel):
    dashboards: list[DashboardRef]
    active_dashboard_id: str
    workflows: list[WorkflowStatus]
    timestamp: datetime
    count: int
    message: str | None = None


class ErrorResponse(CamelModel):
    error: str = Field(description="Short machine-matchable error kind.")
    message: str = Field(description="Human-readable explanation.")
