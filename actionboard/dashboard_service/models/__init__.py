"""Data models for the dashboard service."""

from actionboard.dashboard_service.models.api import (
    ActiveConfigurationResponse,
    AddWorkflowRequest,
    AddWorkflowResponse,
    CreateDashboardRequest,
    CreateDashboardResponse,
    DeleteDashboardRequest,
    DeleteDashboardResponse,
    ErrorResponse,
    RemoveWorkflowRequest,
    RemoveWorkflowResponse,
    RenameDashboardRequest,
    RenameDashboardResponse,
    ReorderWorkflowsRequest,
    ReorderWorkflowsResponse,
    SetActiveDashboardRequest,
    SetActiveDashboardResponse,
    UpdateWorkflowRequest,
    UpdateWorkflowResponse,
    WorkflowRef,
    WorkflowStatusesResponse,
)
from actionboard.dashboard_service.models.document import (
    DEFAULT_DASHBOARD_NAME,
    ConfigurationDocument,
    Dashboard,
    DashboardRef,
    WorkflowEntry,
    WorkflowKey,
    default_document,
    migrate_document,
)
from actionboard.dashboard_service.models.enums import DisplayStatus, DocumentShape, RunConclusion, RunStatus
from actionboard.dashboard_service.models.status import WorkflowRun, WorkflowStatus, display_status

__all__ = [
    "DEFAULT_DASHBOARD_NAME",
    # API schemas
    "ActiveConfigurationResponse",
    "AddWorkflowRequest",
    "AddWorkflowResponse",
    # Document
    "ConfigurationDocument",
    "CreateDashboardRequest",
    "CreateDashboardResponse",
    "Dashboard",
    "DashboardRef",
    "DeleteDashboardRequest",
    "DeleteDashboardResponse",
    # Enums
    "DisplayStatus",
    "DocumentShape",
    "ErrorResponse",
    "RemoveWorkflowRequest",
    "RemoveWorkflowResponse",
    "RenameDashboardRequest",
    "RenameDashboardResponse",
    "ReorderWorkflowsRequest",
    "ReorderWorkflowsResponse",
    "RunConclusion",
    "RunStatus",
    "SetActiveDashboardRequest",
    "SetActiveDashboardResponse",
    "UpdateWorkflowRequest",
    "UpdateWorkflowResponse",
    "WorkflowEntry",
    "WorkflowKey",
    "WorkflowRef",
    # Status
    "WorkflowRun",
    "WorkflowStatus",
    "WorkflowStatusesResponse",
    "default_document",
    "display_status",
    "migrate_document",
]
