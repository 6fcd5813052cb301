"""Domain exceptions for the dashboard service.

Managers raise these, never HTTP exceptions.  Each class carries a short
machine ``kind`` and the HTTP ``status_code`` the app translates it to, so
the error body is always ``{"error": kind, "message": str(exc)}``.

The hierarchy also subclasses the matching builtin (``ValueError``,
``LookupError``, ``RuntimeError``) so callers outside HTTP can catch them
the usual way.
"""

from __future__ import annotations


class BoardError(Exception):
    """Base class for every error the service reports to callers."""

    kind: str = "internal_error"
    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    def to_body(self) -> dict[str, str]:
        return {"error": self.kind, "message": self.message}


# -- Caller errors (400) -------------------------------------------------------


class ConfigValidationError(BoardError, ValueError):
    """Caller-supplied input fails a stated contract."""

    kind = "validation_error"
    status_code = 400
    default_message = "Invalid request."


class LastDashboardError(ConfigValidationError):
    kind = "last_dashboard"
    default_message = "Cannot delete the last dashboard. At least one dashboard must exist."


class ReorderMismatchError(ConfigValidationError):
    kind = "invalid_reorder"
    default_message = "Workflow count mismatch. Reorder should include all existing workflows."


# -- Conflicts (409) -----------------------------------------------------------


class ConflictError(BoardError, ValueError):
    kind = "conflict"
    status_code = 409
    default_message = "The request conflicts with the current configuration."


class DuplicateWorkflowError(ConflictError):
    kind = "duplicate_workflow"
    default_message = "Workflow already exists in the dashboard."


class DuplicateDashboardError(ConflictError):
    kind = "duplicate_dashboard"
    default_message = "A dashboard with this name already exists."


# -- Missing references (404) --------------------------------------------------


class NotFoundError(BoardError, LookupError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found."


class DashboardNotFoundError(NotFoundError):
    kind = "dashboard_not_found"
    default_message = "Dashboard not found."


class WorkflowNotFoundError(NotFoundError):
    kind = "workflow_not_found"
    default_message = "Workflow not found in the dashboard."


# -- Invariant violations ------------------------------------------------------


class InvariantViolationError(BoardError, RuntimeError):
    """The stored document breaks an invariant every write is meant to keep.

    Only reachable through a lost last-writer-wins race or a bug; callers
    log these at ERROR.
    """

    kind = "invariant_violation"
    status_code = 500
    default_message = "The dashboard configuration is inconsistent."


class ActiveDashboardMissingError(InvariantViolationError):
    kind = "no_active_dashboard"
    status_code = 404
    default_message = "No active dashboard found."


# -- Upstream collaborators ----------------------------------------------------


class UpstreamError(BoardError, RuntimeError):
    """A secret provider or CI provider call failed."""

    kind = "upstream_error"
    status_code = 502
    default_message = "Upstream service call failed."


class UpstreamNotFoundError(UpstreamError):
    kind = "upstream_not_found"
    status_code = 404
    default_message = "The workflow could not be found upstream."


class AppNotInstalledError(UpstreamNotFoundError):
    kind = "app_not_installed"
    default_message = "The GitHub App is not installed for this repository owner."


class UpstreamForbiddenError(UpstreamError):
    kind = "forbidden"
    status_code = 403
    default_message = "Access to the workflow was denied upstream."


class UpstreamUnavailableError(UpstreamError):
    """Transient upstream failure: timeout, 5xx, rate limit, transport error."""

    kind = "upstream_unavailable"
    status_code = 503
    default_message = "Upstream service is temporarily unavailable. Please try again later."


class SecretUnavailableError(UpstreamError):
    kind = "secret_unavailable"
    status_code = 503
    default_message = "A required credential could not be retrieved."


# -- Infrastructure (500) ------------------------------------------------------


class InfrastructureError(BoardError, RuntimeError):
    kind = "infrastructure_error"
    status_code = 500
    default_message = "Storage is unavailable. Please try again later."


class StorageError(InfrastructureError):
    kind = "storage_error"


class DocumentCorruptedError(InfrastructureError):
    kind = "document_corrupted"
    default_message = "The stored dashboard configuration could not be parsed."


class WriteConflictError(InfrastructureError):
    kind = "write_conflict"
    status_code = 503
    default_message = "The configuration was modified concurrently. Please try again."


class PreconditionFailedError(RuntimeError):
    """A conditional blob write lost the race (stored etag changed).

    Internal to the write protocol; never reaches HTTP callers.
    """
