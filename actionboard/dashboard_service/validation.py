"""Field-level validators shared by request schemas and managers.

Each function either returns the parsed value or raises
``ConfigValidationError`` with a message that can be shown to the user as-is.
"""

from __future__ import annotations

import re

from actionboard.dashboard_service.errors import ConfigValidationError

_NUMERIC_WORKFLOW = re.compile(r"[0-9]+")
_WORKFLOW_SUFFIXES = (".yml", ".yaml")


def parse_repo(value: object) -> tuple[str, str]:
    """Split ``"owner/repo"`` into its two segments."""
    if not isinstance(value, str) or not value:
        msg = "repo field is required and must be a string"
        raise ConfigValidationError(msg)
    parts = value.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        msg = 'repo must be in the format "owner/repo"'
        raise ConfigValidationError(msg)
    return parts[0], parts[1]


def validate_workflow_ref(value: object) -> str:
    """Accept a numeric workflow id or a ``.yml`` / ``.yaml`` file name."""
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str) or not value:
        msg = "workflow field is required and must be a string"
        raise ConfigValidationError(msg)
    if _NUMERIC_WORKFLOW.fullmatch(value) or value.endswith(_WORKFLOW_SUFFIXES):
        return value
    msg = "workflow must be a numeric workflow id or a .yml or .yaml file"
    raise ConfigValidationError(msg)


def validate_label(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        msg = "label field is required and must be a non-empty string"
        raise ConfigValidationError(msg)
    return value.strip()


def normalize_dashboard_name(value: object) -> str:
    """Trim a dashboard name; the trimmed form is what gets stored and compared."""
    if not isinstance(value, str) or not value.strip():
        msg = "name is required and must be a non-empty string"
        raise ConfigValidationError(msg)
    return value.strip()


def validate_dashboard_id(value: object) -> str:
    if not isinstance(value, str) or not value:
        msg = "dashboardId is required and must be a string"
        raise ConfigValidationError(msg)
    return value


def validate_key_part(value: object, field: str) -> str:
    """Non-empty string check for the owner/repo parts of a reorder key."""
    if not isinstance(value, str) or not value:
        msg = "Each workflow must have owner, repo, and workflow fields"
        raise ConfigValidationError(f"{msg} ({field} is missing)")
    return value
