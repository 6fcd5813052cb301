"""Shared enumerations used across the dashboard service."""

from __future__ import annotations

from enum import StrEnum

# -- Document ----------------------------------------------------------------


class DocumentShape(StrEnum):
    """Stored layouts of the configuration document, newest first."""

    CANONICAL = "canonical"
    LEGACY_SINGLE = "legacy_single"
    """``{"dashboardId": ..., "workflows": [...]}``"""
    LEGACY_LIST = "legacy_list"
    """A bare array of workflow entries."""
    EMPTY = "empty"
    """Absent blob, ``null`` or ``{}``."""


# -- Upstream run state ------------------------------------------------------


class RunStatus(StrEnum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting"
    REQUESTED = "requested"
    PENDING = "pending"
    COMPLETED = "completed"
    # Synthesised by the aggregator, never sent by GitHub.
    ERROR = "error"
    UNKNOWN = "unknown"


class RunConclusion(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"
    NEUTRAL = "neutral"
    ACTION_REQUIRED = "action_required"
    STALE = "stale"
    ERROR = "error"
    UNKNOWN = "unknown"


class DisplayStatus(StrEnum):
    """Presentation bucket derived from (status, conclusion)."""

    PASSING = "passing"
    FAILING = "failing"
    RUNNING = "running"
    NOT_RUN = "not run"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    TIMED_OUT = "timed out"
    NO_RUNS = "no runs"
    ERROR = "error"
    UNKNOWN = "unknown"
