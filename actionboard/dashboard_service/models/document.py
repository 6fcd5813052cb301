"""Configuration document schema and legacy-shape migration.

The whole service persists exactly one JSON object::

    {
      "dashboards": [
        {"id": "<uuid>", "name": "Main Dashboard", "workflows": [
          {"owner": "o", "repo": "r", "workflow": "ci.yml", "label": "CI"}
        ]}
      ],
      "activeDashboardId": "<uuid>"
    }

Two older layouts are still accepted on read and upgraded in memory:

- a bare array of workflow entries, and
- ``{"dashboardId": "<uuid>", "workflows": [...]}``.

Both become a single dashboard named ``Main Dashboard``.  ``migrate_document``
is the only place that knows about these layouts; everything downstream sees
a ``ConfigurationDocument``.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, NamedTuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from actionboard.dashboard_service.errors import ActiveDashboardMissingError, DocumentCorruptedError
from actionboard.dashboard_service.models.enums import DocumentShape

DEFAULT_DASHBOARD_NAME = "Main Dashboard"


def new_dashboard_id() -> str:
    return str(uuid.uuid4())


class WorkflowKey(NamedTuple):
    """Identity of a workflow entry within one dashboard (case-sensitive)."""

    owner: str
    repo: str
    workflow: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}/{self.workflow}"


class CamelModel(BaseModel):
    """Base for models serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -- Stored entities -----------------------------------------------------------


class WorkflowEntry(CamelModel):
    """One monitored workflow.

    Reading is lenient: a missing or null field reads as an empty string so a
    single damaged entry does not make the whole document unreadable.  The
    status aggregator drops incomplete entries.  Unknown extra fields written
    by older versions (``id``, ``order``) are carried through untouched.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    owner: str = ""
    repo: str = ""
    workflow: str = ""
    label: str = ""

    @field_validator("owner", "repo", "workflow", "label", mode="before")
    @classmethod
    def _coerce_blank(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def key(self) -> WorkflowKey:
        return WorkflowKey(self.owner, self.repo, self.workflow)

    def is_complete(self) -> bool:
        return bool(self.owner and self.repo and self.workflow)


class Dashboard(CamelModel):
    id: str = Field(default_factory=new_dashboard_id)
    name: str
    workflows: list[WorkflowEntry] = Field(default_factory=list, description="Display order")

    def find_workflow(self, key: WorkflowKey) -> int | None:
        """Return the index of the entry with ``key``, or None."""
        for index, entry in enumerate(self.workflows):
            if entry.key == key:
                return index
        return None


class DashboardRef(CamelModel):
    """Dashboard without its workflows, as listed to clients."""

    id: str
    name: str


class ConfigurationDocument(CamelModel):
    dashboards: list[Dashboard] = Field(default_factory=list)
    active_dashboard_id: str | None = None

    def find_dashboard(self, dashboard_id: str) -> Dashboard | None:
        for dashboard in self.dashboards:
            if dashboard.id == dashboard_id:
                return dashboard
        return None

    def active_dashboard(self) -> Dashboard:
        """Resolve ``activeDashboardId``.

        Raises ``ActiveDashboardMissingError`` if it does not resolve -- a
        state every successful write is supposed to rule out.
        """
        dashboard = self.find_dashboard(self.active_dashboard_id) if self.active_dashboard_id else None
        if dashboard is None:
            logger.error(
                "Invariant violated: activeDashboardId={} does not resolve (dashboards={})",
                self.active_dashboard_id,
                [d.id for d in self.dashboards],
            )
            raise ActiveDashboardMissingError
        return dashboard

    def dashboard_refs(self) -> list[DashboardRef]:
        return [DashboardRef(id=d.id, name=d.name) for d in self.dashboards]

    def name_taken(self, name: str, *, exclude_id: str | None = None) -> bool:
        return any(d.name == name and d.id != exclude_id for d in self.dashboards)

    def is_consistent(self) -> bool:
        """True when dashboards is non-empty and the active id resolves."""
        return bool(self.dashboards) and self.find_dashboard(self.active_dashboard_id or "") is not None


def default_document() -> ConfigurationDocument:
    """A fresh document: one empty ``Main Dashboard``, marked active."""
    dashboard = Dashboard(name=DEFAULT_DASHBOARD_NAME)
    return ConfigurationDocument(dashboards=[dashboard], active_dashboard_id=dashboard.id)


# -- Migration -----------------------------------------------------------------


def classify_document(raw: Any) -> DocumentShape:
    """Identify which stored layout ``raw`` (decoded JSON) uses.

    Raises ``DocumentCorruptedError`` for anything that is none of them;
    treating an unknown layout as empty would wipe user data on the next write.
    """
    if raw is None or raw == {}:
        return DocumentShape.EMPTY
    if isinstance(raw, list):
        return DocumentShape.LEGACY_LIST
    if isinstance(raw, dict):
        if isinstance(raw.get("dashboards"), list):
            return DocumentShape.CANONICAL
        if isinstance(raw.get("workflows"), list):
            return DocumentShape.LEGACY_SINGLE
    msg = f"Unrecognised configuration document layout ({type(raw).__name__})."
    raise DocumentCorruptedError(msg)


def migrate_document(raw: Any) -> tuple[ConfigurationDocument, DocumentShape]:
    """Upgrade any accepted layout to a ``ConfigurationDocument``.

    Idempotent: a canonical document comes back structurally unchanged.
    """
    shape = classify_document(raw)
    try:
        if shape is DocumentShape.CANONICAL:
            document = ConfigurationDocument.model_validate(raw)
        elif shape is DocumentShape.LEGACY_SINGLE:
            dashboard = Dashboard(
                id=raw.get("dashboardId") or new_dashboard_id(),
                name=DEFAULT_DASHBOARD_NAME,
                workflows=raw["workflows"],
            )
            document = ConfigurationDocument(dashboards=[dashboard], active_dashboard_id=dashboard.id)
        elif shape is DocumentShape.LEGACY_LIST:
            dashboard = Dashboard(name=DEFAULT_DASHBOARD_NAME, workflows=raw)
            document = ConfigurationDocument(dashboards=[dashboard], active_dashboard_id=dashboard.id)
        else:
            document = default_document()
    except PydanticValidationError as exc:
        msg = f"Configuration document does not match the {shape} layout: {exc.error_count()} invalid field(s)."
        raise DocumentCorruptedError(msg) from exc

    if shape is not DocumentShape.CANONICAL:
        logger.info("Migrated configuration document from {} layout", shape)
    return document, shape


def parse_document(data: bytes) -> tuple[ConfigurationDocument, DocumentShape]:
    """Decode stored bytes and migrate them.  Raises ``DocumentCorruptedError``."""
    try:
        raw = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        msg = f"Configuration document is not valid JSON: {exc}"
        raise DocumentCorruptedError(msg) from exc
    return migrate_document(raw)


def serialize_document(document: ConfigurationDocument) -> bytes:
    return document.model_dump_json(by_alias=True, indent=2).encode("utf-8")
