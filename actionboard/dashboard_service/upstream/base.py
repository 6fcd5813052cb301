"""Upstream CI status provider interface.

A provider knows which installations (authorisation scopes) exist, can turn
one into a call context, and answers two questions per workflow: does it
exist, and what is its latest run.  Failures are reported as
``UpstreamNotFoundError`` / ``UpstreamForbiddenError`` /
``UpstreamUnavailableError`` so callers can tell "fix the input" from
"retry later".
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from loguru import logger

from actionboard.dashboard_service.errors import AppNotInstalledError
from actionboard.dashboard_service.models.document import WorkflowKey
from actionboard.dashboard_service.models.status import WorkflowRun


@dataclass(frozen=True)
class Installation:
    id: int
    account_login: str


@dataclass(frozen=True)
class InstallationContext:
    """Credentials scoped to one installation."""

    installation_id: int
    token: str


@runtime_checkable
class CIStatusProvider(Protocol):
    async def list_installations(self) -> list[Installation]: ...

    async def installation_context(self, installation_id: int) -> InstallationContext: ...

    async def get_latest_run(
        self, ctx: InstallationContext, owner: str, repo: str, workflow: str
    ) -> WorkflowRun | None:
        """Latest run, or None if the workflow has never run."""
        ...

    async def get_workflow(self, ctx: InstallationContext, owner: str, repo: str, workflow: str) -> None:
        """Return if the workflow resolves; raise an ``UpstreamError`` otherwise."""
        ...


def find_installation(installations: Iterable[Installation], owner: str) -> Installation | None:
    """Installation whose account login matches ``owner`` (case-insensitive)."""
    owner_lower = owner.lower()
    for installation in installations:
        if installation.account_login.lower() == owner_lower:
            return installation
    return None


async def verify_workflow(provider: CIStatusProvider, key: WorkflowKey) -> None:
    """Check that ``key`` resolves upstream under the owner's installation.

    Raises ``AppNotInstalledError`` when no installation covers the owner,
    otherwise whatever ``get_workflow`` raises.
    """
    installation = find_installation(await provider.list_installations(), key.owner)
    if installation is None:
        logger.info("No installation found for owner {}", key.owner)
        msg = f"The GitHub App is not installed for '{key.owner}'. Install it on the owner before adding workflows."
        raise AppNotInstalledError(msg)
    ctx = await provider.installation_context(installation.id)
    await provider.get_workflow(ctx, key.owner, key.repo, key.workflow)
    logger.debug("Verified workflow {} (installation={})", key, installation.id)
