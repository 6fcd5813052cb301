"""Upstream CI status providers."""

from actionboard.dashboard_service.upstream.base import (
    CIStatusProvider,
    Installation,
    InstallationContext,
    find_installation,
    verify_workflow,
)
from actionboard.dashboard_service.upstream.github import GitHubAppProvider

__all__ = [
    "CIStatusProvider",
    "GitHubAppProvider",
    "Installation",
    "InstallationContext",
    "find_installation",
    "verify_workflow",
]
