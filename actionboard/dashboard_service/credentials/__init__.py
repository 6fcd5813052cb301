"""Secret providers for upstream credentials."""

from __future__ import annotations

from actionboard.dashboard_service.credentials.base import SecretProvider
from actionboard.dashboard_service.credentials.cache import CachingSecretProvider
from actionboard.dashboard_service.credentials.env import EnvSecretProvider
from actionboard.dashboard_service.credentials.file import FileSecretProvider
from actionboard.dashboard_service.settings import BoardSettings


def create_secret_provider(settings: BoardSettings) -> SecretProvider:
    """Create the secret provider backend based on configuration."""
    inner: SecretProvider
    if settings.secret_provider == "file":
        inner = FileSecretProvider(settings.secrets_dir)
    else:
        inner = EnvSecretProvider()
    return CachingSecretProvider(inner, settings.secret_cache_ttl)


__all__ = [
    "CachingSecretProvider",
    "EnvSecretProvider",
    "FileSecretProvider",
    "SecretProvider",
    "create_secret_provider",
]
