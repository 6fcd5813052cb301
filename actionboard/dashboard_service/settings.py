"""Service configuration loaded from ACTIONBOARD_* environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BoardSettings(BaseSettings):
    """Actionboard dashboard service settings.

    All fields are read from environment variables with the ``ACTIONBOARD_``
    prefix.  For example, ``ACTIONBOARD_LOG_LEVEL=DEBUG`` maps to ``log_level``.

    GitHub App credentials are **not** fields here -- they are fetched per
    request through the configured secret provider (see ``credentials/``).
    """

    model_config = SettingsConfigDict(
        env_prefix="ACTIONBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Server ----------------------------------------------------------------
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000

    # -- Blob storage ----------------------------------------------------------
    blob_store: Literal["local", "s3"] = "local"

    data_root: str = "./data"
    """Root directory for the local blob store."""

    data_prefix: str | None = None
    """Optional namespace prefix inserted into all blob paths / keys."""

    config_key: str = "workflows.json"
    """Well-known key of the dashboard configuration document."""

    # S3 (only when blob_store = "s3")
    s3_endpoint: str | None = None
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    s3_path_style: bool = False
    """Use path-style addressing (required by MinIO and some S3-compatible services)."""

    s3_conditional_writes: bool = True
    """Send ``If-Match`` / ``If-None-Match`` on writes.

    Disable for S3-compatible services that reject conditional PUTs; the
    write protocol then falls back to last-writer-wins.
    """

    # -- Write protocol --------------------------------------------------------
    max_write_attempts: int = 5
    """Upper bound on load-mutate-save attempts when a conditional write loses a race."""

    persist_migrations: bool = True
    """Write the canonical document back after a read that migrated a legacy shape."""

    # -- Credentials -----------------------------------------------------------
    secret_provider: Literal["env", "file"] = "env"
    secrets_dir: str = "/run/secrets"
    secret_cache_ttl: float = 300.0
    """Seconds a fetched secret may be reused.  0 disables caching."""

    github_app_id_secret: str = "github-app-id"
    github_app_private_key_secret: str = "github-app-private-key"

    # -- Upstream CI -----------------------------------------------------------
    github_enabled: bool = True
    github_api_url: str = "https://api.github.com"
    upstream_timeout: float = 10.0
    """Per-call timeout (seconds) for GitHub REST requests."""

    verify_workflows: bool = True
    """Check that a workflow resolves upstream before add-workflow persists it."""

    status_cache_max_age: int = 60


def get_settings() -> BoardSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> BoardSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return BoardSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
