"""File-per-secret provider for mounted secret volumes (Docker/Kubernetes).

Secret ``github-app-id`` is the content of ``{secrets_dir}/github-app-id``,
with surrounding whitespace stripped.  Reads run in the thread pool.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

from anyio import to_thread

from actionboard.dashboard_service.errors import SecretUnavailableError


class FileSecretProvider:
    def __init__(self, secrets_dir: str | Path) -> None:
        self._dir = Path(secrets_dir)

    async def get_secret(self, name: str) -> str:
        if not name or "/" in name or name.startswith("."):
            msg = f"Invalid secret name: {name!r}"
            raise SecretUnavailableError(msg)
        path = self._dir / name
        try:
            value = await to_thread.run_sync(partial(path.read_text, encoding="utf-8"))
        except OSError as exc:
            msg = f"Secret '{name}' could not be read from {self._dir}: {exc.strerror or exc}"
            raise SecretUnavailableError(msg) from exc
        value = value.strip()
        if not value:
            msg = f"Secret '{name}' is empty."
            raise SecretUnavailableError(msg)
        return value
