"""Environment-variable secret provider.

Secret ``github-app-private-key`` is read from
``ACTIONBOARD_SECRET_GITHUB_APP_PRIVATE_KEY``.  PEM keys passed through a
single-line variable may use literal ``\\n`` sequences; they are expanded.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from actionboard.dashboard_service.errors import SecretUnavailableError

ENV_PREFIX = "ACTIONBOARD_SECRET_"


def secret_env_name(name: str, prefix: str = ENV_PREFIX) -> str:
    return prefix + name.upper().replace("-", "_").replace(".", "_")


class EnvSecretProvider:
    def __init__(self, environ: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX) -> None:
        self._environ = environ if environ is not None else os.environ
        self._prefix = prefix

    async def get_secret(self, name: str) -> str:
        var = secret_env_name(name, self._prefix)
        value = self._environ.get(var)
        if not value:
            msg = f"Secret '{name}' is not set (expected environment variable {var})."
            raise SecretUnavailableError(msg)
        return value.replace("\\n", "\n")
