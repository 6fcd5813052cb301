"""Secret provider interface.

The service needs two credentials (GitHub App id and private key) and
treats them as read-only values owned elsewhere.  They are fetched per
request, so a rotated key is picked up without a restart.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SecretProvider(Protocol):
    async def get_secret(self, name: str) -> str:
        """Return the secret's value.  Raises ``SecretUnavailableError``."""
        ...
