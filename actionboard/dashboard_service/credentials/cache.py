"""Short-TTL cache in front of another secret provider.

Only saves latency on the status endpoint's per-request fetches; a value is
never served longer than ``ttl`` seconds after it was fetched, so a rotated
key is picked up within one TTL.  Failures are not cached.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from loguru import logger

from actionboard.dashboard_service.credentials.base import SecretProvider


class CachingSecretProvider:
    def __init__(
        self,
        inner: SecretProvider,
        ttl: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._inner = inner
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    async def get_secret(self, name: str) -> str:
        if self._ttl <= 0:
            return await self._inner.get_secret(name)

        now = self._clock()
        cached = self._entries.get(name)
        if cached is not None and now < cached[0]:
            return cached[1]

        value = await self._inner.get_secret(name)
        self._entries[name] = (now + self._ttl, value)
        logger.debug("Secret '{}' fetched (cached for {}s)", name, self._ttl)
        return value
