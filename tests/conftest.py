"""Shared test fixtures.

Every test runs with a clean settings environment: ``ACTIONBOARD_*``
variables from the calling shell are removed, the working directory is a
fresh temp dir (so no stray ``.env`` is read), and the settings cache is
cleared before and after.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from actionboard.dashboard_service.settings import _get_settings_cached


@pytest.fixture(autouse=True)
def _clean_settings_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    for key in list(os.environ):
        if key.startswith("ACTIONBOARD_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()
