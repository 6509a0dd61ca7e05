"""Shared test fixtures.

All tests run against temporary directories; nothing touches a real data
root or the network.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from speckit.orchestrator.settings import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch) -> Iterator[None]:
    """Point SPECKIT_DATA_ROOT at a temp dir and drop the cached settings."""
    monkeypatch.setenv("SPECKIT_DATA_ROOT", str(tmp_path / "data"))
    monkeypatch.delenv("SPECKIT_DATA_PREFIX", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
