"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.fixtures.providers import FakeProvider


@pytest.fixture
def provider() -> FakeProvider:
    """Empty in-memory provider."""
    return FakeProvider(region="us-east-1")


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point configuration at an empty temp directory and clear env overrides."""
    monkeypatch.setenv("TTL_REAPER_CONFIG", str(tmp_path / "config.yaml"))
    for name in (
        "AWS_PROFILE",
        "TTL_REAPER_REGIONS",
        "TTL_REAPER_TAG_NAME",
        "TTL_REAPER_DRY_RUN",
        "TTL_REAPER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path
