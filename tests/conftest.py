"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from aiolimiter import AsyncLimiter

from catalogsync.clients.http import RateLimitMonitor, RequestContext
from catalogsync.settings import Settings
from catalogsync.storage.blob import LocalBlobStore
from catalogsync.storage.records import RecordStore
from tests.factories import FakeGitHubAPI


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("GITHUB_TOKEN", "CATALOGSYNC_GITHUB_TOKEN", "CATALOGSYNC_STORE_BACKEND", "CATALOGSYNC_DATA_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def request_context() -> RequestContext:
    return RequestContext(limiter=AsyncLimiter(1000, 1), monitor=RateLimitMonitor(window=50))


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def settings(tmp_data_dir: Path) -> Settings:
    """Settings with a token and no real waiting between retries or batches."""

    return Settings(
        github_token="test-token",
        data_dir=tmp_data_dir,
        stars_batch_delay=0.0,
        stars_retry_base_delay=0.0,
        stars_retry_max_delay=0.0,
        content_retry_base_delay=0.0,
        content_retry_max_delay=0.0,
    )


@pytest.fixture
def record_store(tmp_data_dir: Path) -> RecordStore:
    return RecordStore(LocalBlobStore(tmp_data_dir))


@pytest.fixture
def github_api() -> FakeGitHubAPI:
    return FakeGitHubAPI()
