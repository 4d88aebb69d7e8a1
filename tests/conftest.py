"""Test configuration and shared fixtures."""

from pathlib import Path

import pytest

from s3cache.clients.object_store import set_object_store
from s3cache.core.config import Settings, get_settings
from tests.fakes.fake_object_store import FakeObjectStore


TEST_BUCKET = "ci-cache"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with credentials present and a private temp dir."""
    temp_dir = tmp_path / "tmp"
    temp_dir.mkdir()
    return Settings(
        aws_access_key_id="AKIATEST",
        aws_secret_access_key="secret",
        aws_region="us-east-1",
        bucket_name=TEST_BUCKET,
        temp_dir=str(temp_dir),
        log_level="DEBUG",
    )


@pytest.fixture(autouse=True)
def _reset_globals():
    """Keep the cached settings and shared store from leaking between tests."""
    get_settings.cache_clear()
    set_object_store(None)
    yield
    get_settings.cache_clear()
    set_object_store(None)


# ============================================================================
# Object Store Fixtures
# ============================================================================

@pytest.fixture
def fake_store() -> FakeObjectStore:
    """Empty in-memory object store."""
    return FakeObjectStore()


# ============================================================================
# Filesystem Fixtures
# ============================================================================

@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty working directory the test runs in."""
    work = tmp_path / "workspace"
    work.mkdir()
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def runner_env(tmp_path: Path) -> dict[str, str]:
    """Runner environment for a push to main, with empty output/state files."""
    output_file = tmp_path / "github_output"
    state_file = tmp_path / "github_state"
    output_file.touch()
    state_file.touch()
    return {
        "GITHUB_EVENT_NAME": "push",
        "GITHUB_REF": "refs/heads/main",
        "GITHUB_OUTPUT": str(output_file),
        "GITHUB_STATE": str(state_file),
    }


@pytest.fixture
def dist_tree(workspace: Path) -> Path:
    """dist/ with a.txt ("hi") and sub/b.txt ("lo")."""
    dist = workspace / "dist"
    (dist / "sub").mkdir(parents=True)
    (dist / "a.txt").write_text("hi")
    (dist / "sub" / "b.txt").write_text("lo")
    return dist
