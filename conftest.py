"""Shared pytest fixtures for jab tests."""

import pytest

from jab.config import init_jab_dir
from jab.revision import create_revision_store
from jab.revision.memory import MemoryRevisionStore


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the real ~/.jab and the user's git identity."""
    monkeypatch.delenv("JAB_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "jab tests")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "tests@jab.invalid")
    MemoryRevisionStore.reset()
    yield
    MemoryRevisionStore.reset()


@pytest.fixture
def jab_dir(tmp_path):
    path = tmp_path / ".jab"
    init_jab_dir(path)
    return path


@pytest.fixture(params=["memory", "git"])
def store_cls(request):
    return create_revision_store(request.param)
