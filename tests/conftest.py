"""Pytest fixtures for pwt tests"""
import os
import stat
import tempfile
from pathlib import Path

import git
import pytest

from pwt.config import Config
from pwt.core import LifecycleEngine
from pwt.services.git import resolve_project


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep tests away from the user's ~/.pwt and plugin path."""
    monkeypatch.delenv("PWT_HOME", raising=False)
    monkeypatch.delenv("PWT_PLUGIN_PATH", raising=False)
    monkeypatch.delenv("PWT_LOCK_TIMEOUT", raising=False)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # Resolve so paths compare equal to git's (e.g. /private/var on macOS)
        yield Path(os.path.realpath(tmpdir))


def _init_repo(path: Path) -> git.Repo:
    path.mkdir(parents=True)
    repo = git.Repo.init(path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit on main branch
    test_file = path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    try:
        repo.git.branch('-M', 'main')
    except Exception:
        pass
    return repo


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo = _init_repo(temp_dir / "test_repo")
    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def other_repo(temp_dir):
    """A second, unrelated repository."""
    repo = _init_repo(temp_dir / "other_repo")
    yield repo
    repo.close()


@pytest.fixture
def pwt_home(temp_dir):
    home = temp_dir / "pwt-home"
    home.mkdir()
    return home


@pytest.fixture
def config(pwt_home):
    """Configuration pointing at the temporary pwt home, with short timeouts."""
    return Config(
        home_dir=pwt_home,
        lock_timeout=2.0,
        stale_lock_seconds=300.0,
        poll_interval=0.02,
        hook_timeout=10.0,
    )


@pytest.fixture
def engine(config):
    return LifecycleEngine(config)


@pytest.fixture
def project(git_repo):
    return resolve_project(git_repo.working_dir)


@pytest.fixture
def initialized(engine, project):
    """A project that has been through `pwt init`."""
    result = engine.init(project)
    assert result.ok
    return project


@pytest.fixture
def plugin_dir(config):
    directory = config.user_plugin_dir
    directory.mkdir(parents=True, exist_ok=True)
    return directory


@pytest.fixture
def make_plugin(plugin_dir):
    """Factory writing an executable shell plugin into the user plugin dir."""

    def _make(name: str, body: str, executable: bool = True, directory: Path = None) -> Path:
        target_dir = directory or plugin_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        mode = path.stat().st_mode
        if executable:
            path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


PORCELAIN_TWO_WORKTREES = (
    "worktree {main}\n"
    "HEAD 1111111111111111111111111111111111111111\n"
    "branch refs/heads/main\n"
    "\n"
    "worktree {feature}\n"
    "HEAD 2222222222222222222222222222222222222222\n"
    "branch refs/heads/feature/x\n"
    "\n"
)


@pytest.fixture
def porcelain_two_worktrees():
    """Porcelain text template for a main worktree plus one linked worktree."""
    return PORCELAIN_TWO_WORKTREES
