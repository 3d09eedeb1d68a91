"""Shared fixtures for building throwaway git repositories."""

import os
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Scout Test",
    "GIT_AUTHOR_EMAIL": "scout@example.com",
    "GIT_COMMITTER_NAME": "Scout Test",
    "GIT_COMMITTER_EMAIL": "scout@example.com",
    "GIT_CONFIG_GLOBAL": os.devnull,
    "GIT_CONFIG_NOSYSTEM": "1",
}

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git executable not available"
)


def run_git(cwd: Path, *args: str) -> str:
    """Runs git in `cwd` with a fixed identity and no user/system config."""
    res = subprocess.run(
        ["git", *args],
        cwd=cwd,
        env={**os.environ, **GIT_ENV},
        capture_output=True,
        text=True,
        check=True,
    )
    return res.stdout.strip()


@pytest.fixture
def make_repo() -> Callable[[Path], Path]:
    """Returns a factory that initialises a repository with one commit on 'main'."""

    def _make(path: Path) -> Path:
        path.mkdir(parents=True, exist_ok=True)
        run_git(path, "init", "-q", "-b", "main")
        (path / "README.md").write_text("hello\n")
        run_git(path, "add", "README.md")
        run_git(path, "commit", "-q", "-m", "initial")
        return path

    return _make


@pytest.fixture
def commit_file() -> Callable[[Path, str, str], str]:
    """Returns a helper that commits a file and returns the new HEAD hash."""

    def _commit(repo: Path, name: str, content: str) -> str:
        (repo / name).write_text(content)
        run_git(repo, "add", name)
        run_git(repo, "commit", "-q", "-m", f"update {name}")
        return run_git(repo, "rev-parse", "HEAD")

    return _commit
