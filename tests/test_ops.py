"""Tests for the change counters."""

from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from git_scout import ops
from git_scout.exceptions import HistoryWalkError
from git_scout.git_wrapper import GitRepo
from git_scout.models import FileState, FileStatus, Reference

from .conftest import requires_git, run_git

U = FileState.UNMODIFIED


def test_count_changes_empty_snapshot() -> None:
    """An empty status has no changes."""
    assert ops.count_changes({}) == 0


def test_count_changes_counts_either_axis() -> None:
    """A path counts once if its index or worktree state (or both) changed."""
    status = {
        "clean.txt": FileStatus(U, U),
        "staged.txt": FileStatus(FileState.ADDED, U),
        "edited.txt": FileStatus(U, FileState.MODIFIED),
        "both.txt": FileStatus(FileState.MODIFIED, FileState.MODIFIED),
        "new.txt": FileStatus(FileState.UNTRACKED, FileState.UNTRACKED),
    }
    assert ops.count_changes(status) == 4


def _mock_repo(history: list[str]) -> MagicMock:
    repo = MagicMock(spec=GitRepo)
    repo.log.side_effect = lambda start: (sha for sha in history)
    return repo


def test_count_remote_changes_same_hash_skips_history() -> None:
    """Identical hashes return 0 without opening a history walk."""
    repo = _mock_repo(["r1"])
    head = Reference("refs/heads/main", "abc")
    remote = Reference("refs/remotes/origin/main", "abc")

    assert ops.count_remote_changes(repo, head, remote) == 0
    repo.log.assert_not_called()


def test_count_remote_changes_stops_at_head() -> None:
    """Commits newer than HEAD are counted; HEAD itself is not."""
    repo = _mock_repo(["r3", "r2", "r1", "r0"])
    head = Reference("refs/heads/main", "r1")
    remote = Reference("refs/remotes/origin/main", "r3")

    assert ops.count_remote_changes(repo, head, remote) == 2
    repo.log.assert_called_once_with("r3")


def test_count_remote_changes_head_not_in_history() -> None:
    """When HEAD is never reached, every walked commit is counted."""
    repo = _mock_repo(["r3", "r2", "r1"])
    head = Reference("refs/heads/main", "local-only")
    remote = Reference("refs/remotes/origin/main", "r3")

    assert ops.count_remote_changes(repo, head, remote) == 3


def test_count_remote_changes_stops_consuming_history() -> None:
    """The walk stops pulling commits once HEAD is found, and closes the iterator."""
    pulled: list[str] = []
    closed = []

    def history(start: str) -> Iterator[str]:
        try:
            for sha in ["r2", "r1", "r0", "older"]:
                pulled.append(sha)
                yield sha
        finally:
            closed.append(True)

    repo = MagicMock(spec=GitRepo)
    repo.log.side_effect = history
    head = Reference("refs/heads/main", "r1")
    remote = Reference("refs/remotes/origin/main", "r2")

    assert ops.count_remote_changes(repo, head, remote) == 1
    assert pulled == ["r2", "r1"]
    assert closed == [True]


def test_count_remote_changes_propagates_walk_failure() -> None:
    """A failing history walk surfaces as HistoryWalkError."""

    def broken(start: str) -> Iterator[str]:
        yield "r2"
        raise HistoryWalkError("object missing")

    repo = MagicMock(spec=GitRepo)
    repo.log.side_effect = broken
    head = Reference("refs/heads/main", "r1")
    remote = Reference("refs/remotes/origin/main", "r2")

    with pytest.raises(HistoryWalkError):
        ops.count_remote_changes(repo, head, remote)


@requires_git
def test_count_remote_changes_on_real_history(
    tmp_path: Path,
    make_repo: Callable[[Path], Path],
    commit_file: Callable[[Path, str, str], str],
) -> None:
    """Against a real repository, counts commits between a branch and HEAD."""
    path = make_repo(tmp_path / "repo")
    base = run_git(path, "rev-parse", "HEAD")
    commit_file(path, "a.txt", "1")
    tip = commit_file(path, "b.txt", "2")

    repo = GitRepo(path)
    head = Reference("refs/heads/main", base)
    remote = Reference("refs/remotes/origin/main", tip)

    assert ops.count_remote_changes(repo, head, remote) == 2
