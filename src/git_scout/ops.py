import logging
from contextlib import closing
from itertools import takewhile

from .constants import APP_NAME
from .git_wrapper import GitRepo
from .models import Reference, StatusSnapshot

logger = logging.getLogger(APP_NAME)


def count_changes(status: StatusSnapshot) -> int:
    """Counts paths with staged or unstaged changes.

    Args:
        status (StatusSnapshot): The working tree status.

    Returns:
        int: Paths whose index or worktree state is not unmodified.
    """
    return sum(1 for file_status in status.values() if file_status.is_modified)


def count_remote_changes(repo: GitRepo, head: Reference, remote: Reference) -> int:
    """Counts commits on the remote-tracking branch that HEAD has not reached.

    History is walked from the remote commit, newest first, and the walk stops
    at the HEAD commit. If HEAD never shows up (the branches have diverged),
    every commit walked is counted, so the result over-reports in that case.

    Args:
        repo (GitRepo): The repository both references belong to.
        head (Reference): The local HEAD.
        remote (Reference): The remote-tracking reference for HEAD's branch.

    Returns:
        int: Commits walked before reaching HEAD (HEAD itself excluded).

    Raises:
        HistoryWalkError: If the history walk fails.
    """
    if head.same_commit(remote):
        return 0

    with closing(repo.log(remote.hash)) as history:
        ahead = takewhile(lambda sha: sha != head.hash, history)
        count = sum(1 for _ in ahead)

    logger.debug(f"{remote.short_name} is {count} commits past {head.short_name}")
    return count
