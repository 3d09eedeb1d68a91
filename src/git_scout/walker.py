"""Depth-first discovery and inspection of git repositories.

The walk descends from a root directory up to a maximum depth. A directory
that is a repository root is inspected and not descended into; any other
directory is listed and its (non-symlinked) subdirectories are visited in
listing order. Failures abandon only the repository or directory concerned.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from . import auth, ops
from .config import Config
from .constants import APP_NAME
from .exceptions import DirectoryReadError, NotARepositoryError, ScoutError
from .git_wrapper import GitRepo
from .models import RepoStatus

logger = logging.getLogger(APP_NAME)


def visit_repository(repo: GitRepo, config: Config) -> RepoStatus:
    """Inspects one repository: local changes, then fetch and remote changes.

    Args:
        repo (GitRepo): The opened repository.
        config (Config): Scan and SSH settings.

    Returns:
        RepoStatus: The counts for this repository.

    Raises:
        ScoutError: If any step fails. The repository should then be skipped.
    """
    remote_name = config.scan.remote_name
    logger.info(f"Checking path: {repo.path}")

    repo.ensure_worktree()
    local_changes = ops.count_changes(repo.status())

    credentials = auth.build_auth(
        repo,
        remote_name=remote_name,
        default_user=config.ssh.default_user,
        verify_host_keys=config.ssh.verify_host_keys,
    )
    repo.fetch(remote_name, env=credentials.env())

    head = repo.head()
    remote_ref = repo.remote_reference(remote_name, head.short_name)
    remote_changes = ops.count_remote_changes(repo, head, remote_ref)

    return RepoStatus(
        path=repo.path, local_changes=local_changes, remote_changes=remote_changes
    )


def _subdirectories(path: Path, skip_hidden: bool) -> list[Path]:
    """Lists the real (non-symlinked) subdirectories of a directory.

    Raises:
        DirectoryReadError: If the directory cannot be listed.
    """
    try:
        with os.scandir(path) as entries:
            return [
                path / entry.name
                for entry in entries
                if entry.is_dir(follow_symlinks=False)
                and not (skip_hidden and entry.name.startswith("."))
            ]
    except OSError as e:
        raise DirectoryReadError(f"Error reading directory: {e}", path) from e


def _visit(path: Path, depth: int, config: Config) -> Iterator[RepoStatus]:
    if depth > config.scan.max_depth:
        return
    logger.info(f"Visiting path: {path} at depth: {depth}")

    try:
        repo = GitRepo(path)
    except NotARepositoryError:
        repo = None

    if repo is not None:
        try:
            result = visit_repository(repo, config)
        except ScoutError as e:
            logger.error(f"{e.kind} {path}: {e}")
        except Exception:
            logger.exception(f"UNEXPECTED ERROR {path}")
        else:
            yield result
        # Never look for repositories nested inside a repository.
        return

    try:
        subdirs = _subdirectories(path, config.scan.skip_hidden)
    except DirectoryReadError as e:
        logger.error(f"{e.kind} {path}: {e}")
        return

    for subdir in subdirs:
        yield from _visit(subdir, depth + 1, config)


def scan(root: Path, config: Config | None = None) -> Iterator[RepoStatus]:
    """Lazily walks a directory tree, yielding one result per inspected repository.

    Args:
        root (Path): The directory to start from (depth 0).
        config (Config | None): Settings. Defaults to Config().

    Yields:
        RepoStatus: Results in depth-first visiting order.
    """
    yield from _visit(Path(root), 0, config or Config())


def collect(root: Path, config: Config | None = None) -> list[RepoStatus]:
    """Runs a full scan and returns all results in visiting order."""
    return list(scan(root, config))
