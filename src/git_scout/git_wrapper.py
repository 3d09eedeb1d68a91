import logging
import os
import re
import subprocess
from collections.abc import Generator
from pathlib import Path

from .constants import APP_NAME
from .exceptions import (
    FetchError,
    HeadResolutionError,
    HistoryWalkError,
    NotARepositoryError,
    RemoteLookupError,
    RemoteRefResolutionError,
    StatusError,
    WorktreeError,
)
from .models import FileState, FileStatus, Reference, Remote, StatusSnapshot

logger = logging.getLogger(APP_NAME)

_REMOTE_URL_KEY = re.compile(r"^remote\.(?P<name>.+)\.url$")


class GitCommandError(RuntimeError):
    """A git subprocess exited with a non-zero status.

    Attributes:
        returncode (int): The exit status of the git process.
        stderr (str): Whatever git wrote to stderr.
    """

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class GitRepo:
    """A wrapper around the Git command-line interface for a specific repository.

    This class provides the read-mostly operations needed to inspect a
    repository (status, remotes, references, history) and to fetch from a
    remote, using `subprocess`. Each public method converts git failures into
    the matching ScoutError subclass.

    Attributes:
        path (Path): The file system path to the repository root.
    """

    def __init__(self, path: Path):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The path to the repository root directory.

        Raises:
            NotARepositoryError: If the specified path does not contain a .git entry.
        """
        self.path = Path(path)
        if not (self.path / ".git").exists():
            raise NotARepositoryError(f"Not a git repository: {self.path}", self.path)

    def _run(
        self,
        args: list[str],
        capture: bool = True,
        env: dict[str, str] | None = None,
        strip: bool = True,
    ) -> str:
        """Executes a Git command within the repository context.

        Args:
            args (list[str]): A list of arguments to pass to the git command.
            capture (bool, optional):   Whether to capture and return stdout.
                                        Defaults to True.
            env (dict[str, str] | None, optional): Extra environment variables,
                                            layered over the current environment.
                                            Defaults to None.
            strip (bool, optional): Whether to strip surrounding whitespace from
                                    the output. Porcelain output must not be
                                    stripped. Defaults to True.

        Returns:
            str:    The stdout of the command if capture is True,
                    otherwise an empty string.

        Raises:
            GitCommandError: If the git command returns a non-zero exit code.
        """
        full_env = {**os.environ, **env} if env else None
        try:
            res = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=capture,
                text=True,
                check=True,
                env=full_env,
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise GitCommandError(
                f"Git error: {stderr or e}", returncode=e.returncode, stderr=stderr
            ) from e
        except OSError as e:
            raise GitCommandError(f"Could not run git: {e}") from e

        if not capture:
            return ""
        return res.stdout.strip() if strip else res.stdout

    def ensure_worktree(self) -> None:
        """Checks that the repository has a working tree to inspect.

        Raises:
            WorktreeError: If the repository is bare or git cannot tell.
        """
        try:
            inside = self._run(["rev-parse", "--is-inside-work-tree"])
        except GitCommandError as e:
            raise WorktreeError(str(e), self.path) from e
        if inside != "true":
            raise WorktreeError(f"No working tree at {self.path}", self.path)

    def status(self) -> StatusSnapshot:
        """Returns the per-file status of the working tree.

        Untracked files are listed individually, matching what a file-by-file
        status walk reports.

        Returns:
            StatusSnapshot: Mapping of path to its staging and worktree states.

        Raises:
            StatusError: If git fails or the output cannot be parsed.
        """
        try:
            output = self._run(
                ["status", "--porcelain=v1", "-z", "--untracked-files=all"],
                strip=False,
            )
        except GitCommandError as e:
            raise StatusError(str(e), self.path) from e

        try:
            return parse_porcelain(output)
        except ValueError as e:
            raise StatusError(f"Unparseable status output: {e}", self.path) from e

    def remotes(self) -> list[Remote]:
        """Lists the configured remotes and their URLs.

        Returns:
            list[Remote]: Remotes in configuration order. Empty if none are set.

        Raises:
            RemoteLookupError: If the repository configuration cannot be read.
        """
        try:
            output = self._run(["config", "--get-regexp", r"^remote\..*\.url$"])
        except GitCommandError as e:
            # `git config --get-regexp` exits 1 when nothing matches.
            if e.returncode == 1 and not e.stderr:
                return []
            raise RemoteLookupError(str(e), self.path) from e

        remotes: dict[str, Remote] = {}
        for line in output.splitlines():
            key, _, url = line.partition(" ")
            match = _REMOTE_URL_KEY.match(key)
            if not match:
                continue
            name = match.group("name")
            remotes.setdefault(name, Remote(name)).urls.append(url.strip())
        return list(remotes.values())

    def fetch(self, remote: str, env: dict[str, str] | None = None) -> None:
        """Fetches from a remote, updating its remote-tracking references.

        An up-to-date remote is not an error.

        Args:
            remote (str): The remote name (e.g. 'origin').
            env (dict[str, str] | None, optional): Extra environment, typically
                                                   the SSH authentication settings.

        Raises:
            FetchError: If the fetch fails.
        """
        try:
            self._run(["fetch", "--quiet", remote], env=env)
        except GitCommandError as e:
            raise FetchError(str(e), self.path) from e

    def rev_parse(self, rev: str) -> str | None:
        """Resolves a revision (tag, branch, relative ref) to a full SHA-1 hash.

        Args:
            rev (str): The revision to parse (e.g., 'HEAD', 'master').

        Returns:
            Optional[str]:  The full SHA-1 hash,
                            or None if the revision could not be resolved.
        """
        try:
            return self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
        except GitCommandError as e:
            logger.debug(f"rev-parse failed for '{rev}': {e}")
            return None

    def head(self) -> Reference:
        """Resolves HEAD to the checked-out branch and its commit.

        A detached HEAD is returned under the name 'HEAD'.

        Returns:
            Reference: The HEAD reference.

        Raises:
            HeadResolutionError: If HEAD does not point at a commit.
        """
        sha = self.rev_parse("HEAD")
        if not sha:
            raise HeadResolutionError(
                f"HEAD does not resolve to a commit in {self.path}", self.path
            )
        try:
            name = self._run(["symbolic-ref", "--quiet", "HEAD"])
        except GitCommandError:
            name = "HEAD"
        return Reference(name=name, hash=sha)

    def remote_reference(self, remote: str, branch: str) -> Reference:
        """Resolves the remote-tracking reference for a branch.

        Args:
            remote (str): The remote name (e.g. 'origin').
            branch (str): The short branch name (e.g. 'main').

        Returns:
            Reference: The 'refs/remotes/<remote>/<branch>' reference.

        Raises:
            RemoteRefResolutionError: If the reference does not exist.
        """
        name = f"refs/remotes/{remote}/{branch}"
        sha = self.rev_parse(name)
        if not sha:
            raise RemoteRefResolutionError(f"Reference not found: {name}", self.path)
        return Reference(name=name, hash=sha)

    def log(self, start: str) -> Generator[str, None, None]:
        """Lazily walks the commit history starting at a commit, newest first.

        Hashes are streamed from `git rev-list` as they are read, so a caller
        that stops early never waits for the whole history. Closing the
        generator terminates the git process.

        Args:
            start (str): The commit hash to start from (included).

        Yields:
            str: Commit hashes in reverse chronological order.

        Raises:
            HistoryWalkError: If git cannot be started or exits with an error.
        """
        try:
            proc = subprocess.Popen(
                ["git", "rev-list", start],
                cwd=self.path,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise HistoryWalkError(f"Could not run git: {e}", self.path) from e

        if proc.stdout is None:
            proc.kill()
            proc.wait()
            raise HistoryWalkError("git rev-list produced no output stream", self.path)

        finished = False
        try:
            for line in proc.stdout:
                sha = line.strip()
                if sha:
                    yield sha
            finished = True
        finally:
            if not finished:
                proc.kill()
            _, stderr = proc.communicate()

        if proc.returncode != 0:
            raise HistoryWalkError(
                f"Git error: {(stderr or '').strip() or proc.returncode}", self.path
            )


def parse_porcelain(output: str) -> StatusSnapshot:
    """Parses `git status --porcelain=v1 -z` output into a StatusSnapshot.

    Each record is 'XY <path>' terminated by NUL. Renames and copies carry
    one more NUL-terminated field, the original path, which is skipped.

    Args:
        output (str): Raw NUL-separated porcelain output.

    Returns:
        StatusSnapshot: Mapping of path to FileStatus.

    Raises:
        ValueError: On a malformed record or an unknown status code.
    """
    snapshot: StatusSnapshot = {}
    fields = output.split("\0")
    i = 0
    while i < len(fields):
        record = fields[i]
        i += 1
        if not record:
            continue
        if len(record) < 4 or record[2] != " ":
            raise ValueError(f"malformed record {record!r}")

        staging = FileState.from_code(record[0])
        worktree = FileState.from_code(record[1])
        snapshot[record[3:]] = FileStatus(staging=staging, worktree=worktree)

        if FileState.RENAMED in (staging, worktree) or FileState.COPIED in (
            staging,
            worktree,
        ):
            i += 1
    return snapshot
