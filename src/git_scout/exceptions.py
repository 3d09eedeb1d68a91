"""Error types raised while scanning and inspecting repositories.

Every failure that can abandon a single repository (or a single directory)
derives from ScoutError, so the walker can log it and move on without
stopping the scan.
"""

from pathlib import Path


class ScoutError(Exception):
    """Base class for all Git Scout errors.

    Attributes:
        path (Path | None): The repository or directory the error relates to.
    """

    kind = "ERROR"

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class NotARepositoryError(ScoutError):
    """The path is not the root of a git working tree.

    This is the expected outcome for most directories and triggers recursion.
    """

    kind = "NOT A REPO"


class WorktreeError(ScoutError):
    """The repository has no usable working tree (e.g. a bare repository)."""

    kind = "WORKTREE ERROR"


class StatusError(ScoutError):
    """`git status` failed or produced unparseable output."""

    kind = "STATUS ERROR"


class AgentUnavailableError(ScoutError):
    """The ssh-agent socket is unset or cannot be reached."""

    kind = "AGENT ERROR"


class NoSignersError(ScoutError):
    """The ssh-agent is reachable but holds no keys."""

    kind = "NO SSH KEYS"


class RemoteLookupError(ScoutError):
    """The configured remotes could not be listed."""

    kind = "REMOTE ERROR"


class URLParseError(ScoutError):
    """A remote URL could not be parsed to derive the SSH user."""

    kind = "URL ERROR"


class FetchError(ScoutError):
    """Fetching from the remote failed."""

    kind = "FETCH ERROR"


class HeadResolutionError(ScoutError):
    """HEAD could not be resolved (unborn branch, corrupt refs)."""

    kind = "HEAD ERROR"


class RemoteRefResolutionError(ScoutError):
    """The remote-tracking reference for the current branch does not exist."""

    kind = "REMOTE REF ERROR"


class HistoryWalkError(ScoutError):
    """Walking the commit history failed part way."""

    kind = "HISTORY ERROR"


class DirectoryReadError(ScoutError):
    """A directory could not be listed."""

    kind = "READ ERROR"
