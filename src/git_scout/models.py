from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class FileState(Enum):
    """A single porcelain status code, for either the index or the worktree."""

    UNMODIFIED = " "
    MODIFIED = "M"
    TYPE_CHANGED = "T"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    COPIED = "C"
    UPDATED_UNMERGED = "U"
    UNTRACKED = "?"
    IGNORED = "!"

    @classmethod
    def from_code(cls, code: str) -> "FileState":
        """Maps a porcelain status character to its state.

        Args:
            code (str): One character from column X or Y of `git status --porcelain`.

        Returns:
            FileState: The matching state.

        Raises:
            ValueError: If the character is not a known status code.
        """
        return cls(code)


@dataclass(frozen=True)
class FileStatus:
    """Status of one path in the index (staging) and in the working tree.

    Attributes:
        staging (FileState): State relative to HEAD in the index.
        worktree (FileState): State of the working tree relative to the index.
    """

    staging: FileState
    worktree: FileState

    @property
    def is_modified(self) -> bool:
        return (
            self.staging is not FileState.UNMODIFIED
            or self.worktree is not FileState.UNMODIFIED
        )


StatusSnapshot = dict[str, FileStatus]
"""Mapping of repository-relative path to its FileStatus."""


@dataclass(frozen=True)
class Reference:
    """A named git reference and the commit it points at.

    Attributes:
        name (str): The full reference name (e.g. 'refs/heads/main').
        hash (str): The SHA-1 of the commit it resolves to.
    """

    name: str
    hash: str

    @property
    def short_name(self) -> str:
        """The reference name without its namespace prefix.

        Strips 'refs/heads/', 'refs/remotes/' or 'refs/tags/'. Any other name
        (e.g. a detached 'HEAD') is returned unchanged.
        """
        for prefix in ("refs/heads/", "refs/remotes/", "refs/tags/"):
            if self.name.startswith(prefix):
                return self.name[len(prefix) :]
        return self.name

    def same_commit(self, other: "Reference") -> bool:
        """Compares two references by the commit they resolve to, ignoring names."""
        return self.hash == other.hash


@dataclass
class Remote:
    """A configured git remote.

    Attributes:
        name (str): The remote name (e.g. 'origin').
        urls (list[str]): Configured fetch URLs, in configuration order.
    """

    name: str
    urls: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RepoStatus:
    """The result of inspecting one repository.

    Attributes:
        path (Path): The repository root as reached by the walk.
        local_changes (int): Paths with staged or unstaged changes.
        remote_changes (int): Commits on the remote-tracking branch not yet in HEAD.
    """

    path: Path
    local_changes: int
    remote_changes: int
