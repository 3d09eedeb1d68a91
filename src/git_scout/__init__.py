"""Git Scout: find git repositories and report what is waiting to sync.

This package walks a directory tree, and for every repository it finds,
counts uncommitted local changes and, after fetching, the commits on the
remote-tracking branch that the checked-out branch has not caught up with.
"""

from . import (
    auth,
    cli,
    config,
    constants,
    exceptions,
    git_wrapper,
    models,
    ops,
    walker,
)

__all__ = [
    "auth",
    "cli",
    "config",
    "constants",
    "exceptions",
    "git_wrapper",
    "models",
    "ops",
    "walker",
]
