import os
from pathlib import Path

"""Global constants and configuration path definitions for Git Scout.

This module defines the configuration file layout (adhering to XDG standards
where applicable), application identifiers, and the git/SSH defaults used
across the application.
"""

# --- Identity ---
APP_NAME = "git-scout"
"""str: The human-readable application name."""

# --- Configuration Paths ---
_XDG_CONFIG = os.environ.get("XDG_CONFIG_HOME")
_BASE_CONFIG = Path(_XDG_CONFIG) if _XDG_CONFIG else Path.home() / ".config"

CONFIG_DIR: Path = _BASE_CONFIG / "git-scout"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The main configuration file path."""

# --- Scan Defaults ---
DEFAULT_MAX_DEPTH = 4
"""int: How many directory levels below the root are visited."""

DEFAULT_REMOTE = "origin"
"""str: The remote fetched from and compared against."""

# --- SSH ---
SSH_AUTH_SOCK_ENV = "SSH_AUTH_SOCK"
"""str: Environment variable holding the ssh-agent socket path."""

DEFAULT_SSH_USER = "git"
"""str: SSH login used when the remote URL carries no user."""
