import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    CONFIG_FILE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_REMOTE,
    DEFAULT_SSH_USER,
)

logger = logging.getLogger(APP_NAME)


def parse_size(value: int | str) -> int:
    """Converts human-readable size strings (e.g., '5MB') to bytes."""
    if isinstance(value, int):
        return value
    match = re.match(r"^(\d+(?:\.\d+)?)\s*([kmg]b?)$", str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid size format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "k": 1024,
        "kb": 1024,
        "m": 1024**2,
        "mb": 1024**2,
        "g": 1024**3,
        "gb": 1024**3,
    }
    return int(num * multiplier[unit])


@dataclass
class ScanConfig:
    """Directory walk settings.

    Attributes:
        max_depth (int): Deepest directory level visited below the root.
        remote_name (str): The remote fetched from and compared against.
        skip_hidden (bool): Whether to skip dot-directories while recursing.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    remote_name: str = DEFAULT_REMOTE
    skip_hidden: bool = False


@dataclass
class SSHConfig:
    """SSH settings for fetching.

    Attributes:
        default_user (str): Login used when a remote URL names none.
        verify_host_keys (bool): Whether to check hosts against known_hosts.
    """

    default_user: str = DEFAULT_SSH_USER
    verify_host_keys: bool = False


@dataclass
class LimitsConfig:
    """Resource limitation settings.

    Attributes:
        max_log_size (int): Max bytes for the log file before rotation.
    """

    max_log_size: int = 5 * 1024 * 1024


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        scan (ScanConfig): Walk settings.
        ssh (SSHConfig): Authentication settings.
        limits (LimitsConfig): Resource limits.
    """

    scan: ScanConfig = field(default_factory=ScanConfig)
    ssh: SSHConfig = field(default_factory=SSHConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Loads configuration from defaults and the config file.

        Args:
            path (Path | None): Config file to read. Defaults to CONFIG_FILE.

        Returns:
            Config: The merged configuration object.
        """
        instance = cls()
        config_file = path or CONFIG_FILE
        if config_file.exists():
            instance._merge_from_file(config_file)
        return instance

    def _merge_from_file(self, path: Path) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if "scan" in data:
                self.scan = self._update_dataclass("scan", self.scan, data["scan"])
            if "ssh" in data:
                self.ssh = self._update_dataclass("ssh", self.ssh, data["ssh"])
            if "limits" in data:
                self.limits = self._update_dataclass(
                    "limits", self.limits, data["limits"]
                )

            unknown = set(data) - {"scan", "ssh", "limits"}
            if unknown:
                logger.warning(
                    f"Unknown config sections in {path}: {', '.join(sorted(unknown))}. "
                    "Ignoring."
                )

        except tomllib.TOMLDecodeError as e:
            logger.error(f"Config syntax error in {path}: {e}")
        except OSError as e:
            logger.warning(f"Failed to load config from {path}: {e}")

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: dict) -> Any:
        """Updates a dataclass, warning on invalid keys and bad values."""
        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        # 1. Catch and warn about typos / unknown keys
        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown config keys in [{section_name}]: "
                f"{', '.join(sorted(invalid_keys))}. Ignoring."
            )

        # 2. Process valid keys
        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                if k == "max_log_size":
                    filtered_updates[k] = parse_size(v)
                elif k == "max_depth":
                    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
                        raise ValueError(f"expected a non-negative integer, got {v!r}")
                    filtered_updates[k] = v
                else:
                    default = getattr(instance, k)
                    if type(v) is not type(default):
                        raise ValueError(
                            f"expected {type(default).__name__}, got {v!r}"
                        )
                    filtered_updates[k] = v
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. Falling back to default."
                )

        return replace(instance, **filtered_updates)
