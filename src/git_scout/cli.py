import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from . import walker
from .config import CONFIG_FILE, Config
from .constants import APP_NAME
from .models import RepoStatus

logger = logging.getLogger(APP_NAME)
console = Console()


def setup_logging(
    level: int = logging.INFO,
    log_file: Path | None = None,
    max_log_size: int = 5 * 1024 * 1024,
) -> None:
    """Configures the logging subsystem.

    Diagnostics always go to stderr so they never mix with the report on stdout.

    Args:
        level (int, optional): Minimum level to emit. Defaults to INFO.
        log_file (Path | None, optional): Also write to this file, rotated at
                                          `max_log_size` bytes. Defaults to None.
        max_log_size (int, optional): Rotation threshold for the log file.
    """
    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_log_size,
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def print_report(results: list[RepoStatus], out: Console | None = None) -> None:
    """Prints the three-line block for each repository, in the given order."""
    out = out or console
    for result in results:
        # Markup and emoji codes are off: paths may contain "[" or ":name:".
        for line in (
            f"In Folder [{result.path}]: git present",
            f"Local Changes: {result.local_changes}",
            f"Remote Changes: {result.remote_changes}",
        ):
            out.print(
                line, markup=False, highlight=False, emoji=False, soft_wrap=True
            )


def print_table(results: list[RepoStatus], out: Console | None = None) -> None:
    """Renders the results as a single table."""
    out = out or console
    if not results:
        out.print("[yellow]No repositories found.[/yellow]")
        return

    table = Table(title="Repositories", header_style="bold magenta")
    table.add_column("Path", style="cyan")
    table.add_column("Local Changes", justify="right")
    table.add_column("Remote Changes", justify="right")

    for result in results:
        local_style = "yellow" if result.local_changes else "green"
        remote_style = "yellow" if result.remote_changes else "green"
        table.add_row(
            # Text cells skip markup and emoji codes.
            Text(str(result.path)),
            f"[{local_style}]{result.local_changes}[/{local_style}]",
            f"[{remote_style}]{result.remote_changes}[/{remote_style}]",
        )

    out.print(table)


def show_config_reference(config: Config, source: Path) -> None:
    """Displays a table of the effective configuration and where it came from."""
    table = Table(
        title=f"Git Scout Configuration ({source})",
        show_lines=True,
    )
    table.add_column("Section", style="cyan", justify="right")
    table.add_column("Key", style="green")
    table.add_column("Value", style="yellow")
    table.add_column("Description")

    table.add_row(
        "scan",
        "max_depth",
        str(config.scan.max_depth),
        "Deepest directory level visited below the root.",
    )
    table.add_row(
        "",
        "remote_name",
        config.scan.remote_name,
        "The remote fetched from and compared against.",
    )
    table.add_row(
        "",
        "skip_hidden",
        str(config.scan.skip_hidden).lower(),
        "Skip directories starting with '.' while searching.",
    )
    table.add_row(
        "ssh",
        "default_user",
        config.ssh.default_user,
        "SSH login used when the remote URL names none.",
    )
    table.add_row(
        "",
        "verify_host_keys",
        str(config.ssh.verify_host_keys).lower(),
        "Check remote hosts against known_hosts.",
    )
    table.add_row(
        "limits",
        "max_log_size",
        str(config.limits.max_log_size),
        "Max size for --log-file before rotation (e.g., '5mb').",
    )

    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description=(
            "Find git repositories below a directory and report local "
            "changes and commits waiting on the remote."
        ),
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to scan (default: current directory)",
    )
    parser.add_argument(
        "-depth",
        "--depth",
        dest="depth",
        type=int,
        default=None,
        help="The maximum depth (default: 4)",
    )
    parser.add_argument(
        "--remote",
        default=None,
        help="Remote to fetch and compare against (default: origin)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Configuration file (default: {CONFIG_FILE})",
    )
    parser.add_argument(
        "--table", action="store_true", help="Show the results as a table"
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the effective configuration and exit",
    )
    parser.add_argument(
        "--log-file", type=Path, default=None, help="Also write diagnostics here"
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug diagnostics"
    )
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Only show warnings and errors"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the Git Scout CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING

    # Log config problems to stderr before the file-sized handler exists.
    setup_logging(level)
    config_path = args.config or CONFIG_FILE
    config = Config.load(config_path)

    if args.depth is not None:
        config.scan.max_depth = args.depth
    if args.remote:
        config.scan.remote_name = args.remote

    if args.show_config:
        show_config_reference(config, config_path)
        return

    if args.log_file:
        setup_logging(level, args.log_file, config.limits.max_log_size)

    results = walker.collect(Path(args.path), config)
    logger.info(f"Scan complete: {len(results)} repositories reported.")

    if args.table:
        print_table(results)
    else:
        print_report(results)


if __name__ == "__main__":
    main()
