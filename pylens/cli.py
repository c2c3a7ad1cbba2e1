"""
PyLens Command Line Interface.

Usage:
    pylens app.py [args...]
    pylens config init
"""

import argparse
import sys
from pathlib import Path

from pylens import __version__
from pylens.commands import (
    clear_logs,
    create_default_config,
    delete_config,
    help_text,
    parse_command,
    reset_config,
    version_text,
)
from pylens.errors import EntryNotFoundError
from pylens.utils.logger import configure_logging, get_logger
from pylens.watcher.controller import start_watcher

logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pylens",
        description="Restart a Python script whenever its project changes",
        add_help=False,
    )
    parser.add_argument(
        "-h",
        "--help",
        action="store_true",
        help="Show usage",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=__version__,
    )
    parser.add_argument(
        "argv",
        nargs=argparse.REMAINDER,
        help="Command, or entry file followed by its arguments",
    )
    return parser


def resolve_entry(entry: str) -> Path:
    """
    Validate the entry target.

    Raises:
        EntryNotFoundError: If the entry does not exist
    """
    path = Path(entry).resolve()
    if not path.exists():
        raise EntryNotFoundError(entry)
    return path


def run(argv: list[str]) -> int:
    """Dispatch a command line and return the exit code."""
    cmd = parse_command(argv)
    cwd = Path.cwd()

    if cmd.type == "help":
        print(help_text())
        return 0
    if cmd.type == "version":
        print(version_text())
        return 0
    if cmd.type == "config-init":
        create_default_config(cwd)
        return 0
    if cmd.type == "config-reset":
        reset_config(cwd)
        return 0
    if cmd.type == "config-delete":
        delete_config(cwd)
        return 0
    if cmd.type == "clear-logs":
        clear_logs(cwd)
        return 0

    try:
        resolve_entry(cmd.entry or "")
    except EntryNotFoundError as e:
        logger.error(str(e))
        print(help_text())
        return 1

    return start_watcher(cmd.entry, cmd.args)


def main() -> None:
    """Main entry point."""
    configure_logging()
    args = build_parser().parse_args()

    argv = ["help"] if args.help else args.argv

    try:
        sys.exit(run(argv))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
