"""
PyLens Offline Commands.

Everything the CLI does besides running the watcher: help, version,
config file management and clearing the log mirror.
Requires Python 3.11+.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from pylens import __version__
from pylens.utils.config import DEFAULT_CONFIG, get_settings
from pylens.utils.logger import get_logger, set_log_style
from pylens.utils.store import ConfigStore

logger = get_logger("commands")

YELLOW = "\x1b[33m"
RESET = "\x1b[0m"

Prompt = Callable[[str], str]


@dataclass
class Command:
    """A parsed command line."""

    type: str = "run"
    entry: str | None = None
    args: list[str] = field(default_factory=list)


def parse_command(argv: list[str]) -> Command:
    """
    Map raw arguments to a command.

    The first argument selects the command; anything that is not a
    known command name is taken as the entry target.
    """
    if not argv:
        return Command(type="help")

    first, rest = argv[0], argv[1:]

    if first in ("help", "h", "?", "-h", "--help"):
        return Command(type="help")
    if first in ("version", "v", "-v", "--version"):
        return Command(type="version")
    if first in ("config", "cfg"):
        action = rest[0] if rest else None
        if action in ("init", "reset", "delete"):
            return Command(type=f"config-{action}")
        return Command(type="help")
    if first == "clear-logs":
        return Command(type="clear-logs")

    if rest[:1] == ["--"]:
        rest = rest[1:]
    return Command(type="run", entry=first, args=rest)


def confirm(question: str, prompt: Prompt = input) -> bool:
    """Ask a y/N question. Anything but y/yes is a no."""
    answer = prompt(f"{question} (y/N): ").strip().lower()
    return answer in ("y", "yes")


def _reset_style() -> None:
    set_log_style(
        label=DEFAULT_CONFIG.log_label,
        timestamp=DEFAULT_CONFIG.log_timestamp,
        silent=DEFAULT_CONFIG.silent_logs,
        log_file=None,
    )


def create_default_config(root: Path) -> bool:
    """Create the default config document. Refuses to overwrite."""
    store = ConfigStore(root)
    name = store.config_path.name
    if store.exists():
        logger.error(f"{name} already exists.")
        return False

    store.write()
    _reset_style()
    logger.success(f"Created {name} in {get_settings().state_dir}/")
    return True


def reset_config(root: Path, prompt: Prompt = input) -> bool:
    """Overwrite the config document with defaults after confirmation."""
    store = ConfigStore(root)
    name = store.config_path.name
    if not store.exists():
        logger.error(f"{name} does not exist.")
        return False

    if not confirm(f"Reset {name} to default settings?", prompt):
        logger.info("Reset aborted.")
        return False

    store.write()
    _reset_style()
    logger.success(f"Reset {name} in {get_settings().state_dir}/")
    return True


def delete_config(root: Path, prompt: Prompt = input) -> bool:
    """Delete the config document after confirmation."""
    store = ConfigStore(root)
    name = store.config_path.name
    if not store.exists():
        logger.error(f"{name} does not exist.")
        return False

    if not confirm(f"Permanently delete {name}?", prompt):
        logger.info("Delete aborted.")
        return False

    store.delete()
    _reset_style()
    logger.success(f"Deleted {name}.")
    return True


def clear_logs(root: Path, prompt: Prompt = input) -> bool:
    """Truncate the log mirror after confirmation."""
    log_path = ConfigStore(root).log_path
    name = log_path.name
    if not log_path.exists():
        logger.warning(f"{name} does not exist. Nothing to clear.")
        return False

    if not confirm(f"Clear {name}?", prompt):
        logger.info("Clear aborted.")
        return False

    try:
        log_path.write_text("", encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to clear {name}: {e}")
        return False

    logger.success(f"Cleared {name}")
    return True


def version_text() -> str:
    return __version__


def help_text() -> str:
    """Usage text for the command line."""
    state = get_settings().state_dir
    cfg = get_settings().config_filename
    logs = get_settings().log_filename
    return f"""
{YELLOW}Commands:{RESET}
  {YELLOW}Run:{RESET}
    pylens <entry-file> [args] .. Starts Python with auto-restart

  {YELLOW}Help:{RESET}
    pylens help/h/? ............. Shows this help view

  {YELLOW}Version:{RESET}
    pylens version/v ............ Shows version

  {YELLOW}Config:{RESET}
    pylens config/cfg init ...... Creates {state}/{cfg}
    pylens config/cfg reset ..... Resets {state}/{cfg}
    pylens config/cfg delete .... Deletes {state}/{cfg}

  {YELLOW}Logs:{RESET}
    pylens clear-logs ........... Clears {state}/{logs}

  {YELLOW}Runtime:{RESET}
    Run "help" during runtime to see runtime commands.
"""
