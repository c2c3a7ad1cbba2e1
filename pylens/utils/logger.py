"""
PyLens Structured Logging Module.

Leveled console output with an optional plain-text file mirror,
built on a structlog processor chain.
Requires Python 3.11+.
"""

import logging
import re
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from pylens.utils.config import get_settings

SEPARATOR = "─" * 25
CONSOLE_PREFIX = "PL"

COLORS = {
    "ERROR": "\x1b[31m",
    "WARN": "\x1b[33m",
    "INFO": "\x1b[36m",
    "SUCCESS": "\x1b[32m",
    "DEBUG": "\x1b[90m",
}
RESET = "\x1b[0m"

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

_LEVEL_LABELS = {
    "critical": "ERROR",
    "error": "ERROR",
    "exception": "ERROR",
    "warning": "WARN",
    "warn": "WARN",
    "info": "INFO",
    "debug": "DEBUG",
}

# Keys that belong to the pipeline, not to the message context
_RESERVED_KEYS = {"event", "level", "label", "separator", "logger", "timestamp"}


@dataclass
class LogStyle:
    """Display options for console output."""

    label: bool = True
    timestamp: bool = False
    silent: bool = False
    log_file: Path | None = None


_style = LogStyle()
_UNSET: Any = object()


def get_log_style() -> LogStyle:
    """Return the active display style."""
    return _style


def set_log_style(
    *,
    label: bool | None = None,
    timestamp: bool | None = None,
    silent: bool | None = None,
    log_file: Path | None = _UNSET,
) -> None:
    """
    Update the display style in place.

    Options left as None keep their current value. Passing
    log_file=None turns the file mirror off.
    """
    if label is not None:
        _style.label = label
    if timestamp is not None:
        _style.timestamp = timestamp
    if silent is not None:
        _style.silent = silent
    if log_file is not _UNSET:
        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
        _style.log_file = log_file


def _clock() -> str:
    return time.strftime("%H:%M:%S")


def _add_label(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Map the log level to the label shown on the line."""
    if "label" not in event_dict:
        event_dict["label"] = _LEVEL_LABELS.get(event_dict.get("level", method_name), "INFO")
    return event_dict


def _context_suffix(event_dict: EventDict) -> str:
    extras = {k: v for k, v in event_dict.items() if k not in _RESERVED_KEYS}
    if not extras:
        return ""
    return " " + " ".join(f"{k}={v}" for k, v in extras.items())


def _append_line(path: Path, line: str) -> None:
    try:
        with path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
    except OSError as e:
        # The mirror is best effort; stderr is the only remaining sink
        print(f"Logger file write failed: {e}", file=sys.stderr)


def _mirror_to_file(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Append the message to the log file, if one is configured."""
    path = _style.log_file
    if path is None:
        return event_dict

    if event_dict.get("separator"):
        # Separators follow console visibility
        if not _style.silent:
            _append_line(path, SEPARATOR)
        return event_dict

    if event_dict["label"] == "DEBUG":
        return event_dict

    message = f"{event_dict['event']}{_context_suffix(event_dict)}"
    line = f"{CONSOLE_PREFIX} [{_clock()}] [{event_dict['label']}] {message}"
    _append_line(path, ANSI_RE.sub("", line))
    return event_dict


def _drop_when_silent(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Silent mode only lets errors and warnings reach the console."""
    if _style.silent and event_dict["label"] not in ("ERROR", "WARN"):
        raise structlog.DropEvent
    return event_dict


def _render_console(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> str:
    """Render the final console line."""
    if event_dict.get("separator"):
        return SEPARATOR

    label = event_dict["label"]
    timestamp_part = f"[{_clock()}] " if _style.timestamp else ""
    label_part = f"[{label}] " if _style.label else ""
    color = COLORS.get(label, "")
    message = f"{event_dict['event']}{_context_suffix(event_dict)}"
    return f"{CONSOLE_PREFIX} {timestamp_part}{color}{label_part}{RESET}{message}"


def _make_wrapper_class(level: int) -> type:
    base = structlog.make_filtering_bound_logger(level)

    class LensBoundLogger(base):  # type: ignore[misc, valid-type]
        """Filtering bound logger with success and separator lines."""

        def success(self, event: str, *args: Any, **kw: Any) -> Any:
            return self.info(event, *args, label="SUCCESS", **kw)

        def separator(self) -> Any:
            return self.info(SEPARATOR, separator=True)

    return LensBoundLogger


def _stdout_logger_factory(*args: Any) -> structlog.PrintLogger:
    # Resolve sys.stdout per logger so redirected streams are honoured
    return structlog.PrintLogger(sys.stdout)


def configure_logging(cache_logger_on_first_use: bool = True) -> None:
    """
    Configure structured logging for the application.

    Call this once at application startup.
    """
    settings = get_settings()
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_label,
        _mirror_to_file,
        _drop_when_silent,
        _render_console,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=_make_wrapper_class(level),
        context_class=dict,
        logger_factory=_stdout_logger_factory,
        cache_logger_on_first_use=cache_logger_on_first_use,
    )

    # Suppress noisy loggers
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def ensure_logging() -> None:
    """Configure logging unless the embedding application already did."""
    if not structlog.is_configured():
        configure_logging()


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Pre-configured logger for quick imports
logger = get_logger("pylens")


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Usage:
        class MyClass(LoggerMixin):
            def my_method(self):
                self.log.info("doing something")
    """

    @property
    def log(self) -> Any:
        """Get logger bound to this class name."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
