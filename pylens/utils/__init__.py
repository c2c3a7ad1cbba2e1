"""
PyLens Utilities Package.

Configuration, config persistence and logging.
Requires Python 3.11+.
"""

from pylens.utils.config import (
    DEFAULT_CONFIG,
    EffectiveConfig,
    LensConfig,
    Settings,
    build_effective_config,
    get_settings,
)
from pylens.utils.logger import (
    LoggerMixin,
    configure_logging,
    ensure_logging,
    get_logger,
    logger,
    set_log_style,
)
from pylens.utils.store import ConfigStore

__all__ = [
    "DEFAULT_CONFIG",
    "EffectiveConfig",
    "LensConfig",
    "Settings",
    "build_effective_config",
    "get_settings",
    "LoggerMixin",
    "configure_logging",
    "ensure_logging",
    "get_logger",
    "logger",
    "set_log_style",
    "ConfigStore",
]
