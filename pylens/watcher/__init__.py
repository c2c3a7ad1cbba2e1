"""
PyLens File Watcher Package.

Watch, debounce and restart core.
Requires Python 3.11+.
"""

from pylens.watcher.config_watcher import ConfigWatcher
from pylens.watcher.debouncer import DebounceState, RestartDebouncer
from pylens.watcher.file_watcher import ChangeLog, ChangeRecord, ProjectWatcher
from pylens.watcher.patterns import PathFilter, compile_pattern
from pylens.watcher.supervisor import Supervisor

__all__ = [
    "ConfigWatcher",
    "DebounceState",
    "RestartDebouncer",
    "ChangeLog",
    "ChangeRecord",
    "ProjectWatcher",
    "PathFilter",
    "compile_pattern",
    "Supervisor",
]
