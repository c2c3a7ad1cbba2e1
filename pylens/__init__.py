"""
PyLens.

Development-time process supervisor: restarts a Python entry script
when files in its project change.
Requires Python 3.11+.
"""

__version__ = "0.1.0"

from pylens.watcher.controller import WatchController, start_watcher

__all__ = ["__version__", "WatchController", "start_watcher"]
