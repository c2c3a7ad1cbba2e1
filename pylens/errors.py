"""
PyLens Errors.

Exceptions raised outside the watch loop. Inside the loop every
failure is logged and recovered locally.
Requires Python 3.11+.
"""


class PylensError(Exception):
    """Base class for PyLens errors."""


class EntryNotFoundError(PylensError):
    """The entry target to supervise does not exist."""

    def __init__(self, entry: str) -> None:
        super().__init__(f'Entry file or command not found: "{entry}"')
        self.entry = entry


class ConfigError(PylensError):
    """The persisted config document could not be read."""
