"""
PyLens Config Store.

Reads and writes the persisted watcher document under the state directory.
Requires Python 3.11+.
"""

import json
from pathlib import Path
from typing import Any

from pylens.errors import ConfigError
from pylens.utils.config import DEFAULT_CONFIG, get_settings
from pylens.utils.logger import LoggerMixin


class ConfigStore(LoggerMixin):
    """
    File-backed storage for .pylens/pylens.config.json.

    The document is a flat JSON object whose keys mirror LensConfig.
    """

    def __init__(self, root: Path) -> None:
        """
        Initialize the store.

        Args:
            root: Project root the state directory lives under
        """
        settings = get_settings()
        self.root = root
        self.state_dir = root / settings.state_dir
        self.config_path = self.state_dir / settings.config_filename
        self.log_path = self.state_dir / settings.log_filename

    def exists(self) -> bool:
        """Check if a config document is present."""
        return self.config_path.is_file()

    def ensure_state_dir(self) -> Path:
        """Create the state directory if missing."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        return self.state_dir

    def read(self) -> dict[str, Any]:
        """
        Read and parse the document.

        Raises:
            ConfigError: If the file is missing, unparsable or not an object
        """
        try:
            raw = self.config_path.read_text(encoding="utf-8")
            document = json.loads(raw)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Failed to parse {self.config_path.name}: {e}") from e

        if not isinstance(document, dict):
            raise ConfigError(f"Failed to parse {self.config_path.name}: expected a JSON object")
        return document

    def load(self) -> dict[str, Any] | None:
        """
        Load the document.

        Returns:
            The parsed document, or None if absent or unreadable
        """
        if not self.exists():
            return None
        try:
            return self.read()
        except ConfigError as e:
            self.log.error(str(e))
            return None

    def write(self, document: dict[str, Any] | None = None) -> None:
        """Write the document, defaulting to the default config."""
        if document is None:
            document = DEFAULT_CONFIG.model_dump()
        self.ensure_state_dir()
        self.config_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")

    def delete(self) -> None:
        """Remove the document if present."""
        self.config_path.unlink(missing_ok=True)
