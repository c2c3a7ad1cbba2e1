"""
Tests for configuration and the config store.

Requires Python 3.11+.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from pylens.errors import ConfigError
from pylens.utils.config import DEFAULT_CONFIG, LensConfig, build_effective_config, get_settings
from pylens.utils.store import ConfigStore


class TestLensConfig:
    """Test cases for the persisted document model."""

    def test_defaults(self):
        """Test default values."""
        config = LensConfig()
        assert config.watch == "all"
        assert "node_modules" in config.ignore
        assert config.debounce_delay == 225
        assert config.restart_delay == 0
        assert config.log_label is True
        assert config.silent_logs is False
        assert config.save_logs is False

    def test_partial_document_keeps_defaults(self):
        """Test that missing keys fall back to defaults."""
        config = LensConfig.model_validate({"debounce_delay": 500})
        assert config.debounce_delay == 500
        assert config.restart_delay == DEFAULT_CONFIG.restart_delay
        assert config.ignore == DEFAULT_CONFIG.ignore

    @pytest.mark.parametrize(
        "key,value",
        [
            ("debounce_delay", -5),
            ("debounce_delay", "soon"),
            ("restart_delay", None),
            ("silent_logs", "maybe"),
            ("watch", 42),
            ("ignore", {"a": 1}),
        ],
    )
    def test_malformed_values_fall_back(self, key: str, value: object):
        """Test that a bad value is replaced by that field's default."""
        config = LensConfig.model_validate({key: value})
        assert getattr(config, key) == getattr(DEFAULT_CONFIG, key)

    def test_single_pattern_strings_are_wrapped(self):
        """Test that lone strings become one-item lists."""
        config = LensConfig.model_validate({"watch": "src", "ignore": "dist"})
        assert config.watch == ["src"]
        assert config.ignore == ["dist"]

    def test_unknown_keys_ignored(self):
        """Test that extra keys do not fail validation."""
        config = LensConfig.model_validate({"colour": "blue", "save_logs": True})
        assert config.save_logs is True
        assert not hasattr(config, "colour")


class TestEffectiveConfig:
    """Test cases for build_effective_config."""

    def test_no_document_uses_defaults(self, tmp_path: Path):
        """Test building from nothing."""
        config = build_effective_config(None, tmp_path)
        assert config.debounce_delay == DEFAULT_CONFIG.debounce_delay
        assert config.log_file is None

    def test_log_file_only_when_saving(self, tmp_path: Path):
        """Test that log_file is derived from save_logs."""
        settings = get_settings()
        config = build_effective_config({"save_logs": True}, tmp_path)
        assert config.log_file == tmp_path / settings.state_dir / settings.log_filename

    def test_ignore_specs_always_include_state(self, tmp_path: Path):
        """Test that the tool's own files are ignored regardless of user config."""
        settings = get_settings()
        config = build_effective_config({"ignore": []}, tmp_path)
        assert config.ignore == []
        assert config.ignore_specs == [settings.state_dir, settings.config_filename]

    def test_silent_override_wins(self, tmp_path: Path):
        """Test that the manual override beats the document."""
        config = build_effective_config({"silent_logs": False}, tmp_path, silent_override=True)
        assert config.silent_logs is True

    def test_effective_config_is_frozen(self, tmp_path: Path):
        """Test that the effective config cannot be mutated in place."""
        config = build_effective_config(None, tmp_path)
        with pytest.raises(ValidationError):
            config.debounce_delay = 1

    def test_watch_label(self, tmp_path: Path):
        """Test the human readable watch spec."""
        assert build_effective_config(None, tmp_path).watch_label == "all"
        assert build_effective_config({"watch": ["a", "b"]}, tmp_path).watch_label == "a, b"


class TestConfigStore:
    """Test cases for ConfigStore."""

    @pytest.fixture
    def store(self, tmp_path: Path) -> ConfigStore:
        return ConfigStore(tmp_path)

    def test_load_missing_returns_none(self, store: ConfigStore):
        """Test loading with no document."""
        assert not store.exists()
        assert store.load() is None

    def test_write_then_load(self, store: ConfigStore):
        """Test that the default document is written as JSON."""
        store.write()
        assert store.exists()
        assert store.load() == DEFAULT_CONFIG.model_dump()

    def test_read_invalid_json(self, store: ConfigStore):
        """Test that unparsable documents raise ConfigError."""
        store.ensure_state_dir()
        store.config_path.write_text("{not json")
        with pytest.raises(ConfigError):
            store.read()
        assert store.load() is None

    def test_read_non_object(self, store: ConfigStore):
        """Test that a JSON array is not a valid document."""
        store.ensure_state_dir()
        store.config_path.write_text(json.dumps([1, 2]))
        with pytest.raises(ConfigError):
            store.read()

    def test_delete(self, store: ConfigStore):
        """Test removing the document."""
        store.write({"watch": "all"})
        store.delete()
        assert not store.exists()
        store.delete()
