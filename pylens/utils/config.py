"""
PyLens Configuration Module.

Tool settings via Pydantic Settings, plus the persisted watcher
document and the effective configuration derived from it.
Requires Python 3.11+.
"""

import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

# Pick up PYLENS_* overrides from a local .env before Settings is built
load_dotenv()


class LoggingSettings(BaseSettings):
    """Diagnostic logging settings."""

    model_config = SettingsConfigDict(env_prefix="PYLENS_LOG_")

    level: str = Field(default="INFO")


class Settings(BaseSettings):
    """Tool-level settings. Not part of the watched project's config."""

    model_config = SettingsConfigDict(
        env_prefix="PYLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="PyLens")
    app_version: str = Field(default="0.1.0")

    state_dir: str = Field(default=".pylens", description="Tool state directory name")
    config_filename: str = Field(default="pylens.config.json")
    log_filename: str = Field(default="pylens.txt")
    interpreter: str = Field(
        default=sys.executable,
        description="Interpreter used to run the entry target",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def internal_ignores(self) -> list[str]:
        """Names the project watcher must never react to."""
        return [self.state_dir, self.config_filename]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached tool settings.

    Returns singleton instance of Settings.
    """
    return Settings()


WatchSpec = Literal["all"] | list[str]


class LensConfig(BaseModel):
    """
    The persisted watcher document (.pylens/pylens.config.json).

    Every field falls back to its own default when the stored value
    is malformed, so a partially broken document still yields a
    fully populated config.
    """

    model_config = ConfigDict(extra="ignore")

    watch: WatchSpec = "all"
    ignore: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            ".git",
            "dist",
            "build",
            "temp",
            "logs",
            "__pycache__",
            ".venv",
        ]
    )
    debounce_delay: int = Field(default=225, ge=0)
    restart_delay: int = Field(default=0, ge=0)
    log_label: bool = True
    log_timestamp: bool = False
    silent_logs: bool = False
    save_logs: bool = False

    @field_validator("watch", mode="before")
    @classmethod
    def wrap_watch(cls, v: Any) -> Any:
        """Accept a single pattern string in place of a list."""
        if isinstance(v, str) and v != "all":
            return [v]
        return v

    @field_validator("ignore", mode="before")
    @classmethod
    def wrap_ignore(cls, v: Any) -> Any:
        """Accept a single pattern string in place of a list."""
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("*", mode="wrap")
    @classmethod
    def fallback_to_default(
        cls, v: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        """Replace a malformed value with the field default."""
        try:
            return handler(v)
        except ValidationError:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


DEFAULT_CONFIG = LensConfig()


class EffectiveConfig(LensConfig):
    """The fully resolved configuration in force at a given moment."""

    model_config = ConfigDict(frozen=True)

    log_file: Path | None = None

    @property
    def ignore_specs(self) -> list[str]:
        """User ignore list followed by the tool's own names."""
        return [*self.ignore, *get_settings().internal_ignores]

    @property
    def watch_label(self) -> str:
        """Human readable watch spec."""
        if self.watch == "all":
            return "all"
        return ", ".join(self.watch)


def build_effective_config(
    document: dict[str, Any] | None,
    project_root: Path,
    silent_override: bool | None = None,
) -> EffectiveConfig:
    """
    Merge a persisted document over the defaults.

    Args:
        document: Raw persisted document, or None to use defaults only
        project_root: Root the state directory lives under
        silent_override: Manual silent mode that wins over the document

    Returns:
        A new EffectiveConfig
    """
    raw = dict(document) if isinstance(document, dict) else {}
    raw.pop("log_file", None)
    if silent_override is not None:
        raw["silent_logs"] = silent_override

    merged = LensConfig.model_validate(raw)

    settings = get_settings()
    log_file = (
        project_root / settings.state_dir / settings.log_filename
        if merged.save_logs
        else None
    )
    return EffectiveConfig(**merged.model_dump(), log_file=log_file)
