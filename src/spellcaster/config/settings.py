"""Run configuration for the spell engine.

Resolution order (later wins): defaults -> .spellcaster.yaml -> SPELLCASTER_* env.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from spellcaster.config.defaults import (
    CONFIG_FILENAME,
    DEFAULT_BATCH_SIZE,
    DEFAULT_BIN_DIR,
    DEFAULT_CONCURRENCY,
    DEFAULT_COPY_FROM_SOURCE,
    DEFAULT_LIBS_SOURCE_DIR,
    DEFAULT_OUTPUT_ROOTS,
    DEFAULT_SOURCE_DIR,
    DEFAULT_STOP_ON_ERROR,
    DEFAULT_TARGET_CONCURRENCY,
    ENV_PREFIX,
)
from spellcaster.errors import ConfigError

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class SpellConfig:
    """Configuration for one spell run.

    Attributes:
        project_root: Directory that relative target and source paths resolve against.
        source_dir: Source tree scanned for directives, relative to project_root.
        libs_source_dir: Directory under source_dir holding one folder per library.
        bin_dir: Conventional output directory inside each built target.
        concurrency: Files transformed in parallel within one target.
        target_concurrency: Targets processed in parallel.
        batch_size: Files per scheduling chunk.
        stop_on_error: Abort the run on the first per-file failure.
        copy_from_source_before_processing: Refresh outputs from their source first.
        custom_output_paths: Target name -> directory overrides (built-in or custom).
    """

    project_root: Path = field(default_factory=Path.cwd)
    source_dir: str = DEFAULT_SOURCE_DIR
    libs_source_dir: str = DEFAULT_LIBS_SOURCE_DIR
    bin_dir: str = DEFAULT_BIN_DIR
    concurrency: int = DEFAULT_CONCURRENCY
    target_concurrency: int = DEFAULT_TARGET_CONCURRENCY
    batch_size: int = DEFAULT_BATCH_SIZE
    stop_on_error: bool = DEFAULT_STOP_ON_ERROR
    copy_from_source_before_processing: bool = DEFAULT_COPY_FROM_SOURCE
    custom_output_paths: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.project_root = Path(self.project_root).resolve()
        for name in ("concurrency", "target_concurrency", "batch_size"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        self.custom_output_paths = {
            str(k): str(v) for k, v in (self.custom_output_paths or {}).items()
        }

    @property
    def source_root(self) -> Path:
        """Absolute path of the scanned source tree."""
        return self.project_root / self.source_dir

    def output_root(self, name: str) -> Path:
        """Absolute directory for a target name, honouring custom_output_paths."""
        raw = self.custom_output_paths.get(name) or DEFAULT_OUTPUT_ROOTS.get(name, name)
        path = Path(raw)
        return path if path.is_absolute() else self.project_root / path

    @classmethod
    def from_dict(cls, data: dict) -> "SpellConfig":
        """Create config from dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(k for k in data if k not in known)
        if unknown:
            logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> "SpellConfig":
        """Create config from SPELLCASTER_* environment variables with defaults as fallbacks."""
        data = _env_overrides()
        if project_root is not None:
            data["project_root"] = project_root
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path, project_root: Optional[Path] = None) -> "SpellConfig":
        """Create config from a YAML file."""
        data = _read_yaml(path)
        if project_root is not None:
            data["project_root"] = project_root
        return cls.from_dict(data)

    @classmethod
    def load(cls, project_root: Optional[Path] = None, **overrides: Any) -> "SpellConfig":
        """Layer defaults, the project's YAML file, the environment and explicit overrides."""
        root = Path(project_root) if project_root is not None else Path.cwd()
        data: Dict[str, Any] = {}
        config_path = root / CONFIG_FILENAME
        if config_path.is_file():
            data.update(_read_yaml(config_path))
        data.update(_env_overrides())
        data.update({k: v for k, v in overrides.items() if v is not None})
        data["project_root"] = root
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        """Convert config to dict."""
        return {
            "project_root": str(self.project_root),
            "source_dir": self.source_dir,
            "libs_source_dir": self.libs_source_dir,
            "bin_dir": self.bin_dir,
            "concurrency": self.concurrency,
            "target_concurrency": self.target_concurrency,
            "batch_size": self.batch_size,
            "stop_on_error": self.stop_on_error,
            "copy_from_source_before_processing": self.copy_from_source_before_processing,
            "custom_output_paths": dict(self.custom_output_paths),
        }


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not load config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _env_overrides() -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for name in ("concurrency", "target_concurrency", "batch_size"):
        key = f"{ENV_PREFIX}{name.upper()}"
        if key in os.environ:
            data[name] = _parse_int(key, os.environ[key])
    for name, suffix in (
        ("stop_on_error", "STOP_ON_ERROR"),
        ("copy_from_source_before_processing", "COPY_FROM_SOURCE"),
    ):
        key = f"{ENV_PREFIX}{suffix}"
        if key in os.environ:
            data[name] = _parse_bool(key, os.environ[key])
    for name in ("source_dir", "libs_source_dir", "bin_dir"):
        key = f"{ENV_PREFIX}{name.upper()}"
        if os.environ.get(key):
            data[name] = os.environ[key]
    return data
