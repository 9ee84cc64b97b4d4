# src/fsmdx/settings.py
"""Engine settings for fsmdx.

This module handles loading settings from environment variables, providing
sensible defaults, and validating them against SETTINGS_SCHEMA. These are
the engine's own knobs (where generated modules go, how logs look); the
user's collections live in the declaration source instead.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from fsmdx.errors import ConfigError

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# Schema: key -> (type, default, min, max, description)
SETTINGS_SCHEMA: dict[str, tuple[type, Any, Any, Any, str]] = {
    "out_dir": (str, ".source", None, None, "Directory for generated modules"),
    "default_output": (str, "index", None, None, "Output group for collections without one"),
    "manifest_name": (str, "manifest.json", None, None, "Manifest file name"),
    "log_level": (str, "INFO", None, None, "Logging level name"),
    "queue_size": (int, 1000, 1, 100_000, "Max pending filesystem events"),
}

ENV_PREFIX = "FSMDX_"


@dataclass(frozen=True)
class Settings:
    """Validated engine settings."""

    out_dir: str = ".source"
    default_output: str = "index"
    manifest_name: str = "manifest.json"
    log_level: str = "INFO"
    queue_size: int = 1000

    @property
    def out_path(self) -> Path:
        """Resolved output directory."""
        return Path(self.out_dir).resolve()

    @property
    def manifest_path(self) -> Path:
        """Path of the manifest written at exit."""
        return self.out_path / self.manifest_name


def _coerce(key: str, raw_value: str) -> Any:
    """Convert and range-check one raw setting value.

    Raises:
        ConfigError: If the value has the wrong type or is out of range.
    """
    typ, _, min_val, max_val, _ = SETTINGS_SCHEMA[key]
    try:
        value = typ(raw_value)
    except ValueError as e:
        raise ConfigError(
            f"Invalid value for {ENV_PREFIX}{key.upper()}: {raw_value!r} (expected {typ.__name__})"
        ) from e

    if min_val is not None and value < min_val:
        raise ConfigError(f"Value for {key} is {value}, but minimum is {min_val}")
    if max_val is not None and value > max_val:
        raise ConfigError(f"Value for {key} is {value}, but maximum is {max_val}")
    return value


def settings_from_mapping(values: dict[str, str]) -> Settings:
    """Build Settings from raw string values, falling back to schema defaults.

    Raises:
        ConfigError: If a key is unknown or a value fails validation.
    """
    unknown = set(values) - set(SETTINGS_SCHEMA)
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")

    resolved = {key: default for key, (_, default, _, _, _) in SETTINGS_SCHEMA.items()}
    for key, raw_value in values.items():
        resolved[key] = _coerce(key, raw_value)

    if not isinstance(logging.getLevelName(resolved["log_level"].upper()), int):
        raise ConfigError(f"Unknown log level: {resolved['log_level']!r}")
    if not resolved["default_output"].isidentifier():
        raise ConfigError(
            f"default_output must be a valid module name, got {resolved['default_output']!r}"
        )

    return Settings(**resolved)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load settings from FSMDX_* environment variables.

    Settings are cached for the lifetime of the process.
    Use load_settings.cache_clear() to reload settings.
    """
    values = {}
    for key in SETTINGS_SCHEMA:
        raw_value = os.getenv(f"{ENV_PREFIX}{key.upper()}")
        if raw_value is not None:
            values[key] = raw_value
    return settings_from_mapping(values)


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the fsmdx log format and level to the root logger."""
    settings = settings or load_settings()
    logging.basicConfig(
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        level=settings.log_level.upper(),
    )
