"""Execute a declaration source and build a LoadedConfig from it."""

import hashlib
import importlib.util
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from fsmdx.config.define import (
    DocCollection,
    DocsCollection,
    GlobalConfig,
    MetaCollection,
    collection_adapter,
)
from fsmdx.errors import ConfigError

logger = logging.getLogger(__name__)

AnyCollection = DocCollection | MetaCollection | DocsCollection


@dataclass(frozen=True)
class LoadedConfig:
    """Resolved collections plus global options for one declaration version.

    Attributes:
        config_path: Absolute path of the declaration source.
        config_hash: Content hash the collections were loaded from.
        collections: Collection name -> declaration, in declaration order.
        global_config: Options shared by every collection.
    """

    config_path: Path
    config_hash: str
    collections: Mapping[str, AnyCollection] = field(default_factory=dict)
    global_config: GlobalConfig = field(default_factory=GlobalConfig)

    def __post_init__(self):
        object.__setattr__(self, "collections", MappingProxyType(dict(self.collections)))

    def get_default_compile_options(self) -> dict[str, Any]:
        return dict(self.global_config.default_compile_options or {})

    def with_collections(self, collections: Mapping[str, AnyCollection]) -> "LoadedConfig":
        """Return a copy restricted to ``collections``."""
        return replace(self, collections=collections)


def compute_config_hash(config_path: Path | str) -> str:
    """Compute SHA-256 hash of the declaration source.

    Raises:
        ConfigError: If the file cannot be read.
    """
    try:
        content = Path(config_path).read_bytes()
    except OSError as e:
        raise ConfigError(f"Cannot read declaration source {config_path}: {e}") from e
    return hashlib.sha256(content).hexdigest()


def source_module_name(config_hash: str) -> str:
    return f"_fsmdx_source_{config_hash[:16]}"


def unload_source(config_hash: str) -> None:
    """Drop the executed declaration module of ``config_hash`` from sys.modules."""
    sys.modules.pop(source_module_name(config_hash), None)


def _execute_source(config_path: Path, config_hash: str) -> Any:
    module_name = source_module_name(config_hash)
    spec = importlib.util.spec_from_file_location(module_name, config_path)
    if spec is None or spec.loader is None:
        raise ConfigError(f"Cannot load declaration source {config_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise ConfigError(f"Failed to execute declaration source {config_path}: {e}") from e
    return module


def collect_declarations(
    namespace: Mapping[str, Any], config_path: Path
) -> tuple[dict[str, AnyCollection], GlobalConfig]:
    """Pick collections and global options out of a module namespace.

    Public names bound to collection declarations become collections; at
    most one GlobalConfig may be exported. Values are re-validated since
    the source is arbitrary user code.

    Raises:
        ConfigError: If the exported shape is invalid.
    """
    collections: dict[str, AnyCollection] = {}
    global_configs: list[tuple[str, GlobalConfig]] = []

    for name, value in namespace.items():
        if name.startswith("_"):
            continue
        if isinstance(value, GlobalConfig):
            global_configs.append((name, value))
            continue
        if not isinstance(value, (DocCollection, MetaCollection, DocsCollection)):
            continue
        if not name.isidentifier():
            raise ConfigError(f"Collection name {name!r} in {config_path} is not an identifier")
        try:
            collections[name] = collection_adapter.validate_python(value)
        except ValidationError as e:
            raise ConfigError(f"Invalid collection {name!r} in {config_path}: {e}") from e

    if len(global_configs) > 1:
        names = ", ".join(name for name, _ in global_configs)
        raise ConfigError(f"{config_path} exports more than one global config: {names}")

    global_config = global_configs[0][1] if global_configs else GlobalConfig()
    return collections, global_config


def load_config(config_path: Path | str, config_hash: str) -> LoadedConfig:
    """Execute the declaration source and build its LoadedConfig.

    Raises:
        ConfigError: If the source cannot be executed or exports an invalid shape.
    """
    config_path = Path(config_path).resolve()
    if not config_path.is_file():
        raise ConfigError(f"Declaration source not found: {config_path}")

    logger.debug(f"Executing declaration source {config_path} ({config_hash[:12]})")
    module = _execute_source(config_path, config_hash)
    collections, global_config = collect_declarations(vars(module), config_path)

    if not collections:
        logger.warning(f"No collections declared in {config_path}")

    return LoadedConfig(
        config_path=config_path,
        config_hash=config_hash,
        collections=collections,
        global_config=global_config,
    )
