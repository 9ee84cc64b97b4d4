"""In-process registry backing generated modules.

Generated code calls into a single DocumentRegistry:

- import_source() loads the declaration source through the config cache and
  remembers which path a config hash belongs to;
- import_document() transforms one file per descriptor, reusing the result
  until the file changes on disk;
- import_companion() and load_module() execute generated modules by path.
"""

import importlib.util
import logging
import threading
from pathlib import Path
from types import ModuleType
from typing import Any

from fsmdx.config.cache import ConfigCache, config_cache
from fsmdx.config.load import LoadedConfig
from fsmdx.discovery.files import get_type_from_path
from fsmdx.errors import ConfigError
from fsmdx.loader import (
    Compiler,
    DocumentDescriptor,
    DocumentLoader,
    DocumentModule,
    MetaLoader,
    TimestampSource,
)

logger = logging.getLogger(__name__)


def load_module(path: Path | str, module_name: str | None = None) -> ModuleType:
    """Execute the Python file at ``path`` and return it as a module."""
    path = Path(path).resolve()
    name = module_name or f"_fsmdx_generated_{path.stem}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load generated module {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class DocumentRegistry:
    """Resolves descriptors to transformed documents."""

    def __init__(self, cache: ConfigCache | None = None):
        self.cache = cache or config_cache
        self.compiler: Compiler | None = None
        self.timestamp_source: TimestampSource | None = None
        self.dev = False
        self._sources: dict[str, Path] = {}
        self._documents: dict[DocumentDescriptor, tuple[int, Any]] = {}
        self._lock = threading.Lock()
        self.transforms = 0

    def configure(
        self,
        cache: ConfigCache | None = None,
        compiler: Compiler | None = None,
        timestamp_source: TimestampSource | None = None,
        dev: bool | None = None,
    ) -> None:
        """Swap collaborators; cached documents are dropped."""
        if cache is not None:
            self.cache = cache
        if compiler is not None:
            self.compiler = compiler
        if timestamp_source is not None:
            self.timestamp_source = timestamp_source
        if dev is not None:
            self.dev = dev
        self.clear()

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()
            self.transforms = 0

    def import_source(self, config_path: Path | str, config_hash: str) -> LoadedConfig:
        """Load the declaration source for ``config_hash`` and register it.

        Raises:
            ConfigError: If the declaration source fails to load.
        """
        path = Path(config_path).resolve()
        config = self.cache.load(path, config_hash)
        self._sources[config_hash] = path
        return config

    def source_path(self, config_hash: str) -> Path:
        try:
            return self._sources[config_hash]
        except KeyError:
            raise ConfigError(
                f"Unknown config hash {config_hash[:12]}; import the declaration source first"
            ) from None

    def import_document(
        self, collection_name: str | None, config_hash: str, file_path: str
    ) -> DocumentModule | dict[str, Any]:
        """Transform ``file_path`` for ``collection_name`` at ``config_hash``.

        Raises:
            FrontmatterValidationError: If the file fails its collection schema.
            CompileError: If compiling a document fails.
        """
        descriptor = DocumentDescriptor(
            collection_name=collection_name, config_hash=config_hash, file_path=file_path
        )
        mtime = Path(file_path).stat().st_mtime_ns

        with self._lock:
            cached = self._documents.get(descriptor)
            if cached is not None and cached[0] == mtime:
                return cached[1]

            config_path = self.source_path(config_hash)
            source = Path(file_path).read_text(encoding="utf-8")
            if get_type_from_path(file_path) == "meta":
                value: Any = MetaLoader(config_path, self.cache).transform(source, descriptor)
            else:
                loader = DocumentLoader(
                    config_path,
                    self.cache,
                    compiler=self.compiler,
                    timestamp_source=self.timestamp_source,
                    dev=self.dev,
                )
                value = loader.transform(source, descriptor)

            self.transforms += 1
            self._documents[descriptor] = (mtime, value)
            return value

    def import_companion(self, module_file: str, name: str) -> ModuleType:
        """Load the generated module ``name`` that sits next to ``module_file``."""
        path = Path(module_file).resolve().with_name(f"{name}.py")
        return load_module(path, f"_fsmdx_companion_{name}")


registry = DocumentRegistry()
