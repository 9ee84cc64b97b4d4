# src/fsmdx/loader.py
"""Per-file transform hook.

Generated modules never name a document by a query-string import path.
Each document is identified by a DocumentDescriptor, and the loaders here
turn its source text into the value the collection exposes:

- DocumentLoader: frontmatter + compiled body for ``doc`` files;
- MetaLoader: parsed and validated data for ``meta`` files.
"""

import json
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import yaml

from fsmdx.config.cache import ConfigCache, config_cache
from fsmdx.config.define import DocCollection, DocsCollection, MetaCollection
from fsmdx.config.load import LoadedConfig, compute_config_hash
from fsmdx.errors import CompileError, FrontmatterError, FrontmatterValidationError
from fsmdx.frontmatter import parse_frontmatter
from fsmdx.schema import TransformContext, resolve_schema

logger = logging.getLogger(__name__)

TimestampSource = Callable[[str], datetime | None]


@dataclass(frozen=True)
class DocumentDescriptor:
    """Identifies one document import.

    Attributes:
        collection_name: Declared collection the file belongs to, if any.
        config_hash: Declaration version the import was generated for.
        file_path: Absolute path of the file.
    """

    collection_name: str | None
    config_hash: str | None
    file_path: str


@dataclass(frozen=True)
class CompileOutput:
    value: str
    source_map: dict[str, Any] | None = None


class Compiler(Protocol):
    """The document-markup compiler: ``compile(source, options) -> output``."""

    def compile(self, source: str, options: dict[str, Any]) -> CompileOutput: ...


class PlainCompiler:
    """Compiler that returns the document body unchanged."""

    def compile(self, source: str, options: dict[str, Any]) -> CompileOutput:
        return CompileOutput(value=source)


@dataclass(frozen=True)
class DocumentModule:
    """A transformed document as exposed by a collection entry."""

    file_path: str
    body: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    source_map: dict[str, Any] | None = None
    last_modified: datetime | None = None


def _count_lines(text: str) -> int:
    return text.count("\n")


def _pick(collection: Any, kind: str) -> DocCollection | MetaCollection | None:
    """Narrow a declared collection to its ``kind`` half."""
    if isinstance(collection, DocsCollection):
        collection = collection.docs if kind == "doc" else collection.meta
    if collection is not None and collection.type == kind:
        return collection
    return None


class _BaseLoader:
    def __init__(self, config_path: Path | str, cache: ConfigCache | None = None):
        self.config_path = Path(config_path).resolve()
        self.cache = cache or config_cache

    def _config_for(self, descriptor: DocumentDescriptor) -> LoadedConfig:
        # Imports without a hash (e.g. a document imported directly) use the
        # current declaration version.
        config_hash = descriptor.config_hash or compute_config_hash(self.config_path)
        return self.cache.load(self.config_path, config_hash)


class DocumentLoader(_BaseLoader):
    """Transform ``doc`` files: validate frontmatter and compile the body."""

    def __init__(
        self,
        config_path: Path | str,
        cache: ConfigCache | None = None,
        compiler: Compiler | None = None,
        timestamp_source: TimestampSource | None = None,
        dev: bool = False,
        root: Path | None = None,
    ):
        super().__init__(config_path, cache)
        self.compiler = compiler or PlainCompiler()
        self.timestamp_source = timestamp_source
        self.dev = dev
        self.root = root or Path.cwd()

    def _build(self, options: dict[str, Any]) -> Callable[..., str]:
        def build(source: str, compile_options: dict[str, Any] | None = None) -> str:
            return self.compiler.compile(source, compile_options or options).value

        return build

    def transform(self, source: str, descriptor: DocumentDescriptor) -> DocumentModule:
        """Transform one document.

        Raises:
            FrontmatterError: If the frontmatter header is invalid.
            FrontmatterValidationError: If the frontmatter fails the collection schema.
            CompileError: If the compiler fails.
        """
        file_path = descriptor.file_path
        config = self._config_for(descriptor)
        try:
            frontmatter, body = parse_frontmatter(source)
        except FrontmatterError as e:
            raise FrontmatterError(f"{file_path}: {e}") from e

        collection = None
        if descriptor.collection_name is not None:
            collection = _pick(config.collections.get(descriptor.collection_name), "doc")

        options = (
            dict(collection.compile_options)
            if collection is not None and collection.compile_options is not None
            else config.get_default_compile_options()
        )

        if collection is not None and collection.schema is not None:
            ctx = TransformContext(path=file_path, source=source, build=self._build(options))
            validator = resolve_schema(collection.schema, ctx)
            if validator is not None:
                result = validator.validate(frontmatter)
                if result.issues:
                    raise FrontmatterValidationError(file_path, result.issues)
                frontmatter = result.value or {}

        last_modified = None
        if config.global_config.last_modified_time == "git":
            if self.timestamp_source is None:
                logger.debug(f"No timestamp source configured, skipping {file_path}")
            else:
                last_modified = self.timestamp_source(file_path)

        # Keep line numbers pointing at the original file in dev mode
        line_offset = "\n" * (_count_lines(source) - _count_lines(body)) if self.dev else ""

        compile_options = {
            "development": self.dev,
            **options,
            "file_path": file_path,
            "frontmatter": frontmatter,
            "data": {"last_modified": last_modified},
        }
        try:
            output = self.compiler.compile(line_offset + body, compile_options)
        except Exception as e:
            relative = os.path.relpath(file_path, self.root)
            raise CompileError(f"{relative}:{type(e).__name__}: {e}", file_path) from e

        return DocumentModule(
            file_path=file_path,
            body=output.value,
            frontmatter=frontmatter,
            source_map=output.source_map,
            last_modified=last_modified,
        )


class MetaLoader(_BaseLoader):
    """Transform ``meta`` files: parse JSON/YAML and validate."""

    def transform(self, source: str, descriptor: DocumentDescriptor) -> dict[str, Any]:
        """Parse and validate one metadata file.

        Raises:
            FrontmatterError: If the file is not valid JSON or YAML.
            FrontmatterValidationError: If the data fails the collection schema.
        """
        file_path = descriptor.file_path
        try:
            if Path(file_path).suffix.lower() == ".json":
                data = json.loads(source) if source.strip() else {}
            else:
                data = yaml.safe_load(source) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise FrontmatterError(f"{file_path}: {e}") from e

        if descriptor.collection_name is None:
            return data

        config = self._config_for(descriptor)
        collection = _pick(config.collections.get(descriptor.collection_name), "meta")
        if collection is None or collection.schema is None:
            return data

        ctx = TransformContext(path=file_path, source=source, build=lambda text, options=None: text)
        validator = resolve_schema(collection.schema, ctx)
        if validator is None:
            return data
        result = validator.validate(data)
        if result.issues:
            raise FrontmatterValidationError(file_path, result.issues)
        return result.value or {}
