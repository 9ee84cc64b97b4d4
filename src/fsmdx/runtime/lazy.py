"""Runtime used by generated modules for async (lazily compiled) documents.

Only frontmatter is available up front, read from the companion module.
Each entry compiles its body on the first ``await entry.load()``.
"""

import asyncio
from pathlib import Path
from typing import Any

from fsmdx.config.define import DocCollection, DocsCollection
from fsmdx.config.load import LoadedConfig
from fsmdx.constants import DIR_KEY, PART_KEY
from fsmdx.discovery.files import FileInfo
from fsmdx.errors import ConfigError, FrontmatterValidationError
from fsmdx.loader import DocumentModule
from fsmdx.runtime.eager import DocsPair, meta
from fsmdx.runtime.registry import DocumentRegistry, registry
from fsmdx.schema import is_static_schema, to_validator


class AsyncDocEntry:
    """A document whose body is compiled on first access."""

    def __init__(
        self,
        info: FileInfo,
        data: dict[str, Any],
        collection_name: str,
        config_hash: str,
        documents: DocumentRegistry,
    ):
        self.info = info
        self.data = data
        self.collection_name = collection_name
        self.config_hash = config_hash
        self._documents = documents
        self._module: DocumentModule | None = None

    @property
    def frontmatter(self) -> dict[str, Any]:
        return self.data

    @property
    def loaded(self) -> bool:
        return self._module is not None

    async def load(self) -> DocumentModule:
        if self._module is None:
            self._module = await asyncio.to_thread(
                self._documents.import_document,
                self.collection_name,
                self.config_hash,
                self.info.absolute_path,
            )
        return self._module

    def __repr__(self) -> str:
        return f"AsyncDocEntry({self.info.path!r}, loaded={self.loaded})"


def _doc_collection(source: LoadedConfig, collection_name: str) -> DocCollection:
    collection = source.collections.get(collection_name)
    if isinstance(collection, DocsCollection):
        collection = collection.docs
    if not isinstance(collection, DocCollection):
        raise ConfigError(f"{collection_name!r} is not a document collection")
    return collection


def doc(
    fm_data: dict[str, dict[str, Any]],
    collection_name: str,
    source: LoadedConfig,
    root: Path | None = None,
) -> list[AsyncDocEntry]:
    """Build lazy entries from companion frontmatter data.

    Absolute paths are re-derived from the stored directory and relative
    path tokens, so no directory scan happens at import time. Static
    schemas validate the frontmatter here; schema factories run on load().

    Raises:
        FrontmatterValidationError: If frontmatter fails a static schema.
    """
    collection = _doc_collection(source, collection_name)
    validator = to_validator(collection.schema) if is_static_schema(collection.schema) else None
    base = root or Path.cwd()

    entries = []
    for logical_path, raw in fm_data.items():
        data = {key: value for key, value in raw.items() if key not in (PART_KEY, DIR_KEY)}
        part = raw[PART_KEY]
        absolute_path = str((base / raw[DIR_KEY] / part).resolve())

        if validator is not None:
            result = validator.validate(data)
            if result.issues:
                raise FrontmatterValidationError(absolute_path, result.issues)
            data = result.value or {}

        info = FileInfo(path=logical_path, absolute_path=absolute_path, part=part)
        entries.append(AsyncDocEntry(info, data, collection_name, source.config_hash, registry))
    return entries


def docs(
    fm_data: dict[str, dict[str, Any]],
    meta_entries: list[dict[str, Any]],
    collection_name: str,
    source: LoadedConfig,
    root: Path | None = None,
) -> DocsPair:
    return DocsPair(docs=doc(fm_data, collection_name, source, root), meta=meta(meta_entries))
