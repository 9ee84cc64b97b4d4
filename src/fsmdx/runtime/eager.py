"""Runtime used by generated modules for eagerly imported collections."""

from dataclasses import dataclass
from typing import Any

from fsmdx.config.load import LoadedConfig
from fsmdx.discovery.files import FileInfo
from fsmdx.loader import DocumentModule
from fsmdx.runtime.registry import registry


@dataclass(frozen=True)
class DocEntry:
    info: FileInfo
    data: DocumentModule

    @property
    def frontmatter(self) -> dict[str, Any]:
        return self.data.frontmatter


@dataclass(frozen=True)
class MetaEntry:
    info: FileInfo
    data: dict[str, Any]


@dataclass(frozen=True)
class DocsPair:
    """Documents and metadata declared together with define_docs()."""

    docs: list[Any]
    meta: list[MetaEntry]


def _info(entry: dict[str, Any]) -> FileInfo:
    return FileInfo(**entry["info"])


def doc(entries: list[dict[str, Any]]) -> list[DocEntry]:
    return [DocEntry(info=_info(entry), data=entry["data"]) for entry in entries]


def meta(entries: list[dict[str, Any]]) -> list[MetaEntry]:
    return [MetaEntry(info=_info(entry), data=entry["data"]) for entry in entries]


def docs(doc_entries: list[dict[str, Any]], meta_entries: list[dict[str, Any]]) -> DocsPair:
    return DocsPair(docs=doc(doc_entries), meta=meta(meta_entries))


def import_source(config_path: str, config_hash: str) -> LoadedConfig:
    return registry.import_source(config_path, config_hash)


def import_document(collection_name: str, config_hash: str, file_path: str) -> Any:
    return registry.import_document(collection_name, config_hash, file_path)


def import_companion(module_file: str, name: str) -> Any:
    return registry.import_companion(module_file, name)
