"""Import statements of generated modules.

Every binding a generated module pulls in is one of the import kinds below.
ImportBlock deduplicates them and hoists them in a fixed order: runtime
helpers, the declaration source, the companion frontmatter module, then one
binding per document, each section in insertion order.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from fsmdx.constants import RUNTIME_NAME


@dataclass(frozen=True)
class NamedImport:
    specifier: str
    names: tuple[str | tuple[str, str], ...]


@dataclass(frozen=True)
class NamespaceImport:
    specifier: str
    name: str


@dataclass(frozen=True)
class SourceImport:
    name: str
    config_path: str
    config_hash: str


@dataclass(frozen=True)
class CompanionImport:
    name: str
    module: str


@dataclass(frozen=True)
class DocumentImport:
    name: str
    collection_name: str
    config_hash: str
    file_path: str


ImportInfo = Union[NamedImport, NamespaceImport, SourceImport, CompanionImport, DocumentImport]


def get_import_code(info: ImportInfo) -> str:
    """Render one import as a line of Python."""
    if isinstance(info, NamedImport):
        names = [f"{name[0]} as {name[1]}" if isinstance(name, tuple) else name for name in info.names]
        return f"from {info.specifier} import {', '.join(names)}"
    if isinstance(info, NamespaceImport):
        return f"import {info.specifier} as {info.name}"
    if isinstance(info, SourceImport):
        return f"{info.name} = {RUNTIME_NAME}.import_source({info.config_path!r}, {info.config_hash!r})"
    if isinstance(info, CompanionImport):
        return f"{info.name} = {RUNTIME_NAME}.import_companion(__file__, {info.module!r})"
    if isinstance(info, DocumentImport):
        return (
            f"{info.name} = {RUNTIME_NAME}.import_document("
            f"{info.collection_name!r}, {info.config_hash!r}, {info.file_path!r})"
        )
    raise TypeError(f"Unknown import kind: {info!r}")


_SECTIONS = (
    (NamedImport, NamespaceImport),
    (SourceImport,),
    (CompanionImport,),
    (DocumentImport,),
)


class ImportBlock:
    """Ordered, deduplicated imports of one generated module."""

    def __init__(self):
        self._sections: list[dict[str, None]] = [{} for _ in _SECTIONS]

    def add(self, info: ImportInfo) -> None:
        for index, kinds in enumerate(_SECTIONS):
            if isinstance(info, kinds):
                self._sections[index].setdefault(get_import_code(info))
                return
        raise TypeError(f"Unknown import kind: {info!r}")

    def lines(self) -> list[str]:
        return [line for section in self._sections for line in section]


def to_import_path(file: Path | str, directory: Path | str) -> str:
    """Relative POSIX path from ``directory`` to ``file``, always dot-prefixed."""
    import_path = os.path.relpath(file, directory)
    if not os.path.isabs(import_path) and not import_path.startswith("."):
        import_path = f"./{import_path}"
    return import_path.replace(os.sep, "/")
