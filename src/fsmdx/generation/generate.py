# src/fsmdx/generation/generate.py
"""Generate the Python modules that expose content collections.

For each output group three files can be produced:

1. ``<group>.py`` - one binding per collection. Eager collections bind one
   import_document() call per file; async documents read their frontmatter
   from the companion module and compile on first access.
2. ``<group>_fm.py`` - companion module with the frontmatter of async
   documents plus the location tokens needed to find each file again.
3. ``<group>.pyi`` - type stub for the bindings.

Files are resolved concurrently, but everything emitted is sorted first, so
unchanged inputs always produce byte-identical output.
"""

import asyncio
import json
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fsmdx.config.define import DocCollection, DocsCollection, MetaCollection
from fsmdx.config.load import LoadedConfig
from fsmdx.constants import (
    COMPANION_NAME,
    DIR_KEY,
    FM_DATA_SUFFIX,
    FM_MODULE_SUFFIX,
    GENERATED_HEADER,
    PART_KEY,
    RUNTIME_ASYNC_NAME,
    RUNTIME_MODULE,
    RUNTIME_NAME,
    SOURCE_NAME,
)
from fsmdx.discovery.files import FileInfo, resolve_files, sort_files
from fsmdx.generation.imports import (
    CompanionImport,
    DocumentImport,
    ImportBlock,
    NamedImport,
    NamespaceImport,
    SourceImport,
    to_import_path,
)

GetFrontmatter = Callable[[str], Awaitable[dict[str, Any]]]

# collection name -> {"doc": [...], "meta": [...]}, each list sorted
ResolvedFiles = dict[str, dict[str, list[FileInfo]]]


@dataclass
class GeneratedGroup:
    """Everything generated for one output group."""

    module: str
    stub: str
    companion: str | None = None
    files: ResolvedFiles = field(default_factory=dict)


def _halves(collection: Any) -> dict[str, DocCollection | MetaCollection]:
    if isinstance(collection, DocsCollection):
        return {"doc": collection.docs, "meta": collection.meta}
    return {collection.type: collection}


def is_async(collection: Any) -> bool:
    """True when the collection's documents are compiled lazily."""
    if isinstance(collection, DocsCollection):
        return collection.docs.async_load
    return isinstance(collection, DocCollection) and collection.async_load


async def resolve_collection_files(config: LoadedConfig) -> ResolvedFiles:
    """Resolve and sort the files of every collection in ``config``.

    Raises:
        DiscoveryError: If a declared directory cannot be read.
    """
    jobs = [
        (name, kind, sub)
        for name, collection in config.collections.items()
        for kind, sub in _halves(collection).items()
    ]
    results = await asyncio.gather(*(resolve_files(sub) for _, _, sub in jobs))

    resolved: ResolvedFiles = {name: {} for name in config.collections}
    for (name, kind, _), files in zip(jobs, results):
        resolved[name][kind] = sort_files(files)
    return resolved


def _entry_lines(
    block: ImportBlock,
    name: str,
    kind: str,
    files: list[FileInfo],
    config_hash: str,
) -> list[str]:
    items = []
    for index, info in enumerate(files):
        import_id = f"_{name}_{kind}_{index}"
        block.add(DocumentImport(import_id, name, config_hash, info.absolute_path))
        items.append(f"{{'info': {info.to_dict()!r}, 'data': {import_id}}}")
    return items


def _list_literal(items: list[str]) -> str:
    if not items:
        return "[]"
    return "[\n" + "".join(f"    {item},\n" for item in items) + "]"


def render_module(
    config_path: Path | str,
    config: LoadedConfig,
    output_path: Path | str,
    config_hash: str,
    resolved: ResolvedFiles,
) -> str:
    """Render the module of one output group from already resolved files."""
    output_path = Path(output_path)
    block = ImportBlock()
    block.add(NamespaceImport(f"{RUNTIME_MODULE}.eager", RUNTIME_NAME))
    block.add(SourceImport(SOURCE_NAME, str(Path(config_path).resolve()), config_hash))

    declarations = []
    for name, collection in config.collections.items():
        files = resolved.get(name, {})

        if is_async(collection):
            block.add(NamespaceImport(f"{RUNTIME_MODULE}.lazy", RUNTIME_ASYNC_NAME))
            block.add(CompanionImport(COMPANION_NAME, output_path.stem + FM_MODULE_SUFFIX))
            fm_data = f"{COMPANION_NAME}.{name}{FM_DATA_SUFFIX}"
            if isinstance(collection, DocsCollection):
                metas = _entry_lines(block, name, "meta", files.get("meta", []), config_hash)
                declarations.append(
                    f"{name} = {RUNTIME_ASYNC_NAME}.docs({fm_data}, {_list_literal(metas)}, "
                    f"{name!r}, {SOURCE_NAME})"
                )
            else:
                declarations.append(
                    f"{name} = {RUNTIME_ASYNC_NAME}.doc({fm_data}, {name!r}, {SOURCE_NAME})"
                )
            continue

        if isinstance(collection, DocsCollection):
            docs = _entry_lines(block, name, "doc", files.get("doc", []), config_hash)
            metas = _entry_lines(block, name, "meta", files.get("meta", []), config_hash)
            declarations.append(
                f"{name} = {RUNTIME_NAME}.docs({_list_literal(docs)}, {_list_literal(metas)})"
            )
        else:
            items = _entry_lines(
                block, name, collection.type, files.get(collection.type, []), config_hash
            )
            declarations.append(f"{name} = {RUNTIME_NAME}.{collection.type}({_list_literal(items)})")

    header = [
        GENERATED_HEADER,
        f"# Declaration source: {to_import_path(config_path, output_path.parent)}",
    ]
    return "\n".join([*header, *block.lines(), "", *declarations]) + "\n"


def _owning_dir(collection: DocCollection, info: FileInfo) -> str:
    target = Path(info.absolute_path)
    for directory in collection.dirs:
        if Path(directory).resolve() / info.part == target:
            return directory
    return collection.dirs[0]


def _plain(value: Any) -> Any:
    """Normalize YAML values (dates, sets...) to JSON-compatible literals."""
    return json.loads(json.dumps(value, default=str))


def _literal(value: Any) -> str:
    """Render a JSON-compatible value as Python source.

    Non-finite floats have no literal form, so they become ``float(...)`` calls.
    """
    if isinstance(value, dict):
        items = ", ".join(f"{key!r}: {_literal(item)}" for key, item in value.items())
        return f"{{{items}}}"
    if isinstance(value, list):
        return f"[{', '.join(_literal(item) for item in value)}]"
    if isinstance(value, float) and not math.isfinite(value):
        return f"float('{value}')"
    return repr(value)


async def render_fm(
    config: LoadedConfig,
    resolved: ResolvedFiles,
    get_frontmatter: GetFrontmatter,
    names: list[str] | None = None,
) -> str:
    """Render the companion frontmatter module.

    Args:
        config: Output group (or whole config) to serialize.
        resolved: Files resolved for ``config``.
        get_frontmatter: Frontmatter reader, normally FrontmatterCache.get.
        names: Restrict to these collections; every document collection when None.
    """
    targets: list[tuple[str, DocCollection]] = []
    for name, collection in config.collections.items():
        if names is not None and name not in names:
            continue
        sub = _halves(collection).get("doc")
        if isinstance(sub, DocCollection):
            targets.append((name, sub))

    async def serialize(name: str, collection: DocCollection) -> str:
        files = resolved.get(name, {}).get("doc", [])
        frontmatters = await asyncio.gather(*(get_frontmatter(info.absolute_path) for info in files))
        lines = [f"{name}{FM_DATA_SUFFIX} = {{"]
        for info, frontmatter in zip(files, frontmatters):
            data = {
                **_plain(frontmatter or {}),
                PART_KEY: info.part,
                DIR_KEY: _owning_dir(collection, info),
            }
            lines.append(f"    {info.path!r}: {_literal(data)},")
        lines.append("}")
        return "\n".join(lines)

    blocks = await asyncio.gather(*(serialize(name, sub) for name, sub in targets))
    return "\n".join([GENERATED_HEADER, "", *blocks]) + "\n"


def generate_types(config_path: Path | str, config: LoadedConfig, output_path: Path | str) -> str:
    """Render the ``.pyi`` stub of one output group."""
    block = ImportBlock()
    block.add(NamedImport(f"{RUNTIME_MODULE}.eager", ("DocEntry", "DocsPair", "MetaEntry")))
    if any(is_async(collection) for collection in config.collections.values()):
        block.add(NamedImport(f"{RUNTIME_MODULE}.lazy", ("AsyncDocEntry",)))

    declarations = []
    for name, collection in config.collections.items():
        if isinstance(collection, DocsCollection):
            annotation = "DocsPair"
        elif collection.type == "meta":
            annotation = "list[MetaEntry]"
        elif collection.async_load:
            annotation = "list[AsyncDocEntry]"
        else:
            annotation = "list[DocEntry]"
        declarations.append(f"{name}: {annotation}")

    header = [
        GENERATED_HEADER,
        f"# Declaration source: {to_import_path(config_path, Path(output_path).parent)}",
    ]
    return "\n".join([*header, *block.lines(), "", *declarations]) + "\n"


async def generate_module(
    config_path: Path | str,
    config: LoadedConfig,
    output_path: Path | str,
    config_hash: str,
) -> str:
    """Generate the module of one output group.

    Raises:
        DiscoveryError: If a declared directory cannot be read.
    """
    resolved = await resolve_collection_files(config)
    return render_module(config_path, config, output_path, config_hash, resolved)


async def generate_fm(config: LoadedConfig, get_frontmatter: GetFrontmatter) -> str:
    """Generate the companion module for every document collection in ``config``."""
    resolved = await resolve_collection_files(config)
    return await render_fm(config, resolved, get_frontmatter)


async def generate_group(
    config_path: Path | str,
    config: LoadedConfig,
    output_path: Path | str,
    config_hash: str,
    get_frontmatter: GetFrontmatter,
) -> GeneratedGroup:
    """Generate module, stub and (for async documents) companion of one group.

    Files are resolved once and shared by all three outputs.
    """
    resolved = await resolve_collection_files(config)
    async_names = [name for name, collection in config.collections.items() if is_async(collection)]

    companion = None
    if async_names:
        companion = await render_fm(config, resolved, get_frontmatter, names=async_names)

    return GeneratedGroup(
        module=render_module(config_path, config, output_path, config_hash, resolved),
        stub=generate_types(config_path, config, output_path),
        companion=companion,
        files=resolved,
    )
