# src/fsmdx/discovery/files.py
"""Scan collection directories and classify the files found there."""

import asyncio
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path, PurePosixPath

import pathspec

from fsmdx.config.define import DocCollection, MetaCollection
from fsmdx.constants import DEFAULT_INCLUDE_PATTERN, DEFAULT_LOCALE, DOC_EXTENSIONS, META_EXTENSIONS
from fsmdx.errors import DiscoveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileInfo:
    """A file resolved into a collection.

    Attributes:
        path: Logical path, locale-rewritten for localized collections.
        absolute_path: Absolute filesystem path.
        part: Path relative to the collection directory it was found in.
    """

    path: str
    absolute_path: str
    part: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def get_type_from_path(path: str | Path) -> str | None:
    """Classify a file as "doc" or "meta" by extension.

    Returns:
        "doc", "meta", or None for files neither kind of collection takes.
    """
    suffix = Path(path).suffix.lower()
    if suffix in DOC_EXTENSIONS:
        return "doc"
    if suffix in META_EXTENSIONS:
        return "meta"
    return None


def get_localized_path(relative_path: str) -> str:
    """Move the leading locale directory into a file name suffix.

    ``es/guide.mdx`` becomes ``guide.es.mdx``; the default locale keeps the
    plain name (``en/guide.mdx`` -> ``guide.mdx``). A file sitting directly
    in the collection directory has no locale segment and is returned as is.
    """
    parts = PurePosixPath(relative_path).parts
    if len(parts) < 2:
        return relative_path

    locale = parts[0].replace(".", "")
    rest = PurePosixPath(*parts[1:])
    if locale == DEFAULT_LOCALE or not rest.suffix:
        return str(rest)
    return str(rest.with_name(f"{rest.stem}.{locale}{rest.suffix}"))


def tree_sort_key(logical_path: str) -> tuple[tuple[bool, str], ...]:
    """Sort key placing files before folders at each level, then by name."""
    parts = logical_path.split("/")
    last = len(parts) - 1
    return tuple((index < last, part) for index, part in enumerate(parts))


def sort_files(files: list[FileInfo]) -> list[FileInfo]:
    """Return ``files`` in deterministic tree order of their logical paths."""
    return sorted(files, key=lambda info: (tree_sort_key(info.path), info.absolute_path))


def _anchor(pattern: str) -> str:
    """Root a glob at the collection directory.

    ``*.mdx`` matches top-level files only, as a glob run from the
    collection directory would; ``**/`` patterns keep matching at any depth.
    """
    negated = pattern.startswith("!")
    body = pattern[1:] if negated else pattern
    body = body.removeprefix("./")
    if not body.startswith(("/", "**")):
        body = f"/{body}"
    return f"!{body}" if negated else body


def _build_spec(patterns: list[str] | None) -> pathspec.GitIgnoreSpec:
    lines = [_anchor(pattern) for pattern in patterns or [DEFAULT_INCLUDE_PATTERN]]
    return pathspec.GitIgnoreSpec.from_lines(lines)


def scan_directory(directory: Path, spec: pathspec.GitIgnoreSpec) -> list[tuple[Path, str]]:
    """Walk ``directory`` and return (absolute path, relative posix path) matches.

    Raises:
        DiscoveryError: If the path exists but cannot be listed as a directory.
    """
    if not directory.exists():
        logger.debug(f"Collection directory does not exist yet: {directory}")
        return []
    if not directory.is_dir():
        raise DiscoveryError("Collection path is not a directory", directory)

    def _raise(error: OSError) -> None:
        raise DiscoveryError(f"Cannot read collection directory ({error.strerror})", error.filename)

    matches = []
    for root, dirnames, filenames in os.walk(directory, onerror=_raise):
        dirnames.sort()
        for filename in sorted(filenames):
            file_path = Path(root) / filename
            relative = file_path.relative_to(directory).as_posix()
            if spec.match_file(relative):
                matches.append((file_path, relative))
    return matches


async def resolve_files(collection: DocCollection | MetaCollection) -> list[FileInfo]:
    """Resolve the files of one doc or meta collection.

    Directories are scanned concurrently. Results are merged in declared
    directory order: the earlier directory wins when two directories yield
    the same absolute path or the same logical path. The returned list has
    no guaranteed order; use sort_files() before emitting anything.

    Raises:
        DiscoveryError: If a declared directory cannot be read.
    """
    spec = _build_spec(collection.files)
    directories = [Path(directory).resolve() for directory in collection.dirs]
    scans = await asyncio.gather(
        *(asyncio.to_thread(scan_directory, directory, spec) for directory in directories)
    )

    files: dict[str, FileInfo] = {}
    owners: dict[str, str] = {}
    for matches in scans:
        for file_path, relative in matches:
            if get_type_from_path(file_path) != collection.type:
                continue

            absolute = str(file_path)
            if absolute in files:
                continue

            logical = get_localized_path(relative) if collection.localized else relative
            if logical in owners:
                logger.warning(
                    f"Skipping {absolute}: logical path {logical!r} already provided by {owners[logical]}"
                )
                continue

            owners[logical] = absolute
            files[absolute] = FileInfo(path=logical, absolute_path=absolute, part=relative)

    return list(files.values())
