"""YAML frontmatter parsing and the per-process frontmatter cache.

Frontmatter is the ``---`` delimited YAML block at the top of a document:

    ---
    title: Getting started
    ---

    # Body

Header reads are cheap next to compiling a document body, so generation
reads frontmatter freely and the cache makes repeated passes free.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from fsmdx.errors import FrontmatterError

logger = logging.getLogger(__name__)

DELIMITER = "---"


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from a document.

    Args:
        content: Full document text that may start with frontmatter.

    Returns:
        Tuple of (metadata_dict, body). A document without a header yields an
        empty dict and the original text; a header that is not a mapping
        yields an empty dict and the body.

    Raises:
        FrontmatterError: If the header block is not valid YAML.
    """
    text = content.replace("\r\n", "\n").removeprefix("\ufeff")
    if not text.startswith(DELIMITER + "\n"):
        return {}, content

    # Search for the closing delimiter after the opening "---\n"
    end_pos = text.find("\n" + DELIMITER + "\n", len(DELIMITER))
    if end_pos == -1:
        if text.rstrip().endswith("\n" + DELIMITER):
            end_pos = text.rstrip().rfind("\n" + DELIMITER)
        else:
            return {}, content

    yaml_content = text[len(DELIMITER) + 1 : end_pos]
    try:
        metadata = yaml.safe_load(yaml_content) if yaml_content.strip() else {}
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid frontmatter YAML: {e}") from e

    body = text[end_pos + len(DELIMITER) + 2 :]
    if not isinstance(metadata, dict):
        return {}, body
    return metadata, body


def read_frontmatter_file(path: str) -> dict[str, Any]:
    """Read ``path`` and return its frontmatter.

    Raises:
        FrontmatterError: If the header is invalid; the message names the file.
    """
    content = Path(path).read_text(encoding="utf-8")
    try:
        metadata, _ = parse_frontmatter(content)
    except FrontmatterError as e:
        raise FrontmatterError(f"{path}: {e}") from e
    return metadata


class FrontmatterCache:
    """Memoized frontmatter reads keyed by absolute path.

    Entries live for the whole process and are dropped only through
    invalidate(). ``consulted`` reports whether get() was called since the
    last begin_pass(), which tells the watcher whether generated output
    depends on frontmatter at all.
    """

    def __init__(self, reader: Callable[[str], dict[str, Any]] = read_frontmatter_file):
        self._reader = reader
        self._entries: dict[str, dict[str, Any]] = {}
        self.consulted = False
        self.reads = 0

    def begin_pass(self) -> None:
        self.consulted = False

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    async def get(self, path: str) -> dict[str, Any]:
        """Return frontmatter for ``path``; a cache hit skips the filesystem."""
        self.consulted = True
        cached = self._entries.get(path)
        if cached is not None:
            return cached

        self.reads += 1
        data = await asyncio.to_thread(self._reader, path)
        self._entries[path] = data
        return data

    def invalidate(self, path: str) -> None:
        if self._entries.pop(path, None) is not None:
            logger.debug(f"Dropped cached frontmatter for {path}")

    def clear(self) -> None:
        self._entries.clear()
