"""Exception hierarchy for fsmdx.

Fatal errors (ConfigError, DiscoveryError, GenerationIOError) abort the
current command. File-scoped errors (FrontmatterValidationError,
CompileError) fail a single document and leave its siblings alone.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any


class FsmdxError(Exception):
    """Base error for fsmdx."""

    pass


class ConfigError(FsmdxError):
    """Raised when the declaration source fails to execute or is invalid."""

    pass


class DiscoveryError(FsmdxError):
    """Raised when a declared collection directory cannot be read."""

    def __init__(self, message: str, path: Path | str):
        super().__init__(f"{message}: {path}")
        self.path = str(path)


class GenerationIOError(FsmdxError):
    """Raised when a generated module cannot be written."""

    def __init__(self, path: Path | str, cause: OSError):
        super().__init__(f"Failed to write generated module {path}: {cause}")
        self.path = str(path)


class FrontmatterError(FsmdxError):
    """Raised when a document's frontmatter block is not valid YAML."""

    pass


class CompileError(FsmdxError):
    """Raised when the document compiler fails for one file."""

    def __init__(self, message: str, path: Path | str):
        super().__init__(message)
        self.path = str(path)


def format_issues(title: str, issues: Sequence[Any]) -> str:
    """Format validation issues as a compiler-style diagnostic block.

    Args:
        title: Heading line, usually naming the offending file.
        issues: Issue objects exposing ``message`` and optional ``path``.

    Returns:
        Multi-line message with one indented line per issue.
    """
    lines = [title]
    for issue in issues:
        path = getattr(issue, "path", ())
        message = getattr(issue, "message", str(issue))
        if path:
            location = ".".join(str(part) for part in path)
            lines.append(f"  {location}: {message}")
        else:
            lines.append(f"  {message}")
    return "\n".join(lines)


class FrontmatterValidationError(FsmdxError):
    """Raised when a document's frontmatter fails its collection schema."""

    def __init__(self, path: Path | str, issues: Sequence[Any]):
        self.path = str(path)
        self.issues = list(issues)
        super().__init__(format_issues(f"invalid frontmatter in {self.path}:", self.issues))
