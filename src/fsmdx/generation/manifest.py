"""File inventory written once at process exit."""

import json
import logging
from pathlib import Path

from fsmdx.discovery.files import FileInfo
from fsmdx.errors import GenerationIOError

logger = logging.getLogger(__name__)


def build_manifest(files_by_collection: dict[str, dict[str, list[FileInfo]]]) -> dict:
    """Snapshot resolved files grouped by collection name and kind."""
    return {
        name: {kind: [info.to_dict() for info in files] for kind, files in sorted(halves.items())}
        for name, halves in sorted(files_by_collection.items())
    }


def write_manifest(path: Path | str, files_by_collection: dict[str, dict[str, list[FileInfo]]]) -> None:
    """Write the manifest JSON to ``path``.

    Raises:
        GenerationIOError: If the file cannot be written.
    """
    path = Path(path)
    content = json.dumps(build_manifest(files_by_collection), indent=2, sort_keys=True)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content + "\n", encoding="utf-8")
    except OSError as e:
        raise GenerationIOError(path, e) from e
    logger.info(f"Wrote manifest {path}")
