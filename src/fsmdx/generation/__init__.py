"""Code generation for output groups."""

from fsmdx.generation.generate import (
    GeneratedGroup,
    generate_fm,
    generate_group,
    generate_module,
    generate_types,
    resolve_collection_files,
)
from fsmdx.generation.imports import ImportBlock, get_import_code, to_import_path
from fsmdx.generation.manifest import build_manifest, write_manifest

__all__ = [
    "GeneratedGroup",
    "ImportBlock",
    "build_manifest",
    "generate_fm",
    "generate_group",
    "generate_module",
    "generate_types",
    "get_import_code",
    "resolve_collection_files",
    "to_import_path",
    "write_manifest",
]
