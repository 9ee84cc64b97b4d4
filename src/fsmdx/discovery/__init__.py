"""File discovery and classification."""

from fsmdx.discovery.files import (
    FileInfo,
    get_localized_path,
    get_type_from_path,
    resolve_files,
    sort_files,
    tree_sort_key,
)

__all__ = [
    "FileInfo",
    "get_localized_path",
    "get_type_from_path",
    "resolve_files",
    "sort_files",
    "tree_sort_key",
]
