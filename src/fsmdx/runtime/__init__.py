"""Runtime surface imported by generated modules."""

from pathlib import Path
from types import ModuleType

from fsmdx.constants import MODULE_SUFFIX
from fsmdx.runtime.eager import DocEntry, DocsPair, MetaEntry
from fsmdx.runtime.lazy import AsyncDocEntry
from fsmdx.runtime.registry import DocumentRegistry, load_module, registry


def load_output(out_dir: Path | str, name: str) -> ModuleType:
    """Import the generated module for output group ``name``."""
    return load_module(Path(out_dir) / f"{name}{MODULE_SUFFIX}", f"_fsmdx_output_{name}")


__all__ = [
    "AsyncDocEntry",
    "DocEntry",
    "DocsPair",
    "DocumentRegistry",
    "MetaEntry",
    "load_module",
    "load_output",
    "registry",
]
