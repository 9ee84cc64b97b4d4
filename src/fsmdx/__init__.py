"""fsmdx: content collections compiled into importable Python modules."""

from fsmdx.config import define_collections, define_config, define_docs
from fsmdx.errors import (
    CompileError,
    ConfigError,
    DiscoveryError,
    FrontmatterError,
    FrontmatterValidationError,
    FsmdxError,
    GenerationIOError,
)
from fsmdx.schema import FrontmatterSchema, MetaSchema
from fsmdx.server import MapServer, start

__version__ = "0.1.0"

__all__ = [
    "CompileError",
    "ConfigError",
    "DiscoveryError",
    "FrontmatterError",
    "FrontmatterSchema",
    "FrontmatterValidationError",
    "FsmdxError",
    "GenerationIOError",
    "MapServer",
    "MetaSchema",
    "define_collections",
    "define_config",
    "define_docs",
    "start",
]
