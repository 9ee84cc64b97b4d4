"""Collection declarations and the config cache."""

from fsmdx.config.cache import ConfigCache, config_cache, get_config_hash
from fsmdx.config.define import (
    Collection,
    DocCollection,
    DocsCollection,
    GlobalConfig,
    MetaCollection,
    define_collections,
    define_config,
    define_docs,
)
from fsmdx.config.load import LoadedConfig, compute_config_hash, load_config

__all__ = [
    "Collection",
    "ConfigCache",
    "DocCollection",
    "DocsCollection",
    "GlobalConfig",
    "LoadedConfig",
    "MetaCollection",
    "compute_config_hash",
    "config_cache",
    "define_collections",
    "define_config",
    "define_docs",
    "get_config_hash",
    "load_config",
]
