"""Config-hash keyed cache of loaded declaration sources.

Document transforms may ask for the same config from many workers at
once. A per-path lock makes sure the declaration source is executed once
per hash: the first caller loads, the rest wait and reuse its result.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from pathlib import Path

from fsmdx.config.load import LoadedConfig, compute_config_hash, load_config, unload_source

logger = logging.getLogger(__name__)

Loader = Callable[[Path, str], LoadedConfig]


async def get_config_hash(config_path: Path | str) -> str:
    """Hash the declaration source without blocking the event loop."""
    return await asyncio.to_thread(compute_config_hash, config_path)


class ConfigCache:
    """Process-wide cache of LoadedConfig keyed by declaration path and hash.

    Only the latest hash is kept per path: loading a new hash replaces the
    previous entry.
    """

    def __init__(self, loader: Loader = load_config, enabled: bool = True):
        self._loader = loader
        self.enabled = enabled
        self._entries: dict[Path, LoadedConfig] = {}
        self._locks: dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()
        self.executions = 0

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(path, threading.Lock())

    def peek(self, config_path: Path | str) -> LoadedConfig | None:
        """Return the cached config for ``config_path`` without loading."""
        return self._entries.get(Path(config_path).resolve())

    def load(self, config_path: Path | str, config_hash: str) -> LoadedConfig:
        """Return the LoadedConfig for ``config_hash``, executing the source if needed.

        Raises:
            ConfigError: If the declaration source fails to load.
        """
        path = Path(config_path).resolve()
        if not self.enabled:
            self.executions += 1
            return self._loader(path, config_hash)

        cached = self._entries.get(path)
        if cached is not None and cached.config_hash == config_hash:
            return cached

        with self._lock_for(path):
            # Another caller may have finished loading while we waited.
            cached = self._entries.get(path)
            if cached is not None and cached.config_hash == config_hash:
                return cached

            if cached is not None:
                logger.info(f"Declaration source changed, reloading {path.name}")
            config = self._loader(path, config_hash)
            self.executions += 1
            self._entries[path] = config
            if cached is not None:
                unload_source(cached.config_hash)
            return config

    async def aload(self, config_path: Path | str, config_hash: str) -> LoadedConfig:
        """Awaitable form of load(); concurrent callers share one execution."""
        cached = self.peek(config_path)
        if self.enabled and cached is not None and cached.config_hash == config_hash:
            return cached
        return await asyncio.to_thread(self.load, config_path, config_hash)

    def invalidate(self, config_path: Path | str | None = None) -> None:
        """Drop the entry for ``config_path``, or every entry when None."""
        if config_path is None:
            dropped = list(self._entries.values())
            self._entries.clear()
        else:
            entry = self._entries.pop(Path(config_path).resolve(), None)
            dropped = [entry] if entry is not None else []
        for entry in dropped:
            unload_source(entry.config_hash)


config_cache = ConfigCache()
