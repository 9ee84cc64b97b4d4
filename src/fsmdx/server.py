# src/fsmdx/server.py
"""Cold builds and watch-mode regeneration of output groups.

MapServer owns the current LoadedConfig and its partition into output
groups. Every pass rewrites all group modules in full; the watcher only
decides whether a pass is needed:

- the declaration source changed: reload, repartition, regenerate;
- ``add``/``unlink`` elsewhere: the file set changed, regenerate;
- ``change`` elsewhere: drop that file's frontmatter, then regenerate only
  if the previous pass read frontmatter at all.

Events are consumed one at a time, so a pass is never interrupted; events
arriving meanwhile wait in the queue and run their own pass afterwards.
"""

import asyncio
import atexit
import logging
import time
from pathlib import Path

from fsmdx.config.cache import ConfigCache, config_cache, get_config_hash
from fsmdx.config.define import DocsCollection
from fsmdx.config.load import LoadedConfig
from fsmdx.constants import FM_MODULE_SUFFIX, MODULE_SUFFIX, STUB_SUFFIX
from fsmdx.errors import GenerationIOError
from fsmdx.frontmatter import FrontmatterCache
from fsmdx.generation.generate import GeneratedGroup, ResolvedFiles, generate_group
from fsmdx.generation.manifest import write_manifest
from fsmdx.loader import Compiler, TimestampSource
from fsmdx.runtime.registry import DocumentRegistry, registry
from fsmdx.settings import Settings, load_settings
from fsmdx.watcher import Watcher

logger = logging.getLogger(__name__)


def to_output_groups(config: LoadedConfig, default_output: str) -> dict[str, LoadedConfig]:
    """Partition collections by output group, keeping declaration order."""
    grouped: dict[str, dict] = {}
    for name, collection in config.collections.items():
        output = collection.output or default_output
        grouped.setdefault(output, {})[name] = collection
    return {output: config.with_collections(collections) for output, collections in grouped.items()}


def watched_directories(config: LoadedConfig) -> list[str]:
    directories: dict[str, None] = {}
    for collection in config.collections.values():
        halves = (
            [collection.docs, collection.meta]
            if isinstance(collection, DocsCollection)
            else [collection]
        )
        for half in halves:
            for directory in half.dirs:
                directories.setdefault(directory)
    return list(directories)


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise GenerationIOError(path, e) from e


def _unlink(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise GenerationIOError(path, e) from e


def group_paths(out_dir: Path, name: str) -> list[Path]:
    """Files generated for one output group: module, stub, companion."""
    return [
        out_dir / f"{name}{MODULE_SUFFIX}",
        out_dir / f"{name}{STUB_SUFFIX}",
        out_dir / f"{name}{FM_MODULE_SUFFIX}{MODULE_SUFFIX}",
    ]


class MapServer:
    """Generates output group modules and keeps them in sync with the filesystem.

    Args:
        config_path: Declaration source.
        out_dir: Directory for generated modules; settings.out_dir when None.
        dev: Watch mode. Starts the watcher and keeps errors from stopping it.
        settings: Engine settings; loaded from the environment when None.
        config_cache: Cache of loaded declaration sources.
        frontmatter_cache: Cache of frontmatter reads.
        compiler: Document compiler used when generated modules are imported.
        timestamp_source: Git timestamp lookup for ``last_modified_time="git"``.
        documents: Registry generated modules resolve documents through.
    """

    def __init__(
        self,
        config_path: Path | str,
        out_dir: Path | str | None = None,
        dev: bool = False,
        settings: Settings | None = None,
        config_cache: ConfigCache = config_cache,
        frontmatter_cache: FrontmatterCache | None = None,
        compiler: Compiler | None = None,
        timestamp_source: TimestampSource | None = None,
        documents: DocumentRegistry = registry,
    ):
        self.settings = settings or load_settings()
        self.config_path = Path(config_path).resolve()
        self.out_dir = Path(out_dir).resolve() if out_dir is not None else self.settings.out_path
        self.dev = dev
        self.config_cache = config_cache
        self.frontmatter_cache = frontmatter_cache or FrontmatterCache()
        self.documents = documents
        self.documents.configure(
            cache=config_cache, compiler=compiler, timestamp_source=timestamp_source, dev=dev
        )

        self.config: LoadedConfig | None = None
        self.config_hash: str | None = None
        self.output_groups: dict[str, LoadedConfig] = {}
        self.files: ResolvedFiles = {}
        self.passes = 0
        self._written_groups: set[str] = set()

        self.queue: asyncio.Queue | None = None
        self.watcher: Watcher | None = None
        self._consumer: asyncio.Task | None = None
        self._ready: asyncio.Event | None = None
        self._torn_down = False

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def load(self) -> LoadedConfig:
        """Hash and load the declaration source, then repartition.

        Raises:
            ConfigError: If the declaration source fails to load.
        """
        config_hash = await get_config_hash(self.config_path)
        self.config = await self.config_cache.aload(self.config_path, config_hash)
        self.config_hash = config_hash
        self.output_groups = to_output_groups(self.config, self.settings.default_output)
        return self.config

    async def _write_group(self, name: str, group: LoadedConfig) -> GeneratedGroup:
        module_path, stub_path, companion_path = group_paths(self.out_dir, name)
        generated = await generate_group(
            self.config_path,
            group,
            module_path,
            self.config_hash,
            self.frontmatter_cache.get,
        )

        def write() -> None:
            # Companion first: the group module imports it.
            if generated.companion is not None:
                _write_text(companion_path, generated.companion)
            else:
                _unlink(companion_path)
            _write_text(stub_path, generated.stub)
            _write_text(module_path, generated.module)

        await asyncio.to_thread(write)
        return generated

    async def generate_all(self) -> None:
        """Regenerate every output group module in full.

        Raises:
            DiscoveryError: If a collection directory cannot be read.
            GenerationIOError: If a module cannot be written.
        """
        if self.config is None:
            await self.load()

        self.frontmatter_cache.begin_pass()
        try:
            self.out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GenerationIOError(self.out_dir, e) from e

        names = list(self.output_groups)
        results = await asyncio.gather(
            *(self._write_group(name, self.output_groups[name]) for name in names)
        )

        files: ResolvedFiles = {}
        for generated in results:
            files.update(generated.files)
        self.files = files

        removed = sorted(self._written_groups - set(names))
        if removed:
            await asyncio.to_thread(self._remove_groups, removed)
        self._written_groups = set(names)
        self.passes += 1

    def _remove_groups(self, names: list[str]) -> None:
        for name in names:
            for path in group_paths(self.out_dir, name):
                _unlink(path)
            logger.info(f"Removed output group {name}")

    async def start(self) -> None:
        """Cold build; in dev mode also start watching.

        Raises:
            ConfigError: If the declaration source fails to load.
            DiscoveryError: If a collection directory cannot be read.
            GenerationIOError: If a module cannot be written.
        """
        start_time = time.perf_counter()
        await self.load()
        await self.generate_all()
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"Initialized map file in {duration_ms}ms "
            f"({len(self.output_groups)} output groups, out_dir={self.out_dir})"
        )

        atexit.register(self.teardown)
        if self.dev:
            self._start_watching()

    # ------------------------------------------------------------------
    # Watch mode
    # ------------------------------------------------------------------

    def _start_watching(self) -> None:
        self.queue = asyncio.Queue(maxsize=self.settings.queue_size)
        self._ready = asyncio.Event()
        self.watcher = Watcher(self.queue)
        self.watcher.start([self.config_path], watched_directories(self.config))
        self._consumer = asyncio.create_task(self._consume_events())

    async def handle_event(self, event: str, path: Path | str) -> bool:
        """Apply one filesystem event. Returns True when a pass ran.

        Raises:
            ConfigError: If a changed declaration source fails to load.
            DiscoveryError: If a collection directory cannot be read.
            GenerationIOError: If a module cannot be written.
        """
        if event == "ready":
            if self._ready is not None:
                self._ready.set()
            logger.debug("Watcher ready")
            return False

        path = Path(path).resolve()
        if path == self.config_path:
            if event == "unlink":
                logger.warning(f"Declaration source {path} was removed; keeping last output")
                return False
            await self.load()
            await self.generate_all()
            if self.watcher is not None:
                self.watcher.refresh([self.config_path], watched_directories(self.config))
            logger.info(f"Regenerated all output groups after {path.name} changed")
            return True

        # Generated modules never trigger a pass
        if path.is_relative_to(self.out_dir):
            return False

        if event == "change":
            self.frontmatter_cache.invalidate(str(path))

        if event in ("add", "unlink") or self.frontmatter_cache.consulted:
            await self.generate_all()
            logger.debug(f"Regenerated output groups after {event} {path}")
            return True

        logger.debug(f"Skipping regeneration for {event} {path}")
        return False

    async def _consume_events(self) -> None:
        while True:
            event, path = await self.queue.get()
            try:
                await self.handle_event(event, path)
            except Exception as e:
                # A broken file must not stop the watcher
                logger.error(f"Failed to process {event} {path or self.config_path}: {e}")
            finally:
                self.queue.task_done()

    async def wait_ready(self) -> None:
        """Wait until the watcher emitted its ``ready`` event."""
        if self._ready is not None:
            await self._ready.wait()

    async def idle(self) -> None:
        """Wait until every queued event has been processed."""
        if self.queue is not None:
            await self.queue.join()

    async def close(self) -> None:
        """Stop the watcher and the event consumer."""
        if self.watcher is not None:
            await asyncio.to_thread(self.watcher.stop)
            self.watcher = None
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

    def teardown(self) -> None:
        """Process-exit hook: stop watching and write the manifest once."""
        if self._torn_down:
            return
        self._torn_down = True
        atexit.unregister(self.teardown)

        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

        if self.config is not None and self.config.global_config.generate_manifest and not self.dev:
            write_manifest(self.out_dir / self.settings.manifest_name, self.files)


async def start(
    config_path: Path | str,
    out_dir: Path | str | None = None,
    dev: bool = False,
    **options,
) -> MapServer:
    """Create a MapServer and run its cold build."""
    server = MapServer(config_path, out_dir, dev=dev, **options)
    await server.start()
    return server
