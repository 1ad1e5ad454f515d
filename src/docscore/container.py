"""
Dependency injection container for DocScore components.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Generic, Optional, TypeVar
from uuid import uuid4

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from docscore.cache import ContentHashCache, ReportHistory
from docscore.config import Config, load_config
from docscore.errors import ConfigError
from docscore.scorer import Scorer

T = TypeVar("T")

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")


def build_cache(config: Config) -> ContentHashCache:
    return ContentHashCache(
        max_entries=config.cache.max_entries,
        ttl_seconds=config.cache.ttl_seconds,
        path=config.cache.path,
    )


def build_history(config: Config) -> ReportHistory:
    return ReportHistory(path=config.cache.history_path, max_items=config.cache.max_history)


class LazyInstance(Generic[T]):
    """Lazy-loaded instance, built on first access."""

    def __init__(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._instance: Optional[T] = None
        self._initialized = False

    def get(self) -> T:
        """Get or create the instance."""
        if not self._initialized:
            self._instance = self._factory(*self._args, **self._kwargs)
            self._initialized = True
        assert self._instance is not None
        return self._instance


class ConfigWatcher(FileSystemEventHandler):
    """Watches the configuration file and schedules a reload on the container's loop."""

    def __init__(self, container: DependencyContainer, loop: asyncio.AbstractEventLoop) -> None:
        self.container = container
        self.loop = loop
        self.logger = structlog.get_logger(self.__class__.__name__)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory or self.container.config_path is None:
            return
        src = Path(str(event.src_path))
        if src.suffix.lower() not in CONFIG_SUFFIXES or src.name != self.container.config_path.name:
            return
        self.logger.info("Configuration file changed, reloading", path=str(src))
        # watchdog calls back on its own thread
        asyncio.run_coroutine_threadsafe(self.container.reload_config(), self.loop)


class DependencyContainer:
    """
    Owns the configuration snapshot and the components built from it.

    The cache, history and scorer are created lazily. A configuration reload
    swaps the snapshot and rebuilds the scorer; runs already in flight keep
    the scorer (and config) they started with.
    """

    def __init__(self, config_path: Optional[Path] = None, config: Optional[Config] = None) -> None:
        self.config_path = Path(config_path) if config_path else None
        self.config: Optional[Config] = config
        self.logger = structlog.get_logger(self.__class__.__name__)

        self._instances: Dict[str, LazyInstance[Any]] = {}
        self._observer: Optional[Any] = None

        self.container_id = str(uuid4())
        self.is_running = False

    async def initialize(self, watch: bool = True) -> None:
        """Load configuration, prepare lazy components and start watching the config file."""
        if self.config is None:
            self.load_config()
        else:
            self._create_instances()

        if watch:
            self._setup_config_watching()

        self.is_running = True
        self.logger.info(
            "Dependency container initialized",
            container_id=self.container_id,
            config_path=str(self.config_path) if self.config_path else "default",
        )

    def load_config(self) -> None:
        """Load or reload configuration."""
        self.config = load_config(self.config_path)
        self._create_instances()

    def _create_instances(self, keep_stores: bool = False) -> None:
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before creating instances")
        config = self.config

        previous = self._instances
        self._instances = {
            "cache": LazyInstance(build_cache, config),
            "history": LazyInstance(build_history, config),
        }
        if keep_stores:
            for name in ("cache", "history"):
                if name in previous:
                    self._instances[name] = previous[name]
        self._instances["scorer"] = LazyInstance(
            lambda: Scorer(config=config, cache=self.get_cache(), history=self.get_history())
        )

    async def reload_config(self) -> None:
        """Hot-reload configuration. An invalid file leaves the current snapshot in place."""
        old_config = self.config
        try:
            new_config = load_config(self.config_path)
        except (ConfigError, FileNotFoundError) as e:
            self.logger.error("Configuration reload failed, keeping previous settings", error=str(e))
            return

        self.config = new_config
        stores_unchanged = old_config is not None and old_config.cache == new_config.cache
        self._create_instances(keep_stores=stores_unchanged)

        self.logger.info(
            "Configuration reloaded",
            container_id=self.container_id,
            changes_detected=old_config != new_config,
        )

    def get_cache(self) -> ContentHashCache:
        return self._instances["cache"].get()

    def get_history(self) -> ReportHistory:
        return self._instances["history"].get()

    def get_scorer(self) -> Scorer:
        return self._instances["scorer"].get()

    @asynccontextmanager
    async def lifecycle(self, watch: bool = True) -> AsyncIterator[DependencyContainer]:
        """Context manager for proper lifecycle management."""
        try:
            await self.initialize(watch=watch)
            yield self
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop watching the config file and drop all components."""
        if not self.is_running:
            return

        self.logger.info("Shutting down dependency container", container_id=self.container_id)

        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

        self._instances.clear()
        self.is_running = False
        self.logger.info("Dependency container shutdown complete")

    def _setup_config_watching(self) -> None:
        """Set up file system watching for configuration changes."""
        if not self.config_path or not self.config_path.exists():
            return

        self._observer = Observer()
        handler = ConfigWatcher(self, asyncio.get_running_loop())
        self._observer.schedule(handler, str(self.config_path.parent), recursive=False)
        self._observer.start()
