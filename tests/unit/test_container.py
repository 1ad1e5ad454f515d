"""
Tests for the dependency container: lazy components, hot reload and the
config file watcher.
"""

from unittest.mock import patch

import pytest
import yaml
from watchdog.events import DirModifiedEvent, FileModifiedEvent

from docscore.cache import ContentHashCache, ReportHistory
from docscore.config import Config
from docscore.container import ConfigWatcher, DependencyContainer, LazyInstance
from docscore.scorer import Scorer


def _write_config(path, **sections):
    path.write_text(yaml.safe_dump(sections), encoding="utf-8")


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "docscore.yaml"
    _write_config(path, scoring={"top_issue_count": 5}, cache={"max_entries": 20})
    return path


def test_lazy_instance_builds_once():
    calls = []

    def factory(value):
        calls.append(value)
        return {"value": value}

    lazy = LazyInstance(factory, 3)
    assert lazy.get() is lazy.get()
    assert calls == [3]


class TestDependencyContainer:
    @pytest.mark.asyncio
    async def test_components_from_config_file(self, config_file):
        container = DependencyContainer(config_path=config_file)
        await container.initialize(watch=False)

        scorer = container.get_scorer()
        assert isinstance(scorer, Scorer)
        assert isinstance(container.get_cache(), ContentHashCache)
        assert isinstance(container.get_history(), ReportHistory)
        assert scorer.cache is container.get_cache()
        assert container.get_cache().max_entries == 20
        assert container.get_scorer() is scorer

        await container.shutdown()

    @pytest.mark.asyncio
    async def test_explicit_config_skips_loading(self):
        container = DependencyContainer(config=Config(cache={"max_entries": 3}))
        await container.initialize(watch=False)

        assert container.get_cache().max_entries == 3
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_reload_rebuilds_scorer_and_keeps_stores(self, config_file):
        container = DependencyContainer(config_path=config_file)
        await container.initialize(watch=False)
        cache = container.get_cache()
        scorer = container.get_scorer()

        _write_config(config_file, scoring={"top_issue_count": 2}, cache={"max_entries": 20})
        await container.reload_config()

        assert container.config.scoring.top_issue_count == 2
        assert container.get_cache() is cache
        assert container.get_scorer() is not scorer
        assert container.get_scorer().config.scoring.top_issue_count == 2
        assert scorer.config.scoring.top_issue_count == 5
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_reload_with_new_cache_settings_rebuilds_stores(self, config_file):
        container = DependencyContainer(config_path=config_file)
        await container.initialize(watch=False)
        cache = container.get_cache()

        _write_config(config_file, cache={"max_entries": 99})
        await container.reload_config()

        assert container.get_cache() is not cache
        assert container.get_cache().max_entries == 99
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_invalid_reload_keeps_previous_config(self, config_file):
        container = DependencyContainer(config_path=config_file)
        await container.initialize(watch=False)
        previous = container.config

        config_file.write_text("scoring: [unclosed", encoding="utf-8")
        await container.reload_config()

        assert container.config is previous
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self, config_file):
        container = DependencyContainer(config_path=config_file)
        async with container.lifecycle(watch=True):
            assert container.is_running
            assert container._observer is not None

        assert container.is_running is False
        assert container._observer is None
        await container.shutdown()

    @pytest.mark.asyncio
    async def test_missing_config_file_is_not_watched(self, tmp_path):
        container = DependencyContainer(config=Config(), config_path=tmp_path / "absent.yaml")
        await container.initialize(watch=True)

        assert container._observer is None
        await container.shutdown()


class TestConfigWatcher:
    def _watcher(self, config_file):
        container = DependencyContainer(config_path=config_file, config=Config())
        return ConfigWatcher(container, loop=None)

    def test_config_change_schedules_reload(self, config_file):
        watcher = self._watcher(config_file)

        with patch("docscore.container.asyncio.run_coroutine_threadsafe") as schedule:
            watcher.on_modified(FileModifiedEvent(str(config_file)))

        schedule.assert_called_once()
        coroutine = schedule.call_args.args[0]
        assert coroutine.__qualname__ == "DependencyContainer.reload_config"
        coroutine.close()

    @pytest.mark.parametrize("name", ["other.yaml", "docscore.txt"])
    def test_unrelated_files_are_ignored(self, config_file, name):
        watcher = self._watcher(config_file)

        with patch("docscore.container.asyncio.run_coroutine_threadsafe") as schedule:
            watcher.on_modified(FileModifiedEvent(str(config_file.parent / name)))
            watcher.on_modified(DirModifiedEvent(str(config_file.parent)))

        schedule.assert_not_called()
