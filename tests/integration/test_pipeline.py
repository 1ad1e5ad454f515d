"""
End-to-end scoring runs: remote semantic scorer (against a scripted client),
persistent cache and history, and report export.
"""

import json

import anthropic
import httpx
import pytest
from pydantic import SecretStr

from docscore.cache import ContentHashCache, ReportHistory, settings_fingerprint
from docscore.config import Config
from docscore.export import export_report
from docscore.protocols import ScoringMode
from docscore.scorer import ESTIMATED_MESSAGE, Scorer
from docscore.semantic import RemoteSemanticEvaluator
from tests.helpers import semantic_payload

pytestmark = pytest.mark.integration


def _config(**overrides):
    return Config(semantic={"api_key": "sk-test", "max_retries": 1}, **overrides)


def _connection_error():
    return anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))


@pytest.fixture
def stores(tmp_path):
    cache = ContentHashCache(path=tmp_path / "cache.json")
    history = ReportHistory(path=tmp_path / "history.json")
    return cache, history


@pytest.mark.asyncio
async def test_full_analysis_round_trip(tmp_path, sample_page, mock_client_factory, stores):
    cache, history = stores
    config = _config()
    client = mock_client_factory(semantic_payload(score=9))
    scorer = Scorer(config, cache=cache, semantic=RemoteSemanticEvaluator(config.semantic, client, retry_delay=0), history=history)

    report = await scorer.score(sample_page)

    assert scorer.mode is ScoringMode.FULL
    assert report.meta.mode == "full"
    assert report.meta.semantic_error is None
    assert report.meta.semantic_cache["status"] == "miss"
    assert report.categories["permissions-plans"].score == 9
    assert report.semantic_summary == "Clear and focused page"
    assert client.messages.create.await_count == 1

    path = export_report(report, "markdown", tmp_path)
    text = path.read_text(encoding="utf-8")
    assert "**Mode:** Full Analysis (Rules + AI)" in text
    assert "Semantic analysis unavailable" not in text

    stored = json.loads((tmp_path / "cache.json").read_text(encoding="utf-8"))
    fingerprint = settings_fingerprint(config.scoring.model_dump(mode="json"))
    assert set(stored) == {report.meta.content_hash, f"{report.meta.content_hash}:full:{fingerprint}"}
    assert history.entries()[0]["mode"] == "full"

    again = await scorer.score(sample_page)
    assert again.meta.report_cache == "hit"
    assert again.composite_score == report.composite_score
    assert client.messages.create.await_count == 1


@pytest.mark.asyncio
async def test_semantic_cache_survives_restart(tmp_path, sample_page, mock_client_factory):
    config = _config(cache={"report_cache_enabled": False})
    first_client = mock_client_factory(semantic_payload())
    first = Scorer(
        config,
        cache=ContentHashCache(path=tmp_path / "cache.json"),
        semantic=RemoteSemanticEvaluator(config.semantic, first_client, retry_delay=0),
    )
    await first.score(sample_page)

    second_client = mock_client_factory()
    second = Scorer(
        config,
        cache=ContentHashCache(path=tmp_path / "cache.json"),
        semantic=RemoteSemanticEvaluator(config.semantic, second_client, retry_delay=0),
    )
    report = await second.score(sample_page)

    assert report.meta.semantic_cache["status"] == "hit"
    second_client.messages.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_network_failure_falls_back_to_estimates(tmp_path, sample_page, mock_client_factory, stores):
    cache, history = stores
    config = _config()
    client = mock_client_factory(_connection_error(), _connection_error())
    scorer = Scorer(config, cache=cache, semantic=RemoteSemanticEvaluator(config.semantic, client, retry_delay=0), history=history)

    report = await scorer.score(sample_page)

    assert client.messages.create.await_count == 2
    assert report.meta.mode == "full"
    assert report.meta.semantic_error == "Network error. Please check your internet connection."
    for key in ("outcomes-reversibility", "permissions-plans", "self-contained"):
        assert report.categories[key].estimated is True
        assert report.categories[key].message == ESTIMATED_MESSAGE
    assert len(cache) == 0
    assert len(history) == 1

    text = export_report(report, "markdown", tmp_path / "fallback.md").read_text(encoding="utf-8")
    assert "> Semantic analysis unavailable: Network error. Please check your internet connection." in text


@pytest.mark.asyncio
async def test_rule_only_without_credentials(sample_page):
    scorer = Scorer(Config(semantic={"api_key": SecretStr("   ")}))

    report = await scorer.score(sample_page)

    assert report.meta.mode == "rule-only"
    assert report.meta.semantic_error is None
    assert report.categories["self-contained"].estimated is True
