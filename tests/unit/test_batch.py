"""Tests for multi-page scoring and duplicate detection."""

import pytest

from docscore.batch import (
    BatchResult,
    batch_to_dict,
    find_duplicates,
    jaccard,
    render_batch_markdown,
    score_batch,
    tokenize,
)
from docscore.config import Config
from docscore.scorer import Scorer
from tests.helpers import build_page

SHARED = "Open the workspace settings and choose members then remove the selected account"


def _page(url, text):
    return build_page(url=url, title=url.rsplit("/", 1)[-1], paragraphs=[text])


def test_tokenize_drops_short_tokens():
    assert tokenize("To do: Open it, NOW! v2 API") == frozenset({"open", "now", "api"})


def test_jaccard():
    assert jaccard(frozenset({"a", "b"}), frozenset({"b", "c"})) == pytest.approx(1 / 3)
    assert jaccard(frozenset(), frozenset()) == 0.0


@pytest.mark.asyncio
async def test_score_batch_keeps_order_and_records_failures(sample_page, wall_of_text_page):
    invalid = {"meta": {"url": "https://help.example.com/broken"}, "structure": {}}
    results = await score_batch(Scorer(Config()), [sample_page, invalid, wall_of_text_page, 42])

    assert [result.url for result in results] == [
        "https://help.example.com/records/delete",
        "https://help.example.com/broken",
        "https://help.example.com/wall",
        "unknown",
    ]
    assert [result.ok for result in results] == [True, False, True, False]
    assert results[1].error == "Missing or invalid text content"
    assert results[3].error == "Content must be a JSON object"
    assert results[1].to_dict() == {"url": "https://help.example.com/broken", "error": "Missing or invalid text content"}


@pytest.mark.asyncio
async def test_near_identical_pages_are_flagged():
    pages = [
        _page("https://help.example.com/a", SHARED),
        _page("https://help.example.com/b", SHARED + " again"),
        _page("https://help.example.com/c", "Billing invoices are emailed monthly to the account owner"),
    ]
    results = await score_batch(Scorer(Config()), pages)
    duplicates = find_duplicates(results)

    assert len(duplicates) == 1
    assert duplicates[0]["a"] == "https://help.example.com/a"
    assert duplicates[0]["b"] == "https://help.example.com/b"
    assert 80 <= duplicates[0]["similarity"] < 100


def test_failed_results_are_not_compared():
    results = [
        BatchResult(url="https://a.test", error="Missing structure data", text=SHARED),
        BatchResult(url="https://b.test", error="Missing structure data", text=SHARED),
    ]
    assert find_duplicates(results) == []


@pytest.mark.asyncio
async def test_batch_markdown(sample_page):
    results = await score_batch(Scorer(Config()), [sample_page, {"meta": {}}])
    duplicates = [{"a": "https://a.test", "b": "https://b.test", "similarity": 92}]
    text = render_batch_markdown(results, duplicates, generated_at="2024-05-01T10:00:00+00:00")

    score = results[0].report.composite_score
    assert text.startswith("# AI-Friendliness Batch Report\n")
    assert "**Generated:** 2024-05-01T10:00:00+00:00" in text
    assert f"| https://help.example.com/records/delete | {score:.1f}/10 |" in text
    assert "| unknown | - | Error: Missing meta information or URL, Missing structure data," in text
    assert "- https://a.test ↔ https://b.test (92%)" in text


@pytest.mark.asyncio
async def test_batch_to_dict(sample_page):
    results = await score_batch(Scorer(Config()), [sample_page])
    data = batch_to_dict(results, [])

    assert set(data) == {"generated_at", "results", "duplicates"}
    assert data["results"][0]["meta"]["url"] == "https://help.example.com/records/delete"
