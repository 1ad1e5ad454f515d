"""
Multi-page scoring.

Pages are scored one after another through the same single-page pipeline;
there is no cross-page concurrency. Duplicate detection is a post-pass over
the finished results, comparing token sets pairwise.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from itertools import combinations
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

import structlog

from docscore.errors import ContentValidationError
from docscore.export.markdown import STATUS_LABELS
from docscore.parser import normalize
from docscore.protocols import ScoreReport
from docscore.scorer import Scorer
from docscore.utils import round_half_up

logger = structlog.get_logger(__name__)

DEFAULT_DUPLICATE_THRESHOLD = 0.8
MIN_TOKEN_LENGTH = 3

TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


@dataclass
class BatchResult:
    url: str
    report: Optional[ScoreReport] = None
    error: Optional[str] = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.report is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.report is None:
            return {"url": self.url, "error": self.error}
        return self.report.to_dict()


def _url_of(raw: Any) -> str:
    if isinstance(raw, dict):
        meta = raw.get("meta")
        if isinstance(meta, dict) and meta.get("url"):
            return str(meta["url"])
    return "unknown"


async def score_batch(scorer: Scorer, contents: Iterable[Any]) -> List[BatchResult]:
    """Score each page in order. Invalid pages are recorded with their error and skipped."""
    results: List[BatchResult] = []
    for raw in contents:
        try:
            content = normalize(raw)
        except ContentValidationError as e:
            url = _url_of(raw)
            logger.warning("Skipping invalid page in batch", url=url, errors=e.errors)
            results.append(BatchResult(url=url, error=", ".join(e.errors)))
            continue
        report = await scorer.score(content)
        results.append(BatchResult(url=content.meta.url, report=report, text=content.text.full_text))

    logger.info(
        "Batch scoring complete",
        pages=len(results),
        failed=sum(1 for result in results if not result.ok),
    )
    return results


def tokenize(text: str) -> FrozenSet[str]:
    return frozenset(token for token in TOKEN_PATTERN.findall(text.lower()) if len(token) >= MIN_TOKEN_LENGTH)


def jaccard(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def find_duplicates(
    results: Sequence[BatchResult],
    threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
) -> List[Dict[str, Any]]:
    """
    Pairs of scored pages whose token-set similarity reaches ``threshold``.

    Each pair is ``{"a": url, "b": url, "similarity": percent}`` with the
    percentage rounded to an integer. Pairs keep input order.
    """
    scored = [(result.url, tokenize(result.text)) for result in results if result.ok]
    duplicates = []
    for (url_a, tokens_a), (url_b, tokens_b) in combinations(scored, 2):
        similarity = jaccard(tokens_a, tokens_b)
        if similarity >= threshold:
            duplicates.append({"a": url_a, "b": url_b, "similarity": int(round_half_up(similarity * 100))})
    if duplicates:
        logger.info("Potential duplicates found", pairs=len(duplicates))
    return duplicates


def render_batch_markdown(
    results: Sequence[BatchResult],
    duplicates: Sequence[Dict[str, Any]] = (),
    generated_at: Optional[str] = None,
) -> str:
    generated_at = generated_at or datetime.now(timezone.utc).isoformat(timespec="seconds")
    lines = [
        "# AI-Friendliness Batch Report",
        "",
        f"**Generated:** {generated_at}",
        "",
        "| URL | Score | Status |",
        "|-----|-------|--------|",
    ]
    for result in results:
        if result.report is None:
            lines.append(f"| {result.url} | - | Error: {result.error} |")
        else:
            report = result.report
            lines.append(f"| {report.meta.url} | {report.composite_score:.1f}/10 | {STATUS_LABELS[report.status]} |")

    if duplicates:
        lines.extend(["", "## Potential Duplicates", ""])
        for pair in duplicates:
            lines.append(f"- {pair['a']} ↔ {pair['b']} ({pair['similarity']}%)")

    lines.append("")
    return "\n".join(lines)


def batch_to_dict(results: Sequence[BatchResult], duplicates: Sequence[Dict[str, Any]] = ()) -> Dict[str, Any]:
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "results": [result.to_dict() for result in results],
        "duplicates": list(duplicates),
    }
