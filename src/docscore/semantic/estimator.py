"""
Offline stand-in for the semantic scorer.

Keyword and structure heuristics give a rough reading of the three
model-only categories. Results are flagged as estimates and never count
toward the composite score.
"""

from __future__ import annotations

from typing import Iterable, List

import structlog

from docscore.protocols import CriterionResult, Issue, Metrics, NormalizedContent, Severity, clamp_score
from docscore.semantic.base import SemanticResult

logger = structlog.get_logger(__name__)

BASE_SCORE = 6
MIN_CONTEXT_WORDS = 200

DESTRUCTIVE_TERMS = ("delete", "remove", "erase", "discard", "wipe", "purge")
WARNING_TERMS = ("cannot be undone", "irreversible", "permanent", "warning", "caution")
OUTCOME_TERMS = ("will", "results in", "creates", "updates", "changes", "affects")
PERMISSION_TERMS = ("admin", "permission", "role", "access", "privilege")
PLAN_TERMS = ("plan", "edition", "subscription", "upgrade")

KEYWORD_DETAILS = "Estimated from keyword heuristics (no semantic model)"
STRUCTURE_DETAILS = "Estimated from page structure heuristics (no semantic model)"


def _has_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def estimate_outcomes(text: str) -> CriterionResult:
    score = BASE_SCORE
    issues: List[Issue] = []
    if _has_any(text, DESTRUCTIVE_TERMS) and not _has_any(text, WARNING_TERMS):
        score -= 2
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message="Destructive actions detected without reversibility warning",
                fix="Add a warning if actions are irreversible or destructive",
            )
        )
    if _has_any(text, OUTCOME_TERMS):
        score += 1
    return CriterionResult("EST-OR", clamp_score(score), issues, KEYWORD_DETAILS)


def estimate_permissions(text: str) -> CriterionResult:
    score = BASE_SCORE
    issues: List[Issue] = []
    has_permissions = _has_any(text, PERMISSION_TERMS)
    has_plans = _has_any(text, PLAN_TERMS)
    if has_permissions:
        score += 1
    if has_plans:
        score += 1
    if not has_permissions and not has_plans:
        score -= 1
        issues.append(
            Issue(
                severity=Severity.INFO,
                message="No explicit permissions or plan requirements detected",
                fix="Call out required roles, permissions, or plan editions if applicable",
            )
        )
    return CriterionResult("EST-PP", clamp_score(score), issues, KEYWORD_DETAILS)


def estimate_self_contained(metrics: Metrics) -> CriterionResult:
    score = BASE_SCORE
    issues: List[Issue] = []
    if metrics.links.external > metrics.links.internal:
        score -= 1
        issues.append(
            Issue(
                severity=Severity.INFO,
                message="Relies heavily on external links for context",
                fix="Ensure critical context is included in the page",
            )
        )
    if metrics.content.word_count < MIN_CONTEXT_WORDS:
        score -= 1
        issues.append(
            Issue(
                severity=Severity.INFO,
                message="Low word count may indicate insufficient context",
                fix="Add more context so the page can stand alone",
            )
        )
    if metrics.headings.count == 0:
        score -= 1
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message="No headings detected to anchor context",
                fix="Add headings to clarify context and structure",
            )
        )
    return CriterionResult("EST-SC", clamp_score(score), issues, STRUCTURE_DETAILS)


class HeuristicEstimator:
    """Semantic scorer used when no API key is configured or the remote call fails."""

    estimated = True

    async def evaluate(self, content: NormalizedContent, metrics: Metrics, analysis_text: str = "") -> SemanticResult:
        return self.estimate(content, metrics)

    def estimate(self, content: NormalizedContent, metrics: Metrics) -> SemanticResult:
        text = (content.text.full_text or "").lower()
        scores = {
            "EST-OR": estimate_outcomes(text),
            "EST-PP": estimate_permissions(text),
            "EST-SC": estimate_self_contained(metrics),
        }
        logger.debug("Heuristic estimate computed", url=content.meta.url, scores={k: v.score for k, v in scores.items()})
        return SemanticResult(scores=scores, estimated=True)
