"""
Aggregation engine.

One ``Scorer.score()`` call takes a page from raw extractor output to a
finished ``ScoreReport``:

    init -> rules-running -> semantic-or-estimate -> section-rollup
         -> compute-composite -> collect-issues -> done

Only ``ContentValidationError`` escapes. Every semantic failure degrades to
the heuristic estimator and is recorded in ``report.meta.semantic_error``.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import structlog

from docscore.cache import ContentHashCache, ReportHistory, content_hash, report_cache_key, settings_fingerprint
from docscore.config import DEFAULT_CATEGORY_WEIGHTS, Config, ScoringConfig
from docscore.observability import increment, observe
from docscore.parser import compute_metrics, compute_section_metrics, normalize, text_for_analysis
from docscore.protocols import (
    CategoryResult,
    CriterionResult,
    Evaluator,
    Issue,
    Metrics,
    NormalizedContent,
    ProgressCallback,
    ProgressEvent,
    ReportMeta,
    ReportStatus,
    ScoreReport,
    ScoringMode,
    SectionScore,
    sort_issues,
)
from docscore.rules import default_evaluators, score_list_usage, score_paragraph_brevity, weighted_category_score
from docscore.semantic import HeuristicEstimator, SemanticEvaluator, SemanticResult, select_evaluator
from docscore.utils import format_score, mean, round1, round_half_up

logger = structlog.get_logger(__name__)

CATEGORY_WEIGHTS: Dict[str, float] = dict(DEFAULT_CATEGORY_WEIGHTS)

# Categories scored only by the semantic capability: key -> (id, name, criterion ids)
SEMANTIC_CATEGORIES: Dict[str, Tuple[str, str, Tuple[str, ...]]] = {
    "outcomes-reversibility": ("CAT-03", "Outcomes & Reversibility", ("OR-01", "OR-02", "OR-03", "OR-04")),
    "self-contained": ("CAT-09", "Self-Contained Context", ("GAP-03", "GAP-04")),
    "permissions-plans": ("CAT-04", "Permissions & Plans", ("PP-01", "PP-02", "PP-03", "PP-04")),
}

# Estimator criterion -> the category it stands in for
ESTIMATED_CRITERIA: Dict[str, str] = {
    "EST-OR": "outcomes-reversibility",
    "EST-SC": "self-contained",
    "EST-PP": "permissions-plans",
}

CONTENT_STRUCTURE_SEMANTIC = ("CS-03", "CS-05")
ESTIMATED_MESSAGE = "Estimated using heuristic checks (no semantic model)"


# ---------------------------------------------------------------------------
# Stateless helpers
# ---------------------------------------------------------------------------


def average_scores(criteria: Mapping[str, CriterionResult]) -> Optional[float]:
    """Unweighted mean of criterion scores to 1 decimal, or None when there are none."""
    value = mean(result.score for result in criteria.values())
    return None if value is None else round1(value)


def calculate_composite_score(categories: Mapping[str, CategoryResult]) -> float:
    """
    Weighted mean over categories that have a real score.

    Estimated and null-scored categories are left out and the remaining
    weights are renormalized, so a missing category never drags the
    composite toward zero.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for key, category in categories.items():
        if category.score is None or category.estimated:
            continue
        weight = category.weight or CATEGORY_WEIGHTS.get(key, 0.0)
        weighted_sum += category.score * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0
    return round1(weighted_sum / total_weight)


def collect_all_issues(categories: Mapping[str, CategoryResult]) -> List[Issue]:
    """Flatten category issues, tag each with its category, and stable-sort by severity."""
    issues = [
        issue.with_category(category.name, key) for key, category in categories.items() for issue in category.issues
    ]
    return sort_issues(issues)


def top_issues(issues: Sequence[Issue], count: int = 5) -> List[Issue]:
    return list(issues[:count])


def generate_summary(composite: float, status: ReportStatus, categories: Mapping[str, CategoryResult]) -> str:
    score = format_score(composite)
    if status is ReportStatus.GREEN:
        summary = f"This documentation scores well for AI-friendliness ({score}/10). "
    elif status is ReportStatus.YELLOW:
        summary = f"This documentation needs improvement for AI-friendliness ({score}/10). "
    else:
        summary = f"This documentation has significant AI-friendliness issues ({score}/10). "

    ranked = sorted((c for c in categories.values() if c.score is not None), key=lambda c: c.score)
    if ranked:
        weakest, strongest = ranked[0], ranked[-1]
        if weakest.score < 6:
            summary += f"Weakest area: {weakest.name} ({format_score(weakest.score)}/10). "
        if strongest.score >= 7:
            summary += f"Strongest area: {strongest.name} ({format_score(strongest.score)}/10)."
    return summary.strip()


def score_sections(content: NormalizedContent, config: ScoringConfig) -> List[SectionScore]:
    """Per-section brevity and list-usage scores, each section averaged to 1 decimal."""
    sections = []
    for section in content.sections:
        metrics = compute_section_metrics(section, config)
        brevity = score_paragraph_brevity(metrics, config)
        list_usage = score_list_usage(metrics, config)
        sections.append(
            SectionScore(
                title=section.title,
                level=section.level,
                score=round1((brevity.score + list_usage.score) / 2),
                criteria={"CS-01": brevity, "CS-02": list_usage},
                issues=brevity.issues + list_usage.issues,
                word_count=section.word_count,
            )
        )
    return sections


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class Scorer:
    """
    Orchestrates rule evaluators, the semantic pass and aggregation for one page at a time.

    The config snapshot is read once at the start of each run, so a hot
    reload between runs changes weights and thresholds but never affects a
    run already in flight.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        cache: Optional[ContentHashCache] = None,
        semantic: Optional[SemanticEvaluator] = None,
        history: Optional[ReportHistory] = None,
        evaluators: Optional[Iterable[Evaluator]] = None,
    ) -> None:
        self.config = config or Config()
        self.cache = cache
        self.semantic = semantic if semantic is not None else select_evaluator(self.config.semantic)
        self.history = history
        self.evaluators: List[Evaluator] = list(evaluators) if evaluators is not None else default_evaluators()
        self._estimator = HeuristicEstimator()

    @property
    def mode(self) -> ScoringMode:
        return ScoringMode.RULE_ONLY if getattr(self.semantic, "estimated", False) else ScoringMode.FULL

    async def score(
        self,
        raw_or_content: Any,
        on_progress: Optional[ProgressCallback] = None,
        use_report_cache: bool = True,
    ) -> ScoreReport:
        """
        Score one page.

        Raises:
            ContentValidationError: If the input lacks a URL, structure, or text.
        """
        run_id = uuid.uuid4().hex[:12]
        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(run_id=run_id):
            content = normalize(raw_or_content)
            scoring = self.config.scoring
            mode = self.mode
            emit = _progress_emitter(on_progress)

            emit("init", "Preparing content...", 0)
            metrics = compute_metrics(content, scoring)
            analysis_text = text_for_analysis(content)
            digest = content_hash(analysis_text)

            report_key = report_cache_key(digest, mode.value, settings_fingerprint(scoring.model_dump(mode="json")))
            if use_report_cache and self._report_cache_enabled:
                cached = self._cached_report(report_key, content)
                if cached is not None:
                    if self.history is not None:
                        self.history.record(cached)
                    emit("complete", "Scoring complete (cached)", 100)
                    return cached

            emit("rules", "Running rule-based analysis...", 10)
            categories = await self._run_rules(metrics, content, scoring, emit)

            emit("semantic", "Running semantic analysis...", 55)
            result, error, cache_meta = await self._run_semantic(content, metrics, analysis_text, digest)
            emit("semantic", "Processing semantic results...", 80)
            if result.estimated:
                self._add_estimated_scores(categories, result, scoring)
            else:
                self._add_semantic_scores(categories, result, scoring)

            sections = self._add_section_scores(categories, content, scoring)

            emit("compute", "Calculating final scores...", 90)
            composite = calculate_composite_score(categories)
            status = ReportStatus.from_score(composite, scoring.green_threshold, scoring.yellow_threshold)
            all_issues = collect_all_issues(categories)

            report = ScoreReport(
                meta=ReportMeta(
                    url=content.meta.url,
                    title=content.meta.title,
                    scored_at=datetime.now(timezone.utc).isoformat(),
                    mode=mode.value,
                    content_hash=digest,
                    semantic_error=error,
                    semantic_cache=cache_meta,
                    report_cache="miss" if self._report_cache_enabled else None,
                    warnings=list(content.meta.extraction_warnings),
                ),
                categories=categories,
                composite_score=composite,
                status=status,
                all_issues=all_issues,
                top_issues=top_issues(all_issues, scoring.top_issue_count),
                summary=generate_summary(composite, status, categories),
                semantic_summary=None if result.estimated else result.summary,
                semantic_top_issues=[] if result.estimated else list(result.top_issues),
                sections=sections,
            )

            if self._report_cache_enabled and error is None:
                self.cache.set(report_key, {"results": report.to_dict()})
            if self.history is not None:
                self.history.record(report)

            emit("complete", "Scoring complete", 100)
            elapsed = time.perf_counter() - started
            increment("scoring_runs", labels={"mode": mode.value})
            observe("scoring_duration_seconds", elapsed)
            observe("composite_score", composite)
            logger.info(
                "Scoring complete",
                url=content.meta.url,
                mode=mode.value,
                composite=composite,
                status=status.value,
                semantic_error=error,
                duration_seconds=round(elapsed, 3),
            )
            return report

    # -- pipeline stages ---------------------------------------------------

    @property
    def _report_cache_enabled(self) -> bool:
        return self.cache is not None and self.config.cache.report_cache_enabled

    def _cached_report(self, key: str, content: NormalizedContent) -> Optional[ScoreReport]:
        entry = self.cache.get(key)
        if entry is None or "results" not in entry:
            return None
        try:
            report = ScoreReport.from_dict(entry["results"])
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable cached report", key=key, error=str(e))
            self.cache.evict(key)
            return None
        report.meta.url = content.meta.url
        report.meta.report_cache = "hit"
        logger.info("Reusing cached report", url=content.meta.url, key=key)
        return report

    async def _run_rules(
        self, metrics: Metrics, content: NormalizedContent, scoring: ScoringConfig, emit
    ) -> Dict[str, CategoryResult]:
        emit("rules", "Analyzing terminology...", 25)
        emit("rules", "Checking text vs visuals...", 40)
        results = await asyncio.gather(
            *(asyncio.to_thread(evaluator.evaluate, metrics, content, scoring) for evaluator in self.evaluators)
        )
        return {result.key: result for result in results}

    async def _run_semantic(
        self,
        content: NormalizedContent,
        metrics: Metrics,
        analysis_text: str,
        digest: str,
    ) -> Tuple[SemanticResult, Optional[str], Optional[Dict[str, Any]]]:
        if getattr(self.semantic, "estimated", False):
            return await self.semantic.evaluate(content, metrics, analysis_text), None, None

        if self.cache is not None:
            cached = self.cache.get(digest)
            if cached is not None:
                result = self._cached_semantic(digest, cached)
                if result is not None:
                    increment("semantic_requests", labels={"outcome": "cache_hit"})
                    return result, None, {"status": "hit", "key": digest, "saved_at": cached.get("saved_at")}

        try:
            result = await self.semantic.evaluate(content, metrics, analysis_text)
        except Exception as e:
            # Any semantic failure degrades to the estimator; only input validation may abort a run.
            logger.warning(
                "Semantic scoring failed; falling back to estimates",
                url=content.meta.url,
                error_type=type(e).__name__,
                error=str(e),
            )
            estimate = await self._estimator.evaluate(content, metrics, analysis_text)
            return estimate, str(e) or type(e).__name__, None

        if self.cache is not None:
            self.cache.set(digest, {"raw": result.raw, "transformed": result.to_dict()})
        return result, None, {"status": "miss", "key": digest}

    def _cached_semantic(self, key: str, entry: Dict[str, Any]) -> Optional[SemanticResult]:
        try:
            return SemanticResult.from_dict(entry["transformed"], raw=entry.get("raw"))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable cached semantic result", key=key, error=str(e))
            self.cache.evict(key)
            return None

    def _add_semantic_scores(
        self, categories: Dict[str, CategoryResult], result: SemanticResult, scoring: ScoringConfig
    ) -> None:
        scores = result.scores
        for key, (category_id, name, criterion_ids) in SEMANTIC_CATEGORIES.items():
            criteria = {cid: scores[cid] for cid in criterion_ids if cid in scores}
            categories[key] = CategoryResult(
                key=key,
                id=category_id,
                name=name,
                score=average_scores(criteria),
                weight=scoring.category_weights.get(key, 0.0),
                criteria=criteria,
                issues=[issue for criterion in criteria.values() for issue in criterion.issues],
            )

        structure = categories.get("content-structure")
        if structure is not None:
            added = [scores[cid] for cid in CONTENT_STRUCTURE_SEMANTIC if cid in scores]
            for criterion in added:
                structure.criteria[criterion.criterion_id] = criterion
                structure.issues = sort_issues(structure.issues + criterion.issues)
            if added:
                structure.score = average_scores(structure.criteria)

        terminology = categories.get("terminology")
        conflation = scores.get("AV-02")
        if terminology is not None and conflation is not None:
            existing = terminology.criteria.get("AV-02")
            if existing is not None:
                existing.score = round_half_up((existing.score + conflation.score) / 2)
                existing.issues = existing.issues + conflation.issues
            else:
                terminology.criteria["AV-02"] = conflation
            terminology.issues = sort_issues(terminology.issues + conflation.issues)
            evaluator = next((e for e in self.evaluators if e.key == "terminology"), None)
            if evaluator is not None:
                weights = {
                    cid: scoring.criterion_weight("terminology", cid, default)
                    for cid, default in evaluator.default_weights.items()
                }
                terminology.score = weighted_category_score(terminology.criteria, weights)

    def _add_estimated_scores(
        self, categories: Dict[str, CategoryResult], result: SemanticResult, scoring: ScoringConfig
    ) -> None:
        for criterion_id, key in ESTIMATED_CRITERIA.items():
            criterion = result.scores.get(criterion_id)
            if criterion is None:
                continue
            category_id, name, _ = SEMANTIC_CATEGORIES[key]
            categories[key] = CategoryResult(
                key=key,
                id=category_id,
                name=name,
                score=criterion.score,
                weight=scoring.category_weights.get(key, 0.0),
                criteria={criterion_id: criterion},
                issues=list(criterion.issues),
                estimated=True,
                message=ESTIMATED_MESSAGE,
            )

    def _add_section_scores(
        self, categories: Dict[str, CategoryResult], content: NormalizedContent, scoring: ScoringConfig
    ) -> List[SectionScore]:
        sections = score_sections(content, scoring)
        structure = categories.get("content-structure")
        if not sections or structure is None:
            return sections
        rollup = round1(sum(section.score for section in sections) / len(sections))
        structure.section_scores = sections
        structure.section_rollup = rollup
        if structure.score is not None:
            structure.score = round1((structure.score + rollup) / 2)
        logger.debug("Section rollup applied", sections=len(sections), rollup=rollup)
        return sections


def _progress_emitter(callback: Optional[ProgressCallback]):
    def emit(step: str, message: str, percent: int) -> None:
        logger.debug("Progress", step=step, percent=percent, message=message)
        if callback is None:
            return
        try:
            callback(ProgressEvent(step=step, message=message, percent=percent))
        except Exception as e:
            # Progress is advisory; a broken listener must not abort scoring.
            logger.warning("Progress callback failed", step=step, error=str(e))

    return emit
