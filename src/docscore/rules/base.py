"""
Shared plumbing for rule-based category evaluators.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Mapping

import structlog

from docscore.config import ScoringConfig
from docscore.protocols import CategoryResult, CriterionResult, Issue, Metrics, NormalizedContent, sort_issues
from docscore.utils import round1

logger = structlog.get_logger(__name__)

CriterionFn = Callable[[Metrics, NormalizedContent, ScoringConfig], CriterionResult]


def weighted_category_score(criteria: Mapping[str, CriterionResult], weights: Mapping[str, float]) -> float:
    """Weighted mean of criterion scores, renormalized over the criteria present, to 1 decimal."""
    total_weight = 0.0
    weighted_sum = 0.0
    for criterion_id, result in criteria.items():
        weight = weights.get(criterion_id, 0.0)
        weighted_sum += result.score * weight
        total_weight += weight
    if total_weight <= 0:
        return 0.0
    return round1(weighted_sum / total_weight)


def collect_criterion_issues(criteria: Mapping[str, CriterionResult]) -> List[Issue]:
    issues: List[Issue] = []
    for result in criteria.values():
        issues.extend(result.issues)
    return sort_issues(issues)


class RuleEvaluator:
    """
    Base class for the three rule evaluators.

    Subclasses declare their category identity, the criterion functions they
    run, and the fallback weights used when the config leaves a weight unset.
    """

    key: str = ""
    category_id: str = ""
    name: str = ""
    default_weights: Dict[str, float] = {}

    def criteria_functions(self) -> Dict[str, CriterionFn]:
        raise NotImplementedError

    def evaluate(self, metrics: Metrics, content: NormalizedContent, config: ScoringConfig) -> CategoryResult:
        criteria = {
            criterion_id: scorer(metrics, content, config)
            for criterion_id, scorer in self.criteria_functions().items()
        }
        weights = {
            criterion_id: config.criterion_weight(self.key, criterion_id, default)
            for criterion_id, default in self.default_weights.items()
        }
        score = weighted_category_score(criteria, weights)
        logger.debug("Category evaluated", category=self.key, score=score)
        return CategoryResult(
            key=self.key,
            id=self.category_id,
            name=self.name,
            score=score,
            weight=config.category_weights.get(self.key, 0.0),
            criteria=criteria,
            issues=collect_criterion_issues(criteria),
        )
