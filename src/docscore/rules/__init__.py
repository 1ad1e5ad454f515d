"""Rule-based category evaluators."""

from .base import RuleEvaluator, weighted_category_score
from .content_structure import (
    ContentStructureEvaluator,
    score_heading_hierarchy,
    score_link_integrity,
    score_list_usage,
    score_paragraph_brevity,
)
from .terminology import TerminologyEvaluator, detect_confusable_terms, score_term_consistency
from .text_over_visuals import (
    TextOverVisualsEvaluator,
    score_alt_text_coverage,
    score_text_first,
    score_visual_ratio,
)


def default_evaluators() -> list:
    """The rule evaluators run on every page, in report order."""
    return [ContentStructureEvaluator(), TerminologyEvaluator(), TextOverVisualsEvaluator()]


__all__ = [
    "ContentStructureEvaluator",
    "RuleEvaluator",
    "TerminologyEvaluator",
    "TextOverVisualsEvaluator",
    "default_evaluators",
    "detect_confusable_terms",
    "score_alt_text_coverage",
    "score_heading_hierarchy",
    "score_link_integrity",
    "score_list_usage",
    "score_paragraph_brevity",
    "score_term_consistency",
    "score_text_first",
    "score_visual_ratio",
    "weighted_category_score",
]
