"""Semantic criteria: remote model scoring and the offline estimator."""

from .base import DEFAULT_FIX, SemanticEvaluator, SemanticResult, parse_semantic_payload, transform_scores
from .estimator import HeuristicEstimator
from .prompts import SEMANTIC_CRITERIA, SEMANTIC_CRITERION_IDS, SYSTEM_PROMPT, build_user_prompt
from .remote import RemoteSemanticEvaluator
from .selection import select_evaluator

__all__ = [
    "DEFAULT_FIX",
    "HeuristicEstimator",
    "RemoteSemanticEvaluator",
    "SEMANTIC_CRITERIA",
    "SEMANTIC_CRITERION_IDS",
    "SYSTEM_PROMPT",
    "SemanticEvaluator",
    "SemanticResult",
    "build_user_prompt",
    "parse_semantic_payload",
    "select_evaluator",
    "transform_scores",
]
