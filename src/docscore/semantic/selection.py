"""Choice between the remote scorer and the offline estimator."""

from __future__ import annotations

import structlog

from docscore.config import SemanticConfig
from docscore.semantic.base import SemanticEvaluator
from docscore.semantic.estimator import HeuristicEstimator
from docscore.semantic.remote import RemoteSemanticEvaluator

logger = structlog.get_logger(__name__)


def select_evaluator(config: SemanticConfig) -> SemanticEvaluator:
    """An API key selects the remote scorer; otherwise every run is estimated."""
    if config.has_credentials:
        logger.debug("Using remote semantic scorer", model=config.model)
        return RemoteSemanticEvaluator(config)
    logger.debug("No API key configured; using heuristic estimator")
    return HeuristicEstimator()
