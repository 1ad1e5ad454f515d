"""
Defines Prometheus metrics for scoring runs.

Metrics are advisory: recording helpers never raise into the scoring path.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram
from prometheus_client import generate_latest

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Test suites import this module repeatedly; registering a collector twice
# raises ValueError, so an existing collector is reused instead.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race; fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "scoring_runs": Counter(
            "docscore_scoring_runs_total",
            "Total number of completed scoring runs",
            ["mode"],
        ),
        "scoring_duration_seconds": Histogram(
            "docscore_scoring_duration_seconds",
            "Wall-clock time of one scoring run",
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0],
        ),
        "semantic_requests": Counter(
            "docscore_semantic_requests_total",
            "Semantic capability requests by outcome",
            ["outcome"],
        ),
        "cache_operations": Counter(
            "docscore_cache_operations_total",
            "Cache lookups by cache namespace and result",
            ["cache", "result"],
        ),
        "composite_score": Histogram(
            "docscore_composite_score",
            "Distribution of composite AI-friendliness scores",
            buckets=[1, 2, 3, 4, 5, 6, 7, 8, 9, 10],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


def increment(name: str, value: float = 1.0, labels: Optional[Dict[str, Any]] = None) -> None:
    """Increment a counter metric."""
    metric = METRICS.get(name)
    if metric is None:
        return
    try:
        if labels is not None:
            metric.labels(**labels).inc(value)
        else:
            metric.inc(value)
    except (ValueError, TypeError) as e:
        logger.debug("Failed to record metric", metric=name, error=str(e))


def observe(name: str, value: float, labels: Optional[Dict[str, Any]] = None) -> None:
    """Observe a histogram metric."""
    metric = METRICS.get(name)
    if metric is None:
        return
    try:
        if labels is not None:
            metric.labels(**labels).observe(value)
        else:
            metric.observe(value)
    except (ValueError, TypeError) as e:
        logger.debug("Failed to record metric", metric=name, error=str(e))


def export_prometheus() -> str:
    """Export metrics in Prometheus text format."""
    return generate_latest().decode("utf-8")
