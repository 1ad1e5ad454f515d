"""
Tests for the Prometheus metric helpers and structlog configuration.
"""

import logging

import pytest
import structlog

from docscore.config import MonitoringConfig
from docscore.observability import METRICS, configure_logging, export_prometheus, increment, observe
from docscore.observability.metrics import Counter
from tests.helpers import counter_value, histogram_observes, metric_delta


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_increment_with_labels():
    with metric_delta(METRICS["semantic_requests"], expected_delta=2, labels={"outcome": "success"}):
        increment("semantic_requests", labels={"outcome": "success"})
        increment("semantic_requests", labels={"outcome": "success"})


def test_observe_histogram():
    with histogram_observes(METRICS["scoring_duration_seconds"], expected_count=1):
        observe("scoring_duration_seconds", 0.25)


def test_unknown_metric_is_ignored():
    increment("no_such_metric")
    observe("no_such_metric", 1.0)


def test_wrong_labels_never_raise():
    before = counter_value(METRICS["scoring_runs"], {"mode": "full"})
    increment("scoring_runs", labels={"unexpected": "x"})
    assert counter_value(METRICS["scoring_runs"], {"mode": "full"}) == before


def test_duplicate_registration_reuses_collector():
    again = Counter("docscore_scoring_runs_total", "Total number of completed scoring runs", ["mode"])
    assert again is METRICS["scoring_runs"]


def test_prometheus_export_lists_metrics():
    text = export_prometheus()
    assert "docscore_scoring_runs_total" in text
    assert "docscore_composite_score_bucket" in text


def test_file_logging_writes_json(tmp_path, restore_logging):
    log_file = tmp_path / "logs" / "docscore.log"
    configure_logging(MonitoringConfig(log_level="DEBUG", log_file=str(log_file)))

    with structlog.contextvars.bound_contextvars(run_id="abc123"):
        structlog.get_logger("docscore.test").info("Scoring complete", composite=7.5)
    for handler in logging.getLogger().handlers:
        handler.flush()

    line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert '"event": "Scoring complete"' in line
    assert '"run_id": "abc123"' in line
    assert '"composite": 7.5' in line
