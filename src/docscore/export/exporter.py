"""
Handles exporting score reports to various formats.
"""

from __future__ import annotations

import csv
import io
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import structlog

from docscore.config import ScoringConfig
from docscore.export.markdown import STATUS_LABELS, render_report_markdown, weight_percent
from docscore.protocols import ReportStatus, ScoreReport
from docscore.utils import atomic_write_text, report_slug

logger = structlog.get_logger(__name__)

FILENAME_SUFFIXES = {
    "markdown": "score_report.md",
    "json": "score_data.json",
    "csv": "score_data.csv",
}


class BaseExporter(ABC):
    """Abstract base class for all report exporters."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    @abstractmethod
    def render(self, report: ScoreReport) -> str:
        """Renders the report as a string."""

    def export(self, report: ScoreReport, output_path: Path) -> Path:
        """Renders the report and writes it atomically to ``output_path``."""
        output_path = Path(output_path)
        logger.info("Exporting report", format=type(self).__name__, path=str(output_path))
        atomic_write_text(output_path, self.render(report))
        return output_path

    def status_for(self, score: float) -> ReportStatus:
        return ReportStatus.from_score(score, self.config.green_threshold, self.config.yellow_threshold)


class JsonExporter(BaseExporter):
    """Verbatim JSON serialization; ``ScoreReport.from_dict`` reads it back."""

    def render(self, report: ScoreReport) -> str:
        return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


class MarkdownExporter(BaseExporter):
    """Human-readable report: summary, breakdown, top issues and per-category detail."""

    def render(self, report: ScoreReport) -> str:
        return render_report_markdown(report, self.config)


class CsvExporter(BaseExporter):
    """One row per category plus a closing composite row."""

    def render(self, report: ScoreReport) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Category", "Score", "Weight", "Status"])
        for category in report.categories.values():
            if category.estimated or category.score is None:
                writer.writerow([category.name, "", weight_percent(category.weight), "N/A"])
                continue
            status = STATUS_LABELS[self.status_for(category.score)]
            writer.writerow([category.name, category.score, weight_percent(category.weight), status])
        writer.writerow(["Composite Score", report.composite_score, "100%", STATUS_LABELS[report.status]])
        return buffer.getvalue()


def get_exporter(format_name: str, config: Optional[ScoringConfig] = None) -> BaseExporter:
    """Factory function to get the appropriate exporter."""
    if format_name in ("markdown", "md"):
        return MarkdownExporter(config)
    elif format_name == "json":
        return JsonExporter(config)
    elif format_name == "csv":
        return CsvExporter(config)
    else:
        raise ValueError(f"Unknown exporter format: {format_name}")


def report_filename(title: Optional[str], format_name: str = "markdown") -> str:
    """File name for an exported report, e.g. ``delete_a_record_score_report.md``."""
    if format_name == "md":
        format_name = "markdown"
    try:
        suffix = FILENAME_SUFFIXES[format_name]
    except KeyError:
        raise ValueError(f"Unknown exporter format: {format_name}") from None
    return f"{report_slug(title)}_{suffix}"


def batch_filename(date: str, format_name: str = "markdown") -> str:
    """File name for a batch export, e.g. ``batch_score_report_2024-05-01.md``."""
    if format_name in ("markdown", "md"):
        return f"batch_score_report_{date}.md"
    if format_name == "json":
        return f"batch_score_data_{date}.json"
    raise ValueError(f"Unknown batch export format: {format_name}")


def export_report(
    report: ScoreReport,
    format_name: str,
    output_path: Path,
    config: Optional[ScoringConfig] = None,
) -> Path:
    """
    Write ``report`` in ``format_name``. A directory ``output_path`` receives
    a file named after the page title.
    """
    output_path = Path(output_path)
    if output_path.is_dir():
        output_path = output_path / report_filename(report.meta.title, format_name)
    return get_exporter(format_name, config).export(report, output_path)
