"""Report exporters (Markdown, JSON, CSV)."""

from .exporter import (
    BaseExporter,
    CsvExporter,
    JsonExporter,
    MarkdownExporter,
    batch_filename,
    export_report,
    get_exporter,
    report_filename,
)
from .markdown import render_report_markdown

__all__ = [
    "BaseExporter",
    "CsvExporter",
    "JsonExporter",
    "MarkdownExporter",
    "batch_filename",
    "export_report",
    "get_exporter",
    "render_report_markdown",
    "report_filename",
]
