"""
Unit tests for report exporters and export file naming.
"""

import asyncio
import json

import pytest

from docscore.config import Config
from docscore.export import (
    CsvExporter,
    JsonExporter,
    MarkdownExporter,
    batch_filename,
    export_report,
    get_exporter,
    report_filename,
)
from docscore.protocols import (
    CategoryResult,
    CriterionResult,
    Issue,
    ReportMeta,
    ReportStatus,
    ScoreReport,
    Severity,
)
from docscore.scorer import ESTIMATED_MESSAGE, Scorer


@pytest.fixture
def report() -> ScoreReport:
    long_paragraph = Issue(
        Severity.CRITICAL,
        "Paragraph 1 has 210 words (threshold: 150)",
        fix="Consider breaking this paragraph into bullet points or shorter sections",
        location="Paragraph 1",
        excerpt="alpha alpha alpha...",
    )
    info = Issue(Severity.INFO, "1 sentences have multiple clauses", fix="Reduce clause density for better readability")
    structure = CategoryResult(
        key="content-structure",
        id="CAT-01",
        name="Content Structure",
        score=7.5,
        weight=0.3,
        criteria={
            "CS-01": CriterionResult(
                "CS-01",
                7,
                [long_paragraph, info],
                "1 of 10 paragraphs exceed 150 words. Average length: 39 words. Avg sentence length: 39 words.",
            ),
            "CS-07": CriterionResult("CS-07", 10, [], "No links found"),
        },
        issues=[long_paragraph, info],
    )
    self_contained = CategoryResult(
        key="self-contained",
        id="CAT-09",
        name="Self-Contained Context",
        score=5,
        weight=0.05,
        estimated=True,
        message=ESTIMATED_MESSAGE,
    )
    tagged = [issue.with_category("Content Structure", "content-structure") for issue in (long_paragraph, info)]
    return ScoreReport(
        meta=ReportMeta(
            url="https://help.example.com/wall",
            title="Wall of Text",
            scored_at="2024-05-01T10:00:00+00:00",
            mode="full",
            semantic_error="Rate limit exceeded. Please wait and try again.",
        ),
        categories={"content-structure": structure, "self-contained": self_contained},
        composite_score=7.5,
        status=ReportStatus.GREEN,
        all_issues=tagged,
        top_issues=tagged[:1],
        summary="This documentation scores well for AI-friendliness (7.5/10).",
    )


class TestMarkdownExporter:
    def test_header_and_summary(self, report):
        text = MarkdownExporter().render(report)

        assert text.startswith("# AI-Friendliness Score Report\n")
        assert "**Page:** Wall of Text" in text
        assert "**Mode:** Full Analysis (Rules + AI)" in text
        assert "| **Composite Score** | 7.5/10 (Good) |" in text
        assert "| **Status** | Good |" in text
        assert "> Semantic analysis unavailable: Rate limit exceeded. Please wait and try again." in text

    def test_breakdown_orders_by_weight_and_marks_estimates(self, report):
        text = MarkdownExporter().render(report)

        structure_row = "| Content Structure | 7.5/10 | 30% | (Good) |"
        estimated_row = "| Self-Contained Context | N/A | 5% | - |"
        assert structure_row in text
        assert estimated_row in text
        assert text.index(structure_row) < text.index(estimated_row)

    def test_top_issue_block(self, report):
        text = MarkdownExporter().render(report)

        assert "### 1. Paragraph 1 has 210 words (threshold: 150)" in text
        assert "- **Category:** Content Structure" in text
        assert "- **Severity:** Critical" in text
        assert "- **Location:** Paragraph 1" in text
        assert "  > alpha alpha alpha..." in text

    def test_category_detail(self, report):
        text = MarkdownExporter().render(report)

        assert "**Score:** 7.5/10 (Good)" in text
        assert "| CS-01 | 7/10 | 1 of 10 paragraphs exceed 150 words. Average length: 39 word... |" in text
        assert "| CS-07 | 10/10 | No links found |" in text
        assert "- [!] Paragraph 1 has 210 words (threshold: 150)" in text
        assert "- [i] 1 sentences have multiple clauses" not in text
        assert f"*{ESTIMATED_MESSAGE}*" in text

    def test_full_issue_list_only_for_long_reports(self, report):
        assert "## All Issues" not in MarkdownExporter().render(report)

        report.all_issues = report.all_issues * 3
        text = MarkdownExporter().render(report)
        assert "<summary>Click to expand all issues (6 total)</summary>" in text

    def test_footer(self, report):
        assert MarkdownExporter().render(report).rstrip().endswith("*Generated by AI Help Doc Scoring Tool*")


class TestCsvExporter:
    def test_rows(self, report):
        lines = CsvExporter().render(report).splitlines()

        assert lines == [
            "Category,Score,Weight,Status",
            "Content Structure,7.5,30%,Good",
            "Self-Contained Context,,5%,N/A",
            "Composite Score,7.5,100%,Good",
        ]

    def test_status_respects_thresholds(self, report):
        config = Config(scoring={"green_threshold": 8.0}).scoring
        lines = CsvExporter(config).render(report).splitlines()
        assert lines[1] == "Content Structure,7.5,30%,Needs Work"


class TestJsonExporter:
    def test_round_trip(self, report):
        data = json.loads(JsonExporter().render(report))

        assert data["composite_score"] == 7.5
        assert data["status"] == "green"
        assert data["categories"]["self-contained"]["estimated"] is True
        assert ScoreReport.from_dict(data) == report

    def test_scored_report_serializes(self, sample_page):
        scored = asyncio.run(Scorer(Config()).score(sample_page))
        data = json.loads(JsonExporter().render(scored))
        assert data["meta"]["mode"] == "rule-only"


class TestFactoryAndFiles:
    @pytest.mark.parametrize(
        "name,cls", [("markdown", MarkdownExporter), ("md", MarkdownExporter), ("json", JsonExporter), ("csv", CsvExporter)]
    )
    def test_get_exporter(self, name, cls):
        assert isinstance(get_exporter(name), cls)

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown exporter format"):
            get_exporter("pdf")

    @pytest.mark.parametrize(
        "fmt,expected",
        [
            ("markdown", "wall_of_text_score_report.md"),
            ("json", "wall_of_text_score_data.json"),
            ("csv", "wall_of_text_score_data.csv"),
        ],
    )
    def test_report_filename(self, fmt, expected):
        assert report_filename("Wall of Text", fmt) == expected

    def test_batch_filename(self):
        assert batch_filename("2024-05-01") == "batch_score_report_2024-05-01.md"
        assert batch_filename("2024-05-01", "json") == "batch_score_data_2024-05-01.json"
        with pytest.raises(ValueError):
            batch_filename("2024-05-01", "csv")

    def test_export_into_directory(self, report, tmp_path):
        path = export_report(report, "csv", tmp_path)

        assert path == tmp_path / "wall_of_text_score_data.csv"
        assert path.read_text(encoding="utf-8").startswith("Category,Score,Weight,Status")

    def test_export_to_file(self, report, tmp_path):
        target = tmp_path / "out" / "report.md"
        assert export_report(report, "markdown", target) == target
        assert target.read_text(encoding="utf-8").startswith("# AI-Friendliness Score Report")
