"""Tests for the core data contracts."""

import json

import pytest
from hypothesis import given
from hypothesis import strategies as st

from docscore.protocols import (
    CategoryResult,
    CriterionResult,
    Issue,
    ReportMeta,
    ReportStatus,
    ScoreReport,
    Severity,
    clamp_score,
    severity_rank,
    sort_issues,
)


class TestSeverity:
    def test_total_order(self):
        assert Severity.CRITICAL < Severity.WARNING < Severity.INFO
        assert sorted([Severity.INFO, Severity.CRITICAL, Severity.WARNING]) == [
            Severity.CRITICAL,
            Severity.WARNING,
            Severity.INFO,
        ]

    def test_parse_accepts_strings_and_keeps_unknown(self):
        assert Severity.parse("Critical") is Severity.CRITICAL
        assert Severity.parse(Severity.INFO) is Severity.INFO
        assert Severity.parse("notice") == "notice"

    def test_unknown_severity_sorts_last(self):
        assert severity_rank("notice") > severity_rank(Severity.INFO)

    @pytest.mark.parametrize(
        "score,expected",
        [(0, Severity.CRITICAL), (3.9, Severity.CRITICAL), (4, Severity.WARNING), (6.9, Severity.WARNING), (7, Severity.INFO)],
    )
    def test_from_score_boundaries(self, score, expected):
        assert Severity.from_score(score) is expected


@pytest.mark.parametrize(
    "score,expected",
    [(7.0, ReportStatus.GREEN), (6.99, ReportStatus.YELLOW), (4.0, ReportStatus.YELLOW), (3.99, ReportStatus.RED)],
)
def test_status_thresholds(score, expected):
    assert ReportStatus.from_score(score) is expected


def test_sort_issues_is_stable_within_severity():
    issues = [
        Issue(Severity.INFO, "i1"),
        Issue(Severity.WARNING, "w1"),
        Issue(Severity.CRITICAL, "c1"),
        Issue(Severity.WARNING, "w2"),
        Issue("notice", "odd"),
        Issue(Severity.CRITICAL, "c2"),
    ]
    assert [issue.message for issue in sort_issues(issues)] == ["c1", "c2", "w1", "w2", "i1", "odd"]


@given(st.lists(st.sampled_from([Severity.CRITICAL, Severity.WARNING, Severity.INFO]), max_size=40))
def test_sorted_issues_never_put_lower_severity_first(severities):
    ordered = sort_issues([Issue(severity, f"issue {i}") for i, severity in enumerate(severities)])
    ranks = [issue.rank for issue in ordered]
    assert ranks == sorted(ranks)


@given(st.floats(allow_nan=True, allow_infinity=True))
def test_clamp_score_always_in_range(value):
    clamped = clamp_score(value)
    assert 0.0 <= clamped <= 10.0


@given(st.floats(allow_nan=False))
def test_criterion_result_clamps_on_construction(value):
    assert 0 <= CriterionResult("X-01", value).score <= 10


def test_issue_to_dict_omits_empty_fields():
    data = Issue(Severity.WARNING, "Too long", fix="Shorten it").to_dict()
    assert data == {"severity": "warning", "message": "Too long", "fix": "Shorten it"}


def test_score_report_round_trips_through_json():
    criterion = CriterionResult(
        "CS-01",
        7,
        [Issue(Severity.CRITICAL, "Paragraph 1 has 210 words (threshold: 150)", location="Paragraph 1")],
        "1 of 10 paragraphs exceed 150 words.",
    )
    category = CategoryResult(
        key="content-structure",
        id="CAT-01",
        name="Content Structure",
        score=7.5,
        weight=0.25,
        criteria={"CS-01": criterion},
        issues=list(criterion.issues),
    )
    estimated = CategoryResult(
        key="self-contained",
        id="CAT-09",
        name="Self-Contained Context",
        score=5,
        weight=0.1,
        estimated=True,
        message="Estimated using heuristic checks (no semantic model)",
    )
    report = ScoreReport(
        meta=ReportMeta(
            url="https://help.example.com/a",
            title="A",
            scored_at="2024-05-01T10:00:00+00:00",
            mode="rule-only",
            content_hash="v1-0123456789abcdef",
            semantic_error="Network error",
            warnings=["truncated"],
        ),
        categories={"content-structure": category, "self-contained": estimated},
        composite_score=7.5,
        status=ReportStatus.GREEN,
        all_issues=[issue.with_category("Content Structure", "content-structure") for issue in criterion.issues],
        top_issues=[issue.with_category("Content Structure", "content-structure") for issue in criterion.issues],
        summary="This documentation scores well for AI-friendliness (7.5/10).",
    )

    restored = ScoreReport.from_dict(json.loads(json.dumps(report.to_dict())))

    assert restored == report
    assert restored.to_dict() == report.to_dict()
