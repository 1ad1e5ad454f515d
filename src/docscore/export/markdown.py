"""Markdown rendering for single-page score reports."""

from __future__ import annotations

from typing import List, Optional, Union

from docscore.config import ScoringConfig
from docscore.protocols import CategoryResult, Issue, ReportStatus, ScoreReport, ScoringMode, Severity
from docscore.utils import format_score, round_half_up

STATUS_LABELS = {
    ReportStatus.GREEN: "Good",
    ReportStatus.YELLOW: "Needs Work",
    ReportStatus.RED: "Critical",
}

STATUS_EMOJI = {
    ReportStatus.GREEN: "(Good)",
    ReportStatus.YELLOW: "(Warning)",
    ReportStatus.RED: "(Critical)",
}

SEVERITY_LABELS = {
    Severity.CRITICAL: "Critical",
    Severity.WARNING: "Warning",
    Severity.INFO: "Info",
}

SEVERITY_ICONS = {
    Severity.CRITICAL: "[!]",
    Severity.WARNING: "[~]",
    Severity.INFO: "[i]",
}

MODE_LABELS = {
    ScoringMode.FULL.value: "Full Analysis (Rules + AI)",
    ScoringMode.RULE_ONLY.value: "Rule-Based Only",
}

DETAILS_PREVIEW_LENGTH = 60
FULL_ISSUE_LIST_THRESHOLD = 5
FOOTER = "*Generated by AI Help Doc Scoring Tool*"


def weight_percent(weight: float) -> str:
    return f"{int(round_half_up(weight * 100))}%"


def severity_label(severity: Union[Severity, str]) -> str:
    parsed = Severity.parse(severity)
    if isinstance(parsed, Severity):
        return SEVERITY_LABELS[parsed]
    return str(parsed).capitalize()


def severity_icon(severity: Union[Severity, str]) -> str:
    parsed = Severity.parse(severity)
    if isinstance(parsed, Severity):
        return SEVERITY_ICONS[parsed]
    return "[-]"


def _preview(details: Optional[str]) -> str:
    if not details:
        return "-"
    if len(details) > DETAILS_PREVIEW_LENGTH:
        return details[:DETAILS_PREVIEW_LENGTH] + "..."
    return details


def _status(score: float, config: ScoringConfig) -> ReportStatus:
    return ReportStatus.from_score(score, config.green_threshold, config.yellow_threshold)


def _unscored(category: CategoryResult) -> bool:
    return category.estimated or category.score is None


def _breakdown_rows(report: ScoreReport, config: ScoringConfig) -> List[str]:
    rows = []
    for category in sorted(report.categories.values(), key=lambda c: c.weight, reverse=True):
        if _unscored(category):
            rows.append(f"| {category.name} | N/A | {weight_percent(category.weight)} | - |")
            continue
        status = _status(category.score, config)
        rows.append(
            f"| {category.name} | {format_score(category.score)}/10 | "
            f"{weight_percent(category.weight)} | {STATUS_EMOJI[status]} |"
        )
    return rows


def _issue_block(position: int, issue: Issue) -> List[str]:
    lines = [
        f"### {position}. {issue.message}",
        "",
        f"- **Category:** {issue.category or '-'}",
        f"- **Severity:** {severity_label(issue.severity)}",
    ]
    if issue.location:
        lines.append(f"- **Location:** {issue.location}")
    if issue.details:
        lines.append(f"- **Details:** {issue.details}")
    if issue.fix:
        lines.append(f"- **Suggested Fix:** {issue.fix}")
    if issue.excerpt:
        lines.append("- **Excerpt:**")
        lines.append(f"  > {issue.excerpt}")
    lines.append("")
    return lines


def _category_detail(category: CategoryResult, config: ScoringConfig) -> List[str]:
    lines = [f"### {category.name}", ""]
    if _unscored(category):
        lines.extend([f"*{category.message or 'Not scored'}*", ""])
        return lines

    status = _status(category.score, config)
    lines.extend([f"**Score:** {format_score(category.score)}/10 {STATUS_EMOJI[status]}", ""])

    if category.criteria:
        lines.extend(["#### Criteria Scores", "", "| Criterion | Score | Details |", "|-----------|-------|---------|"])
        for criterion_id, criterion in category.criteria.items():
            lines.append(f"| {criterion_id} | {format_score(criterion.score)}/10 | {_preview(criterion.details)} |")
        lines.append("")

    actionable = [issue for issue in category.issues if Severity.parse(issue.severity) is not Severity.INFO]
    if actionable:
        lines.extend(["#### Issues", ""])
        for issue in actionable:
            lines.append(f"- {severity_icon(issue.severity)} {issue.message}")
            if issue.fix:
                lines.append(f"  - *Fix:* {issue.fix}")
        lines.append("")
    return lines


def render_report_markdown(report: ScoreReport, config: Optional[ScoringConfig] = None) -> str:
    config = config or ScoringConfig()
    meta = report.meta
    lines = [
        "# AI-Friendliness Score Report",
        "",
        f"**Page:** {meta.title or 'Untitled'}",
        f"**URL:** {meta.url}",
        f"**Scored:** {meta.scored_at}",
        f"**Mode:** {MODE_LABELS.get(meta.mode, meta.mode)}",
        "",
        "---",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| **Composite Score** | {format_score(report.composite_score)}/10 {STATUS_EMOJI[report.status]} |",
        f"| **Status** | {STATUS_LABELS[report.status]} |",
        "",
        f"> {report.summary}",
        "",
    ]
    if meta.semantic_error:
        lines.extend([f"> Semantic analysis unavailable: {meta.semantic_error}", ""])

    lines.extend(["## Category Breakdown", "", "| Category | Score | Weight | Status |", "|----------|-------|--------|--------|"])
    lines.extend(_breakdown_rows(report, config))
    lines.append("")

    if report.top_issues:
        lines.extend(["## Top Issues to Fix", ""])
        for position, issue in enumerate(report.top_issues, start=1):
            lines.extend(_issue_block(position, issue))

    lines.extend(["## Detailed Category Analysis", ""])
    for category in report.categories.values():
        lines.extend(_category_detail(category, config))

    if len(report.all_issues) > FULL_ISSUE_LIST_THRESHOLD:
        lines.extend(
            [
                "## All Issues",
                "",
                "<details>",
                f"<summary>Click to expand all issues ({len(report.all_issues)} total)</summary>",
                "",
            ]
        )
        for issue in report.all_issues:
            lines.append(f"- {severity_icon(issue.severity)} **[{issue.category or '-'}]** {issue.message}")
        lines.extend(["", "</details>", ""])

    lines.extend(["---", "", FOOTER, ""])
    return "\n".join(lines)
