"""
Content Structure (CAT-01): paragraph brevity, list usage, heading
hierarchy and link integrity.
"""

from __future__ import annotations

import json
from typing import Dict, List

from docscore.config import ScoringConfig
from docscore.protocols import CriterionResult, Issue, Metrics, NormalizedContent, Severity, clamp_score
from docscore.rules.base import CriterionFn, RuleEvaluator
from docscore.utils import round_half_up

CATEGORY_KEY = "content-structure"

DEFAULT_PARAGRAPH_THRESHOLD = 150
CRITICAL_PARAGRAPH_WORDS = 200
LONG_SENTENCE_RATIO = 0.2
DEFAULT_IDEAL_LIST_RATIO = 0.3
LOW_LIST_RATIO = 0.1
MIN_HEADINGS_PER_BLOCK = 0.05
MAX_BROKEN_LINK_ISSUES = 5


def score_paragraph_brevity(metrics: Metrics, config: ScoringConfig) -> CriterionResult:
    """CS-01: fraction of paragraphs at or under the word threshold, minus a long-sentence penalty."""
    paragraphs = metrics.paragraphs
    threshold = config.threshold(CATEGORY_KEY, "CS-01", DEFAULT_PARAGRAPH_THRESHOLD)

    if paragraphs.count == 0:
        return CriterionResult(
            criterion_id="CS-01",
            score=10,
            details="No paragraphs found (content may be structured as lists/tables)",
        )

    good = paragraphs.count - paragraphs.long_count
    score = round_half_up(good / paragraphs.count * 10)
    issues: List[Issue] = []

    for paragraph in paragraphs.long_paragraphs:
        issues.append(
            Issue(
                severity=Severity.CRITICAL if paragraph.word_count > CRITICAL_PARAGRAPH_WORDS else Severity.WARNING,
                message=f"Paragraph {paragraph.index + 1} has {paragraph.word_count} words (threshold: {threshold})",
                location=f"Paragraph {paragraph.index + 1}",
                excerpt=paragraph.text,
                fix="Consider breaking this paragraph into bullet points or shorter sections",
            )
        )

    sentences = paragraphs.sentences
    if sentences.total > 0:
        if sentences.long_count / sentences.total > LONG_SENTENCE_RATIO:
            score -= 1
            issues.append(
                Issue(
                    severity=Severity.WARNING,
                    message=f"{sentences.long_count} long sentences detected",
                    fix="Split long sentences into shorter, single-idea statements",
                )
            )
        if sentences.complex_count > 0:
            issues.append(
                Issue(
                    severity=Severity.INFO,
                    message=f"{sentences.complex_count} sentences have multiple clauses",
                    fix="Reduce clause density for better readability",
                )
            )
        for sample in sentences.long_samples:
            issues.append(
                Issue(
                    severity=Severity.INFO,
                    message=f"Long sentence in paragraph {sample.paragraph_index + 1} ({sample.word_count} words)",
                    location=f"Paragraph {sample.paragraph_index + 1}",
                    excerpt=sample.text,
                    fix="Break this sentence into shorter sentences",
                )
            )

    return CriterionResult(
        criterion_id="CS-01",
        score=clamp_score(score),
        issues=issues,
        details=(
            f"{paragraphs.long_count} of {paragraphs.count} paragraphs exceed {threshold} words. "
            f"Average length: {paragraphs.avg_length} words. "
            f"Avg sentence length: {sentences.avg_length} words."
        ),
    )


def score_list_usage(metrics: Metrics, config: ScoringConfig) -> CriterionResult:
    """CS-02: list-to-paragraph ratio against the ideal, with a penalty for unordered procedures."""
    lists = metrics.lists
    paragraphs = metrics.paragraphs
    ideal = config.ideal_ratio(CATEGORY_KEY, "CS-02", DEFAULT_IDEAL_LIST_RATIO)
    ratio = lists.list_to_paragraph_ratio

    if paragraphs.count == 0 and lists.count == 0:
        return CriterionResult(
            criterion_id="CS-02",
            score=5,
            issues=[Issue(severity=Severity.INFO, message="No paragraphs or lists found")],
            details="Unable to assess list usage - no text content found",
        )

    if ratio >= ideal:
        raw = min(10, 7 + (ratio - ideal) * 10)
    else:
        raw = round_half_up(ratio / ideal * 7)
    score = clamp_score(round_half_up(raw))
    issues: List[Issue] = []

    if ratio < LOW_LIST_RATIO and paragraphs.count > 3:
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message="Low list usage in procedural content",
                details=f"List-to-paragraph ratio {ratio} is below {LOW_LIST_RATIO} (ideal: {ideal})",
                fix="Consider converting step-by-step instructions into numbered lists",
            )
        )

    if lists.procedural_count > 0 and lists.ordered_count == 0:
        score -= 1
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message="Procedural lists are not ordered",
                fix="Use numbered lists for step-by-step instructions",
            )
        )

    if lists.descriptive_count > 0 and lists.procedural_count == 0:
        issues.append(
            Issue(
                severity=Severity.INFO,
                message="Lists appear descriptive rather than procedural",
                fix="Ensure procedural steps are captured in ordered lists",
            )
        )

    return CriterionResult(
        criterion_id="CS-02",
        score=max(0, score),
        issues=issues,
        details=(
            f"List-to-paragraph ratio: {ratio} (ideal: {ideal}). "
            f"{lists.count} lists with {lists.total_items} total items. "
            f"Procedural lists: {lists.procedural_count}, descriptive lists: {lists.descriptive_count}."
        ),
    )


def score_heading_hierarchy(metrics: Metrics, config: ScoringConfig) -> CriterionResult:
    """CS-04: single H1, no skipped levels, enough headings for the amount of content."""
    headings = metrics.headings

    if headings.count == 0:
        return CriterionResult(
            criterion_id="CS-04",
            score=3,
            issues=[
                Issue(
                    severity=Severity.CRITICAL,
                    message="No headings found",
                    fix="Add descriptive headings to structure the content",
                )
            ],
            details="Page has no heading structure",
        )

    score = 10
    issues: List[Issue] = []

    if not headings.has_h1:
        score -= 2
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message="Page lacks an H1 heading",
                details="Expected a single H1 to establish page context",
                fix="Add a clear H1 heading that describes the page purpose",
            )
        )

    if headings.h1_count > 1:
        score -= 1
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message=f"Multiple H1 headings found ({headings.h1_count})",
                fix="Use a single H1 for the page title and demote others to H2/H3",
            )
        )

    if headings.first_level and headings.first_level > 1:
        score -= 1
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message=f"First heading starts at h{headings.first_level}",
                fix="Start with an H1 heading to establish page context",
            )
        )

    if not headings.has_h2 and any(level >= 3 for level in headings.levels):
        score -= 1
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message="Missing H2 headings before deeper sections",
                fix="Add H2 headings to group sections before using H3/H4",
            )
        )

    if not headings.hierarchy.valid:
        score -= min(5, len(headings.hierarchy.issues) * 2)
        for skip in headings.hierarchy.issues:
            issues.append(
                Issue(
                    severity=Severity.WARNING,
                    message=skip.message,
                    location=f"Heading {skip.index + 1}",
                    details="Detected a skipped heading level in the hierarchy",
                    fix="Maintain proper heading hierarchy without skipping levels",
                )
            )

    total_blocks = metrics.content.total_blocks
    per_block = headings.count / max(1, total_blocks)
    if per_block < MIN_HEADINGS_PER_BLOCK and total_blocks > 10:
        score -= 1
        issues.append(
            Issue(
                severity=Severity.INFO,
                message="Content could benefit from more section headings",
                details=f"Headings per block {per_block:.2f} is below {MIN_HEADINGS_PER_BLOCK}",
                fix="Add subheadings to break up long sections",
            )
        )

    return CriterionResult(
        criterion_id="CS-04",
        score=max(0, score),
        issues=issues,
        details=f"{headings.count} headings found. Distribution: {json.dumps(headings.distribution)}",
    )


def score_link_integrity(metrics: Metrics, config: ScoringConfig) -> CriterionResult:
    """CS-07: share of links that resolve (brokenness is decided by the extractor)."""
    links = metrics.links

    if links.total == 0:
        return CriterionResult(criterion_id="CS-07", score=10, details="No links found")

    broken_ratio = links.broken_count / links.total
    issues: List[Issue] = []

    if links.broken_count > 0:
        issues.append(
            Issue(
                severity=Severity.WARNING if broken_ratio > 0.2 else Severity.INFO,
                message=f"{links.broken_count} broken internal anchors detected",
                details=f"Broken link ratio: {broken_ratio * 100:.0f}%",
                fix="Update or remove broken anchors and ensure targets exist",
            )
        )
        for link in links.broken_links[:MAX_BROKEN_LINK_ISSUES]:
            issues.append(
                Issue(
                    severity=Severity.INFO,
                    message="Broken anchor link",
                    location=link.href,
                    details=link.reason or "Missing anchor target",
                    fix="Add the anchor target or update the link",
                )
            )

    return CriterionResult(
        criterion_id="CS-07",
        score=clamp_score(round_half_up((1 - broken_ratio) * 10)),
        issues=issues,
        details=f"{links.broken_count} broken anchors out of {links.total} total links.",
    )


class ContentStructureEvaluator(RuleEvaluator):
    key = CATEGORY_KEY
    category_id = "CAT-01"
    name = "Content Structure"
    default_weights = {"CS-01": 0.35, "CS-02": 0.30, "CS-04": 0.35, "CS-07": 0.10}

    def criteria_functions(self) -> Dict[str, CriterionFn]:
        def bind(fn):
            return lambda metrics, content, config: fn(metrics, config)

        return {
            "CS-01": bind(score_paragraph_brevity),
            "CS-02": bind(score_list_usage),
            "CS-04": bind(score_heading_hierarchy),
            "CS-07": bind(score_link_integrity),
        }
