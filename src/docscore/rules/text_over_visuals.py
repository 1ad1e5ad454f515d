"""
Text Over Visuals (CAT-08): instructions should survive without their
screenshots.
"""

from __future__ import annotations

import re
from typing import Dict, List

from docscore.protocols import CriterionResult, Issue, Metrics, NormalizedContent, Severity
from docscore.rules.base import CriterionFn, RuleEvaluator
from docscore.utils import round_half_up

CATEGORY_KEY = "text-over-visuals"

IDEAL_MAX_VISUAL_RATIO = 0.33
SCREENSHOT_HEAVY_IMAGES = 5
MAX_MISSING_ALT_ISSUES = 5
STEP_ITEM = re.compile(r"^(step|click|select|go to|navigate|open)", re.IGNORECASE)


def _has_procedural_lists(content: NormalizedContent) -> bool:
    return any(
        block.ordered or any(STEP_ITEM.match(item) for item in block.items) for block in content.structure.lists
    )


def score_text_first(metrics: Metrics, content: NormalizedContent) -> CriterionResult:
    """TB-01: image density tiers, capped at 7 for screenshot-heavy procedures."""
    images = metrics.images
    if images.count == 0:
        return CriterionResult(
            criterion_id="TB-01",
            score=10,
            details="No images found - content is fully text-based",
        )

    density = images.image_to_text_ratio
    word_count = metrics.content.word_count
    score = 10
    issues: List[Issue] = []

    if density > 2:
        score = 4
        issues.append(
            Issue(
                severity=Severity.CRITICAL,
                message="Content is heavily image-dependent",
                details=f"{images.count} images for {word_count} words ({density} images per 100 words)",
                fix=(
                    "Add text descriptions for key steps shown in images. "
                    "AI assistants cannot interpret screenshots."
                ),
            )
        )
    elif density > 1:
        score = 6
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message="Content relies significantly on images",
                details=f"{images.count} images for {word_count} words",
                fix="Ensure each image has accompanying text that describes the action or concept",
            )
        )
    elif density > 0.5:
        score = 8
        issues.append(
            Issue(
                severity=Severity.INFO,
                message="Good text-to-image balance, minor improvements possible",
                fix="Consider adding brief text summaries for complex diagrams",
            )
        )

    if images.count > SCREENSHOT_HEAVY_IMAGES and _has_procedural_lists(content):
        score = min(score, 7)
        issues.append(
            Issue(
                severity=Severity.WARNING,
                message="Procedural content with many screenshots",
                details=f"{images.count} images with procedural lists detected",
                fix="Ensure step text is complete without needing to reference images",
            )
        )

    return CriterionResult(
        criterion_id="TB-01",
        score=score,
        issues=issues,
        details=f"Image density: {density} images per 100 words. {images.count} images total.",
    )


def score_visual_ratio(metrics: Metrics) -> CriterionResult:
    """TB-02: visual blocks as a share of content blocks, in three linear bands."""
    blocks = metrics.content
    ratio = blocks.visual_to_content_ratio

    if blocks.total_blocks == 0:
        return CriterionResult(
            criterion_id="TB-02",
            score=5,
            issues=[Issue(severity=Severity.INFO, message="Unable to assess - no content blocks found")],
            details="No content blocks to analyze",
        )

    if ratio <= IDEAL_MAX_VISUAL_RATIO:
        score = 8 + round_half_up((1 - ratio / IDEAL_MAX_VISUAL_RATIO) * 2)
    elif ratio <= 0.5:
        score = 5 + round_half_up((0.5 - ratio) / 0.17 * 2)
    else:
        score = max(0, round_half_up((1 - ratio) * 8))

    percent = round_half_up(ratio * 100)
    ideal_percent = round_half_up(IDEAL_MAX_VISUAL_RATIO * 100)
    issues: List[Issue] = []
    if ratio > IDEAL_MAX_VISUAL_RATIO:
        issues.append(
            Issue(
                severity=Severity.CRITICAL if ratio > 0.5 else Severity.WARNING,
                message=f"Visual content ratio ({percent}%) exceeds ideal ({ideal_percent}%)",
                details=f"{blocks.visual_blocks} visual blocks out of {blocks.total_blocks} total",
                fix="Add more text-based explanations to balance the visual content",
            )
        )

    return CriterionResult(
        criterion_id="TB-02",
        score=score,
        issues=issues,
        details=f"Visual-to-content ratio: {percent}% (ideal max: {ideal_percent}%)",
    )


def score_alt_text_coverage(metrics: Metrics) -> CriterionResult:
    """TB-03: alt-text coverage mapped straight onto 0-10."""
    images = metrics.images
    if images.count == 0:
        return CriterionResult(criterion_id="TB-03", score=10, details="No images to check for alt text")

    coverage = images.alt_text_coverage
    issues: List[Issue] = []

    if images.without_alt > 0:
        if coverage < 0.5:
            severity = Severity.CRITICAL
        elif coverage < 0.8:
            severity = Severity.WARNING
        else:
            severity = Severity.INFO
        issues.append(
            Issue(
                severity=severity,
                message=f"{images.without_alt} of {images.count} images missing alt text",
                details="Images without alt text are invisible to AI assistants",
                fix="Add descriptive alt text to all images explaining what they show",
            )
        )
        if len(images.missing_alt) <= MAX_MISSING_ALT_ISSUES:
            for image in images.missing_alt:
                issues.append(
                    Issue(
                        severity=Severity.INFO,
                        message=f"Image {image.index + 1} missing alt text",
                        location=image.src.split("/")[-1][:50],
                        fix="Add alt attribute describing the image content",
                    )
                )

    return CriterionResult(
        criterion_id="TB-03",
        score=round_half_up(coverage * 10),
        issues=issues,
        details=(
            f"Alt text coverage: {round_half_up(coverage * 100)}% ({images.with_alt}/{images.count} images)"
        ),
    )


class TextOverVisualsEvaluator(RuleEvaluator):
    key = CATEGORY_KEY
    category_id = "CAT-08"
    name = "Text Over Visuals"
    default_weights = {"TB-01": 0.35, "TB-02": 0.35, "TB-03": 0.30}

    def criteria_functions(self) -> Dict[str, CriterionFn]:
        return {
            "TB-01": lambda metrics, content, config: score_text_first(metrics, content),
            "TB-02": lambda metrics, content, config: score_visual_ratio(metrics),
            "TB-03": lambda metrics, content, config: score_alt_text_coverage(metrics),
        }
