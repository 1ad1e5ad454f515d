"""
Metrics calculator: pure functions from a NormalizedContent to Metrics.

Every ratio has a defined value for a zero denominator so evaluators never
see a division error on degenerate pages.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from docscore.config import ScoringConfig
from docscore.protocols import (
    BrokenLink,
    ContentBlockMetrics,
    HeadingMetrics,
    HierarchyCheck,
    HierarchyIssue,
    ImageMetrics,
    LinkMetrics,
    ListBlock,
    ListMetrics,
    LongParagraph,
    Metrics,
    MissingAltImage,
    NormalizedContent,
    Paragraph,
    ParagraphMetrics,
    Section,
    SentenceMetrics,
    SentenceSample,
)
from docscore.utils import round1, round2, round_half_up

DEFAULT_PARAGRAPH_THRESHOLD = 150
DEFAULT_LONG_SENTENCE_THRESHOLD = 25
LONG_PARAGRAPH_EXCERPT_CHARS = 100
SENTENCE_SAMPLE_CHARS = 120
MAX_SENTENCE_SAMPLES = 3
COMPLEX_CLAUSE_MARKERS = 3

SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
CLAUSE_MARKER = re.compile(
    r"[,;:]|\b(?:and|but|or|which|because|although|while|whereas|unless|whether)\b",
    re.IGNORECASE,
)

# Items that read like steps: "Step 2", "Click Save", "Go to Settings" ...
PROCEDURAL_ITEM = re.compile(
    r"^\s*(?:step\b|\d+[.)]\s|click|select|choose|enter|type|go to|navigate|open|press|tap|"
    r"drag|add|create|delete|remove|save|install|configure|run|enable|disable)",
    re.IGNORECASE,
)


def is_procedural_list(block: ListBlock) -> bool:
    """An ordered list, or an unordered one whose items mostly start with an action verb."""
    if block.ordered:
        return True
    if not block.items:
        return False
    matches = sum(1 for item in block.items if PROCEDURAL_ITEM.match(item))
    return matches * 2 >= len(block.items)


def _excerpt(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def compute_sentence_metrics(paragraphs: Sequence[Paragraph], long_threshold: int) -> SentenceMetrics:
    total = 0
    total_words = 0
    long_count = 0
    complex_count = 0
    samples: List[SentenceSample] = []

    for paragraph in paragraphs:
        for sentence in SENTENCE_SPLIT.split(paragraph.text.strip()):
            words = len(sentence.split())
            if words == 0:
                continue
            total += 1
            total_words += words
            if len(CLAUSE_MARKER.findall(sentence)) >= COMPLEX_CLAUSE_MARKERS:
                complex_count += 1
            if words > long_threshold:
                long_count += 1
                if len(samples) < MAX_SENTENCE_SAMPLES:
                    samples.append(
                        SentenceSample(
                            text=_excerpt(sentence, SENTENCE_SAMPLE_CHARS),
                            word_count=words,
                            paragraph_index=paragraph.index,
                        )
                    )

    return SentenceMetrics(
        total=total,
        avg_length=round1(total_words / total) if total else 0,
        long_count=long_count,
        complex_count=complex_count,
        long_samples=tuple(samples),
    )


def compute_paragraph_metrics(
    paragraphs: Sequence[Paragraph], threshold: int, long_sentence_threshold: int
) -> ParagraphMetrics:
    counts = [p.word_count for p in paragraphs]
    long_paragraphs = tuple(
        LongParagraph(
            text=_excerpt(p.text, LONG_PARAGRAPH_EXCERPT_CHARS),
            word_count=p.word_count,
            index=p.index,
        )
        for p in paragraphs
        if p.word_count > threshold
    )
    return ParagraphMetrics(
        count=len(counts),
        avg_length=round_half_up(sum(counts) / len(counts)) if counts else 0,
        max_length=max(counts) if counts else 0,
        long_count=len(long_paragraphs),
        long_paragraphs=long_paragraphs,
        sentences=compute_sentence_metrics(paragraphs, long_sentence_threshold),
    )


def compute_list_metrics(lists: Sequence[ListBlock], paragraph_count: int) -> ListMetrics:
    procedural = sum(1 for block in lists if is_procedural_list(block))
    return ListMetrics(
        count=len(lists),
        total_items=sum(block.item_count for block in lists),
        list_to_paragraph_ratio=round2(len(lists) / paragraph_count) if paragraph_count else 0,
        ordered_count=sum(1 for block in lists if block.ordered),
        procedural_count=procedural,
        descriptive_count=len(lists) - procedural,
    )


def validate_heading_hierarchy(levels: Iterable[int]) -> HierarchyCheck:
    """
    Detect forward level skips (h1 -> h3). Moving back up any number of levels is fine.

    The first heading is never a skip, whatever its level.
    """
    issues: List[HierarchyIssue] = []
    previous = 0
    for position, current in enumerate(levels):
        if previous != 0 and current > previous + 1:
            issues.append(
                HierarchyIssue(
                    type="skip",
                    message=f"Heading level skipped from h{previous} to h{current}",
                    index=position,
                    from_level=previous,
                    to_level=current,
                )
            )
        previous = current
    return HierarchyCheck(valid=not issues, issues=tuple(issues))


def compute_heading_metrics(content: NormalizedContent) -> HeadingMetrics:
    levels = tuple(h.level_number for h in content.structure.headings if h.level_number > 0)
    distribution: dict = {}
    for level in levels:
        distribution[f"h{level}"] = distribution.get(f"h{level}", 0) + 1
    return HeadingMetrics(
        count=len(levels),
        has_h1=1 in levels,
        h1_count=levels.count(1),
        has_h2=2 in levels,
        first_level=levels[0] if levels else None,
        levels=levels,
        distribution=distribution,
        hierarchy=validate_heading_hierarchy(levels),
    )


def _image_metrics(images, word_count: int) -> ImageMetrics:
    with_alt = sum(1 for image in images if image.has_alt)
    count = len(images)
    return ImageMetrics(
        count=count,
        with_alt=with_alt,
        without_alt=count - with_alt,
        alt_text_coverage=round2(with_alt / count) if count else 1.0,
        image_to_text_ratio=round2(count / (word_count / 100)) if word_count > 0 else 0,
        missing_alt=tuple(MissingAltImage(src=image.src, index=image.index) for image in images if not image.has_alt),
    )


def _content_metrics(paragraphs, lists, images, tables, code_blocks, word_count: int) -> ContentBlockMetrics:
    total_blocks = len(paragraphs) + len(lists) + len(tables) + len(code_blocks)
    visual_blocks = len(images) + len(tables)
    return ContentBlockMetrics(
        total_blocks=total_blocks,
        visual_blocks=visual_blocks,
        visual_to_content_ratio=round2(visual_blocks / total_blocks) if total_blocks else 0,
        word_count=word_count,
        code_blocks=len(code_blocks),
        tables=len(tables),
    )


def _link_metrics(content: NormalizedContent) -> LinkMetrics:
    links = content.structure.links
    broken = tuple(
        BrokenLink(href=link.href, reason=link.reason, index=link.index) for link in links if link.is_broken
    )
    return LinkMetrics(
        total=len(links),
        internal=sum(1 for link in links if link.type != "external"),
        external=sum(1 for link in links if link.type == "external"),
        broken_count=len(broken),
        broken_links=broken,
    )


def compute_metrics(content: NormalizedContent, config: Optional[ScoringConfig] = None) -> Metrics:
    """Derive all evaluator inputs from a page snapshot."""
    config = config or ScoringConfig()
    structure = content.structure
    threshold = config.threshold("content-structure", "CS-01", DEFAULT_PARAGRAPH_THRESHOLD)
    word_count = content.text.word_count

    return Metrics(
        paragraphs=compute_paragraph_metrics(
            structure.paragraphs, threshold, config.long_sentence_threshold(DEFAULT_LONG_SENTENCE_THRESHOLD)
        ),
        headings=compute_heading_metrics(content),
        lists=compute_list_metrics(structure.lists, len(structure.paragraphs)),
        images=_image_metrics(structure.images, word_count),
        content=_content_metrics(
            structure.paragraphs, structure.lists, structure.images, structure.tables, structure.code_blocks, word_count
        ),
        links=_link_metrics(content),
    )


_EMPTY_HEADINGS = HeadingMetrics(
    count=0,
    has_h1=False,
    h1_count=0,
    has_h2=False,
    first_level=None,
    levels=(),
    distribution={},
    hierarchy=HierarchyCheck(valid=True),
)


def compute_section_metrics(section: Section, config: Optional[ScoringConfig] = None) -> Metrics:
    """Metrics restricted to one section; only paragraph and list figures are meaningful."""
    config = config or ScoringConfig()
    threshold = config.threshold("content-structure", "CS-01", DEFAULT_PARAGRAPH_THRESHOLD)
    return Metrics(
        paragraphs=compute_paragraph_metrics(
            section.paragraphs, threshold, config.long_sentence_threshold(DEFAULT_LONG_SENTENCE_THRESHOLD)
        ),
        headings=_EMPTY_HEADINGS,
        lists=compute_list_metrics(section.lists, len(section.paragraphs)),
        images=_image_metrics(section.images, section.word_count),
        content=_content_metrics(
            section.paragraphs, section.lists, section.images, section.tables, section.code_blocks, section.word_count
        ),
        links=LinkMetrics(),
    )
