"""
Core data contracts for DocScore.

This module defines the types that flow through a scoring run:

- the immutable page snapshot (``NormalizedContent``) handed over by the
  extractor and its derived, read-only ``Metrics``;
- the per-criterion and per-category results produced by evaluators;
- the final ``ScoreReport`` assembled by the aggregation engine.

Reports serialize to plain dicts with ``to_dict()`` and can be rebuilt with
``from_dict()`` so JSON exports round-trip without field loss.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

# ============================================================================
# Enums
# ============================================================================


class Severity(Enum):
    """Issue severity with an explicit total order (critical sorts first)."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, value: Union[Severity, str]) -> Union[Severity, str]:
        """Return the enum member for ``value``, or the raw string if unknown."""
        if isinstance(value, Severity):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return str(value)

    @classmethod
    def from_score(cls, score: float) -> Severity:
        """Severity for externally scored criteria: <4 critical, <7 warning, else info."""
        if score < 4:
            return cls.CRITICAL
        if score < 7:
            return cls.WARNING
        return cls.INFO


_SEVERITY_RANKS = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}
UNKNOWN_SEVERITY_RANK = 3


def severity_rank(severity: Union[Severity, str]) -> int:
    """Sort key for severities; anything unrecognized sorts after info."""
    parsed = Severity.parse(severity)
    if isinstance(parsed, Severity):
        return parsed.rank
    return UNKNOWN_SEVERITY_RANK


class ReportStatus(Enum):
    """Traffic-light bucketing of a 0-10 score."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    @classmethod
    def from_score(cls, score: float, green: float = 7.0, yellow: float = 4.0) -> ReportStatus:
        if score >= green:
            return cls.GREEN
        if score >= yellow:
            return cls.YELLOW
        return cls.RED


class ScoringMode(Enum):
    FULL = "full"
    RULE_ONLY = "rule-only"


# ============================================================================
# Page content
# ============================================================================


@dataclass(frozen=True)
class Heading:
    level: str
    text: str
    index: int = 0

    @property
    def level_number(self) -> int:
        digits = "".join(ch for ch in self.level if ch.isdigit())
        return int(digits) if digits else 0


@dataclass(frozen=True)
class Paragraph:
    text: str
    word_count: int
    index: int = 0


@dataclass(frozen=True)
class ListBlock:
    type: str
    items: Tuple[str, ...]
    item_count: int
    index: int = 0

    @property
    def ordered(self) -> bool:
        return self.type == "ol"


@dataclass(frozen=True)
class Image:
    src: str
    alt: Optional[str]
    has_alt: bool
    index: int = 0


@dataclass(frozen=True)
class Table:
    caption: Optional[str] = None
    headers: Tuple[str, ...] = ()
    rows: Tuple[Tuple[str, ...], ...] = ()
    index: int = 0


@dataclass(frozen=True)
class CodeBlock:
    content: str
    type: str = "block"
    language: str = "unknown"
    index: int = 0


@dataclass(frozen=True)
class Link:
    href: str
    text: str = ""
    type: str = "internal"
    index: int = 0
    is_broken: bool = False
    reason: Optional[str] = None


@dataclass(frozen=True)
class Callout:
    type: str
    text: str
    index: int = 0


@dataclass(frozen=True)
class PageStructure:
    headings: Tuple[Heading, ...] = ()
    paragraphs: Tuple[Paragraph, ...] = ()
    lists: Tuple[ListBlock, ...] = ()
    images: Tuple[Image, ...] = ()
    tables: Tuple[Table, ...] = ()
    code_blocks: Tuple[CodeBlock, ...] = ()
    links: Tuple[Link, ...] = ()
    callouts: Tuple[Callout, ...] = ()


@dataclass(frozen=True)
class Section:
    """A heading-delimited slice of the page, as exposed by the extractor."""

    title: str
    level: Optional[int]
    paragraphs: Tuple[Paragraph, ...] = ()
    lists: Tuple[ListBlock, ...] = ()
    images: Tuple[Image, ...] = ()
    tables: Tuple[Table, ...] = ()
    code_blocks: Tuple[CodeBlock, ...] = ()
    word_count: int = 0


@dataclass(frozen=True)
class ContentMeta:
    url: str
    title: str = ""
    extracted_at: Optional[str] = None
    domain: Optional[str] = None
    last_updated: Optional[str] = None
    extraction_warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PageText:
    full_text: str
    word_count: int


@dataclass(frozen=True)
class NormalizedContent:
    """Immutable snapshot of one page, produced once per scoring run."""

    meta: ContentMeta
    structure: PageStructure
    text: PageText
    sections: Tuple[Section, ...] = ()


# ============================================================================
# Metrics
# ============================================================================


@dataclass(frozen=True)
class LongParagraph:
    text: str
    word_count: int
    index: int


@dataclass(frozen=True)
class SentenceSample:
    text: str
    word_count: int
    paragraph_index: int


@dataclass(frozen=True)
class SentenceMetrics:
    total: int = 0
    avg_length: float = 0
    long_count: int = 0
    complex_count: int = 0
    long_samples: Tuple[SentenceSample, ...] = ()


@dataclass(frozen=True)
class ParagraphMetrics:
    count: int
    avg_length: int
    max_length: int
    long_count: int
    long_paragraphs: Tuple[LongParagraph, ...]
    sentences: SentenceMetrics = field(default_factory=SentenceMetrics)


@dataclass(frozen=True)
class HierarchyIssue:
    type: str
    message: str
    index: int
    from_level: int
    to_level: int


@dataclass(frozen=True)
class HierarchyCheck:
    valid: bool
    issues: Tuple[HierarchyIssue, ...] = ()


@dataclass(frozen=True)
class HeadingMetrics:
    count: int
    has_h1: bool
    h1_count: int
    has_h2: bool
    first_level: Optional[int]
    levels: Tuple[int, ...]
    distribution: Dict[str, int]
    hierarchy: HierarchyCheck


@dataclass(frozen=True)
class ListMetrics:
    count: int
    total_items: int
    list_to_paragraph_ratio: float
    ordered_count: int = 0
    procedural_count: int = 0
    descriptive_count: int = 0


@dataclass(frozen=True)
class MissingAltImage:
    src: str
    index: int


@dataclass(frozen=True)
class ImageMetrics:
    count: int
    with_alt: int
    without_alt: int
    alt_text_coverage: float
    image_to_text_ratio: float
    missing_alt: Tuple[MissingAltImage, ...] = ()


@dataclass(frozen=True)
class ContentBlockMetrics:
    total_blocks: int
    visual_blocks: int
    visual_to_content_ratio: float
    word_count: int
    code_blocks: int
    tables: int


@dataclass(frozen=True)
class BrokenLink:
    href: str
    reason: Optional[str]
    index: int


@dataclass(frozen=True)
class LinkMetrics:
    total: int = 0
    internal: int = 0
    external: int = 0
    broken_count: int = 0
    broken_links: Tuple[BrokenLink, ...] = ()


@dataclass(frozen=True)
class Metrics:
    """Read-only aggregates derived purely from a NormalizedContent."""

    paragraphs: ParagraphMetrics
    headings: HeadingMetrics
    lists: ListMetrics
    images: ImageMetrics
    content: ContentBlockMetrics
    links: LinkMetrics


# ============================================================================
# Results
# ============================================================================


@dataclass(frozen=True)
class Issue:
    severity: Union[Severity, str]
    message: str
    fix: Optional[str] = None
    location: Optional[str] = None
    excerpt: Optional[str] = None
    details: Optional[str] = None
    category: Optional[str] = None
    category_key: Optional[str] = None

    @property
    def rank(self) -> int:
        return severity_rank(self.severity)

    def with_category(self, name: str, key: str) -> Issue:
        return replace(self, category=name, category_key=key)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "severity": self.severity.value if isinstance(self.severity, Severity) else self.severity,
            "message": self.message,
        }
        for name in ("fix", "location", "excerpt", "details", "category", "category_key"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Issue:
        return cls(
            severity=Severity.parse(data.get("severity", "info")),
            message=data.get("message", ""),
            fix=data.get("fix"),
            location=data.get("location"),
            excerpt=data.get("excerpt"),
            details=data.get("details"),
            category=data.get("category"),
            category_key=data.get("category_key"),
        )


def sort_issues(issues: List[Issue]) -> List[Issue]:
    """Stable sort by severity: critical, warning, info, then anything else."""
    return sorted(issues, key=lambda issue: issue.rank)


@dataclass
class CriterionResult:
    criterion_id: str
    score: float
    issues: List[Issue] = field(default_factory=list)
    details: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.score = clamp_score(self.score)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "criterion_id": self.criterion_id,
            "score": self.score,
            "issues": [issue.to_dict() for issue in self.issues],
            "details": self.details,
        }
        if self.extra:
            data["extra"] = self.extra
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CriterionResult:
        return cls(
            criterion_id=data.get("criterion_id", ""),
            score=data.get("score", 0),
            issues=[Issue.from_dict(item) for item in data.get("issues", [])],
            details=data.get("details") or "",
            extra=dict(data.get("extra", {})),
        )


@dataclass
class SectionScore:
    title: str
    level: Optional[int]
    score: float
    criteria: Dict[str, CriterionResult]
    issues: List[Issue]
    word_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "level": self.level,
            "score": self.score,
            "criteria": {key: value.to_dict() for key, value in self.criteria.items()},
            "issues": [issue.to_dict() for issue in self.issues],
            "word_count": self.word_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SectionScore:
        return cls(
            title=data.get("title", ""),
            level=data.get("level"),
            score=data.get("score", 0),
            criteria={k: CriterionResult.from_dict(v) for k, v in data.get("criteria", {}).items()},
            issues=[Issue.from_dict(item) for item in data.get("issues", [])],
            word_count=data.get("word_count", 0),
        )


@dataclass
class CategoryResult:
    key: str
    id: str
    name: str
    score: Optional[float]
    weight: float
    criteria: Dict[str, CriterionResult] = field(default_factory=dict)
    issues: List[Issue] = field(default_factory=list)
    estimated: bool = False
    message: Optional[str] = None
    section_scores: List[SectionScore] = field(default_factory=list)
    section_rollup: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "key": self.key,
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "weight": self.weight,
            "criteria": {key: value.to_dict() for key, value in self.criteria.items()},
            "issues": [issue.to_dict() for issue in self.issues],
            "estimated": self.estimated,
        }
        if self.message is not None:
            data["message"] = self.message
        if self.section_scores:
            data["section_scores"] = [section.to_dict() for section in self.section_scores]
        if self.section_rollup is not None:
            data["section_rollup"] = self.section_rollup
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CategoryResult:
        return cls(
            key=data.get("key", ""),
            id=data.get("id", ""),
            name=data.get("name", ""),
            score=data.get("score"),
            weight=data.get("weight", 0.0),
            criteria={k: CriterionResult.from_dict(v) for k, v in data.get("criteria", {}).items()},
            issues=[Issue.from_dict(item) for item in data.get("issues", [])],
            estimated=bool(data.get("estimated", False)),
            message=data.get("message"),
            section_scores=[SectionScore.from_dict(item) for item in data.get("section_scores", [])],
            section_rollup=data.get("section_rollup"),
        )


@dataclass(frozen=True)
class ProgressEvent:
    step: str
    message: str
    percent: int


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass
class ReportMeta:
    url: str
    title: str
    scored_at: str
    mode: str
    content_hash: Optional[str] = None
    semantic_error: Optional[str] = None
    semantic_cache: Optional[Dict[str, Any]] = None
    report_cache: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "scored_at": self.scored_at,
            "mode": self.mode,
            "content_hash": self.content_hash,
            "semantic_error": self.semantic_error,
            "semantic_cache": self.semantic_cache,
            "report_cache": self.report_cache,
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ReportMeta:
        return cls(
            url=data.get("url", ""),
            title=data.get("title", ""),
            scored_at=data.get("scored_at", ""),
            mode=data.get("mode", ScoringMode.RULE_ONLY.value),
            content_hash=data.get("content_hash"),
            semantic_error=data.get("semantic_error"),
            semantic_cache=data.get("semantic_cache"),
            report_cache=data.get("report_cache"),
            warnings=list(data.get("warnings", [])),
        )


@dataclass
class ScoreReport:
    """Top-level result of one scoring run. Treated as immutable once returned."""

    meta: ReportMeta
    categories: Dict[str, CategoryResult]
    composite_score: float
    status: ReportStatus
    all_issues: List[Issue]
    top_issues: List[Issue]
    summary: str
    semantic_summary: Optional[str] = None
    semantic_top_issues: List[str] = field(default_factory=list)
    sections: List[SectionScore] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": self.meta.to_dict(),
            "categories": {key: value.to_dict() for key, value in self.categories.items()},
            "composite_score": self.composite_score,
            "status": self.status.value,
            "all_issues": [issue.to_dict() for issue in self.all_issues],
            "top_issues": [issue.to_dict() for issue in self.top_issues],
            "summary": self.summary,
            "semantic_summary": self.semantic_summary,
            "semantic_top_issues": list(self.semantic_top_issues),
            "sections": [section.to_dict() for section in self.sections],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ScoreReport:
        return cls(
            meta=ReportMeta.from_dict(data.get("meta", {})),
            categories={k: CategoryResult.from_dict(v) for k, v in data.get("categories", {}).items()},
            composite_score=data.get("composite_score", 0.0),
            status=ReportStatus(data.get("status", ReportStatus.RED.value)),
            all_issues=[Issue.from_dict(item) for item in data.get("all_issues", [])],
            top_issues=[Issue.from_dict(item) for item in data.get("top_issues", [])],
            summary=data.get("summary", ""),
            semantic_summary=data.get("semantic_summary"),
            semantic_top_issues=list(data.get("semantic_top_issues", [])),
            sections=[SectionScore.from_dict(item) for item in data.get("sections", [])],
        )


# ============================================================================
# Evaluator contracts
# ============================================================================


class Evaluator(Protocol):
    """A rule-based scorer that owns exactly one category of the report."""

    key: str
    category_id: str
    name: str
    # criterion id -> weight used when the config leaves it unset
    default_weights: Dict[str, float]

    def evaluate(self, metrics: Metrics, content: NormalizedContent, config: Any) -> CategoryResult:
        """Score the page and return this evaluator's CategoryResult fragment."""
        ...


def clamp_score(value: float, low: float = 0.0, high: float = 10.0) -> float:
    """Clamp a score into [low, high]; NaN collapses to ``low``."""
    if value != value:  # NaN
        return low
    return max(low, min(high, value))
