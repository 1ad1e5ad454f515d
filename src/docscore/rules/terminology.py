"""
Consistent Terminology (CAT-02): synonym drift and confusable term pairs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from docscore.protocols import CriterionResult, Issue, NormalizedContent, Severity, clamp_score
from docscore.rules.base import CriterionFn, RuleEvaluator
from docscore.utils import round_half_up

CATEGORY_KEY = "terminology"

# Terms that writers tend to use interchangeably for one concept.
CONFUSABLE_TERMS: Dict[str, Tuple[str, ...]] = {
    "deactivate": ("disable", "turn off", "switch off", "inactivate"),
    "delete": ("remove", "erase", "clear", "discard", "trash"),
    "enable": ("activate", "turn on", "switch on"),
    "create": ("add", "make", "new", "generate"),
    "edit": ("modify", "change", "update", "alter"),
    "save": ("store", "keep", "preserve"),
    "cancel": ("abort", "stop", "terminate", "end"),
    "connect": ("link", "attach", "join", "integrate"),
    "disconnect": ("unlink", "detach", "separate", "remove connection"),
    "configure": ("set up", "setup", "customize", "adjust"),
    "install": ("set up", "add", "deploy"),
    "uninstall": ("remove", "delete"),
}

# Pairs that must not be conflated, with the context they matter in.
HIGH_RISK_PAIRS: Tuple[Tuple[Tuple[str, str], str], ...] = (
    (("delete", "remove"), "data operations"),
    (("deactivate", "disable"), "state changes"),
    (("uninstall", "remove"), "application management"),
)

STOP_WORDS = frozenset(
    """
    the and that this with from your you for are was were will have has had then than into onto
    over under after before when where what which who whom why how can cannot could should would
    not yes no use using used via per each
    """.split()
)

TOKEN_SPLIT = re.compile(r"[^a-z0-9-]+")
SUFFIX = re.compile(r"(ing|ed|es|s)$")
MAX_CLUSTER_DEDUCTION = 3


def _term_pattern(term: str) -> re.Pattern:
    return re.compile(r"\b" + r"\s+".join(re.escape(part) for part in term.split()) + r"\b", re.IGNORECASE)


def normalize_term(token: str) -> str:
    """Crude stem: lowercase, strip punctuation, drop one trailing -ing/-ed/-es/-s."""
    term = re.sub(r"[^a-z0-9-]", "", token.lower())
    term = re.sub(r"-+", "-", term)
    return SUFFIX.sub("", term)


@dataclass
class TermGroup:
    variants: Dict[str, int] = field(default_factory=dict)
    total: int = 0

    def add(self, term: str, count: int) -> None:
        self.variants[term] = self.variants.get(term, 0) + count
        self.total += count


def extract_action_terms(text: str) -> Dict[str, TermGroup]:
    """Occurrences of each confusable group's primary term and its variants."""
    lowered = text.lower()
    groups: Dict[str, TermGroup] = {}
    for primary, variants in CONFUSABLE_TERMS.items():
        for term in dict.fromkeys((primary,) + variants):
            count = len(_term_pattern(term).findall(lowered))
            if count:
                groups.setdefault(primary, TermGroup()).add(term, count)
    return groups


def extract_terminology_clusters(text: str) -> Dict[str, TermGroup]:
    """Group surface tokens by their stripped root."""
    clusters: Dict[str, TermGroup] = {}
    for token in TOKEN_SPLIT.split(text.lower()):
        if len(token) < 4 or token in STOP_WORDS:
            continue
        root = normalize_term(token)
        if len(root) < 3:
            continue
        clusters.setdefault(root, TermGroup()).add(token, 1)
    return clusters


def _describe(variants: List[Tuple[str, int]]) -> str:
    return ", ".join(f'"{term}" ({count}x)' for term, count in variants)


def score_term_consistency(content: NormalizedContent) -> CriterionResult:
    """AV-01: one term per concept, across the synonym table and stemmed token clusters."""
    text = content.text.full_text
    terms = extract_action_terms(text)
    issues: List[Issue] = []
    total_groups = 0
    inconsistent_groups = 0
    cluster_inconsistencies = 0

    for primary, group in terms.items():
        if len(group.variants) <= 1:
            continue
        total_groups += 1
        ranked = sorted(group.variants.items(), key=lambda item: -item[1])
        most_used = ranked[0][0]
        others = ranked[1:]
        inconsistent_groups += 1
        if any(count > 1 for _, count in others) or sum(count for _, count in others) > 2:
            issues.append(
                Issue(
                    severity=Severity.WARNING,
                    message=f'Inconsistent terminology: "{primary}" concept uses multiple terms',
                    details=f"Found: {_describe(ranked)}",
                    fix=f'Standardize on "{most_used}" throughout the documentation',
                )
            )

    for root, cluster in extract_terminology_clusters(text).items():
        significant = [(term, count) for term, count in cluster.variants.items() if count >= 2]
        if len(significant) < 2 or cluster.total < 4:
            continue
        if all(term in (root, f"{root}s") for term, _ in significant):
            continue
        cluster_inconsistencies += 1
        issues.append(
            Issue(
                severity=Severity.INFO,
                message=f'Potential terminology variants for "{root}"',
                details=f"Found: {_describe(significant)}",
                fix=f'Standardize on a single term for "{root}" where possible',
            )
        )

    score = 10
    if total_groups > 0:
        score = round_half_up((1 - inconsistent_groups / total_groups) * 10)
    score -= min(MAX_CLUSTER_DEDUCTION, cluster_inconsistencies)

    return CriterionResult(
        criterion_id="AV-01",
        score=clamp_score(score),
        issues=issues,
        details=(
            f"Analyzed {total_groups} term groups. {inconsistent_groups} have inconsistent usage. "
            f"{cluster_inconsistencies} potential synonym clusters detected."
        ),
        extra={"term_analysis": {primary: dict(group.variants) for primary, group in terms.items()}},
    )


def detect_confusable_terms(content: NormalizedContent) -> CriterionResult:
    """AV-02: flag each high-risk pair when both of its terms appear."""
    text = content.text.full_text.lower()
    issues: List[Issue] = []

    for pair, context in HIGH_RISK_PAIRS:
        counts = [(term, len(_term_pattern(term).findall(text))) for term in pair]
        present = [(term, count) for term, count in counts if count > 0]
        if len(present) > 1:
            issues.append(
                Issue(
                    severity=Severity.WARNING,
                    message=(
                        f"Potentially confusable terms in {context}: "
                        + " and ".join(f'"{term}"' for term, _ in present)
                    ),
                    details=", ".join(f'"{term}" used {count}x' for term, count in present),
                    fix=(
                        f'Ensure "{pair[0]}" and "{pair[1]}" have clearly distinct meanings '
                        "or standardize on one term"
                    ),
                )
            )

    return CriterionResult(
        criterion_id="AV-02",
        score=max(0, 10 - len(issues) * 2),
        issues=issues,
        details=f"Checked {len(HIGH_RISK_PAIRS)} high-risk term pairs",
    )


class TerminologyEvaluator(RuleEvaluator):
    key = CATEGORY_KEY
    category_id = "CAT-02"
    name = "Consistent Terminology"
    default_weights = {"AV-01": 0.6, "AV-02": 0.4}

    def criteria_functions(self) -> Dict[str, CriterionFn]:
        return {
            "AV-01": lambda metrics, content, config: score_term_consistency(content),
            "AV-02": lambda metrics, content, config: detect_confusable_terms(content),
        }
