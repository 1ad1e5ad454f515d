"""
Contract for semantic scorers and the response-to-result transformation.

A semantic scorer judges criteria that need reading comprehension (does a
step hold one action, are destructive operations warned about). Two
variants exist: the remote model and the offline keyword estimator. The
scorer picks one per run and never mixes them.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol

from docscore.errors import SemanticResponseError
from docscore.protocols import CriterionResult, Issue, Metrics, NormalizedContent, Severity, clamp_score

DEFAULT_FIX = "Review and improve this area"

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


@dataclass
class SemanticResult:
    """
    Criterion scores from one semantic pass.

    ``raw`` holds the decoded model payload so it can be cached and replayed;
    it is empty for estimates.
    """

    scores: Dict[str, CriterionResult]
    summary: Optional[str] = None
    top_issues: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)
    estimated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scores": {key: value.to_dict() for key, value in self.scores.items()},
            "summary": self.summary,
            "top_issues": list(self.top_issues),
            "estimated": self.estimated,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], raw: Optional[Dict[str, Any]] = None) -> SemanticResult:
        return cls(
            scores={k: CriterionResult.from_dict(v) for k, v in (data.get("scores") or {}).items()},
            summary=data.get("summary"),
            top_issues=list(data.get("top_issues") or []),
            raw=dict(raw or {}),
            estimated=bool(data.get("estimated", False)),
        )


class SemanticEvaluator(Protocol):
    """Scores the semantic criteria of one page."""

    estimated: bool

    async def evaluate(self, content: NormalizedContent, metrics: Metrics, analysis_text: str) -> SemanticResult:
        ...


def parse_semantic_payload(text: str) -> Dict[str, Any]:
    """
    Decode the model's JSON answer, tolerating a surrounding Markdown fence.

    Raises:
        SemanticResponseError: If the text is not JSON or lacks a ``scores`` object.
    """
    match = _FENCED_JSON.search(text)
    candidate = match.group(1) if match else text
    try:
        payload = json.loads(candidate.strip())
    except json.JSONDecodeError as e:
        raise SemanticResponseError("Failed to parse semantic response as JSON") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("scores"), dict):
        raise SemanticResponseError("Semantic response is missing a 'scores' object")
    return payload


def _as_score(value: Any) -> float:
    try:
        return clamp_score(float(value))
    except (TypeError, ValueError):
        return 0.0


def transform_scores(raw: Mapping[str, Any]) -> SemanticResult:
    """
    Turn a decoded payload into CriterionResults.

    Issue severity follows the criterion score (<4 critical, <7 warning,
    otherwise info) and each issue is paired with the fix at the same
    position.
    """
    scores: Dict[str, CriterionResult] = {}
    for criterion_id, data in (raw.get("scores") or {}).items():
        if not isinstance(data, Mapping):
            continue
        score = _as_score(data.get("score"))
        severity = Severity.from_score(score)
        fixes = list(data.get("fixes") or [])
        issues = [
            Issue(
                severity=severity,
                message=str(message),
                fix=str(fixes[i]) if i < len(fixes) and fixes[i] else DEFAULT_FIX,
            )
            for i, message in enumerate(data.get("issues") or [])
        ]
        scores[criterion_id] = CriterionResult(
            criterion_id=criterion_id,
            score=score,
            issues=issues,
            details=str(data.get("explanation") or ""),
        )

    top = raw.get("topIssues", raw.get("top_issues")) or []
    return SemanticResult(
        scores=scores,
        summary=raw.get("summary"),
        top_issues=[str(item) for item in top],
        raw=dict(raw),
    )
