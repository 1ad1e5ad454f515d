"""Prompt text for the remote semantic scorer."""

from __future__ import annotations

from typing import Tuple

from docscore.protocols import NormalizedContent

SYSTEM_PROMPT = """You are an expert technical documentation analyst specializing in AI-friendly documentation.
Your task is to score documentation based on specific criteria that affect how well AI assistants can understand and use the content.

Score each criterion on a 0-10 scale:
- 10: Excellent, no issues
- 7-9: Good, minor improvements possible
- 4-6: Needs work, several issues
- 1-3: Poor, major issues
- 0: Completely fails the criterion

For each criterion, provide:
1. A numeric score (0-10)
2. A brief explanation
3. Specific issues found (if any)
4. Concrete fix suggestions

Respond in valid JSON format only."""

# (criterion id, title, question put to the model)
SEMANTIC_CRITERIA: Tuple[Tuple[str, str, str], ...] = (
    (
        "CS-03",
        "Step Atomicity",
        "Does each procedural step contain only ONE action? Look for compound actions like "
        '"Click X and then select Y" which should be separate steps.',
    ),
    (
        "CS-05",
        "Workflow Separation",
        "Is the content focused on ONE primary workflow? Or does it mix multiple workflows "
        "(e.g., install AND usage AND troubleshooting)?",
    ),
    ("OR-01", "Outcome Clarity", "After describing actions, does the doc clearly state what changes/happens as a result?"),
    ("OR-02", "Affected Data", "Does the doc explicitly state what data or settings are affected by actions?"),
    ("OR-03", "Reversibility", "For actions that change state, does the doc indicate whether they can be undone?"),
    (
        "OR-04",
        "Destructive Warnings",
        "Are destructive actions (delete, remove, uninstall) clearly marked with warnings about consequences?",
    ),
    (
        "GAP-03",
        "No Dangling References",
        'Do sections start with clear context, or do they begin with "This", "It", "These" '
        "without clear antecedents?",
    ),
    (
        "GAP-04",
        "Self-Sufficient Sections",
        'Can each section be understood independently, or does it rely on "as mentioned above" '
        "without restating key info?",
    ),
    ("PP-01", "Scope Defined", "Is it clear who can perform the actions and under what conditions?"),
    ("PP-02", "Plan Requirements", "Are pricing plan or edition requirements mentioned where relevant?"),
    ("PP-03", "Permission Requirements", "Are required roles or permissions clearly stated?"),
    ("PP-04", "Preconditions", "Are prerequisites or preconditions called out before procedures?"),
    (
        "AV-02",
        "Term Conflation",
        "Are there terms used interchangeably that should have distinct meanings (e.g., delete vs remove)?",
    ),
)

SEMANTIC_CRITERION_IDS = tuple(criterion_id for criterion_id, _, _ in SEMANTIC_CRITERIA)


def _response_template() -> str:
    entry = '{ "score": N, "explanation": "...", "issues": ["..."], "fixes": ["..."] }'
    lines = [f'    "{criterion_id}": {entry}' for criterion_id in SEMANTIC_CRITERION_IDS]
    return (
        "{\n"
        '  "scores": {\n' + ",\n".join(lines) + "\n  },\n"
        '  "summary": "Brief overall assessment",\n'
        '  "topIssues": ["Top 3 most important issues to fix"]\n'
        "}"
    )


def build_user_prompt(content: NormalizedContent, analysis_text: str) -> str:
    criteria = "\n\n".join(
        f"### {criterion_id}: {title}\n{question}" for criterion_id, title, question in SEMANTIC_CRITERIA
    )
    return (
        "Analyze this documentation page for AI-friendliness.\n\n"
        "## Page Information\n"
        f"URL: {content.meta.url}\n"
        f"Title: {content.meta.title}\n\n"
        "## Content\n"
        f"{analysis_text}\n\n"
        "## Criteria to Evaluate\n\n"
        f"{criteria}\n\n"
        "Respond with this exact JSON structure:\n"
        f"{_response_template()}"
    )


VERIFY_KEY_PROMPT = 'Say "API key verified" and nothing else.'
