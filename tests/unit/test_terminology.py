"""Tests for the Consistent Terminology evaluator."""

from docscore.config import ScoringConfig
from docscore.parser import compute_metrics, normalize
from docscore.protocols import Severity
from docscore.rules import TerminologyEvaluator, detect_confusable_terms, score_term_consistency
from docscore.rules.terminology import extract_action_terms, normalize_term
from tests.helpers import build_page

DEACTIVATE_TEXT = (
    "Deactivate the user. Deactivate the group. Deactivate the team. "
    "Disable the alert. Disable the rule."
)


def _content(text):
    return normalize(build_page(full_text=text))


def test_confusable_pair_costs_two_points():
    result = detect_confusable_terms(_content(DEACTIVATE_TEXT))

    assert result.score == 8
    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.severity is Severity.WARNING
    assert issue.message == 'Potentially confusable terms in state changes: "deactivate" and "disable"'
    assert issue.details == '"deactivate" used 3x, "disable" used 2x'


def test_every_flagged_pair_is_counted():
    text = "Delete the file, then remove the folder. Deactivate or disable it. Uninstall the app."
    result = detect_confusable_terms(_content(text))
    assert result.score == 4
    assert len(result.issues) == 3


def test_single_term_is_not_flagged():
    assert detect_confusable_terms(_content("Delete the record. Delete the file.")).score == 10


def test_synonym_drift_lowers_consistency():
    result = score_term_consistency(_content(DEACTIVATE_TEXT))

    assert result.score == 0
    assert result.issues[0].fix == 'Standardize on "deactivate" throughout the documentation'
    assert result.extra["term_analysis"]["deactivate"] == {"deactivate": 3, "disable": 2}


def test_consistent_page_scores_ten():
    assert score_term_consistency(_content("Delete the record. Delete the file.")).score == 10


def test_stem_clusters_deduct_a_point():
    result = score_term_consistency(_content("export export exported exported"))

    assert result.score == 9
    assert result.issues[0].severity is Severity.INFO
    assert result.issues[0].message == 'Potential terminology variants for "export"'


def test_plural_only_cluster_is_ignored():
    assert score_term_consistency(_content("widget widget widgets widgets")).score == 10


def test_multi_word_variants_are_matched():
    groups = extract_action_terms("Turn on the feature, then Turn  on the alerts and enable logging.")
    assert groups["enable"].variants == {"enable": 1, "turn on": 2}


def test_normalize_term():
    assert normalize_term("Exported,") == "export"
    assert normalize_term("set--up") == "set-up"


def test_evaluator_weights(sample_page):
    content = normalize(sample_page)
    config = ScoringConfig()
    result = TerminologyEvaluator().evaluate(compute_metrics(content, config), content, config)

    assert result.id == "CAT-02"
    assert set(result.criteria) == {"AV-01", "AV-02"}
    expected = round(result.criteria["AV-01"].score * 0.6 + result.criteria["AV-02"].score * 0.4, 1)
    assert result.score == expected


def test_deactivate_disable_category_score():
    content = _content(DEACTIVATE_TEXT)
    config = ScoringConfig()
    result = TerminologyEvaluator().evaluate(compute_metrics(content, config), content, config)
    assert result.score == 3.2
