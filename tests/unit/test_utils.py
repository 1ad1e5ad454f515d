"""
Unit tests for utility modules (atomic writes, slugification and rounding).
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from docscore.utils import (
    atomic_write_json,
    atomic_write_text,
    format_score,
    mean,
    report_slug,
    round1,
    round2,
    round_half_up,
    slugify,
)


class TestAtomicWrite:
    """Test atomic file writing utilities."""

    def test_atomic_write_json_basic(self, tmp_path):
        test_file = tmp_path / "cache.json"
        test_data = {"v1-abc": {"raw": {}, "saved_at": "2024-05-01T00:00:00+00:00"}}

        atomic_write_json(test_file, test_data)

        assert json.loads(test_file.read_text(encoding="utf-8")) == test_data

    def test_atomic_write_json_creates_parent_dir(self, tmp_path):
        nested_file = tmp_path / "nested" / "deep" / "history.json"

        atomic_write_json(nested_file, [])

        assert nested_file.exists()

    def test_atomic_write_json_invalid_data(self, tmp_path):
        target = tmp_path / "bad.json"

        with pytest.raises(ValueError):
            atomic_write_json(target, {"obj": object()})

        assert not target.exists()

    def test_atomic_write_text_keeps_unicode(self, tmp_path):
        target = tmp_path / "report.md"

        atomic_write_text(target, "- a ↔ b (92%)")

        assert target.read_text(encoding="utf-8") == "- a ↔ b (92%)"

    def test_failed_rename_leaves_no_temp_files(self, tmp_path):
        target = tmp_path / "report.md"

        with patch("docscore.utils.atomic.os.replace", side_effect=OSError("boom")), patch(
            "docscore.utils.atomic.shutil.move", side_effect=OSError("still boom")
        ):
            with pytest.raises(OSError):
                atomic_write_text(target, "content")

        assert list(tmp_path.iterdir()) == []


class TestSlugify:
    def test_basic_slugification(self):
        assert slugify("Hello World!") == "hello-world"

    def test_replacement_character(self):
        assert slugify("Delete a Record (v2)", replacement="_") == "delete_a_record_v2"

    def test_windows_reserved_names(self):
        assert slugify("CON") == "con-reserved"

    def test_empty_and_whitespace(self):
        assert slugify("") == ""
        assert slugify("   ") == ""

    def test_max_length(self):
        assert len(slugify("a" * 300)) == 200

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Delete a Record", "delete_a_record"),
            ("Set up SSO: Okta & Azure AD", "set_up_sso_okta_azure_ad"),
            ("", "report"),
            (None, "report"),
            ("!!!", "report"),
        ],
    )
    def test_report_slug(self, title, expected):
        assert report_slug(title) == expected

    def test_report_slug_is_bounded(self):
        assert len(report_slug("word " * 40)) <= 50


class TestRounding:
    @pytest.mark.parametrize("value,expected", [(2.5, 3), (3.5, 4), (0.5, 1), (7.49, 7), (0, 0)])
    def test_round_half_up_integers(self, value, expected):
        assert round_half_up(value) == expected

    def test_round1_and_round2(self):
        assert round1(7.25) == 7.3
        assert round1(6.94) == 6.9
        assert round2(0.333) == 0.33

    def test_mean_of_nothing_is_none(self):
        assert mean([]) is None
        assert mean([4, 6]) == 5

    @pytest.mark.parametrize("value,expected", [(7.0, "7"), (6.5, "6.5"), (10, "10"), (0.0, "0")])
    def test_format_score(self, value, expected):
        assert format_score(value) == expected


def test_paths_accept_strings(tmp_path):
    target = str(tmp_path / "plain.txt")
    atomic_write_text(target, "ok")
    assert Path(target).read_text(encoding="utf-8") == "ok"
