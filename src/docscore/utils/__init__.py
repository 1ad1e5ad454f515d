"""Utility modules for DocScore."""

from .atomic import atomic_write_json, atomic_write_text
from .numeric import format_score, mean, round1, round2, round_half_up
from .slugify import report_slug, slugify

__all__ = [
    "atomic_write_json",
    "atomic_write_text",
    "format_score",
    "mean",
    "report_slug",
    "round1",
    "round2",
    "round_half_up",
    "slugify",
]
