"""Content intake and the metrics calculator."""

from .content import content_to_dict, normalize, text_for_analysis, validate
from .metrics import (
    compute_metrics,
    compute_section_metrics,
    is_procedural_list,
    validate_heading_hierarchy,
)

__all__ = [
    "compute_metrics",
    "compute_section_metrics",
    "content_to_dict",
    "is_procedural_list",
    "normalize",
    "text_for_analysis",
    "validate",
    "validate_heading_hierarchy",
]
