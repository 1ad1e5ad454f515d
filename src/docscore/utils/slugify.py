"""
String slugification for report filenames.

Page titles become filesystem-safe, readable names for exported reports.
"""

import re
from typing import Optional

# Matches anything that's not alphanumeric or hyphen
UNSAFE_CHARS_PATTERN = re.compile(r"[^A-Za-z0-9\-]")

WINDOWS_RESERVED_NAMES = {
    "CON",
    "PRN",
    "AUX",
    "NUL",
    *(f"COM{i}" for i in range(1, 10)),
    *(f"LPT{i}" for i in range(1, 10)),
}

DEFAULT_REPORT_SLUG = "report"


def slugify(text: str, replacement: str = "-", max_length: Optional[int] = 200, lowercase: bool = True) -> str:
    """
    Convert a string to a filesystem-safe slug.

    Examples:
        >>> slugify("Hello World!")
        'hello-world'

        >>> slugify("Delete a Record (v2)", replacement="_")
        'delete_a_record_v2'

        >>> slugify("CON")
        'con-reserved'
    """
    if not text or not text.strip():
        return ""

    result = UNSAFE_CHARS_PATTERN.sub(replacement, text.strip())

    # Hyphens survive UNSAFE_CHARS_PATTERN; fold them into the replacement too
    if replacement != "-":
        result = result.replace("-", replacement)

    if len(replacement) == 1:
        result = re.sub(f"{re.escape(replacement)}+", replacement, result)

    result = result.strip(replacement)

    if lowercase:
        result = result.lower()

    parts = result.split(replacement)
    if parts and parts[0].upper() in WINDOWS_RESERVED_NAMES:
        parts.append("reserved")
        result = replacement.join(parts)

    if max_length and len(result) > max_length:
        result = result[:max_length].rstrip(replacement)

    return result


def report_slug(title: Optional[str]) -> str:
    """Filename stem for a page's reports, e.g. ``delete_a_record``."""
    return slugify(title or "", replacement="_", max_length=50) or DEFAULT_REPORT_SLUG
