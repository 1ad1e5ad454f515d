"""Content-hash cache and scoring history."""

from .history import ReportHistory
from .store import CACHE_KEY_VERSION, ContentHashCache, content_hash, report_cache_key, settings_fingerprint

__all__ = [
    "CACHE_KEY_VERSION",
    "ContentHashCache",
    "ReportHistory",
    "content_hash",
    "report_cache_key",
    "settings_fingerprint",
]
