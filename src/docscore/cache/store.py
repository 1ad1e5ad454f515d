"""
Content-hash keyed cache with TTL expiry and oldest-first pruning.

Entries are plain JSON objects stamped with ``saved_at``. The cache lives in
memory and, when given a path, mirrors itself to a JSON file after every
mutation. A corrupt or unreadable file is treated as an empty cache.
"""

from __future__ import annotations

import hashlib
import json
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import structlog

from docscore.errors import CacheError
from docscore.observability import increment
from docscore.utils import atomic_write_json

logger = structlog.get_logger(__name__)

CACHE_KEY_VERSION = "v1"
DEFAULT_MAX_ENTRIES = 50
DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60


def content_hash(text: str) -> str:
    """Versioned digest of the analysis text, e.g. ``v1-3f2a9c0d1b4e5f60``."""
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
    return f"{CACHE_KEY_VERSION}-{digest}"


def report_cache_key(digest: str, mode: str, settings: Optional[str] = None) -> str:
    """Key for a whole report; ``settings`` ties it to the scoring config that produced it."""
    return f"{digest}:{mode}:{settings}" if settings else f"{digest}:{mode}"


def settings_fingerprint(settings: Any) -> str:
    """Short stable digest of a JSON-serializable settings snapshot."""
    serialized = json.dumps(settings, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:12]


def _namespace(key: str) -> str:
    return "report" if ":" in key else "semantic"


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def _parse_iso(value: Any) -> Optional[float]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value).timestamp()
    except ValueError:
        return None


class ContentHashCache:
    """
    Bounded, expiring key/value store for semantic results and whole reports.

    All read-modify-write sequences hold an RLock, so one cache can be shared
    by concurrent scoring runs.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        path: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.path = Path(path) if path else None
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._hits = 0
        self._misses = 0
        if self.path is not None:
            try:
                self._entries = self._load()
            except CacheError as e:
                logger.warning("Ignoring unreadable cache file", path=str(self.path), error=str(e))

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the entry for ``key``, or None when absent or expired (expired entries are dropped)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry):
                logger.debug("Cache entry expired", key=key)
                del self._entries[key]
                self._persist_quietly()
                entry = None

            if entry is None:
                self._misses += 1
                increment("cache_operations", labels={"cache": _namespace(key), "result": "miss"})
                return None

            self._hits += 1
            increment("cache_operations", labels={"cache": _namespace(key), "result": "hit"})
            return dict(entry)

    def set(self, key: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Store ``payload`` stamped with ``saved_at`` and prune to ``max_entries`` (oldest first)."""
        now = self._clock()
        entry = dict(payload)
        entry["saved_at"] = _iso(now)
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = entry
            self._prune()
            self._persist_quietly()
        return dict(entry)

    def evict(self, key: str) -> bool:
        with self._lock:
            removed = self._entries.pop(key, None) is not None
            if removed:
                self._persist_quietly()
            return removed

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._persist_quietly()
            return count

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            semantic = sum(1 for key in self._entries if _namespace(key) == "semantic")
            return {
                "entries": len(self._entries),
                "semantic_entries": semantic,
                "report_entries": len(self._entries) - semantic,
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "path": str(self.path) if self.path else None,
            }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # -- internals ---------------------------------------------------------

    def _expired(self, entry: Dict[str, Any]) -> bool:
        saved_at = _parse_iso(entry.get("saved_at"))
        if saved_at is None:
            return False
        return self._clock() - saved_at > self.ttl_seconds

    def _prune(self) -> None:
        if len(self._entries) <= self.max_entries:
            return
        ranked = sorted(
            enumerate(self._entries.items()),
            key=lambda item: (_parse_iso(item[1][1].get("saved_at")) or 0.0, item[0]),
            reverse=True,
        )
        keep = {key for _, (key, _) in ranked[: self.max_entries]}
        dropped = [key for key in self._entries if key not in keep]
        for key in dropped:
            del self._entries[key]
        logger.debug("Pruned cache entries", dropped=len(dropped), remaining=len(self._entries))

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CacheError(f"Cannot read cache file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise CacheError(f"Cache file {self.path} does not hold a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, dict)}

    def _persist(self) -> None:
        if self.path is None:
            return
        try:
            atomic_write_json(self.path, self._entries)
        except (OSError, ValueError) as e:
            raise CacheError(f"Cannot write cache file {self.path}: {e}") from e

    def _persist_quietly(self) -> None:
        try:
            self._persist()
        except CacheError as e:
            logger.warning("Cache persistence failed", error=str(e))
