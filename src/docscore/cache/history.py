"""
Scoring history: one entry per URL, newest first, bounded.
"""

from __future__ import annotations

import json
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from docscore.protocols import ScoreReport
from docscore.utils import atomic_write_json

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ITEMS = 50


class ReportHistory:
    """
    Persistent list of past scores.

    Re-scoring a URL replaces its entry in place; a new URL is inserted at
    the front and the list is truncated to ``max_items``.
    """

    def __init__(self, path: Optional[Path] = None, max_items: int = DEFAULT_MAX_ITEMS) -> None:
        self.path = Path(path) if path else None
        self.max_items = max_items
        self._lock = threading.RLock()
        self._items: List[Dict[str, Any]] = self._load()

    def record(self, report: ScoreReport) -> Dict[str, Any]:
        entry = {
            "id": uuid.uuid4().hex[:12],
            "url": report.meta.url,
            "title": report.meta.title,
            "composite_score": report.composite_score,
            "status": report.status.value,
            "mode": report.meta.mode,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "category_scores": {key: category.score for key, category in report.categories.items()},
        }
        with self._lock:
            for position, existing in enumerate(self._items):
                if existing.get("url") == entry["url"]:
                    self._items[position] = entry
                    break
            else:
                self._items.insert(0, entry)
            del self._items[self.max_items :]
            self._save()
        logger.debug("History updated", url=entry["url"], size=len(self._items))
        return entry

    def entries(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._lock:
            items = [dict(item) for item in self._items]
        return items[:limit] if limit is not None else items

    def remove(self, entry_id: str) -> bool:
        with self._lock:
            before = len(self._items)
            self._items = [item for item in self._items if item.get("id") != entry_id]
            removed = len(self._items) != before
            if removed:
                self._save()
            return removed

    def clear(self) -> int:
        with self._lock:
            count = len(self._items)
            self._items = []
            self._save()
            return count

    def __len__(self) -> int:
        return len(self._items)

    def _load(self) -> List[Dict[str, Any]]:
        if self.path is None or not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable history file", path=str(self.path), error=str(e))
            return []
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)][: self.max_items]

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            atomic_write_json(self.path, self._items)
        except (OSError, ValueError) as e:
            logger.warning("History persistence failed", path=str(self.path), error=str(e))
