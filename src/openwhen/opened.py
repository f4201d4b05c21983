"""Opened-letter state, keyed by the ids the decoder returns.

Legacy links get derived ids, so the same link always maps to the same
entries here.
"""

from __future__ import annotations

import threading
from datetime import datetime

from openwhen.schedule import utcnow


class OpenedLetterStore:
    """In-memory record of which letters have been opened, and when."""

    def __init__(self):
        self._lock = threading.Lock()
        self._opened: dict[tuple[str, str], datetime] = {}

    def mark_opened(self, collection_id: str, letter_id: str, at: datetime | None = None) -> datetime:
        """Record an opening. The first timestamp is kept on repeat opens."""
        with self._lock:
            return self._opened.setdefault((collection_id, letter_id), at or utcnow())

    def is_opened(self, collection_id: str, letter_id: str) -> bool:
        with self._lock:
            return (collection_id, letter_id) in self._opened

    def opened_at(self, collection_id: str, letter_id: str) -> datetime | None:
        with self._lock:
            return self._opened.get((collection_id, letter_id))

    def count(self) -> int:
        with self._lock:
            return len(self._opened)
