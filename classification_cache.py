"""In-process memo of description -> ClassificationResult."""

from __future__ import annotations

import threading

from models import ClassificationResult


class ClassificationCache:
    """Thread-safe key-value memo keyed by the exact ementa text.

    No eviction and no TTL: entries live as long as the cache object. Two
    concurrent misses for the same key are not collapsed, so both callers may
    reach the upstream classifier before either result is stored.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ClassificationResult] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> ClassificationResult | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: ClassificationResult) -> None:
        with self._lock:
            self._entries[key] = value

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
