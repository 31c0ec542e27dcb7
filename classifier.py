"""Cache-backed classifier adapter that never fails from the caller's view."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from classification_cache import ClassificationCache
from llm_client import request_classification
from models import CATCH_ALL_CATEGORY, CATEGORIES, ClassificationResult

LOGGER = logging.getLogger(__name__)

FALLBACK_RESULT = ClassificationResult(category=CATCH_ALL_CATEGORY, locations=())


class ClassifierAdapter:
    """Classify ementas through ``request_fn``, memoizing every outcome.

    ``request_fn`` takes the ementa text and returns a ``{category, locations}``
    mapping or raises. Failures and malformed payloads resolve to
    ``FALLBACK_RESULT``, which is cached like a successful answer.
    """

    def __init__(
        self,
        cache: ClassificationCache,
        request_fn: Callable[[str], dict[str, Any]] = request_classification,
    ) -> None:
        self.cache = cache
        self._request_fn = request_fn
        self._calls = 0
        self._calls_lock = threading.Lock()

    @property
    def calls(self) -> int:
        """Number of upstream classification requests issued so far."""
        return self._calls

    def classify(self, description: str) -> ClassificationResult:
        cached = self.cache.get(description)
        if cached is not None:
            return cached

        with self._calls_lock:
            self._calls += 1

        try:
            payload = self._request_fn(description)
            result = normalize_result(payload)
        except Exception as exc:
            LOGGER.warning("Classification failed, using fallback category %r: %s", CATCH_ALL_CATEGORY, exc)
            result = FALLBACK_RESULT

        self.cache.put(description, result)
        return result


def normalize_result(payload: Any) -> ClassificationResult:
    """Turn a raw classifier payload into a ClassificationResult.

    Raises:
        ValueError: when ``category`` is missing or ``locations`` is not a list.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")

    category = payload.get("category")
    locations = payload.get("locations")
    if not category or not isinstance(category, str):
        raise ValueError("Classifier payload has no category")
    if not isinstance(locations, list):
        raise ValueError("Classifier payload locations is not a list")

    if category not in CATEGORIES:
        LOGGER.info("Coercing unknown category %r to %r", category, CATCH_ALL_CATEGORY)
        category = CATCH_ALL_CATEGORY
    names = tuple(loc for loc in locations if isinstance(loc, str))
    if len(names) != len(locations):
        LOGGER.info("Dropped %s non-string locations from classifier payload", len(locations) - len(names))
    return ClassificationResult(category=category, locations=names)
