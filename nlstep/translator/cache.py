"""In-process translation cache keyed by (step, rendered snapshot)."""

from __future__ import annotations

import hashlib
import logging
import threading

from nlstep.models.actions import Action
from nlstep.models.semantic_tree import SemanticTreeSnapshot

from .translator import RenderedStepTranslator, stabilize_locators

logger = logging.getLogger(__name__)


def fingerprint(step: str, screen_hierarchy: str) -> str:
    combined = f"{step}:{screen_hierarchy}"
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()


class TranslationCache:
    """Most recent translation per fingerprint, for one process lifetime.

    Reads and inserts are serialized by a lock. Two threads missing on the
    same fingerprint may both call the backend; the later insert wins.
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[Action]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> list[Action] | None:
        with self._lock:
            actions = self._entries.get(key)
            if actions is None:
                self.misses += 1
                return None
            self.hits += 1
            return [a.model_copy(deep=True) for a in actions]

    def put(self, key: str, actions: list[Action]) -> None:
        with self._lock:
            self._entries[key] = [a.model_copy(deep=True) for a in actions]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
        logger.info("Translation cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CachingTranslator:
    """Serves repeated (step, screen) pairs from a TranslationCache."""

    def __init__(self, inner: RenderedStepTranslator, cache: TranslationCache):
        self.inner = inner
        self.cache = cache

    def translate(self, step: str, snapshot: SemanticTreeSnapshot) -> list[Action]:
        actions = self.translate_rendered(step, snapshot.render())
        return stabilize_locators(actions, snapshot)

    def translate_rendered(self, step: str, screen_hierarchy: str) -> list[Action]:
        key = fingerprint(step, screen_hierarchy)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Translation cache hit for step: %s", step)
            return cached
        actions = self.inner.translate_rendered(step, screen_hierarchy)
        self.cache.put(key, actions)
        return actions
