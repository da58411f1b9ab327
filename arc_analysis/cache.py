# arc_analysis/cache.py
"""Memoization for arc analyses."""

from __future__ import annotations

import copy
import hashlib
import threading
import time
from collections.abc import Callable, Hashable
from typing import Any

import structlog

from config import settings
from models import NovelState

logger = structlog.get_logger(__name__)


class AnalysisCache:
    """TTL cache with oldest-first eviction.

    Keys are tuples whose first element is the novel id, so
    :meth:`invalidate` can drop a single novel's entries. Values are deep
    copied on the way in and out; callers never share a cached object.
    """

    def __init__(
        self,
        max_entries: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be greater than zero")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be greater than zero")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: dict[Hashable, tuple[float, float, Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            stored_at, ttl, value = item
            if self._clock() - stored_at > ttl:
                del self._data[key]
                logger.debug("Analysis cache entry expired", key=key)
                return None
        return copy.deepcopy(value)

    def set(self, key: Hashable, value: Any, ttl: float | None = None) -> None:
        stored = copy.deepcopy(value)
        with self._lock:
            self._data.pop(key, None)
            while len(self._data) >= self.max_entries:
                oldest = min(self._data.items(), key=lambda x: x[1][0])[0]
                del self._data[oldest]
                logger.debug("Analysis cache evicted oldest entry", key=oldest)
            self._data[key] = (
                self._clock(),
                ttl if ttl is not None else self.ttl_seconds,
                stored,
            )

    def get_or_compute(
        self,
        key: Hashable,
        compute_fn: Callable[[], Any],
        ttl: float | None = None,
    ) -> Any:
        """Return the cached value for ``key`` or compute and store it."""
        cached = self.get(key)
        if cached is not None:
            logger.debug("Analysis cache hit", key=key)
            return cached
        value = compute_fn()
        self.set(key, value, ttl=ttl)
        return value

    def invalidate(self, novel_id: str | None = None) -> None:
        with self._lock:
            if novel_id is None:
                self._data.clear()
                return
            stale = [
                k for k in self._data if isinstance(k, tuple) and k and k[0] == novel_id
            ]
            for key in stale:
                del self._data[key]
        logger.debug("Analysis cache invalidated", novel_id=novel_id)


def _content_digest(novel: NovelState) -> str:
    hasher = hashlib.sha256()
    for chapter in novel.sorted_chapters:
        hasher.update(chapter.model_dump_json().encode("utf-8"))
    for arc in novel.arcs:
        hasher.update(arc.model_dump_json().encode("utf-8"))
    return hasher.hexdigest()


def state_fingerprint(
    novel: NovelState, namespace: str, mode: str | None = None
) -> tuple:
    """Build the cache key for ``namespace`` over ``novel``.

    ``counts`` mode keys on the number of chapters and arcs only, so an edit
    that keeps both counts is served from cache until the TTL expires.
    ``content`` mode hashes every chapter and arc.
    """
    mode = mode or settings.ANALYSIS_CACHE_FINGERPRINT
    if mode == "content":
        return (novel.id, namespace, _content_digest(novel))
    return (novel.id, namespace, len(novel.chapters), len(novel.arcs))


def default_cache_from_settings() -> AnalysisCache:
    return AnalysisCache(
        max_entries=settings.ANALYSIS_CACHE_MAX_ENTRIES,
        ttl_seconds=settings.ANALYSIS_CACHE_TTL_SECONDS,
    )
