# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""AST analysis result cache with LRU, TTL and access-count eviction.

Avoids re-parsing unchanged files: results are keyed by file path, a hash of
the file content, a hash of the defined-method set and the language tag, so
any change to the inputs produces a different key.

Key Features:
- LRU (Least Recently Used) eviction at capacity (default 100 entries)
- Time-to-live expiry (default 30 minutes)
- Per-entry access-count ceiling (default 1000 hits)
- Optional background eviction timer, started and stopped by the host
- Statistics tracking for cache performance

Thread Safety:
- Single _cache_lock protects _cache and _stats, including the
  read-modify-write of entry metadata (last_accessed, access_count)
- The eviction timer only calls cleanup_expired(), which takes the same lock
- Results are deep-copied on put and get; callers never share cached objects
"""

import copy
import hashlib
import logging
import threading
import time
from collections import OrderedDict
from threading import Lock
from typing import AbstractSet, Callable, Optional, Tuple

from callgraph_engine.models import AnalysisResult, CacheEntry, CacheStatistics

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str, str]

DEFAULT_MAX_ENTRIES = 100
DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_MAX_ACCESS_COUNT = 1000
DEFAULT_CLEANUP_INTERVAL_SECONDS = 5 * 60


def content_hash(content: str) -> str:
    """Short SHA-256 digest of file content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def defined_methods_hash(defined_methods: Optional[AbstractSet[str]]) -> str:
    """Order-independent digest of a defined-method set ("none" when absent)."""
    if defined_methods is None:
        return "none"
    joined = "\n".join(sorted(defined_methods))
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:16]


class AnalysisCache:
    """LRU + TTL cache of AnalysisResult objects.

    One instance is owned by the engine and handed to the analyzers that use
    it. Nothing is global: hosts that want periodic eviction call
    start_cleanup_timer() and stop_cleanup_timer() themselves.

    Usage:
        cache = AnalysisCache(max_entries=100, ttl_seconds=1800)
        key = cache.make_key(file.path, file.content, defined, file.language)
        result = cache.get(key)
        if result is None:
            result = analyze(file)
            cache.put(key, result)
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_access_count: int = DEFAULT_MAX_ACCESS_COUNT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            max_entries: Capacity; the least recently used entry is evicted beyond it.
            ttl_seconds: Entries older than this are treated as absent.
            max_access_count: Entries served this many times are evicted on the next lookup.
            clock: Time source in seconds (injectable for tests).
        """
        self._cache: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._max_access_count = max_access_count
        self._clock = clock

        self._stats = CacheStatistics()
        self._cache_lock = Lock()

        self._timer: Optional[threading.Timer] = None
        self._timer_interval: float = DEFAULT_CLEANUP_INTERVAL_SECONDS
        self._timer_lock = Lock()

        logger.debug(
            f"AnalysisCache initialized with max_entries={max_entries}, "
            f"ttl={ttl_seconds}s, max_access_count={max_access_count}"
        )

    @staticmethod
    def make_key(
        path: str,
        content: str,
        defined_methods: Optional[AbstractSet[str]],
        language: str,
    ) -> CacheKey:
        """Build the cache key for one analysis input."""
        return (path, content_hash(content), defined_methods_hash(defined_methods), language)

    def get(self, key: CacheKey) -> Optional[AnalysisResult]:
        """Return the cached result for key, or None on a miss.

        Expired entries and entries that reached the access-count ceiling are
        evicted and reported as misses.
        """
        with self._cache_lock:
            entry = self._cache.get(key)
            if entry is None:
                self._stats.misses += 1
                return None

            now = self._clock()
            if now - entry.created_at > self._ttl_seconds:
                del self._cache[key]
                self._stats.evictions_expired += 1
                self._stats.misses += 1
                self._stats.current_entry_count = len(self._cache)
                logger.debug(f"Cache entry expired: {key[0]}")
                return None

            if entry.access_count >= self._max_access_count:
                del self._cache[key]
                self._stats.evictions_access_limit += 1
                self._stats.misses += 1
                self._stats.current_entry_count = len(self._cache)
                logger.debug(f"Cache entry reached access limit: {key[0]}")
                return None

            entry.last_accessed = now
            entry.access_count += 1
            self._cache.move_to_end(key)
            self._stats.hits += 1

            logger.debug(f"Cache hit: {key[0]} (access_count={entry.access_count})")
            return copy.deepcopy(entry.result)

    def put(self, key: CacheKey, result: AnalysisResult) -> None:
        """Store a result, evicting least recently used entries beyond capacity."""
        with self._cache_lock:
            now = self._clock()
            self._cache[key] = CacheEntry(
                result=copy.deepcopy(result), created_at=now, last_accessed=now
            )
            self._cache.move_to_end(key)

            while len(self._cache) > self._max_entries:
                evicted_key, _ = self._cache.popitem(last=False)
                self._stats.evictions_lru += 1
                logger.debug(f"Evicted LRU entry: {evicted_key[0]}")

            self._stats.current_entry_count = len(self._cache)
            if self._stats.current_entry_count > self._stats.peak_entry_count:
                self._stats.peak_entry_count = self._stats.current_entry_count

    def cleanup_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed.
        """
        with self._cache_lock:
            now = self._clock()
            expired = [
                key
                for key, entry in self._cache.items()
                if now - entry.created_at > self._ttl_seconds
            ]
            for key in expired:
                del self._cache[key]
            self._stats.evictions_expired += len(expired)
            self._stats.current_entry_count = len(self._cache)

        if expired:
            logger.debug(f"Cache cleanup removed {len(expired)} expired entries")
        return len(expired)

    def clear(self) -> None:
        """Clear all cache entries (statistics counters are kept)."""
        with self._cache_lock:
            self._cache.clear()
            self._stats.current_entry_count = 0
            logger.debug("Cache cleared")

    def stats(self) -> CacheStatistics:
        """Get a snapshot of cache performance statistics."""
        with self._cache_lock:
            # Return a copy to avoid external mutation
            return CacheStatistics(
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions_lru=self._stats.evictions_lru,
                evictions_expired=self._stats.evictions_expired,
                evictions_access_limit=self._stats.evictions_access_limit,
                current_entry_count=self._stats.current_entry_count,
                peak_entry_count=self._stats.peak_entry_count,
            )

    def __len__(self) -> int:
        with self._cache_lock:
            return len(self._cache)

    # Background eviction

    def start_cleanup_timer(
        self, interval_seconds: float = DEFAULT_CLEANUP_INTERVAL_SECONDS
    ) -> None:
        """Start periodic cleanup_expired() calls on a daemon timer thread.

        Calling it while the timer runs restarts it with the new interval.
        """
        with self._timer_lock:
            self._cancel_timer()
            self._timer_interval = interval_seconds
            self._schedule()
        logger.info(f"Cache cleanup timer started (interval={interval_seconds}s)")

    def stop_cleanup_timer(self) -> None:
        """Stop the background cleanup timer if it is running."""
        with self._timer_lock:
            was_running = self._timer is not None
            self._cancel_timer()
        if was_running:
            logger.info("Cache cleanup timer stopped")

    @property
    def is_cleanup_running(self) -> bool:
        with self._timer_lock:
            return self._timer is not None

    def _schedule(self) -> None:
        timer = threading.Timer(self._timer_interval, self._run_cleanup)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _run_cleanup(self) -> None:
        try:
            self.cleanup_expired()
        except Exception as e:
            logger.error(f"Cache cleanup failed: {e}", exc_info=True)
        with self._timer_lock:
            # Re-arm only if nobody stopped the timer while cleanup ran
            if self._timer is not None:
                self._schedule()
