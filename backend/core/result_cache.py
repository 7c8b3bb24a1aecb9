"""
Memoized match results.

Bounded LRU keyed by normalized name plus hints. Every entry is stamped with
the catalog version it was resolved against; invalidate_all() clears the
cache and advances the version, and a put() stamped with an older version is
dropped, so a resolution that started before a rebuild never lands in the
cache afterwards.
"""
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from backend.core.exercise_matcher import MatchResult

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    result: MatchResult
    catalog_version: int
    inserted_at: float = field(default_factory=time.monotonic)

    def is_expired(self, ttl_seconds: Optional[float], now: float) -> bool:
        return ttl_seconds is not None and now - self.inserted_at > ttl_seconds


class ResultCache:
    """Thread-safe LRU of MatchResult objects."""

    def __init__(self, max_size: int = 500, ttl_seconds: Optional[float] = None):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._catalog_version = 0

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0
        self._invalidations = 0
        self._stale_puts = 0

    @property
    def catalog_version(self) -> int:
        return self._catalog_version

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, key: str) -> Optional[MatchResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(self._ttl, time.monotonic()):
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.result

    def put(self, key: str, result: MatchResult, catalog_version: Optional[int] = None) -> bool:
        """
        Store a result.

        Args:
            key: Cache key from cache_key()
            result: Result to store
            catalog_version: Catalog version the result was resolved against;
                defaults to the cache's current version

        Returns:
            False if the result was dropped because it is stale
        """
        with self._lock:
            version = self._catalog_version if catalog_version is None else catalog_version
            if version < self._catalog_version:
                self._stale_puts += 1
                logger.debug(
                    "Dropping stale cache put for '%s' (v%d < v%d)",
                    key, version, self._catalog_version,
                )
                return False

            self._entries[key] = CacheEntry(
                key=key, result=result, catalog_version=version, inserted_at=time.monotonic()
            )
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                self._entries.popitem(last=False)
                self._evictions += 1
            return True

    def invalidate_all(self, catalog_version: Optional[int] = None) -> int:
        """
        Drop every entry and move to a new catalog version.

        Registered as a CatalogIndex rebuild listener, which passes the newly
        published version. Returns the number of entries dropped.
        """
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            if catalog_version is None:
                self._catalog_version += 1
            else:
                self._catalog_version = max(self._catalog_version, catalog_version)
            self._invalidations += 1
        if dropped:
            logger.info(
                "Invalidated %d cached results (catalog v%d)", dropped, self._catalog_version
            )
        return dropped

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": len(self._entries),
                "max_size": self._max_size,
                "ttl_seconds": self._ttl,
                "catalog_version": self._catalog_version,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
                "evictions": self._evictions,
                "expirations": self._expirations,
                "invalidations": self._invalidations,
                "stale_puts": self._stale_puts,
            }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and not entry.is_expired(self._ttl, time.monotonic())
