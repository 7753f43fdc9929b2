"""
In-process tenant cache with fixed TTL expiry

Holds both found tenants and confirmed misses (value None) so a missing
tenant does not cost a database round-trip on every request. There is no
eviction besides TTL; tenant cardinality is expected to stay small.
"""
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import structlog

from ..schemas.tenant import TenantRecord

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 300


@dataclass(frozen=True)
class CacheEntry:
    value: Optional[TenantRecord]
    fetched_at: float


@dataclass(frozen=True)
class CacheStats:
    size: int
    keys: List[str] = field(default_factory=list)
    ttl_seconds: int = DEFAULT_TTL_SECONDS


class TenantCache:
    """Thread-safe subdomain -> CacheEntry map"""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            ttl_seconds: Maximum age of an entry before it must be re-fetched
            clock: Monotonic time source (injectable for tests)
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def build_key(subdomain: str) -> str:
        return f"tenant:{subdomain.lower()}"

    def get(self, subdomain: str) -> Optional[CacheEntry]:
        """Return the entry while it is fresh, None when missing or stale"""
        key = self.build_key(subdomain)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            logger.debug("cache_stale", key=key)
            return None
        logger.debug("cache_hit", key=key, negative=entry.value is None)
        return entry

    def put(self, subdomain: str, value: Optional[TenantRecord]) -> CacheEntry:
        """Store a tenant (or None for a confirmed miss), overwriting any prior entry"""
        entry = CacheEntry(value=value, fetched_at=self._clock())
        with self._lock:
            self._entries[self.build_key(subdomain)] = entry
        return entry

    def invalidate(self, subdomain: str) -> bool:
        key = self.build_key(subdomain)
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        logger.info("cache_invalidated", key=key, removed=removed)
        return removed

    def clear(self) -> int:
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        logger.warning("cache_cleared_all", dropped=dropped)
        return dropped

    def stats(self) -> CacheStats:
        """Current entry count and keys, stale entries included"""
        with self._lock:
            keys = list(self._entries.keys())
        return CacheStats(size=len(keys), keys=keys, ttl_seconds=self.ttl_seconds)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
