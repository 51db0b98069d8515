"""
=============================================================================
RESOLUTION CACHE
=============================================================================

A bounded, thread-safe map from (directory, lowercase segment) to the
resolved child path, so repeated requests skip the directory scan.

=============================================================================
EVICTION: INSERTION ORDER, NOT ACCESS ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     FIFO BOUND (capacity = 3)                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   put(A)   [A]                                                      │
    │   put(B)   [A, B]                                                   │
    │   put(C)   [A, B, C]                                                │
    │   get(A)   [A, B, C]        ← reading does NOT move A               │
    │   put(D)   [B, C, D]        ← A is the oldest insert, evicted       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Entries are never invalidated when the filesystem changes. A renamed
file keeps its stale entry until eviction or clear(); the resolver's
later safety checks still apply, so a stale entry can at worst yield a
404 or a file that was already served before.

=============================================================================
THREAD SAFETY
=============================================================================

Every worker thread shares one cache. A single lock around each
operation is enough: all operations are O(1) dictionary work, so
contention is negligible next to the filesystem I/O the cache saves.

=============================================================================
"""

import threading
import logging
from collections import OrderedDict
from typing import Optional, Tuple


logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]

DEFAULT_CACHE_SIZE = 2000


class ResolutionCache:
    """
    Bounded insertion-ordered store for resolved path segments.

    Usage:
        cache = ResolutionCache(capacity=2000)
        cache.put(("/srv/www", "img"), "/srv/www/IMG")
        cache.get(("/srv/www", "img"))   # "/srv/www/IMG"

        cache.set_capacity(0)            # disable and clear
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_SIZE):
        if capacity < 0:
            raise ValueError(f"Cache capacity must be >= 0, got {capacity}")
        self._capacity = capacity
        self._entries: "OrderedDict[CacheKey, str]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        """Maximum number of entries (0 = disabled)."""
        return self._capacity

    @property
    def enabled(self) -> bool:
        """Whether the resolver should consult the cache at all."""
        return self._capacity > 0

    def set_capacity(self, capacity: int) -> None:
        """
        Change the maximum size.

        0 disables caching and drops every entry. A smaller capacity
        drops the oldest-inserted entries until the cache fits.

        Raises:
            ValueError: If capacity is negative.
        """
        if capacity < 0:
            raise ValueError(f"Cache capacity must be >= 0, got {capacity}")

        with self._lock:
            self._capacity = capacity
            if capacity == 0:
                self._entries.clear()
            else:
                while len(self._entries) > capacity:
                    self._entries.popitem(last=False)

        logger.debug(f"Resolution cache capacity set to {capacity}")

    def get(self, key: CacheKey) -> Optional[str]:
        """Look up a resolved path. Does not refresh the entry."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: CacheKey, value: str) -> None:
        """
        Insert a resolved path, evicting the oldest entry when full.

        Replacing an existing key keeps its original insertion position.
        """
        with self._lock:
            if self._capacity == 0:
                return
            if key not in self._entries and len(self._entries) >= self._capacity:
                self._entries.popitem(last=False)
            self._entries[key] = value

    def clear(self) -> None:
        """Drop every entry, keeping the capacity."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key in self._entries
