"""Bounded, TTL-based cache of tenant consent records.

Owned by whoever constructs the validator; there is no process-wide
instance. Tenant administration calls invalidate() when a tenant's consent
changes so the next lookup re-fetches.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from datanet import config
from datanet.core.errors import ConfigurationError
from datanet.models.types import ConsentRecord


@dataclass
class _CacheEntry:
    record: ConsentRecord | None  # None caches "tenant has no record"
    expires_at: float


class ConsentCache:
    """Thread-safe LRU cache with per-entry expiry.

    Lookups that raised are never cached, so a transient administration
    outage cannot pin a tenant to "no consent" beyond the failing call.
    """

    def __init__(
        self,
        ttl_seconds: float = config.CONSENT_CACHE_TTL_SECONDS,
        max_entries: int = config.CONSENT_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            ttl_seconds: Maximum staleness of a cached record
            max_entries: Least recently used entries beyond this are evicted
            clock: Monotonic time source (injectable for tests)

        Raises:
            ConfigurationError: If ttl_seconds or max_entries is not positive
        """
        if ttl_seconds <= 0:
            raise ConfigurationError(f"consent cache TTL must be positive (got {ttl_seconds})")
        if max_entries <= 0:
            raise ConfigurationError(
                f"consent cache size must be positive (got {max_entries})"
            )
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        """Counter bumped by every invalidation.

        Read it before a lookup and pass it to put(); a put racing with an
        invalidation is then discarded instead of re-caching stale consent.
        """
        with self._lock:
            return self._generation

    def get(self, tenant_id: str) -> tuple[bool, ConsentRecord | None]:
        """Return (hit, record). Expired entries count as misses."""
        with self._lock:
            entry = self._entries.get(tenant_id)
            if entry is None:
                return False, None
            if entry.expires_at <= self._clock():
                del self._entries[tenant_id]
                return False, None
            self._entries.move_to_end(tenant_id)
            return True, entry.record

    def put(
        self,
        tenant_id: str,
        record: ConsentRecord | None,
        generation: int | None = None,
    ) -> bool:
        """Cache a lookup result. Returns False if it was discarded as stale."""
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._entries[tenant_id] = _CacheEntry(
                record=record, expires_at=self._clock() + self._ttl
            )
            self._entries.move_to_end(tenant_id)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
            return True

    def invalidate(self, tenant_id: str) -> bool:
        """Drop one tenant's entry. Returns True if an entry existed."""
        with self._lock:
            self._generation += 1
            return self._entries.pop(tenant_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
