# ============================================================================
# TTL CACHE
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Infrastructure - In-memory cache with background refresh
# PURPOSE: Per-key TTL cache implementing stale-while-revalidate
# CREATED: 19 OCT 2026
# ============================================================================
"""
TTL Cache

In-memory key/value store where every entry carries its own expiry and
refresh threshold.

wrap() protocol (stale-while-revalidate):
1. Entry present and not expired:
   - inside the refresh window -> schedule the factory as a background task
   - return the cached value immediately either way
2. Entry absent or expired:
   - await the factory inline, store its result, return it

Background refresh failures are logged and discarded; the cached value
stays authoritative until it expires.

Hardening switches:
- dedupe_refresh: at most one in-flight background refresh per key
- strict_ordering: a factory result is dropped if a newer value was
  installed while it was running (sequence numbers per write)

Entries are never evicted; the cache lives as long as its owner.
"""

import asyncio
import itertools
import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from core.logging import ComponentType, get_logger

logger = get_logger(__name__, ComponentType.CACHE)

Clock = Callable[[], float]
Factory = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class CacheEntry:
    """
    Cached value with expiry metadata.

    Times are seconds on the owning cache's clock.
    """
    value: Any
    expires_at: float
    ttl: float
    refresh_threshold: float
    sequence: int = 0

    @property
    def created_at(self) -> float:
        return self.expires_at - self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def should_refresh(self, now: float) -> bool:
        return (self.expires_at - now) <= self.refresh_threshold

    def is_fresh(self, now: float) -> bool:
        """Valid and outside the refresh window."""
        return not self.is_expired(now) and not self.should_refresh(now)


class TtlCache:
    """
    Per-key TTL cache with a proactive refresh window.

    Safe for concurrent callers: the store is guarded by a lock, and all
    entries are replaced, never mutated.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        dedupe_refresh: bool = True,
        strict_ordering: bool = False,
    ):
        """
        Initialize cache.

        Args:
            clock: Monotonic time source in seconds (default time.monotonic)
            dedupe_refresh: Skip scheduling a refresh while one is in flight for the key
            strict_ordering: Drop factory results older than the installed entry
        """
        self._clock = clock or time.monotonic
        self.dedupe_refresh = dedupe_refresh
        self.strict_ordering = strict_ordering

        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._sequence = itertools.count(1)

        # Background refresh tasks (strong refs keep them from being collected)
        self._background: Set[asyncio.Task] = set()
        self._refreshing: Dict[str, asyncio.Task] = {}

        # Counters
        self._hits = 0
        self._misses = 0
        self._refreshes_scheduled = 0
        self._refresh_failures = 0

    # =========================================================================
    # READ / WRITE
    # =========================================================================

    def now(self) -> float:
        return self._clock()

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Get the entry for key if present and not expired."""
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
        if entry is None or entry.is_expired(now):
            return None
        return entry

    def get(self, key: str) -> Any:
        """Get cached value if not expired (None otherwise). Never computes."""
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl: float, refresh_threshold: float) -> CacheEntry:
        """
        Install a new entry, overwriting any prior value for key.

        Args:
            key: Cache key
            value: Value to store
            ttl: Seconds until expiry, counted from now
            refresh_threshold: Seconds before expiry at which reads trigger a refresh
        """
        return self._install(key, value, ttl, refresh_threshold, next(self._sequence))

    def _install(
        self,
        key: str,
        value: Any,
        ttl: float,
        refresh_threshold: float,
        sequence: int,
    ) -> CacheEntry:
        entry = CacheEntry(
            value=value,
            expires_at=self._clock() + ttl,
            ttl=ttl,
            refresh_threshold=refresh_threshold,
            sequence=sequence,
        )
        with self._lock:
            current = self._store.get(key)
            if (
                self.strict_ordering
                and current is not None
                and current.sequence > sequence
            ):
                logger.debug(
                    f"Dropping out-of-order write for {key} "
                    f"(seq {sequence} < installed {current.sequence})"
                )
                return current
            self._store[key] = entry
        return entry

    # =========================================================================
    # STALE-WHILE-REVALIDATE
    # =========================================================================

    async def wrap(
        self,
        key: str,
        factory: Factory,
        ttl: float,
        refresh_threshold: float,
    ) -> Any:
        """
        Return the cached value for key, computing it with factory when needed.

        Args:
            key: Cache key
            factory: No-arg coroutine function producing the value
            ttl: Seconds until expiry for newly stored values
            refresh_threshold: Refresh window in seconds for newly stored values

        Returns:
            Cached or freshly computed value

        Raises:
            Whatever factory raises on the inline (absent/expired) path
        """
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)

        if entry is not None and not entry.is_expired(now):
            self._hits += 1
            if entry.should_refresh(now):
                self._schedule_refresh(key, factory, ttl, refresh_threshold)
            return entry.value

        self._misses += 1
        sequence = next(self._sequence)
        value = await factory()
        self._install(key, value, ttl, refresh_threshold, sequence)
        return value

    def _schedule_refresh(
        self,
        key: str,
        factory: Factory,
        ttl: float,
        refresh_threshold: float,
    ) -> None:
        """Start a detached refresh task for key."""
        if self.dedupe_refresh:
            inflight = self._refreshing.get(key)
            if inflight is not None and not inflight.done():
                return

        sequence = next(self._sequence)
        task = asyncio.create_task(
            self._refresh(key, factory, ttl, refresh_threshold, sequence),
            name=f"ttl-cache-refresh-{key}",
        )
        self._refreshes_scheduled += 1
        self._background.add(task)
        self._refreshing[key] = task
        task.add_done_callback(lambda t, k=key: self._on_refresh_done(k, t))

    async def _refresh(
        self,
        key: str,
        factory: Factory,
        ttl: float,
        refresh_threshold: float,
        sequence: int,
    ) -> None:
        try:
            value = await factory()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._refresh_failures += 1
            logger.warning(f"Background refresh failed for {key}: {e}")
            return
        self._install(key, value, ttl, refresh_threshold, sequence)
        logger.debug(f"Background refresh completed for {key}")

    def _on_refresh_done(self, key: str, task: asyncio.Task) -> None:
        self._background.discard(task)
        if self._refreshing.get(key) is task:
            del self._refreshing[key]

    # =========================================================================
    # LIFECYCLE / INTROSPECTION
    # =========================================================================

    @property
    def pending_refreshes(self) -> int:
        """Number of background refreshes still running."""
        return sum(1 for t in self._background if not t.done())

    async def drain(self) -> None:
        """Wait for all in-flight background refreshes to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get_entry(key) is not None

    def get_stats(self) -> Dict[str, int]:
        """Get cache counters."""
        return {
            "entries": len(self),
            "hits": self._hits,
            "misses": self._misses,
            "refreshes_scheduled": self._refreshes_scheduled,
            "refresh_failures": self._refresh_failures,
            "pending_refreshes": self.pending_refreshes,
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "CacheEntry",
    "TtlCache",
]
