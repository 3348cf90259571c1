"""Capacity-bounded key/value cache with per-entry time-to-live.

Every higher engine layer caches through one TTLCache instance owned by the
orchestrator. Expiry is enforced twice: a single daemon sweeper thread
evicts entries as their TTLs elapse, and every read re-checks the entry's
age, so a late or stalled sweep can delay physical eviction but never serve
a stale value.

The sweeper works from a min-heap of due times, so a cache holding any
number of expiring entries costs at most one sleeping thread. It starts on
the first expiring set() and exits once nothing is left to expire.

Eviction on a full cache removes the oldest-inserted entry (insertion
order, not LRU). All mutation happens under a re-entrant lock, so the cache
is safe to share across collector worker threads.
"""

from __future__ import annotations

import functools
import heapq
import itertools
import json
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from config.defaults import CACHE_DEFAULT_TTL_MS, CACHE_MAX_SIZE
from dayfusion.utils.date_utils import now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()

# (due_ms, sequence, key, entry); the sequence keeps heap ordering off the entry
_HeapItem = Tuple[int, int, str, "CacheEntry"]


@dataclass
class CacheEntry:
    """A stored value with its insertion time and TTL (both milliseconds)."""

    value: Any
    stored_at: int
    ttl: int

    def is_expired(self, now: int) -> bool:
        if self.ttl <= 0:
            return False
        return now - self.stored_at > self.ttl

    @property
    def due_at(self) -> int:
        """First clock reading at which is_expired() holds."""
        return self.stored_at + self.ttl + 1


def structural_key(prefix: str, args: tuple, kwargs: Dict[str, Any]) -> str:
    """Build a deterministic cache key from call arguments.

    Args:
        prefix: Namespace for the key (usually the function's qualified name).
        args: Positional arguments.
        kwargs: Keyword arguments (order-insensitive).

    Returns:
        ``"<prefix>:<canonical JSON of args and kwargs>"``.
    """
    payload = json.dumps([list(args), kwargs], sort_keys=True, default=repr)
    return f"{prefix}:{payload}"


class TTLCache:
    """Thread-safe TTL cache with insertion-order capacity eviction.

    Args:
        max_size: Maximum number of entries held at once.
        default_ttl_ms: TTL applied when set() is called without one.
        clock: Zero-argument callable returning epoch milliseconds.
        schedule_eviction: When False, the sweeper never runs and expiry is
            enforced on read only.
    """

    def __init__(
        self,
        max_size: int = CACHE_MAX_SIZE,
        default_ttl_ms: int = CACHE_DEFAULT_TTL_MS,
        clock: Optional[Callable[[], int]] = None,
        schedule_eviction: bool = True,
    ) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self.default_ttl_ms = default_ttl_ms
        self._clock = clock or now_ms
        self._schedule_eviction = schedule_eviction
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._wakeup = threading.Condition(self._lock)
        self._due: List[_HeapItem] = []
        self._sequence = itertools.count()
        self._sweeper: Optional[threading.Thread] = None
        self._hits = 0
        self._misses = 0

    # ── Core contract ──────────────────────────────────────────────────────────

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value. ``ttl <= 0`` disables expiry for this entry."""
        ttl_ms = self.default_ttl_ms if ttl is None else ttl
        with self._lock:
            if key in self._entries:
                self._remove(key)
            elif len(self._entries) >= self.max_size:
                oldest = next(iter(self._entries))
                logger.debug("Cache full (%d) — evicting oldest key %s", self.max_size, oldest)
                self._remove(oldest)

            entry = CacheEntry(value=value, stored_at=self._clock(), ttl=ttl_ms)
            self._entries[key] = entry

            if ttl_ms > 0 and self._schedule_eviction:
                self._schedule(key, entry)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return default
            if entry.is_expired(self._clock()):
                logger.debug("Cache entry %s expired on read", key)
                self._remove(key)
                self._misses += 1
                return default
            self._hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        """True if a live (unexpired) entry exists for key."""
        return self.get(key, _MISSING) is not _MISSING

    def delete(self, key: str) -> None:
        with self._lock:
            self._remove(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._due.clear()
            self._wakeup.notify_all()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, int]:
        """Counters for monitoring. ``active_timers`` counts pending expiries."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "active_timers": sum(1 for _, _, key, entry in self._due if self._is_current(key, entry)),
                "hits": self._hits,
                "misses": self._misses,
            }

    # ── Memoization ────────────────────────────────────────────────────────────

    def memoize(
        self,
        fn: Callable[..., T],
        key_fn: Optional[Callable[..., str]] = None,
        ttl_ms: Optional[int] = None,
    ) -> Callable[..., T]:
        """Wrap a pure function so repeated calls with equal keys hit the cache.

        Args:
            fn: Function to wrap.
            key_fn: Builds the cache key from the call arguments. Defaults to a
                structural key of the arguments.
            ttl_ms: TTL for stored results (default: the cache default).

        Returns:
            Wrapped function.
        """

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            key = key_fn(*args, **kwargs) if key_fn else structural_key(
                fn.__qualname__, args, kwargs
            )
            cached = self.get(key, _MISSING)
            if cached is not _MISSING:
                return cached
            result = fn(*args, **kwargs)
            self.set(key, result, ttl_ms)
            return result

        return wrapper

    def memoize_async(
        self,
        fn: Callable[..., Awaitable[T]],
        key_fn: Optional[Callable[..., str]] = None,
        ttl_ms: Optional[int] = None,
    ) -> Callable[..., Awaitable[T]]:
        """Coroutine counterpart of memoize()."""

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            key = key_fn(*args, **kwargs) if key_fn else structural_key(
                fn.__qualname__, args, kwargs
            )
            cached = self.get(key, _MISSING)
            if cached is not _MISSING:
                return cached
            result = await fn(*args, **kwargs)
            self.set(key, result, ttl_ms)
            return result

        return wrapper

    # ── Sweeper ────────────────────────────────────────────────────────────────

    def _is_current(self, key: str, entry: CacheEntry) -> bool:
        return self._entries.get(key) is entry

    def _schedule(self, key: str, entry: CacheEntry) -> None:
        # Caller holds the lock
        if len(self._due) > 2 * self.max_size:
            self._due = [item for item in self._due if self._is_current(item[2], item[3])]
            heapq.heapify(self._due)
        heapq.heappush(self._due, (entry.due_at, next(self._sequence), key, entry))

        if self._sweeper is None or not self._sweeper.is_alive():
            self._sweeper = threading.Thread(target=self._sweep, name="ttl-cache-sweeper", daemon=True)
            self._sweeper.start()
        else:
            self._wakeup.notify()

    def _sweep(self) -> None:
        with self._lock:
            while self._due:
                now = self._clock()
                while self._due and self._due[0][0] <= now:
                    _, _, key, entry = heapq.heappop(self._due)
                    self._expire(key, entry)
                if self._due:
                    self._wakeup.wait(timeout=max(self._due[0][0] - now, 1) / 1000.0)
            self._sweeper = None

    def _remove(self, key: str) -> None:
        # Caller holds the lock; any heap item for the old entry goes stale
        self._entries.pop(key, None)

    def _expire(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            # Only evict the exact entry that fell due
            if self._is_current(key, entry):
                self._entries.pop(key)
                logger.debug("Cache entry %s evicted by sweeper", key)
