"""In-memory TTL cache for parsed API responses.

Entries expire ``ttl_seconds`` after they are stored. Expired entries are
never returned, and a sweep that evicts every expired entry runs at most
once per ``sweep_interval_seconds``, triggered by cache access.

Values are deep-copied on the way in and on the way out, so a caller
mutating a response it received cannot alter what later callers see.

Example:
    store = MemoryStore(ttl_seconds=300, sweep_interval_seconds=30)
    store.set(url, body)
    store.get(url)  # body until 300s have passed, then None
"""

import copy
import logging
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class MemoryStore:
    """TTL key/value store with periodic sweeping.

    Args:
        ttl_seconds: Default lifetime of an entry. Defaults to 300.
        sweep_interval_seconds: Minimum time between expiry sweeps. Defaults to 30.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        sweep_interval_seconds: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if sweep_interval_seconds <= 0:
            raise ValueError(
                f"sweep_interval_seconds must be positive, got {sweep_interval_seconds}"
            )
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._last_sweep = clock()
        self.hits = 0
        self.misses = 0

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self.sweep_interval_seconds:
            self.sweep(now)

    def sweep(self, now: float | None = None) -> int:
        """Evict every expired entry.

        Returns:
            Number of entries evicted
        """
        now = self._clock() if now is None else now
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def get(self, key: str) -> Any | None:
        """Return a copy of the value stored under ``key``, or None."""
        now = self._clock()
        self._maybe_sweep(now)

        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        expires_at, value = entry
        if expires_at <= now:
            del self._entries[key]
            self.misses += 1
            return None

        self.hits += 1
        return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds (default: ttl_seconds)."""
        now = self._clock()
        self._maybe_sweep(now)
        lifetime = self.ttl_seconds if ttl is None else ttl
        self._entries[key] = (now + lifetime, copy.deepcopy(value))

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, int]:
        """Cache statistics: hits, misses and stored keys."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "keys": len(self._entries),
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and entry[0] > self._clock()
