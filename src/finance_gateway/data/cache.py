"""In-memory response cache with per-entry expiry."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

DEFAULT_TTL = 300  # 5 minutes


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class CacheStore:
    """
    Process-local key/value store with per-entry TTL.

    Entries are checked on read and never returned once expired. There is
    no size-based eviction; contents are lost on restart.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._clock = clock
        self._hits = 0
        self._misses = 0

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a live value by key.

        Args:
            key: Cache key
            default: Returned when the key is absent or expired

        Returns:
            Stored value or default
        """
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            return default
        if self._clock() >= entry.expires_at:
            # Lazy eviction
            del self._store[key]
            self._misses += 1
            return default
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """
        Store a value, overwriting any existing entry.

        Args:
            key: Cache key
            value: Value to store
            ttl: Seconds until expiry (default: store default TTL)
        """
        expire = ttl if ttl is not None else self._default_ttl
        self._store[key] = CacheEntry(value=value, expires_at=self._clock() + expire)

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""
        return self._store.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Sweep expired entries, returning how many were removed."""
        now = self._clock()
        expired = [k for k, entry in self._store.items() if now >= entry.expires_at]
        for key in expired:
            del self._store[key]
        return len(expired)

    def clear(self) -> None:
        """Clear all cached data."""
        self._store.clear()

    def stats(self) -> dict[str, Any]:
        """Entry count and hit/miss counters."""
        return {
            "entries": len(self),
            "hits": self._hits,
            "misses": self._misses,
            "default_ttl": self._default_ttl,
        }

    def __contains__(self, key: str) -> bool:
        entry = self._store.get(key)
        return entry is not None and self._clock() < entry.expires_at

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._store.values() if now < entry.expires_at)
