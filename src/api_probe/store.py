"""Key-value stores for generation records and suite results.

Callers depend on the small :class:`Store` protocol, so the in-memory
implementation used by default can be swapped for a persistent one.
"""

import time
from typing import Callable, Generic, Protocol, TypeVar

T = TypeVar("T")


class Store(Protocol[T]):
    def put(self, key: str, value: T) -> None: ...

    def get(self, key: str) -> T | None: ...

    def __len__(self) -> int: ...


class InMemoryStore(Generic[T]):
    """Dict-backed store with an optional time-to-live per entry.

    Expired entries are dropped lazily on access.
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._items: dict[str, tuple[float, T]] = {}

    def put(self, key: str, value: T) -> None:
        self._items[key] = (self._clock(), value)

    def get(self, key: str) -> T | None:
        entry = self._items.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._expired(stored_at):
            del self._items[key]
            return None
        return value

    def evict_expired(self) -> int:
        """Remove every expired entry; returns how many were removed."""
        stale = [key for key, (stored_at, _) in self._items.items() if self._expired(stored_at)]
        for key in stale:
            del self._items[key]
        return len(stale)

    def __len__(self) -> int:
        self.evict_expired()
        return len(self._items)

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds is not None and self._clock() - stored_at >= self.ttl_seconds
