from __future__ import annotations
import time
from collections import OrderedDict
from typing import Callable, Generic, Hashable, NamedTuple, Optional, Tuple, TypeVar


V = TypeVar("V")


class CacheKey(NamedTuple):
    feed_url: str
    endpoints: Tuple[str, ...]


class TTLCache(Generic[V]):
    """Bounded mapping whose entries expire ``ttl`` seconds after being set.

    When full, the least recently used entry is evicted.
    """

    def __init__(self, ttl: float, max_entries: int = 8, clock: Callable[[], float] = time.monotonic):
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[Hashable, Tuple[float, V]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: Hashable, value: V) -> None:
        self._entries[key] = (self._clock() + self.ttl, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
