"""A least-recently-used cache keyed by strings."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Callable, Optional

EvictionCallback = Callable[[str, Any], None]


class LRUCache:
    """An LRU cache; not safe for concurrent use.

    A ``max_entries`` of zero means no limit: eviction is left to the caller.
    ``on_evicted`` is called with the key and value of every removed entry.
    """

    def __init__(self, max_entries: int = 0, on_evicted: Optional[EvictionCallback] = None):
        self.max_entries = max_entries
        self.on_evicted = on_evicted
        self._entries: OrderedDict[str, Any] = OrderedDict()

    def add(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` and mark it most recently used."""
        if key in self._entries:
            self._entries.move_to_end(key)
            self._entries[key] = value
            return
        self._entries[key] = value
        if self.max_entries and len(self._entries) > self.max_entries:
            self.remove_oldest()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for ``key``, marking it most recently used."""
        if key not in self._entries:
            return default
        self._entries.move_to_end(key)
        return self._entries[key]

    def remove(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        if key not in self._entries:
            return False
        self._evict(key)
        return True

    def remove_oldest(self) -> None:
        """Remove the least recently used entry, if any."""
        if self._entries:
            self._evict(next(iter(self._entries)))

    def _evict(self, key: str) -> None:
        value = self._entries.pop(key)
        if self.on_evicted is not None:
            self.on_evicted(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)