# src/voxel_nav/nav/priority_queue.py
"""
Addressable priority queue over hashable items.

Built on heapq with an item → entry map. Re-prioritising or removing an
item marks its heap entry dead; dead entries are discarded when they reach
the top. Equal priorities come out in insertion order.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Any, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
P = TypeVar("P")

_REMOVED = object()


class PriorityQueue(Generic[K, P]):
    def __init__(self) -> None:
        self._heap: List[List[Any]] = []
        self._entries: Dict[K, List[Any]] = {}
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item: object) -> bool:
        return item in self._entries

    def get(self, item: K) -> Optional[P]:
        """Current priority of `item`, or None if it is not queued."""
        entry = self._entries.get(item)
        return entry[0] if entry is not None else None

    def push(self, item: K, priority: P) -> None:
        """Insert `item`, replacing its priority if already queued."""
        if item in self._entries:
            self._invalidate(item)
        entry = [priority, next(self._counter), item]
        self._entries[item] = entry
        heapq.heappush(self._heap, entry)

    def change_priority(self, item: K, priority: P) -> None:
        if item not in self._entries:
            raise KeyError(item)
        self.push(item, priority)

    def remove(self, item: K) -> Optional[P]:
        """Remove `item` if present and return the priority it had."""
        if item not in self._entries:
            return None
        return self._invalidate(item)

    def peek(self) -> Optional[Tuple[K, P]]:
        self._prune()
        if not self._heap:
            return None
        priority, _, item = self._heap[0]
        return item, priority

    def pop(self) -> Tuple[K, P]:
        self._prune()
        if not self._heap:
            raise IndexError("pop from an empty priority queue")
        priority, _, item = heapq.heappop(self._heap)
        del self._entries[item]
        return item, priority

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _invalidate(self, item: K) -> P:
        entry = self._entries.pop(item)
        entry[2] = _REMOVED
        return entry[0]

    def _prune(self) -> None:
        while self._heap and self._heap[0][2] is _REMOVED:
            heapq.heappop(self._heap)
