"""Least-recently-used frame replacement policy."""

from __future__ import annotations

import heapq
from typing import Dict, List, Optional, Tuple


class LRUReplacer:
    """Chooses the evictable frame whose last access is the oldest.

    Recording an access makes a frame unevictable until it is explicitly
    marked evictable again; its access time is kept meanwhile.
    """

    def __init__(self, size: int = 0) -> None:
        self._timestamp = 0
        # evictable frames and their last access time
        self._evictable: Dict[int, int] = {}
        # unevictable frames and their last access time
        self._last_access: Dict[int, int] = {}
        # lazily pruned heap of (timestamp, frame_id)
        self._heap: List[Tuple[int, int]] = []

    def _push(self, frame_id: int, ts: int) -> None:
        self._evictable[frame_id] = ts
        heapq.heappush(self._heap, (ts, frame_id))

    def _prune(self) -> None:
        while self._heap:
            ts, frame_id = self._heap[0]
            if self._evictable.get(frame_id) == ts:
                return
            heapq.heappop(self._heap)

    def record_access(self, frame_id: int) -> None:
        """Stamp an access and make the frame unevictable."""
        self._timestamp += 1
        self._push(frame_id, self._timestamp)
        self.set_evictable(frame_id, False)

    def set_evictable(self, frame_id: int, evictable: bool) -> None:
        if evictable:
            try:
                ts = self._last_access.pop(frame_id)
            except KeyError:
                raise KeyError(f"frame {frame_id} has no recorded access") from None
            self._push(frame_id, ts)
        else:
            try:
                ts = self._evictable.pop(frame_id)
            except KeyError:
                raise KeyError(f"frame {frame_id} is already not evictable") from None
            self._last_access[frame_id] = ts

    def can_evict(self) -> bool:
        return bool(self._evictable)

    def remove(self, frame_id: int) -> None:
        """Forget a frame entirely."""
        self._evictable.pop(frame_id, None)
        self._last_access.pop(frame_id, None)

    def evict(self) -> int:
        """Remove and return the least recently used evictable frame."""
        self._prune()
        if not self._heap:
            raise LookupError("no evictable frame")
        _, frame_id = heapq.heappop(self._heap)
        del self._evictable[frame_id]
        return frame_id

    def peek(self) -> Optional[int]:
        self._prune()
        return self._heap[0][1] if self._heap else None