"""
history.py - Bounded undo/redo history

HistoryManager keeps deep copies of the whole campaign collection in a
linear, index-truncated list:

    push(state)   drop any redo future, append a copy, evict the oldest
                  snapshot once the list exceeds `limit`
    undo()        step back one snapshot and return a copy of it
    redo()        step forward one snapshot and return a copy of it

States of the pointer: -1 (empty), then 0..len-1.
    can_undo = index > 0
    can_redo = index < len - 1

Every snapshot is copied on the way in and on the way out, so neither the
caller's live state nor any returned state aliases a stored entry.
"""

from __future__ import annotations
from typing import Any, List, Optional
import copy

from .core import HISTORY_LIMIT


class HistoryManager:
    """
    Linear undo/redo stack with a fixed capacity.

    Not thread-safe. One manager is handed to one FlightLedger.
    """

    def __init__(self, limit: int = HISTORY_LIMIT):
        if limit < 1:
            raise ValueError(f"History limit must be at least 1, got {limit}")
        self.limit = limit
        self._snapshots: List[Any] = []
        self._index: int = -1

    @property
    def index(self) -> int:
        """Position of the current snapshot (-1 when empty)."""
        return self._index

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    @property
    def has_history(self) -> bool:
        return bool(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def push(self, state: Any) -> None:
        """Record a new current state, discarding anything redo could reach."""
        del self._snapshots[self._index + 1:]
        self._snapshots.append(copy.deepcopy(state))
        if len(self._snapshots) > self.limit:
            del self._snapshots[0]
        self._index = len(self._snapshots) - 1

    def undo(self) -> Optional[Any]:
        """Move back one snapshot. Returns a copy of it, or None at the oldest."""
        if not self.can_undo:
            return None
        self._index -= 1
        return copy.deepcopy(self._snapshots[self._index])

    def redo(self) -> Optional[Any]:
        """Move forward one snapshot. Returns a copy of it, or None at the newest."""
        if not self.can_redo:
            return None
        self._index += 1
        return copy.deepcopy(self._snapshots[self._index])

    def current(self) -> Optional[Any]:
        """Copy of the snapshot at the pointer, or None when empty."""
        if self._index < 0:
            return None
        return copy.deepcopy(self._snapshots[self._index])

    def clear(self) -> None:
        self._snapshots.clear()
        self._index = -1

    def __repr__(self) -> str:
        return f"HistoryManager({self._index + 1}/{len(self._snapshots)}, limit={self.limit})"
