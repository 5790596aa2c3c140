"""Bounded, newest-first window of packet summaries."""

from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterator, List, TypeVar

from .utils import DISPLAY_CAPACITY

T = TypeVar("T")


class DisplayBuffer(Generic[T]):
    """Keeps the most recent ``capacity`` entries, newest at index 0."""

    def __init__(self, capacity: int = DISPLAY_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: Deque[T] = deque(maxlen=capacity)

    def push(self, entry: T) -> None:
        """Insert *entry* at the front, evicting the oldest entry when full."""
        self._entries.appendleft(entry)

    def clear(self) -> None:
        self._entries.clear()

    def snapshot(self) -> List[T]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> T:
        return self._entries[index]


__all__ = ["DisplayBuffer"]
