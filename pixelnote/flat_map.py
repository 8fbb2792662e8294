"""In-place flat-map over a list that reuses the list's own storage."""

from __future__ import annotations

from collections import deque
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

BATCH_TO_CACHE = 10


class InplaceFlatMapper(Generic[T]):
    """Replace each element of a list by zero or more elements, in place.

    Output is written over already-consumed input. When a write would
    overtake the read position, a small batch of unread elements is moved
    into a cache first, so the list is only grown when really needed.
    """

    def __init__(self, data: List[T]) -> None:
        self.data = data
        self.cache: deque[T] = deque()
        self._read_pos = 0
        self._write_pos = 0

    def map(self, handler: Callable[[T, "InplaceFlatMapper[T]"], None]) -> None:
        """Call ``handler(element, self)`` for every element, in order."""
        while self._read_pos < len(self.data):
            element = self.data[self._read_pos]
            self._read_pos += 1
            handler(element, self)
            while self.cache:
                handler(self.cache.popleft(), self)
        del self.data[self._write_pos:]

    def insert(self, el: T) -> None:
        """Emit ``el`` as the next output element."""
        if self._read_pos == self._write_pos:
            batch = self.data[self._read_pos:self._read_pos + BATCH_TO_CACHE]
            self.cache.extend(batch)
            self._read_pos += len(batch)
        if self._write_pos < len(self.data):
            self.data[self._write_pos] = el
        else:
            self.data.append(el)
            self._read_pos += 1
        self._write_pos += 1


def flat_map_inplace(
    data: List[T], handler: Callable[[T, InplaceFlatMapper[T]], None]
) -> None:
    """Flat-map ``data`` in place; ``handler`` emits output via ``mapper.insert``."""
    InplaceFlatMapper(data).map(handler)