"""Runs of pixels in a flattened image and groups of them."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from .flat_map import InplaceFlatMapper, flat_map_inplace

MAX_LENGTH = 0xFFFF
FULL_CONFIDENCE = 255


def _check_length(length: int) -> None:
    if not 1 <= length <= MAX_LENGTH:
        raise ValueError(f"length must be within 1..{MAX_LENGTH}, got {length}")


@dataclass(frozen=True, order=True)
class PixelRange:
    """Half-open run ``[start, end)`` of pixel indices with a confidence."""

    start: int
    end: int
    confidence: int = FULL_CONFIDENCE

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must not be negative, got {self.start}")
        _check_length(self.end - self.start)
        if not 0 <= self.confidence <= 255:
            raise ValueError(f"confidence must be within 0..255, got {self.confidence}")

    @classmethod
    def from_length(
        cls, start: int, length: int, confidence: int = FULL_CONFIDENCE
    ) -> "PixelRange":
        _check_length(length)
        return cls(start, start + length, confidence)

    @classmethod
    def total(cls, start: int, length: int) -> "PixelRange":
        """A range with full confidence."""
        return cls.from_length(start, length, FULL_CONFIDENCE)

    def as_range(self) -> range:
        return range(self.start, self.end)

    def length(self) -> int:
        return self.end - self.start

    def with_incremented_length(self) -> "PixelRange":
        return PixelRange(self.start, self.end + 1, self.confidence)


def _pseudo_random_permutation(seed: int) -> float:
    num = seed & 0xFF
    for _ in range(2):
        num = (num * 197) & 0xFF
        num = ((num << 5) | (num >> 3)) & 0xFF
        num ^= 0x5A
    return num / 255.0


def _hsv_to_rgb(h: float, s: float, v: float) -> Tuple[int, int, int]:
    h_i = int(math.floor(h * 6.0)) % 6
    f = h * 6.0 - h_i
    p = v * (1.0 - s)
    q = v * (1.0 - f * s)
    t = v * (1.0 - (1.0 - f) * s)
    r, g, b = {
        0: (v, t, p),
        1: (q, v, p),
        2: (p, v, t),
        3: (p, q, v),
        4: (t, p, v),
    }.get(h_i, (v, p, q))
    return tuple(min(255, max(0, int(c * 255.0))) for c in (r, g, b))  # type: ignore[return-value]


@dataclass
class PixelArea:
    """A coloured group of pixel ranges."""

    pixels: List[PixelRange] = field(default_factory=list)
    color: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        self.pixels = list(self.pixels)
        self.color = tuple(self.color)  # type: ignore[assignment]
        if len(self.color) != 3:
            raise ValueError(f"color needs three components, got {self.color}")

    @classmethod
    def with_black_color(cls, pixels: Iterable[PixelRange]) -> "PixelArea":
        return cls(list(pixels), (0, 0, 0))

    @classmethod
    def with_random_color(cls, pixels: Iterable[PixelRange], seed: int) -> "PixelArea":
        """Colour derived deterministically from the low byte of ``seed``."""
        return cls(list(pixels), _hsv_to_rgb(_pseudo_random_permutation(seed), 0.7, 0.95))

    def is_empty(self) -> bool:
        return not self.pixels

    def range_len(self) -> int:
        return len(self.pixels)


class _Peekable:
    def __init__(self, items: Iterable[Tuple[int, int]]) -> None:
        self._iter: Iterator[Tuple[int, int]] = iter(items)
        self._head: Optional[Tuple[int, int]] = None
        self._has_head = False

    def peek(self) -> Optional[Tuple[int, int]]:
        if not self._has_head:
            self._head = next(self._iter, None)
            self._has_head = True
        return self._head

    def pop(self) -> Optional[Tuple[int, int]]:
        item = self.peek()
        self._has_head = False
        return item


def remove_overlaps(area: PixelArea, ordered_existing: Iterable[PixelRange]) -> None:
    """Cut from ``area`` every pixel covered by ``ordered_existing``.

    ``ordered_existing`` must be sorted by start. ``area`` is modified in place.
    """
    existing = _Peekable((r.start, r.end) for r in ordered_existing)

    def handler(subgroup: PixelRange, out: InplaceFlatMapper[PixelRange]) -> None:
        new_pos = subgroup.start
        new_len = subgroup.length()
        new_end = new_pos + new_len

        # Existing ranges overlapping the start of, or lying within, the new one
        while (head := existing.peek()) is not None and new_end > head[1]:
            existing_pos, existing_end = existing.pop()  # type: ignore[misc]
            if new_pos > existing_end:
                continue
            gap = max(existing_pos - new_pos, 0)
            if gap > 0:
                out.insert(PixelRange.total(new_pos, gap))
            if existing_end > new_pos:
                offset = existing_end - new_pos
                remaining = new_len - offset
                if remaining <= 0:
                    return
                new_pos += offset
                new_len = remaining

        # An existing range overlapping the end of the new one
        head = existing.peek()
        if head is not None:
            overlap = max(new_end - head[0], 0)
            remaining = new_len - overlap
            if remaining <= 0:
                return
            new_len = remaining

        out.insert(PixelRange.total(new_pos, new_len))

    flat_map_inplace(area.pixels, handler)