"""Custom mouse cursor that is only published when it changes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class CursorImage:
    """A base64-encoded PNG cursor with its hotspot offset."""

    png_base64: str
    offset_x: int
    offset_y: int


class CursorImageSystem:
    """Collects the cursor wanted in a frame and reports changes to a callback.

    ``set`` is called during a frame; ``apply`` at its end reports the cursor
    (or ``None`` when none was set) if it differs from the last reported one.
    """

    def __init__(self, callback: Callable[[Optional[CursorImage]], None]) -> None:
        self._callback = callback
        self._current: Optional[CursorImage] = None
        self._published: Optional[CursorImage] = None

    def set(self, current: CursorImage) -> None:
        self._current = current

    def apply(self) -> None:
        current, self._current = self._current, None
        if current != self._published:
            self._callback(current)
            self._published = current