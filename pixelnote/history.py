"""Undo/redo stack of actions applied to a list of pixel areas.

Actions never need to be undone themselves: the effective state is
recomputed by replaying the active actions over the original areas.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Tuple

from .pixel_range import PixelArea, PixelRange, remove_overlaps


def _copy_area(area: PixelArea) -> PixelArea:
    return replace(area, pixels=list(area.pixels))


class HistoryAction(ABC):
    """An action that transforms a list of pixel areas."""

    @abstractmethod
    def apply(self, rest: List[PixelArea]) -> List[PixelArea]:
        """Return the areas after this action."""


@dataclass(frozen=True)
class AddAction(HistoryAction):
    area: PixelArea

    def apply(self, rest: List[PixelArea]) -> List[PixelArea]:
        return [*rest, _copy_area(self.area)]


@dataclass(frozen=True)
class ResetAction(HistoryAction):
    def apply(self, rest: List[PixelArea]) -> List[PixelArea]:
        return []


@dataclass(frozen=True)
class ClearAction(HistoryAction):
    """Remove the given ranges, sorted by start, from every area."""

    ranges: Tuple[PixelRange, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "ranges", tuple(self.ranges))

    def apply(self, rest: List[PixelArea]) -> List[PixelArea]:
        result = []
        for area in rest:
            trimmed = _copy_area(area)
            remove_overlaps(trimmed, iter(self.ranges))
            if not trimmed.is_empty():
                result.append(trimmed)
        return result


class History:
    """Linear undo/redo history with a dirty marker."""

    def __init__(self) -> None:
        self._actions: List[HistoryAction] = []
        self._end = 0
        self._not_dirty_pos: Optional[int] = 0

    def __iter__(self) -> Iterator[HistoryAction]:
        """Iterate over the actions that are currently in effect."""
        return iter(self._actions[:self._end])

    def random_seed(self) -> int:
        return self._end & 0xFFFF

    def is_dirty(self) -> bool:
        return self._not_dirty_pos != self._end

    def mark_not_dirty(self) -> None:
        self._not_dirty_pos = self._end

    def push(self, action: HistoryAction) -> None:
        """Append an action, discarding anything that could be redone."""
        if (
            isinstance(action, ResetAction)
            and self._end > 0
            and isinstance(self._actions[self._end - 1], ResetAction)
        ):
            return
        if self._not_dirty_pos is not None and self._not_dirty_pos > self._end:
            self._not_dirty_pos = None
        del self._actions[self._end:]
        self._actions.append(action)
        self._end = len(self._actions)

    def redo(self) -> Optional[HistoryAction]:
        if self._end >= len(self._actions):
            return None
        action = self._actions[self._end]
        self._end += 1
        return action

    def undo(self) -> Optional[HistoryAction]:
        if self._end == 0:
            return None
        self._end -= 1
        return self._actions[self._end]