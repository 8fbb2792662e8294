"""Mask layer of an image: annotated pixel areas with undo history."""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .history import AddAction, ClearAction, History, HistoryAction, ResetAction
from .pixel_range import MAX_LENGTH, PixelArea, PixelRange, remove_overlaps

logger = logging.getLogger(__name__)

DEFAULT_OPACITY = 128


def _copy_area(area: PixelArea) -> PixelArea:
    return replace(area, pixels=list(area.pixels))


@dataclass(frozen=True)
class MaskSettings:
    """Display settings of a mask layer."""

    default_opacity: int = DEFAULT_OPACITY

    def __post_init__(self) -> None:
        value = self.default_opacity
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise ValueError(f"default_opacity must be an integer within 0..255, got {value!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {"default_opacity": self.default_opacity}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MaskSettings":
        """Build settings from a mapping; missing fields take their defaults."""
        if not isinstance(data, Mapping):
            raise ValueError(f"expected an object for mask settings, got {data!r}")
        return cls(default_opacity=data.get("default_opacity", DEFAULT_OPACITY))


def _opacity_lut(opacity: int) -> np.ndarray:
    levels = np.arange(256, dtype=np.float32)
    scaled = (levels / np.float32(255.0)) * (np.float32(opacity) / np.float32(255.0)) * np.float32(255.0)
    return scaled.astype(np.uint8)


class MaskImage:
    """Pixel areas of one image, edited through an undoable history.

    ``size`` is ``(width, height)``; pixel ranges index the image row by row.
    """

    def __init__(
        self,
        size: Sequence[int],
        annotations: Iterable[PixelArea] = (),
        history: Optional[History] = None,
    ) -> None:
        width, height = size
        self.size: Tuple[int, int] = (int(width), int(height))
        self._annotations: List[PixelArea] = list(annotations)
        self._history = history if history is not None else History()
        self._texture: Optional[np.ndarray] = None
        self._visible = False
        self._texture_dirty = False
        self.settings = MaskSettings()
        self._lut = _opacity_lut(self.settings.default_opacity)

    def set_settings(self, settings: MaskSettings) -> None:
        self._lut = _opacity_lut(settings.default_opacity)
        self.settings = settings

    def random_seed(self) -> int:
        return (len(self._annotations) + self._history.random_seed()) & 0xFFFF

    def render(self) -> Optional[np.ndarray]:
        """Return the overlay as a read-only ``(height, width, 4)`` RGBA array.

        Colours are premultiplied. ``None`` is returned while the overlay is
        hidden. The overlay is rebuilt only after the areas changed.
        """
        if self._texture is None or self._texture_dirty:
            self._texture_dirty = False
            width, height = self.size
            flat = np.zeros((width * height, 4), dtype=np.uint8)
            for area in self.subgroups():
                r, g, b = area.color
                for pixel_range in area.pixels:
                    if pixel_range.end > width * height:
                        raise IndexError(
                            f"pixel range {pixel_range.start}..{pixel_range.end} "
                            f"exceeds image of {width * height} pixels"
                        )
                    alpha = self._lut[pixel_range.confidence]
                    flat[pixel_range.start:pixel_range.end] = (r, g, b, alpha)
            texture = flat.reshape((height, width, 4))
            texture.flags.writeable = False
            self._texture = texture
            self._visible = True
        return self._texture if self._visible else None

    def is_dirty(self) -> bool:
        return self._history.is_dirty()

    def mark_not_dirty(self) -> None:
        self._history.mark_not_dirty()

    def reset(self) -> None:
        self._history.push(ResetAction())
        self._texture_dirty = True

    def clear_rect(self, rect: Sequence[Sequence[int]]) -> None:
        """Clear all pixels in the inclusive rectangle ``((x0, y0), (x1, y1))``."""
        (x_left, y_top), (x_right, y_bottom) = rect
        if x_right < x_left:
            raise ValueError(f"rectangle right edge {x_right} lies left of {x_left}")
        x_width = (x_right - x_left + 1) & 0xFFFF
        if x_width == 0 or x_width > MAX_LENGTH:
            raise ValueError(f"rectangle width {x_right - x_left + 1} is not representable")
        image_width = self.size[0]
        if image_width <= 0:
            raise ValueError("mask image width must be positive")
        region = [
            PixelRange.total(y * image_width + x_left, x_width)
            for y in range(y_top, y_bottom + 1)
        ]
        self.add_history_action(ClearAction(tuple(region)))

    def add_area_non_overlapping_parts(self, area: PixelArea) -> None:
        """Add only the pixels of ``area`` not yet covered by another area."""
        area = _copy_area(area)
        remove_overlaps(area, (pixel_range for _, pixel_range in self.subgroups_ordered()))
        if area.is_empty():
            logger.debug("All pixels are in another area already")
            return
        self.add_area_overlapping(area)

    def add_area_overlapping(self, area: PixelArea) -> None:
        if self._texture is not None:
            self._visible = True
        self.add_history_action(AddAction(_copy_area(area)))

    def add_history_action(self, action: HistoryAction) -> None:
        self._history.push(action)
        self._texture_dirty = True

    def undo(self) -> bool:
        """Undo the last action; return whether anything changed."""
        logger.info("Undo")
        changed = self._history.undo() is not None
        if changed:
            self._texture_dirty = True
        return changed

    def redo(self) -> bool:
        """Redo the next action; return whether anything changed."""
        logger.info("Redo")
        changed = self._history.redo() is not None
        if changed:
            self._texture_dirty = True
        return changed

    def toggle_visibility(self) -> None:
        """Show or hide the overlay once it has been rendered."""
        if self._texture is not None:
            self._visible = not self._visible

    def subgroups(self) -> List[PixelArea]:
        """The areas after replaying every active history action."""
        areas = [_copy_area(a) for a in self._annotations]
        for action in self._history:
            areas = action.apply(areas)
        return areas

    def subgroups_ordered(self) -> Iterator[Tuple[int, PixelRange]]:
        """Yield ``(area_index, range)`` for all ranges, merged by start."""
        groups = self.subgroups()
        if any(area.is_empty() for area in groups):
            raise ValueError("empty pixel areas cannot be ordered")
        streams = [
            [(r.start, group_id, r) for r in area.pixels]
            for group_id, area in enumerate(groups)
        ]
        for _, group_id, pixel_range in heapq.merge(*streams):
            yield group_id, pixel_range