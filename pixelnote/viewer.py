"""Zoom and pan geometry of an image shown inside a viewport.

Sizes and positions are ``(x, y)`` pairs. The zoom level lies in
``0.05..1.0``; at 1.0 the whole image fits the viewport. The pan offset is
the normalised image coordinate placed at the viewport centre.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

MIN_ZOOM = 0.05
MAX_ZOOM = 1.0
_EPSILON = 1.1920929e-07

Vec2 = Tuple[float, float]


@dataclass(frozen=True)
class ImageViewerInteraction:
    """Result of hovering over the viewer."""

    original_image_size: Vec2
    cursor_image_pos: Optional[Tuple[int, int]]


def _fit_scale(image_size: Sequence[float], viewport_size: Sequence[float]) -> float:
    image_w, image_h = image_size
    if image_w <= 0 or image_h <= 0:
        raise ValueError(f"image size must be positive, got {tuple(image_size)}")
    view_w, view_h = viewport_size
    return min(view_w / image_w, view_h / image_h)


class ImageViewer:
    """Keeps zoom level and pan offset and maps between viewport and image."""

    def __init__(self) -> None:
        self._zoom = 1.0
        self.pan_offset: Vec2 = (0.5, 0.5)

    @property
    def zoom(self) -> float:
        return self._zoom

    def reset(self) -> None:
        self._zoom = 1.0
        self.pan_offset = (0.5, 0.5)

    def modify_zoom(self, func: Callable[[float], float]) -> None:
        """Set the zoom to ``func(zoom)``, clamped to the allowed range."""
        self._zoom = min(max(func(self._zoom), MIN_ZOOM), MAX_ZOOM)

    def pan_bounds(
        self,
        image_size: Sequence[float],
        viewport_size: Sequence[float],
        render_scale: float,
    ) -> Tuple[Vec2, Vec2]:
        """Smallest and largest pan offsets that keep the image in view."""
        mins = tuple(
            min(max(view / (2.0 * render_scale) / size, 0.0), 0.5)
            for view, size in zip(viewport_size, image_size)
        )
        return mins, tuple(1.0 - m for m in mins)  # type: ignore[return-value]

    def _snap_if_zoomed_out(self) -> None:
        if abs(self._zoom - 1.0) <= _EPSILON:
            self.pan_offset = (0.5, 0.5)

    def drag(
        self,
        delta: Sequence[float],
        image_size: Sequence[float],
        viewport_size: Sequence[float],
    ) -> None:
        """Pan by a drag of ``delta`` viewport pixels."""
        render_scale = _fit_scale(image_size, viewport_size) / self._zoom
        if tuple(delta) != (0.0, 0.0):
            min_pan, max_pan = self.pan_bounds(image_size, viewport_size, render_scale)
            new_offset = []
            for pan, d, size, low, high in zip(
                self.pan_offset, delta, image_size, min_pan, max_pan
            ):
                value = pan - d / (render_scale * size)
                forward = pan < value
                if not forward and value < low:
                    value = min(pan, low)
                if forward and value > high:
                    value = max(pan, high)
                new_offset.append(value)
            self.pan_offset = (new_offset[0], new_offset[1])
        self._snap_if_zoomed_out()

    def hover(
        self,
        position: Sequence[float],
        image_size: Sequence[float],
        viewport_size: Sequence[float],
        zoom_delta: float = 1.0,
    ) -> ImageViewerInteraction:
        """Map a pointer position, relative to the viewport, to image pixels.

        A ``zoom_delta`` other than 1 zooms around the pointer so that the
        image point below it stays in place.
        """
        self._snap_if_zoomed_out()
        fit = _fit_scale(image_size, viewport_size)
        render_scale = fit / self._zoom
        rel_zoom = self._zoom / fit
        p = [
            (screen - (view * 0.5 - pan * size * render_scale)) * rel_zoom
            for screen, view, pan, size in zip(
                position, viewport_size, self.pan_offset, image_size
            )
        ]

        if zoom_delta != 1.0:
            self.modify_zoom(lambda z: z / zoom_delta)
            rel_zoom_new = self._zoom / fit
            render_scale_new = fit / self._zoom
            pan = [
                (view * 0.5 - (screen - pp / rel_zoom_new)) / (size * render_scale_new)
                for view, screen, pp, size in zip(viewport_size, position, p, image_size)
            ]
            self.pan_offset = (pan[0], pan[1])

        px, py = p
        image_w, image_h = image_size
        if px < 0.0 or py < 0.0 or px > image_w or py > image_h:
            cursor = None
        else:
            cursor = (int(px), int(py))
        return ImageViewerInteraction((float(image_w), float(image_h)), cursor)

    def image_rect(
        self, image_size: Sequence[float], viewport_size: Sequence[float]
    ) -> Tuple[Vec2, Vec2]:
        """Return ``(offset, size)`` of the drawn image relative to the viewport."""
        render_scale = _fit_scale(image_size, viewport_size) / self._zoom
        size = tuple(s * render_scale for s in image_size)
        offset = tuple(
            view * 0.5 - pan * s
            for view, pan, s in zip(viewport_size, self.pan_offset, size)
        )
        return offset, size  # type: ignore[return-value]