"""Interactive tools that edit the masks of a loaded image."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

Point = Tuple[int, int]
Rect = Tuple[Point, Point]


@dataclass
class ToolContext:
    """One pointer interaction over the image.

    ``image`` is the loaded image state; tools edit its ``masks``.
    ``pan_modifier`` is true while the command or ctrl key is held.
    """

    image: Any
    cursor_image_pos: Point
    clicked: bool = False
    drag_stopped: bool = False
    primary_down: bool = False
    pan_modifier: bool = False


class Tool(ABC):
    """Something that reacts to pointer interactions over the image."""

    @abstractmethod
    def handle_interaction(self, ctx: ToolContext) -> None:
        """React to one interaction."""


@dataclass
class RectSelection:
    """Tracks a drag and reports the selected rectangle when it ends."""

    last_drag_start: Optional[Point] = None

    def drag_stopped(self, ctx: ToolContext) -> Optional[Rect]:
        """Return ``((left, top), (right, bottom))`` when a selection drag ends."""
        result: Optional[Rect] = None
        if self.last_drag_start is not None and ctx.drag_stopped and not ctx.pan_modifier:
            start_x, start_y = self.last_drag_start
            cursor_x, cursor_y = ctx.cursor_image_pos
            self.last_drag_start = None
            result = (
                (min(start_x, cursor_x), min(start_y, cursor_y)),
                (max(start_x, cursor_x), max(start_y, cursor_y)),
            )
        if not ctx.primary_down:
            self.last_drag_start = ctx.cursor_image_pos
        return result


@dataclass
class ClearTool(Tool):
    """Clears a dragged rectangle, or the clicked pixel."""

    rect_selection: RectSelection = field(default_factory=RectSelection)

    def handle_interaction(self, ctx: ToolContext) -> None:
        region = self.rect_selection.drag_stopped(ctx)
        masks = ctx.image.masks
        if region is not None:
            masks.clear_rect(region)
        elif ctx.clicked:
            masks.clear_rect((ctx.cursor_image_pos, ctx.cursor_image_pos))