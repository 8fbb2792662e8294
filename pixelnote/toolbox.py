"""Choice of the active editing tool and of automatic mask generators."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from .async_task import AsyncRefTask
from .config import Config
from .image_utils import ImageLoadOk, OriginalImage
from .pixel_range import PixelArea
from .tools import ClearTool, Tool, ToolContext

logger = logging.getLogger(__name__)

ToolFactory = Callable[[ImageLoadOk], Any]
MaskCallback = Callable[[Any], Iterable[PixelArea]]


class _NopTool(Tool):
    """Placeholder until a tool has been loaded for an image."""

    def handle_interaction(self, ctx: ToolContext) -> None:
        logger.warning("NopTool should not be called")


class Tools:
    """Named tool factories; the active tool is built per image.

    A factory receives the loaded image and returns a Future or awaitable
    of a :class:`Tool`.
    """

    def __init__(self, tool_factories: Sequence[Tuple[str, ToolFactory]]) -> None:
        self._factories = list(tool_factories)
        if not self._factories:
            raise ValueError("at least one tool factory is required")
        self._active = 0
        self._tool: AsyncRefTask[Tool] = AsyncRefTask.ready(_NopTool())

    @property
    def active_index(self) -> int:
        return self._active

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._factories]

    def load_tool(self, image: ImageLoadOk) -> None:
        """Build the active tool for ``image``."""
        name, factory = self._factories[self._active]
        logger.debug("Loading tool: %s", name)
        self._tool = AsyncRefTask(factory(image))

    def select(self, index: int, image: ImageLoadOk) -> bool:
        """Make the tool at ``index`` active; return whether it changed."""
        if not 0 <= index < len(self._factories):
            raise IndexError(f"tool index {index} out of range")
        if index == self._active:
            return False
        self._active = index
        self.load_tool(image)
        return True

    def handle_interaction(self, ctx: ToolContext) -> bool:
        """Pass the interaction to the tool if it is ready; return whether it was."""
        try:
            tool = self._tool.data()
        except Exception as error:
            logger.debug("Tool is unavailable: %s", error)
            return False
        if tool is None:
            return False
        tool.handle_interaction(ctx)
        return True


def _clear_tool(image: ImageLoadOk) -> "Future[Tool]":
    future: Future = Future()
    future.set_result(ClearTool())
    return future


def default_tools(config: Config) -> List[Tuple[str, ToolFactory]]:
    """The tools available without extra models."""
    return [("Clear", _clear_tool)]


class MaskGenerator:
    """Named algorithms that propose mask areas for a whole image.

    Each algorithm receives the original image as a Pillow image.
    """

    def __init__(self, generators: Iterable[Tuple[str, MaskCallback]] = ()) -> None:
        self._generators = list(generators)
        self._pos = 0

    @property
    def selected(self) -> int:
        return self._pos

    def names(self) -> List[str]:
        return [name for name, _ in self._generators]

    def select(self, index: int) -> None:
        if not 0 <= index < len(self._generators):
            raise IndexError(f"generator index {index} out of range")
        self._pos = index

    def annotate(self, image: OriginalImage) -> Optional[List[PixelArea]]:
        """Run the selected algorithm; ``None`` when there is none."""
        if not self._generators:
            return None
        _, algorithm = self._generators[self._pos]
        return list(algorithm(image.to_pil()))