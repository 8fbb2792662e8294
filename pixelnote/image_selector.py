"""Selection of the current image from a listing."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .async_task import AsyncTask
from .image_utils import ImageListItem
from .storage import Storage

logger = logging.getLogger(__name__)


class ImageSelector:
    """Holds the image listing and the selected position in it.

    Navigation methods return whether the shown image has to be reloaded.
    """

    def __init__(self, loader: Optional[AsyncTask[List[ImageListItem]]] = None) -> None:
        self._idx = 0
        self._items: List[ImageListItem] = []
        self._error: Optional[Exception] = None
        self._loader = loader

    @property
    def index(self) -> int:
        return self._idx

    @property
    def items(self) -> List[ImageListItem]:
        return list(self._items)

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    def current(self) -> Optional[ImageListItem]:
        """Take over a finished listing and return the selected entry."""
        if self._loader is not None:
            try:
                values = self._loader.data()
            except Exception as error:
                logger.info("Reloading images failed: %s", error)
                self._loader = None
                self._items = []
                self._error = error
            else:
                if values is not None:
                    logger.info("Reloaded %d urls", len(values))
                    self._loader = None
                    self._items = list(values)
                    self._error = None
        if self._idx < len(self._items):
            return self._items[self._idx]
        return None

    def select(self, index: int) -> bool:
        """Select the entry at ``index``."""
        if not 0 <= index < len(self._items):
            raise IndexError(f"image index {index} out of range")
        changed = index != self._idx
        self._idx = index
        return changed

    def _previous_index(self, idx: int) -> int:
        return idx - 1 if idx > 0 else len(self._items) - 1

    def _next_index(self, idx: int) -> int:
        return (idx + 1) % len(self._items)

    def _has_masks(self, idx: int) -> bool:
        return idx < len(self._items) and self._items[idx].has_masks

    def previous(self) -> bool:
        if not self._items:
            return False
        self._idx = self._previous_index(self._idx)
        return True

    def next(self) -> bool:
        if not self._items:
            return False
        self._idx = self._next_index(self._idx)
        return True

    def _step_to_annotated(self, step: Callable[[int], int]) -> bool:
        if not self._items:
            return False
        start = self._idx
        for _ in range(len(self._items)):
            self._idx = step(self._idx)
            if self._has_masks(self._idx) or self._idx == start:
                break
        return True

    def previous_annotated(self) -> bool:
        """Go back to the nearest entry with masks, wrapping around."""
        return self._step_to_annotated(self._previous_index)

    def next_annotated(self) -> bool:
        """Go forward to the nearest entry with masks, wrapping around."""
        return self._step_to_annotated(self._next_index)

    def reload(self, storage: Storage) -> None:
        """Request a fresh listing from ``storage``."""
        self._loader = AsyncTask(storage.list_images())