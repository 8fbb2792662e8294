"""Loading state of the image that is currently shown."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .async_task import AsyncTask
from .image_utils import ImageData, ImageLoadOk
from .mask import MaskImage


class ImageStatus(Enum):
    """Phase of an :class:`ImageState`."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass
class ImageStateLoaded:
    """A loaded image together with its editable mask layer."""

    id: str
    image: ImageLoadOk
    masks: MaskImage

    @classmethod
    def from_image_data(cls, data: ImageData) -> "ImageStateLoaded":
        height, width = data.image.adjust.shape[:2]
        return cls(
            id=data.id,
            image=data.image,
            masks=MaskImage((width, height), list(data.masks)),
        )


class ImageState:
    """Drives an image from not loaded, through loading, to loaded or failed."""

    def __init__(self) -> None:
        self._status = ImageStatus.NOT_LOADED
        self._task: Optional[AsyncTask[ImageData]] = None
        self._loaded: Optional[ImageStateLoaded] = None
        self._error: Optional[str] = None

    @property
    def status(self) -> ImageStatus:
        return self._status

    @property
    def loaded(self) -> Optional[ImageStateLoaded]:
        return self._loaded

    @property
    def error(self) -> Optional[str]:
        return self._error

    def update(
        self,
        loader: Callable[[], Any],
        on_image_load: Optional[Callable[[ImageLoadOk], None]] = None,
    ) -> None:
        """Advance by one step.

        ``loader`` returns a Future or awaitable of :class:`ImageData`; it is
        called when loading starts. ``on_image_load`` receives the image once
        it is available.
        """
        if self._status is ImageStatus.NOT_LOADED:
            self._task = AsyncTask(loader())
            self._status = ImageStatus.LOADING
        elif self._status is ImageStatus.LOADING and self._task is not None:
            try:
                result = self._task.data()
            except Exception as error:
                self._task = None
                self._error = f"Error: {error}"
                self._status = ImageStatus.ERROR
                return
            if result is None:
                return
            self._task = None
            loaded = ImageStateLoaded.from_image_data(result)
            if on_image_load is not None:
                on_image_load(loaded.image)
            self._loaded = loaded
            self._status = ImageStatus.LOADED

    def reset(self) -> None:
        """Forget the current image; the next update starts loading again."""
        self._status = ImageStatus.NOT_LOADED
        self._task = None
        self._loaded = None
        self._error = None