"""Storage of images and their mask annotations."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future
from dataclasses import replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, TypeVar

from .image_utils import ImageData, ImageListItem, chessboard
from .pixel_range import PixelArea

PREAMBLE = b"annot"
VERSION = 1

T = TypeVar("T")


class Kind(Enum):
    """Role of a file in an image directory; masks sort before images."""

    MASK = 0
    IMAGE = 1

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Kind):
            return NotImplemented
        return self.value < other.value


_EXTENSIONS = {
    "jpeg": Kind.IMAGE,
    "jpg": Kind.IMAGE,
    "masks": Kind.MASK,
    "png": Kind.IMAGE,
    "tiff": Kind.IMAGE,
    "tif": Kind.IMAGE,
}


def kind_from_extension(extension: str) -> Kind:
    """Classify a file extension (without dot); unknown ones raise ``ValueError``."""
    try:
        return _EXTENSIONS[extension]
    except KeyError:
        raise ValueError(f"unsupported file extension {extension!r}") from None


def _resolved(work: Callable[[], T]) -> "Future[T]":
    future: Future = Future()
    try:
        future.set_result(work())
    except Exception as error:
        future.set_exception(error)
    return future


def _copy_areas(masks: Iterable[PixelArea]) -> List[PixelArea]:
    return [replace(area, pixels=list(area.pixels)) for area in masks]


def _copy_image_data(data: ImageData) -> ImageData:
    return replace(data, masks=_copy_areas(data.masks))


class Storage(ABC):
    """Source of images and sink of their masks; every call returns a Future."""

    @abstractmethod
    def list_images(self) -> "Future[List[ImageListItem]]":
        """List the available images."""

    @abstractmethod
    def load_image(self, image_id: str) -> "Future[ImageData]":
        """Load an image together with its stored masks."""

    @abstractmethod
    def store_masks(self, image_id: str, masks: List[PixelArea]) -> "Future[None]":
        """Persist the masks of an image."""


class InMemoryStorage(Storage):
    """Storage that keeps all images in memory."""

    def __init__(self, images: Iterable[ImageData] = ()) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, ImageData] = {image.id: image for image in images}

    @classmethod
    def chessboard(cls) -> "InMemoryStorage":
        return cls(chessboard())

    def list_images(self) -> "Future[List[ImageListItem]]":
        def work() -> List[ImageListItem]:
            with self._lock:
                return [
                    ImageListItem(
                        id=image_id,
                        name=_capitalize_ascii(image_id),
                        has_masks=bool(data.masks),
                    )
                    for image_id, data in self._data.items()
                ]

        return _resolved(work)

    def load_image(self, image_id: str) -> "Future[ImageData]":
        def work() -> ImageData:
            with self._lock:
                data = self._data.get(image_id)
                if data is None:
                    raise KeyError(f"Unknown image_id {image_id!r}")
                return _copy_image_data(data)

        return _resolved(work)

    def store_masks(self, image_id: str, masks: List[PixelArea]) -> "Future[None]":
        def work() -> None:
            with self._lock:
                data = self._data.get(image_id)
                if data is not None:
                    data.masks = _copy_areas(masks)

        return _resolved(work)


def _capitalize_ascii(text: str) -> str:
    first = text[:1]
    if first.isascii():
        first = first.upper()
    return first + text[1:]