"""Image buffers for annotation: the original pixels and a display copy."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from .pixel_range import PixelArea

CHESSBOARD_SIZE = 400
CHESSBOARD_SQUARES = 8

_LUMA16_MODES = {"I;16", "I;16L", "I;16B", "I;16N"}


class ImageKind(Enum):
    """Pixel layout of an original image."""

    LUMA8 = "luma8"
    LUMA16 = "luma16"
    RGB8 = "rgb8"
    RGBA8 = "rgba8"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.uint16 if self is ImageKind.LUMA16 else np.uint8)

    @property
    def channels(self) -> int:
        return {ImageKind.RGB8: 3, ImageKind.RGBA8: 4}.get(self, 1)


def _coerce(pixels, dtype: np.dtype, name: str) -> np.ndarray:
    arr = np.asarray(pixels)
    if arr.dtype == dtype:
        return arr
    if arr.size and not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"{name} must hold integers, got {arr.dtype}")
    limits = np.iinfo(dtype)
    if arr.size and (arr.min() < limits.min or arr.max() > limits.max):
        raise ValueError(f"{name} values do not fit into {dtype}")
    return arr.astype(dtype)


def _check_shape(arr: np.ndarray, channels: int, name: str) -> None:
    if channels == 1:
        if arr.ndim != 2:
            raise ValueError(f"{name} must be a (height, width) array, got shape {arr.shape}")
    elif arr.ndim != 3 or arr.shape[2] != channels:
        raise ValueError(
            f"{name} must be a (height, width, {channels}) array, got shape {arr.shape}"
        )
    if arr.shape[0] == 0:
        raise ValueError("Invalid image height")
    if arr.shape[1] == 0:
        raise ValueError("Invalid image width")


@dataclass(frozen=True, eq=False)
class OriginalImage:
    """The image as it was loaded, in one of the supported layouts."""

    kind: ImageKind
    pixels: np.ndarray

    def __post_init__(self) -> None:
        arr = _coerce(self.pixels, self.kind.dtype, "pixels")
        _check_shape(arr, self.kind.channels, "pixels")
        object.__setattr__(self, "pixels", arr)

    def width(self) -> int:
        return int(self.pixels.shape[1])

    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_pil(self) -> Image.Image:
        """Convert to a Pillow image without altering pixel values."""
        return Image.fromarray(np.ascontiguousarray(self.pixels))


@dataclass(frozen=True, eq=False)
class ImageLoadOk:
    """A loaded image together with its contrast-adjusted RGB display copy."""

    original: OriginalImage
    adjust: np.ndarray

    def __post_init__(self) -> None:
        arr = _coerce(self.adjust, np.dtype(np.uint8), "adjust")
        _check_shape(arr, 3, "adjust")
        object.__setattr__(self, "adjust", arr)

    def adjust_pixels(self) -> Iterator[Tuple[int, int, Tuple[int, int, int]]]:
        """Yield ``(x, y, (r, g, b))`` of the display copy, row by row."""
        for y, row in enumerate(self.adjust):
            for x, (r, g, b) in enumerate(row):
                yield x, y, (int(r), int(g), int(b))

    def to_pil(self) -> Image.Image:
        return self.original.to_pil()


@dataclass
class ImageData:
    """An image with its identifier and stored mask areas."""

    id: str
    image: ImageLoadOk
    masks: List[PixelArea] = field(default_factory=list)


@dataclass
class ImageListItem:
    """An entry of an image listing."""

    id: str
    name: str
    has_masks: bool


def fix_image_contrast(pixels, max_value: int) -> np.ndarray:
    """Stretch the 5%..95% value range of a grey image over ``0..max_value``."""
    arr = np.asarray(pixels)
    if arr.size == 0:
        raise ValueError("cannot adjust the contrast of an empty image")
    ordered = np.sort(arr, axis=None)
    five_percent_pos = ordered.size // 20
    lower = np.float32(ordered[five_percent_pos])
    upper = np.float32(ordered[five_percent_pos * 19])
    if lower == upper:
        return arr.copy()
    top = np.float32(max_value)
    scale = top / (upper - lower)
    scaled = np.clip((arr.astype(np.float32) - lower) * scale, np.float32(0.0), top)
    return scaled.astype(arr.dtype)


def _u16_to_u8(values: np.ndarray) -> np.ndarray:
    return ((values.astype(np.uint32) + 128) // 257).astype(np.uint8)


def _grey_to_rgb(grey: np.ndarray) -> np.ndarray:
    return np.repeat(grey[:, :, np.newaxis], 3, axis=2)


def _luma16_pixels(img: Image.Image):
    arr = np.asarray(img)
    if img.mode in _LUMA16_MODES:
        return arr.astype(np.uint16)
    if img.mode == "I" and arr.size and arr.min() >= 0 and arr.max() <= 0xFFFF:
        return arr.astype(np.uint16)
    return None


def load_image(data: bytes) -> ImageLoadOk:
    """Decode an encoded image; grey images get their contrast stretched."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as error:
        raise ValueError(f"cannot decode image: {error}") from error
    if img.width == 0:
        raise ValueError("Invalid image width")
    if img.height == 0:
        raise ValueError("Invalid image height")

    luma16 = _luma16_pixels(img) if img.mode.startswith("I") else None
    if luma16 is not None:
        adjusted = fix_image_contrast(luma16, 0xFFFF)
        return ImageLoadOk(
            original=OriginalImage(ImageKind.LUMA16, luma16),
            adjust=_grey_to_rgb(_u16_to_u8(adjusted)),
        )
    if img.mode in ("L", "1"):
        grey = np.asarray(img.convert("L"), dtype=np.uint8)
        adjusted = fix_image_contrast(grey, 0xFF)
        return ImageLoadOk(
            original=OriginalImage(ImageKind.LUMA8, grey),
            adjust=_grey_to_rgb(adjusted),
        )
    rgb = np.asarray(img.convert("RGB"), dtype=np.uint8)
    return ImageLoadOk(original=OriginalImage(ImageKind.RGB8, rgb), adjust=rgb)


def chessboard() -> Iterator[ImageData]:
    """Yield two 400x400 chessboard images with inverted colours."""
    size = CHESSBOARD_SIZE
    square_size = size // CHESSBOARD_SQUARES
    squares = np.arange(size) // square_size
    is_white = (squares[:, np.newaxis] + squares[np.newaxis, :]) % 2 == 0
    for i in range(2):
        color_1, color_2 = (0, 255) if i == 0 else (255, 0)
        grey = np.where(is_white, color_1, color_2).astype(np.uint8)
        buffer = _grey_to_rgb(grey)
        yield ImageData(
            id=f"image{i + 1}",
            image=ImageLoadOk(original=OriginalImage(ImageKind.RGB8, buffer), adjust=buffer),
            masks=[],
        )