"""Input preparation and output decoding for segmentation models."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Tuple, TypeVar

import numpy as np
from PIL import Image

from .pixel_range import PixelRange

MODEL_INPUT_SIZE = 1024

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class ResizedImageData(Generic[T]):
    """Data derived from an image, with its original and resized size."""

    image_data: T
    original_width: int
    original_height: int
    resized_width: int
    resized_height: int

    def map(self, func: Callable[[T], U]) -> "ResizedImageData[U]":
        """Replace the data while keeping the sizes."""
        return ResizedImageData(
            image_data=func(self.image_data),
            original_width=self.original_width,
            original_height=self.original_height,
            resized_width=self.resized_width,
            resized_height=self.resized_height,
        )


def _resized_dimensions(width: int, height: int, bound: int) -> Tuple[int, int]:
    ratio = min(bound / width, bound / height)
    new_width = max(math.floor(width * ratio + 0.5), 1)
    new_height = max(math.floor(height * ratio + 0.5), 1)
    return new_width, new_height


def prepare_image_input(image) -> ResizedImageData[np.ndarray]:
    """Scale an RGB image to fit 1024x1024 and normalise each channel.

    ``image`` is a ``(height, width, 3)`` uint8 array. The result holds a
    ``(1, 3, 1024, 1024)`` float32 tensor, zero outside the scaled image.
    """
    arr = np.asarray(image)
    if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"expected a (height, width, 3) uint8 array, got {arr.dtype} {arr.shape}")
    height, width = arr.shape[:2]
    if width == 0 or height == 0:
        raise ValueError("image must not be empty")

    new_width, new_height = _resized_dimensions(width, height, MODEL_INPUT_SIZE)
    img = Image.fromarray(np.ascontiguousarray(arr))
    if (new_width, new_height) != (width, height):
        img = img.resize((new_width, new_height), Image.Resampling.BICUBIC)
    resized = np.asarray(img.convert("RGB"), dtype=np.float32)

    flat = resized.reshape(-1, 3)
    mean = flat.mean(axis=0)
    if flat.shape[0] > 1:
        std = flat.std(axis=0, ddof=1)
    else:
        std = np.zeros(3, dtype=np.float32)
    with np.errstate(divide="ignore", invalid="ignore"):
        normalized = (resized - mean) / std

    tensor = np.zeros((1, 3, MODEL_INPUT_SIZE, MODEL_INPUT_SIZE), dtype=np.float32)
    tensor[0, :, :new_height, :new_width] = normalized.transpose(2, 0, 1)
    return ResizedImageData(
        image_data=tensor,
        original_width=width,
        original_height=height,
        resized_width=new_width,
        resized_height=new_height,
    )


def extract_pixel_ranges(values: Iterable[float], width: int) -> List[PixelRange]:
    """Collect runs of positive values into pixel ranges, split at row ends."""
    if width <= 0:
        raise ValueError(f"width must be positive, got {width}")
    source = values if isinstance(values, np.ndarray) else list(values)
    arr = np.asarray(source, dtype=np.float32).ravel()
    positions = np.flatnonzero(arr > 0.0)
    if positions.size == 0:
        return []
    rows = positions // width
    new_run = np.ones(positions.size, dtype=bool)
    new_run[1:] = (np.diff(positions) != 1) | (np.diff(rows) != 0)
    run_starts = np.flatnonzero(new_run)
    run_lengths = np.diff(np.append(run_starts, positions.size))
    return [
        PixelRange.total(int(positions[index]), int(length))
        for index, length in zip(run_starts, run_lengths)
    ]