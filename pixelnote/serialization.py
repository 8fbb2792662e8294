"""JSON-compatible encoding of pixel ranges and pixel areas.

A pixel range is written as ``[start, length]``, or as
``[start, length, confidence]`` when the confidence is not full. Reading
also accepts an object with ``start``, ``length`` and an optional
``confidence``. The start/end form works the same way with ``end``, the
exclusive end index, in place of ``length``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Dict, List, Tuple

from .pixel_range import FULL_CONFIDENCE, MAX_LENGTH, PixelArea, PixelRange

U32_MAX = 0xFFFF_FFFF

_MISSING = object()


def _integer(value: Any, name: str, maximum: int, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if not minimum <= value <= maximum:
        raise ValueError(f"{name} must be within {minimum}..{maximum}, got {value}")
    return value


def _unpack(value: Any, names: Tuple[str, str, str]) -> Tuple[Any, Any, Any]:
    """Return the two required components and the optional third one."""
    if isinstance(value, Mapping):
        for key in value:
            if key not in names:
                raise ValueError(
                    f"unknown field {key!r}, expected one of {', '.join(names)}"
                )
        for required in names[:2]:
            if required not in value:
                raise ValueError(f"missing field {required!r}")
        return value[names[0]], value[names[1]], value.get(names[2], _MISSING)
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        if len(value) not in (2, 3):
            raise ValueError(
                f"expected an array of 2 or 3 numbers, got {len(value)} elements"
            )
        third = value[2] if len(value) == 3 else _MISSING
        return value[0], value[1], third
    raise ValueError(
        "expected an array of 2 or 3 numbers, or an object with "
        f"{', '.join(names)} fields"
    )


def _confidence(value: Any) -> int:
    if value is _MISSING:
        return FULL_CONFIDENCE
    return _integer(value, "confidence", 255)


def pixel_range_to_json(pixel_range: PixelRange) -> List[int]:
    """Encode as ``[start, length]`` or ``[start, length, confidence]``."""
    encoded = [pixel_range.start, pixel_range.length()]
    if pixel_range.confidence != FULL_CONFIDENCE:
        encoded.append(pixel_range.confidence)
    return encoded


def pixel_range_from_json(value: Any) -> PixelRange:
    """Decode a pixel range from its array or object form."""
    start, length, confidence = _unpack(value, ("start", "length", "confidence"))
    return PixelRange.from_length(
        _integer(start, "start", U32_MAX),
        _integer(length, "length", MAX_LENGTH, 1),
        _confidence(confidence),
    )


def pixel_area_to_json(area: PixelArea) -> Dict[str, Any]:
    return {
        "pixels": [pixel_range_to_json(r) for r in area.pixels],
        "color": list(area.color),
    }


def pixel_area_from_json(value: Any) -> PixelArea:
    """Decode an object with ``pixels`` and ``color`` fields."""
    if not isinstance(value, Mapping):
        raise ValueError(f"expected an object for a pixel area, got {value!r}")
    for required in ("pixels", "color"):
        if required not in value:
            raise ValueError(f"missing field {required!r}")
    pixels = value["pixels"]
    if not isinstance(pixels, Sequence) or isinstance(pixels, (str, bytes)):
        raise ValueError(f"pixels must be an array, got {pixels!r}")
    color = value["color"]
    if (
        not isinstance(color, Sequence)
        or isinstance(color, (str, bytes))
        or len(color) != 3
    ):
        raise ValueError(f"color must be an array of 3 numbers, got {color!r}")
    return PixelArea(
        [pixel_range_from_json(p) for p in pixels],
        tuple(_integer(c, "color component", 255) for c in color),  # type: ignore[arg-type]
    )


def start_end_range_to_json(pixel_range: PixelRange) -> List[int]:
    """Encode as ``[start, end]`` or ``[start, end, confidence]``."""
    encoded = [pixel_range.start, pixel_range.end]
    if pixel_range.confidence != FULL_CONFIDENCE:
        encoded.append(pixel_range.confidence)
    return encoded


def start_end_range_from_json(value: Any) -> PixelRange:
    """Decode a pixel range given by its start and exclusive end."""
    start, end, confidence = _unpack(value, ("start", "end", "confidence"))
    start = _integer(start, "start", U32_MAX)
    end = _integer(end, "end", U32_MAX)
    if start >= end:
        raise ValueError("start must be less than end")
    return PixelRange(start, end, _confidence(confidence))