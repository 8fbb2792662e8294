import json

import pytest

from pixelnote.pixel_range import PixelArea, PixelRange
from pixelnote.serialization import (
    pixel_area_from_json,
    pixel_area_to_json,
    pixel_range_from_json,
    pixel_range_to_json,
    start_end_range_from_json,
    start_end_range_to_json,
)


def _compact(value):
    return json.dumps(value, separators=(",", ":"))


def test_deserialize_two_component():
    area = pixel_area_from_json({"pixels": [[1, 10]], "color": [0, 0, 0]})
    assert area.pixels == [PixelRange.total(1, 10)]


def test_deserialize_pixel_area_with_three_component():
    area = pixel_area_from_json({"pixels": [[1, 10, 42]], "color": [0, 0, 0]})
    assert area.pixels == [PixelRange.from_length(1, 10, 42)]


def test_deserialize_two_component_with_default_confidence():
    area = pixel_area_from_json({"pixels": [[5, 3]], "color": [0, 0, 0]})
    assert area.pixels == [PixelRange.from_length(5, 3, 255)]


def test_deserialize_named_pixel_area_without_confidence():
    area = pixel_area_from_json(
        {"pixels": [{"start": 5, "length": 3}], "color": [0, 0, 0]}
    )
    assert area.pixels == [PixelRange.from_length(5, 3, 255)]
    assert _compact([pixel_range_to_json(p) for p in area.pixels]) == "[[5,3]]"


def test_deserialize_named_pixel_area_with_confidence():
    area = pixel_area_from_json(
        {"pixels": [{"start": 5, "length": 3, "confidence": 42}], "color": [0, 0, 0]}
    )
    assert area.pixels == [PixelRange.from_length(5, 3, 42)]
    assert _compact([pixel_range_to_json(p) for p in area.pixels]) == "[[5,3,42]]"


def test_deserialize_from_start_end_pixel_range():
    ranges = [start_end_range_from_json(v) for v in json.loads("[[1, 10]]")]
    assert ranges == [PixelRange.total(1, 9)]
    assert _compact([start_end_range_to_json(r) for r in ranges]) == "[[1,10]]"


def test_start_end_with_confidence_round_trip():
    original = PixelRange(3, 8, 17)
    encoded = start_end_range_to_json(original)
    assert encoded == [3, 8, 17]
    assert start_end_range_from_json(encoded) == original


def test_start_end_named_form():
    assert start_end_range_from_json({"start": 2, "end": 4}) == PixelRange(2, 4)


@pytest.mark.parametrize("value", [[5, 5], [6, 5], {"start": 4, "end": 4}])
def test_start_end_rejects_start_not_before_end(value):
    with pytest.raises(ValueError, match="start must be less than end"):
        start_end_range_from_json(value)


def test_pixel_area_round_trip():
    area = PixelArea([PixelRange.total(0, 4), PixelRange.from_length(9, 2, 7)], (10, 20, 30))
    encoded = pixel_area_to_json(area)
    assert encoded == {"pixels": [[0, 4], [9, 2, 7]], "color": [10, 20, 30]}
    assert pixel_area_from_json(json.loads(json.dumps(encoded))) == area


def test_unknown_field_is_rejected():
    with pytest.raises(ValueError, match="unknown field"):
        pixel_range_from_json({"start": 1, "length": 2, "extra": 3})


def test_missing_field_is_rejected():
    with pytest.raises(ValueError, match="missing field 'length'"):
        pixel_range_from_json({"start": 1})


@pytest.mark.parametrize("value", [[1], [1, 2, 3, 4], "1,2", 5])
def test_wrong_shape_is_rejected(value):
    with pytest.raises(ValueError):
        pixel_range_from_json(value)


@pytest.mark.parametrize("value", [[1, 0], [1, 65536], [-1, 2], [1, 2, 256], [1, True]])
def test_out_of_range_numbers_are_rejected(value):
    with pytest.raises(ValueError):
        pixel_range_from_json(value)


def test_pixel_area_requires_color():
    with pytest.raises(ValueError, match="missing field 'color'"):
        pixel_area_from_json({"pixels": [[1, 2]]})


def test_pixel_area_rejects_bad_color():
    with pytest.raises(ValueError):
        pixel_area_from_json({"pixels": [], "color": [0, 0]})