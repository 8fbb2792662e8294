import numpy as np
import pytest

from pixelnote.inference import ResizedImageData, extract_pixel_ranges, prepare_image_input
from pixelnote.pixel_range import PixelRange


def test_extract_pixel_ranges_summarizes_pixels():
    assert extract_pixel_ranges([1.0, 1.0, 1.0], 3) == [PixelRange.total(0, 3)]


def test_extract_splits_at_row_end():
    assert extract_pixel_ranges([1.0, 1.0, 1.0, 1.0], 2) == [
        PixelRange.total(0, 2),
        PixelRange.total(2, 2),
    ]


def test_extract_ignores_non_positive():
    values = [0.0, 2.0, -1.0, 3.0, 4.0, 0.0]
    ranges = extract_pixel_ranges(iter(values), 10)
    covered = {p for r in ranges for p in r.as_range()}
    assert covered == {i for i, v in enumerate(values) if v > 0}
    assert len(ranges) == 2


def test_extract_empty():
    assert extract_pixel_ranges(np.zeros(9), 3) == []


def test_extract_invalid_width():
    with pytest.raises(ValueError):
        extract_pixel_ranges([1.0], 0)


def test_prepare_wide_image():
    rng = np.random.default_rng(0)
    image = rng.integers(0, 256, size=(10, 20, 3), dtype=np.uint8)
    prepared = prepare_image_input(image)
    assert (prepared.original_width, prepared.original_height) == (20, 10)
    assert (prepared.resized_width, prepared.resized_height) == (1024, 512)
    tensor = prepared.image_data
    assert tensor.shape == (1, 3, 1024, 1024)
    assert tensor.dtype == np.float32
    assert not tensor[0, :, 512:, :].any()
    region = tensor[0, :, :512, :1024]
    assert np.allclose(region.mean(axis=(1, 2)), 0.0, atol=1e-3)
    assert np.allclose(region.std(axis=(1, 2), ddof=1), 1.0, atol=1e-3)


def test_prepare_rejects_wrong_shape():
    with pytest.raises(ValueError):
        prepare_image_input(np.zeros((4, 4), dtype=np.uint8))


def test_prepare_rejects_wrong_dtype():
    with pytest.raises(ValueError):
        prepare_image_input(np.zeros((4, 4, 3), dtype=np.float32))


def test_resized_image_data_map_keeps_sizes():
    data = ResizedImageData(np.zeros((2, 3)), 4, 5, 6, 7)
    mapped = data.map(lambda array: array.shape)
    assert mapped == ResizedImageData((2, 3), 4, 5, 6, 7)