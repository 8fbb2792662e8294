import json

import pytest

from pixelnote.history import AddAction, History
from pixelnote.mask import MaskImage, MaskSettings
from pixelnote.pixel_range import PixelArea, PixelRange


def black(*ranges):
    return PixelArea.with_black_color([PixelRange.total(s, n) for s, n in ranges])


def fresh():
    return MaskImage((10, 10), [], History())


def test_serialize_deserialize_mask_settings():
    settings = MaskSettings()
    text = json.dumps(settings.to_dict())
    assert MaskSettings.from_dict(json.loads(text)) == settings


def test_mask_settings_defaults_missing_fields():
    assert MaskSettings.from_dict({}).default_opacity == 128


def test_mask_settings_rejects_out_of_range():
    with pytest.raises(ValueError):
        MaskSettings.from_dict({"default_opacity": 300})


def test_add_area_with_overlap():
    mask = fresh()
    mask.add_area_overlapping(black((1, 4)))
    mask.add_area_overlapping(black((2, 2)))
    assert mask.subgroups() == [black((1, 4)), black((2, 2))]


def test_add_area_non_overlapping_parts_remove_completely():
    mask = fresh()
    mask.add_area_non_overlapping_parts(black((1, 4)))
    mask.add_area_non_overlapping_parts(black((2, 2)))
    assert mask.subgroups() == [black((1, 4))]


def test_add_area_non_overlapping_parts_remove_partially():
    mask = fresh()
    mask.add_area_non_overlapping_parts(black((1, 4)))
    mask.add_area_non_overlapping_parts(black((2, 4)))
    assert mask.subgroups() == [black((1, 4)), black((5, 1))]


def test_add_area_non_overlapping_parts_keeps_argument():
    mask = fresh()
    mask.add_area_non_overlapping_parts(black((1, 4)))
    area = black((2, 4))
    mask.add_area_non_overlapping_parts(area)
    assert area == black((2, 4))


def test_clear_should_remove_multiple_overlapping_areas_start():
    mask = fresh()
    mask.add_area_overlapping(black((1, 8)))
    mask.add_area_overlapping(black((2, 6)))
    mask.clear_rect(((0, 0), (4, 1)))
    assert mask.subgroups() == [black((5, 4)), black((5, 3))]


def test_clear_should_remove_multiple_overlapping_areas_end():
    mask = fresh()
    mask.add_area_overlapping(black((1, 8)))
    mask.add_area_overlapping(black((2, 6)))
    mask.clear_rect(((5, 0), (10, 1)))
    assert mask.subgroups() == [black((1, 4)), black((2, 3))]


def test_clear_should_remove_multiple_overlapping_areas_within():
    mask = fresh()
    mask.add_area_overlapping(black((1, 8)))
    mask.add_area_overlapping(black((2, 6)))
    mask.clear_rect(((4, 0), (5, 1)))
    assert mask.subgroups() == [black((1, 3), (6, 3)), black((2, 2), (6, 2))]


def test_clear_should_remove_overlapping_areas_first():
    mask = fresh()
    mask.add_area_overlapping(black((1, 8)))
    mask.add_area_overlapping(black((4, 2)))
    mask.clear_rect(((0, 0), (3, 1)))
    assert mask.subgroups() == [black((4, 5)), black((4, 2))]


def test_clear_should_remove_overlapping_areas_last():
    mask = fresh()
    mask.add_area_overlapping(black((4, 2)))
    mask.add_area_overlapping(black((1, 8)))
    mask.clear_rect(((0, 0), (3, 1)))
    assert mask.subgroups() == [black((4, 2)), black((4, 5))]


def test_clear_rect_rejects_inverted_rect():
    with pytest.raises(ValueError):
        fresh().clear_rect(((5, 0), (2, 0)))


def test_clear_rect_rejects_zero_width_image():
    with pytest.raises(ValueError):
        MaskImage((0, 10)).clear_rect(((0, 0), (0, 0)))


def test_iter_sorted():
    history = History()
    history.push(AddAction(black((22, 7), (39, 1), (42, 7))))
    mask = MaskImage((10, 10), [black((2, 5), (12, 5)), black((32, 5))], history)
    assert [gid for gid, _ in mask.subgroups_ordered()] == [0, 0, 2, 1, 2, 2]


def test_render_pixels():
    mask = MaskImage((4, 2), [PixelArea([PixelRange.total(1, 2)], (10, 20, 30))])
    mask.set_settings(MaskSettings(default_opacity=255))
    image = mask.render()
    assert image.shape == (2, 4, 4)
    assert image[0, 1].tolist() == [10, 20, 30, 255]
    assert image[0, 2].tolist() == [10, 20, 30, 255]
    assert image[0, 0].tolist() == [0, 0, 0, 0]
    assert image[0, 3].tolist() == [0, 0, 0, 0]


def test_render_zero_confidence_is_transparent():
    mask = MaskImage((4, 1), [PixelArea([PixelRange.from_length(0, 1, 0)], (9, 9, 9))])
    mask.set_settings(MaskSettings(default_opacity=255))
    assert mask.render()[0, 0].tolist() == [9, 9, 9, 0]


def test_render_out_of_bounds_raises():
    mask = MaskImage((2, 2), [black((3, 4))])
    with pytest.raises(IndexError):
        mask.render()


def test_toggle_visibility():
    mask = MaskImage((4, 1), [black((0, 1))])
    mask.toggle_visibility()
    assert mask.render() is not None
    mask.toggle_visibility()
    assert mask.render() is None
    mask.toggle_visibility()
    assert mask.render().shape == (1, 4, 4)


def test_adding_area_shows_hidden_overlay():
    mask = MaskImage((4, 1))
    mask.render()
    mask.toggle_visibility()
    assert mask.render() is None
    mask.add_area_overlapping(black((0, 2)))
    assert mask.render()[0, 1].tolist()[3] > 0


def test_undo_redo():
    mask = fresh()
    assert mask.undo() is False
    mask.add_area_overlapping(black((1, 2)))
    assert mask.undo() is True
    assert mask.subgroups() == []
    assert mask.redo() is True
    assert mask.subgroups() == [black((1, 2))]
    assert mask.redo() is False


def test_dirty_tracking():
    mask = fresh()
    assert mask.is_dirty() is False
    mask.add_area_overlapping(black((1, 2)))
    assert mask.is_dirty() is True
    mask.mark_not_dirty()
    assert mask.is_dirty() is False
    mask.reset()
    assert mask.is_dirty() is True
    assert mask.subgroups() == []


def test_random_seed():
    history = History()
    history.push(AddAction(black((0, 1))))
    history.push(AddAction(black((5, 1))))
    mask = MaskImage((10, 10), [black((20, 1))], history)
    assert mask.random_seed() == 3