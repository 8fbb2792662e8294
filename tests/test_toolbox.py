from concurrent.futures import Future

import numpy as np
import pytest

from pixelnote.config import Config
from pixelnote.image_state import ImageStateLoaded
from pixelnote.image_utils import ImageKind, OriginalImage, chessboard
from pixelnote.pixel_range import PixelArea, PixelRange
from pixelnote.tools import ClearTool, ToolContext
from pixelnote.toolbox import MaskGenerator, Tools, default_tools


def _loaded():
    data = next(chessboard())
    data.masks = [PixelArea.with_black_color([PixelRange.total(0, 4)])]
    return ImageStateLoaded.from_image_data(data)


def _click(loaded, pos):
    return ToolContext(image=loaded, cursor_image_pos=pos, clicked=True)


def test_default_tools_offer_clear():
    factories = default_tools(Config())
    assert [name for name, _ in factories] == ["Clear"]
    tool = factories[0][1](None).result()
    assert isinstance(tool, ClearTool)


def test_placeholder_tool_leaves_masks_alone():
    loaded = _loaded()
    tools = Tools(default_tools(Config()))
    before = loaded.masks.subgroups()
    assert tools.handle_interaction(_click(loaded, (1, 0))) is True
    assert loaded.masks.subgroups() == before


def test_loaded_clear_tool_clears_clicked_pixel():
    loaded = _loaded()
    tools = Tools(default_tools(Config()))
    tools.load_tool(loaded.image)
    assert tools.handle_interaction(_click(loaded, (1, 0))) is True
    assert loaded.masks.subgroups()[0].pixels == [
        PixelRange.total(0, 1),
        PixelRange.total(2, 2),
    ]


def test_pending_tool_is_not_used():
    loaded = _loaded()
    tools = Tools([("Slow", lambda image: Future())])
    tools.load_tool(loaded.image)
    assert tools.handle_interaction(_click(loaded, (1, 0))) is False


def test_failed_tool_is_ignored():
    def broken(image):
        future = Future()
        future.set_exception(RuntimeError("no model"))
        return future

    loaded = _loaded()
    tools = Tools([("Broken", broken)])
    tools.load_tool(loaded.image)
    assert tools.handle_interaction(_click(loaded, (1, 0))) is False
    assert len(loaded.masks.subgroups()[0].pixels) == 1


def test_select_loads_only_on_change():
    calls = []

    def factory(image):
        calls.append(image)
        future = Future()
        future.set_result(ClearTool())
        return future

    loaded = _loaded()
    tools = Tools([("A", factory), ("B", factory)])
    assert tools.select(0, loaded.image) is False
    assert calls == []
    assert tools.select(1, loaded.image) is True
    assert calls == [loaded.image]
    assert tools.active_index == 1
    with pytest.raises(IndexError):
        tools.select(2, loaded.image)


def test_tools_need_a_factory():
    with pytest.raises(ValueError):
        Tools([])


def test_mask_generator_without_algorithms_returns_none():
    generator = MaskGenerator()
    image = OriginalImage(ImageKind.RGB8, np.zeros((2, 3, 3), dtype=np.uint8))
    assert generator.annotate(image) is None
    assert generator.names() == []


def test_mask_generator_runs_selected_algorithm():
    area = PixelArea.with_black_color([PixelRange.total(0, 2)])
    seen = []

    def first(img):
        seen.append(img.size)
        return []

    def second(img):
        seen.append(img.size)
        return [area]

    generator = MaskGenerator([("first", first), ("second", second)])
    image = OriginalImage(ImageKind.RGB8, np.zeros((2, 3, 3), dtype=np.uint8))
    assert generator.names() == ["first", "second"]
    assert generator.annotate(image) == []
    generator.select(1)
    assert generator.annotate(image) == [area]
    assert seen == [(3, 2), (3, 2)]
    with pytest.raises(IndexError):
        generator.select(2)