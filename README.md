# pixelnote

pixelnote is the model behind a pixel-mask annotation tool. It does the
following:

- keeps the masks drawn over an image, with an undo history;
- loads images and prepares a copy of each one for display;
- stores masks in compact files next to the images.

## Pixel ranges and areas

A mask is made of runs of pixels. Pixels are numbered row by row across the
image.

- `PixelRange` (`pixelnote.pixel_range`) is a half-open run `[start, end)`
  with a confidence from 0 to 255. The default confidence is 255.
  - Build one with `PixelRange.total(start, length)` or with
    `PixelRange.from_length(start, length, confidence)`.
  - A length must lie within 1..65535.
- `PixelArea` is a list of ranges with an RGB colour.
  - `PixelArea.with_black_color(pixels)` gives the area a black colour.
  - `PixelArea.with_random_color(pixels, seed)` derives a fixed colour from
    the seed.
- `remove_overlaps(area, ordered_existing)` cuts from `area` every pixel
  that is covered by the given ranges. The ranges must be sorted by start.
- `pixelnote.flat_map.flat_map_inplace` replaces each list element with zero
  or more elements, in place.

## Masks and history

`MaskImage` (`pixelnote.mask`) holds the areas of one image together with a
`History` (`pixelnote.history`). The history is a list of `AddAction`,
`ResetAction` and `ClearAction` steps.

- `add_area_overlapping` adds an area as it is.
- `add_area_non_overlapping_parts` adds only the pixels that no other area
  covers yet.
- `clear_rect(((x0, y0), (x1, y1)))` erases an inclusive rectangle.
- `reset` empties the mask.
- `undo` and `redo` step through the history.
- `subgroups()` returns the areas as they stand after the history.
- `subgroups_ordered()` yields `(area_index, range)` pairs, merged by
  start.
- `is_dirty` and `mark_not_dirty` track unsaved changes.
- `render()` returns a read-only `(height, width, 4)` RGBA overlay.
  - The colours are premultiplied.
  - The alpha comes from each range's confidence and
    `MaskSettings.default_opacity`.
  - `toggle_visibility` hides the overlay; `render()` then returns `None`.

```python
from pixelnote.mask import MaskImage
from pixelnote.pixel_range import PixelArea, PixelRange

masks = MaskImage((10, 10))
masks.add_area_non_overlapping_parts(
    PixelArea.with_black_color([PixelRange.total(1, 4)])
)
masks.add_area_non_overlapping_parts(
    PixelArea.with_black_color([PixelRange.total(2, 4)])
)
print(masks.subgroups())  # the second area keeps only pixel 5

masks.clear_rect(((0, 0), (3, 0)))
masks.undo()
```

## Images

`load_image(data)` (`pixelnote.image_utils`) decodes image bytes with
Pillow. An image that cannot be decoded raises `ValueError`. The result is an
`ImageLoadOk`:

- `original` is an `OriginalImage` of kind `LUMA8`, `LUMA16`, `RGB8` or
  `RGBA8`.
- `adjust` is an RGB `uint8` copy for display.
- Greyscale images have their 5%–95% value range stretched by
  `fix_image_contrast`.
- `chessboard()` yields two 400×400 sample images, wrapped as `ImageData`.

## JSON form

`pixelnote.serialization` converts ranges and areas to values that
`json.dumps` can write, and reads them back.

- A range is written as `[start, length]`. When the confidence is not full,
  it is `[start, length, confidence]`.
- `pixel_range_from_json` reads those arrays and also objects of the form
  `{"start": ..., "length": ..., "confidence": ...}`.
- `start_end_range_to_json` and `start_end_range_from_json` do the same with
  the exclusive `end` in place of `length`.
- `pixel_area_to_json` and `pixel_area_from_json` handle whole areas.

## Storage

Every storage method returns a `concurrent.futures.Future`.

- `InMemoryStorage` (`pixelnote.storage`) keeps images in memory.
  `InMemoryStorage.chessboard()` fills it with the sample images.
- `FileStorage` (`pixelnote.file_storage`) finds `.png`, `.jpg`, `.jpeg`,
  `.tif` and `.tiff` files below a base directory.
  - The masks of an image are kept beside it in `<stem>.masks`. That file
    holds the preamble `annot` and a version, followed by brotli-compressed
    ranges.
  - `read_masks` and `write_masks` handle that format on any binary stream.
  - Storing an empty list of masks deletes the file.

```python
from pixelnote.file_storage import FileStorage

storage = FileStorage("images")
for item in storage.list_images_blocking():
    print(item.name, item.has_masks)
```

## Interaction state

These parts hold state only; the caller supplies the input.

- `AsyncTask` and `AsyncRefTask` (`pixelnote.async_task`) check a Future or
  an awaitable without blocking.
- `ImageState` (`pixelnote.image_state`) goes from not loaded, through
  loading, to loaded or error, one `update` call at a time.
- `ImageViewer` (`pixelnote.viewer`) handles the zoom and pan geometry. It
  maps pointer positions to image pixels.
- `ImageSelector` (`pixelnote.image_selector`) steps through an image
  listing. Its `next_annotated` and `previous_annotated` methods jump to
  images that have masks.
- `ClearTool` and `RectSelection` (`pixelnote.tools`) turn pointer events,
  given as a `ToolContext`, into `clear_rect` calls.
- `Tools` (`pixelnote.toolbox`) chooses the active tool. `default_tools`
  offers `Clear`.
- `MaskGenerator` runs your own functions on the original image, given as a
  Pillow image. Each function returns proposed `PixelArea`s.
- `pixelnote.cursor_image.CursorImageSystem` reports a cursor change to a
  callback.
- `pixelnote.config.load_config(path)` reads `config.json`. The keys it reads
  are `sam_path`, `image_dir` and `egui.viewport`. When the file is missing it
  returns the defaults.

## What it does not do

pixelnote has no window, no drawing and no command to start. It computes
state and overlays; a user interface has to show them and pass in pointer
and keyboard input.

It comes with no segmentation model. `pixelnote.inference` only does two
things:

- `prepare_image_input` scales and normalises an image into a
  `(1, 3, 1024, 1024)` tensor.
- `extract_pixel_ranges` turns a model's output values into `PixelRange`s.

Running a model is left to you.

## Installing

```
pip install .
pip install ".[test]"   # with the test requirements
pytest
```