"""Images in a directory tree, with masks in brotli-compressed side files.

A mask file ``<stem>.masks`` lies next to its image. It starts with the
preamble ``annot`` and a little-endian u16 version, followed by a brotli
stream of areas. Each area is a u16 range count, the u32 starts of its
ranges and then their u16 lengths, all little endian.
"""

from __future__ import annotations

import logging
import os
import struct
import threading
from concurrent.futures import Future
from itertools import groupby
from operator import itemgetter
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Iterator, List, TypeVar, Union

import brotli

from .image_utils import ImageData, ImageListItem
from .image_utils import load_image as decode_image
from .pixel_range import PixelArea, PixelRange
from .storage import PREAMBLE, VERSION, Kind, Storage, kind_from_extension

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RANGES_PER_AREA = 0xFFFF


class MaskFormatError(ValueError):
    """A mask file cannot be decoded."""


def _resolved(work: Callable[[], T]) -> "Future[T]":
    future: Future = Future()
    try:
        future.set_result(work())
    except Exception as error:
        future.set_exception(error)
    return future


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise MaskFormatError(f"unexpected end of data while reading the {what}")
    return data


def read_masks(stream: BinaryIO) -> List[PixelArea]:
    """Decode mask areas from a binary stream."""
    if _read_exact(stream, len(PREAMBLE), "preamble") != PREAMBLE:
        raise MaskFormatError("Invalid preamble")
    (version,) = struct.unpack("<H", _read_exact(stream, 2, "version"))
    if version != VERSION:
        raise MaskFormatError(f"unsupported mask format version {version}")
    try:
        payload = brotli.decompress(stream.read())
    except brotli.error as error:
        raise MaskFormatError(f"cannot decompress masks: {error}") from error

    areas: List[PixelArea] = []
    offset = 0
    while offset + 2 <= len(payload):
        (count,) = struct.unpack_from("<H", payload, offset)
        offset += 2
        if offset + count * 6 > len(payload):
            raise MaskFormatError("mask data ends within an area")
        starts = struct.unpack_from(f"<{count}I", payload, offset)
        offset += count * 4
        lengths = struct.unpack_from(f"<{count}H", payload, offset)
        offset += count * 2
        ranges = []
        for start, length in zip(starts, lengths):
            if length == 0:
                raise MaskFormatError(f"position {start},{length}: length must not be zero")
            ranges.append(PixelRange.total(start, length))
        areas.append(PixelArea.with_random_color(ranges, len(areas)))
    return areas


def write_masks(stream: BinaryIO, masks: Iterable[PixelArea]) -> None:
    """Encode mask areas to a binary stream."""
    chunks = []
    for area in masks:
        count = area.range_len()
        if count > MAX_RANGES_PER_AREA:
            raise ValueError(
                f"Version1 allows for MAX {MAX_RANGES_PER_AREA} subgroups, got {count}"
            )
        chunks.append(struct.pack("<H", count))
        chunks.append(struct.pack(f"<{count}I", *(r.start for r in area.pixels)))
        chunks.append(struct.pack(f"<{count}H", *(r.length() for r in area.pixels)))
    stream.write(PREAMBLE)
    stream.write(struct.pack("<H", VERSION))
    stream.write(brotli.compress(b"".join(chunks), quality=11, lgwin=22))


def mask_path(image_id: Union[str, os.PathLike]) -> Path:
    """Path of the mask file belonging to an image path."""
    path = Path(image_id)
    if path.name in ("", ".", ".."):
        raise OSError("File has no filename")
    return path.parent / f"{path.stem}.masks"


def visit_directory_files(path: Union[str, os.PathLike]) -> Iterator[Path]:
    """Yield every non-directory entry below ``path``; unreadable parts are skipped."""
    try:
        with os.scandir(path) as entries:
            listed = list(entries)
    except OSError:
        return
    for entry in listed:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        if is_dir:
            yield from visit_directory_files(entry.path)
        else:
            yield Path(entry.path)


class FileStorage(Storage):
    """Images found recursively below a base directory."""

    def __init__(self, base: Union[str, os.PathLike]) -> None:
        self.base = Path(base)

    def list_images_blocking(self) -> List[ImageListItem]:
        """List images, grouped by file stem; a mask file marks its image annotated."""
        found = []
        for path in visit_directory_files(self.base):
            try:
                kind = kind_from_extension(path.suffix[1:])
            except ValueError:
                continue
            found.append((path.stem, kind, str(path)))
        found.sort(key=lambda entry: (entry[0], entry[1].value, entry[2]))

        items = []
        for name, group in groupby(found, key=itemgetter(0)):
            members = list(group)
            _, kind, image_id = members[0]
            if kind is Kind.IMAGE:
                items.append(ImageListItem(id=image_id, name=name, has_masks=False))
                continue
            if len(members) == 1:
                continue
            _, second_kind, second_id = members[1]
            if second_kind is Kind.MASK:
                raise ValueError(f"multiple mask files named {name}.masks")
            items.append(ImageListItem(id=second_id, name=name, has_masks=True))
        return items

    def list_images(self) -> "Future[List[ImageListItem]]":
        future: Future = Future()

        def work() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.list_images_blocking())
            except Exception as error:
                future.set_exception(error)

        threading.Thread(target=work, daemon=True).start()
        return future

    def load_image(self, image_id: str) -> "Future[ImageData]":
        def work() -> ImageData:
            image_bytes = Path(image_id).read_bytes()
            masks_file = mask_path(image_id)
            image = decode_image(image_bytes)
            try:
                stream = open(masks_file, "rb")
            except FileNotFoundError:
                masks: List[PixelArea] = []
            else:
                with stream:
                    masks = read_masks(stream)
            return ImageData(id=image_id, image=image, masks=masks)

        return _resolved(work)

    def store_masks(self, image_id: str, masks: List[PixelArea]) -> "Future[None]":
        masks = list(masks)

        def work() -> None:
            logger.info("Store at: %s", image_id)
            path = mask_path(image_id)
            if not masks:
                path.unlink(missing_ok=True)
                return
            with open(path, "wb") as stream:
                write_masks(stream, masks)

        return _resolved(work)