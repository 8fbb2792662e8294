"""Application configuration read from a JSON file."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Tuple, Union

DEFAULT_CONFIG_FILE = "config.json"


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return float(value)


def _vec2(value: Any) -> Tuple[float, float]:
    if isinstance(value, Mapping):
        missing = [key for key in ("x", "y") if key not in value]
        if missing:
            raise ValueError(f"missing field {missing[0]!r} in viewport")
        return _number(value["x"], "x"), _number(value["y"], "y")
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
        return _number(value[0], "x"), _number(value[1], "y")
    raise ValueError(f"viewport must be an object with x and y or a pair, got {value!r}")


@dataclass(frozen=True)
class ViewerConfig:
    """Window settings."""

    viewport: Tuple[float, float] = (800.0, 800.0)


@dataclass(frozen=True)
class Config:
    """Settings of the annotation application."""

    sam_path: Path = Path("sam")
    image_dir: Optional[Path] = None
    egui: ViewerConfig = field(default_factory=ViewerConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Config":
        """Build from a mapping; missing fields keep their defaults."""
        if not isinstance(data, Mapping):
            raise ValueError(f"expected an object for the configuration, got {data!r}")
        defaults = cls()

        sam_path = data.get("sam_path", defaults.sam_path)
        if not isinstance(sam_path, (str, Path)):
            raise ValueError(f"sam_path must be a string, got {sam_path!r}")

        image_dir = data.get("image_dir")
        if image_dir is not None and not isinstance(image_dir, (str, Path)):
            raise ValueError(f"image_dir must be a string or null, got {image_dir!r}")

        egui = data.get("egui", {})
        if not isinstance(egui, Mapping):
            raise ValueError(f"egui must be an object, got {egui!r}")
        viewer = ViewerConfig(
            viewport=_vec2(egui["viewport"]) if "viewport" in egui else defaults.egui.viewport
        )

        return cls(
            sam_path=Path(sam_path),
            image_dir=Path(image_dir) if image_dir is not None else None,
            egui=viewer,
        )


def load_config(path: Union[str, os.PathLike] = DEFAULT_CONFIG_FILE) -> Config:
    """Read the configuration file; a missing file yields the defaults."""
    try:
        with open(path, encoding="utf-8") as stream:
            data = json.load(stream)
    except FileNotFoundError:
        return Config()
    return Config.from_dict(data)