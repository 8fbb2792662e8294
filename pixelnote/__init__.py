"""Pixel-mask annotation: pixel areas, mask history, image loading and storage."""

__version__ = "0.1.0"