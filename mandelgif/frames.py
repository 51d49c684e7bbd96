from __future__ import annotations

import math
from typing import NamedTuple, Sequence

import numpy as np
from PIL import Image


def _to_channel(v: float) -> int:
    # Saturating truncation into 0..255, NaN maps to 0.
    if math.isnan(v):
        return 0
    scaled = 255.0 * v
    if scaled <= 0.0:
        return 0
    if scaled >= 255.0:
        return 255
    return int(scaled)


class Pixel(NamedTuple):
    r: int
    g: int
    b: int
    a: int = 255

    @classmethod
    def from_rgb(cls, r: float, g: float, b: float) -> "Pixel":
        """Build an opaque pixel from unit-interval channel intensities."""
        return cls(_to_channel(r), _to_channel(g), _to_channel(b), 255)


BLACK = Pixel(0, 0, 0, 255)


class FrameBuffer:
    """
    Immutable row-major RGBA pixel buffer for one frame.

    Backed by a read-only numpy array of shape (height, width, 4).
    """

    __slots__ = ("_rgba",)

    def __init__(self, rgba: np.ndarray):
        if rgba.ndim != 3 or rgba.shape[2] != 4 or rgba.dtype != np.uint8:
            raise ValueError(f"Expected a (height, width, 4) uint8 array, got {rgba.shape} {rgba.dtype}.")
        rgba = np.array(rgba, dtype=np.uint8, copy=True)
        rgba.flags.writeable = False
        self._rgba = rgba

    @classmethod
    def from_pixels(cls, width: int, height: int, pixels: Sequence[Pixel]) -> "FrameBuffer":
        if len(pixels) != width * height:
            raise ValueError(
                f"Pixel buffer holds {len(pixels)} pixels, expected {width}x{height}={width * height}."
            )
        buf = np.array(pixels, dtype=np.uint8).reshape((height, width, 4))
        return cls(buf)

    @property
    def width(self) -> int:
        return int(self._rgba.shape[1])

    @property
    def height(self) -> int:
        return int(self._rgba.shape[0])

    @property
    def size(self):
        return self.width, self.height

    @property
    def rgba(self) -> np.ndarray:
        return self._rgba

    def pixel(self, x: int, y: int) -> Pixel:
        r, g, b, a = (int(v) for v in self._rgba[y, x])
        return Pixel(r, g, b, a)

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self._rgba))

    def __eq__(self, other):
        if not isinstance(other, FrameBuffer):
            return NotImplemented
        return self._rgba.shape == other._rgba.shape and bool(np.array_equal(self._rgba, other._rgba))

    __hash__ = None  # type: ignore[assignment]

    def __reduce__(self):
        # Rebuild through __init__ so the copy received from a worker process is read-only too.
        return (FrameBuffer, (np.array(self._rgba),))

    def __repr__(self) -> str:
        return f"FrameBuffer({self.width}x{self.height})"
