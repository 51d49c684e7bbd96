from __future__ import annotations

import math
from typing import List, NamedTuple, Tuple

from mandelgif.frames import BLACK, FrameBuffer, Pixel
from mandelgif.keyframes import Keyframe

MAX_ITER = 255
ESCAPE_RADIUS_SQUARED = 8192.0

_LOG2_10 = math.log2(10.0)


class Complex(NamedTuple):
    re: float
    im: float


def complex_add(a: Complex, b: Complex) -> Complex:
    return Complex(a.re + b.re, a.im + b.im)


def complex_mul_and_add(z: Complex, w: Complex, c: Complex) -> Complex:
    """Return z * w + c."""
    return Complex(
        z.re * w.re - z.im * w.im + c.re,
        z.re * w.im + z.im * w.re + c.im,
    )


def complex_norm_sqr(z: Complex) -> float:
    return z.re * z.re + z.im * z.im


def escape(c: Complex, max_iter: int = MAX_ITER, escape_radius_squared: float = ESCAPE_RADIUS_SQUARED) -> Tuple[Complex, int]:
    """Iterate z <- z*z + c from z = 0 until |z|^2 reaches the radius or max_iter steps are taken."""
    z = Complex(0.0, 0.0)
    iters = 0
    while complex_norm_sqr(z) < escape_radius_squared and iters < max_iter:
        z = complex_mul_and_add(z, z, c)
        iters += 1
    return z, iters


def smooth_intensity(z: Complex, iters: int, max_iter: int = MAX_ITER) -> float:
    nu = math.log2(math.log2(complex_norm_sqr(z)) / 2.0) / _LOG2_10
    return (iters + 1 - nu) / max_iter


def calc_pixel(
    cx: float,
    cy: float,
    max_iter: int = MAX_ITER,
    escape_radius_squared: float = ESCAPE_RADIUS_SQUARED,
) -> Pixel:
    """
    Colour one point of the complex plane with the smooth escape-time palette.

    Escaped points get (i^2, i, sqrt(i)) for the normalised smooth iteration
    count i; points still bounded after max_iter steps are black.
    """
    z, iters = escape(Complex(cx, cy), max_iter, escape_radius_squared)
    if iters >= max_iter:
        return BLACK

    intensity = smooth_intensity(z, iters, max_iter)
    r = intensity ** 2
    g = intensity
    b = math.sqrt(intensity) if intensity > 0.0 else 0.0
    return Pixel.from_rgb(r, g, b)


def draw_frame(
    width: int,
    height: int,
    viewport: Keyframe,
    *,
    max_iter: int = MAX_ITER,
    escape_radius_squared: float = ESCAPE_RADIUS_SQUARED,
) -> List[Pixel]:
    pixels: List[Pixel] = []
    for y in range(height):
        for x in range(width):
            cx, cy = viewport.get_coordinate(x, y, width, height)
            pixels.append(calc_pixel(cx, cy, max_iter, escape_radius_squared))
    return pixels


def render_frame(
    width: int,
    height: int,
    viewport: Keyframe,
    *,
    max_iter: int = MAX_ITER,
    escape_radius_squared: float = ESCAPE_RADIUS_SQUARED,
) -> FrameBuffer:
    pixels = draw_frame(width, height, viewport, max_iter=max_iter, escape_radius_squared=escape_radius_squared)
    return FrameBuffer.from_pixels(width, height, pixels)
