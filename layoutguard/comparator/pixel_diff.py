"""Pixel differ using the YIQ colour-distance metric from pixelmatch.

Anti-aliasing detection is not implemented; every pixel whose weighted
YIQ distance exceeds the threshold counts as a mismatch.
"""

from __future__ import annotations

import re
from functools import reduce

from PIL import Image, ImageChops

# Maximum possible squared YIQ delta between two colours
MAX_YIQ_DELTA = 35215

DIFF_COLOR = (255, 0, 0)
# Opacity of the greyed-out original in the diff image
GRAY_ALPHA = 0.1

_LUMA_MATRIX = (0.29889531, 0.58662247, 0.11448223, 0)
_NONZERO_RE = re.compile(rb"[^\x00]")


def _blend(c: float, a: float) -> float:
    """Blend a colour channel with white by the given alpha."""
    return 255 + (c - 255) * a


def _rgb2y(r: float, g: float, b: float) -> float:
    return r * 0.29889531 + g * 0.58662247 + b * 0.11448223


def _rgb2i(r: float, g: float, b: float) -> float:
    return r * 0.59597799 - g * 0.27417610 - b * 0.32180189


def _rgb2q(r: float, g: float, b: float) -> float:
    return r * 0.21147017 - g * 0.52261711 + b * 0.31114694


def color_delta(p1: tuple[int, int, int, int], p2: tuple[int, int, int, int]) -> float:
    """Squared perceptual distance between two RGBA pixels."""
    r1, g1, b1, a1 = p1
    r2, g2, b2, a2 = p2
    if p1 == p2:
        return 0.0
    if a1 < 255:
        f = a1 / 255
        r1, g1, b1 = _blend(r1, f), _blend(g1, f), _blend(b1, f)
    if a2 < 255:
        f = a2 / 255
        r2, g2, b2 = _blend(r2, f), _blend(g2, f), _blend(b2, f)
    y = _rgb2y(r1, g1, b1) - _rgb2y(r2, g2, b2)
    i = _rgb2i(r1, g1, b1) - _rgb2i(r2, g2, b2)
    q = _rgb2q(r1, g1, b1) - _rgb2q(r2, g2, b2)
    return 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q


def _faded_background(img: Image.Image) -> Image.Image:
    """Greyscale copy of ``img`` blended towards white, alpha-weighted."""
    luma = img.convert("RGB").convert("L", matrix=_LUMA_MATRIX)
    # 255 - (255 - y) * GRAY_ALPHA * a / 255
    darkness = ImageChops.multiply(ImageChops.invert(luma), img.getchannel("A"))
    faded = ImageChops.invert(darkness.point(lambda v: int(v * GRAY_ALPHA)))
    return faded.convert("RGBA")


def _changed_mask(img1: Image.Image, img2: Image.Image) -> Image.Image:
    """Single-band mask, non-zero wherever any RGBA channel differs."""
    return reduce(ImageChops.lighter, ImageChops.difference(img1, img2).split())


def diff_images(
    img1: Image.Image, img2: Image.Image, threshold: float = 0.1
) -> tuple[int, Image.Image]:
    """Count mismatched pixels and render a diff image.

    Both images must have identical dimensions. Mismatches are painted red
    on a faded greyscale copy of ``img1``. Only pixels whose bytes differ
    are run through ``color_delta``.
    """
    if img1.size != img2.size:
        raise ValueError("Image sizes do not match")

    a = img1.convert("RGBA")
    b = img2.convert("RGBA")
    out = _faded_background(a)

    mask = _changed_mask(a, b)
    bbox = mask.getbbox()
    if bbox is None:
        return 0, out

    left, top, right, _ = bbox
    width = right - left
    max_delta = MAX_YIQ_DELTA * threshold * threshold
    pa, pb, po = a.load(), b.load(), out.load()
    mismatches = 0
    for m in _NONZERO_RE.finditer(mask.crop(bbox).tobytes()):
        x = left + m.start() % width
        y = top + m.start() // width
        if color_delta(pa[x, y], pb[x, y]) > max_delta:
            mismatches += 1
            po[x, y] = DIFF_COLOR + (255,)
    return mismatches, out
