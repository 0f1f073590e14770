"""
Redaction effects: pixelate and box blur over a sub-rectangle.

Both effects are confined to a rectangle in image pixels. The rectangle is
normalised, its min edge floored and its max edge ceiled, then clipped to
the image; an empty result leaves the image untouched.
"""

import math
from typing import Optional, Tuple

import numpy as np

from shotmark.editor.geometry import Rect

MIN_PIXELATE_BLOCK = 2
MAX_BLUR_RADIUS = 12

PixelBounds = Tuple[int, int, int, int]


def pixel_bounds(rect: Rect, width: int, height: int) -> Optional[PixelBounds]:
    """
    Integer (min_x, min_y, max_x, max_y) covered by rect, max exclusive.

    Returns None when the clipped area is empty.
    """
    rect = rect.normalized()
    min_x = int(max(math.floor(rect.min_x), 0.0))
    min_y = int(max(math.floor(rect.min_y), 0.0))
    max_x = int(min(math.ceil(rect.max_x), float(width)))
    max_y = int(min(math.ceil(rect.max_y), float(height)))
    if min_x >= max_x or min_y >= max_y:
        return None
    return min_x, min_y, max_x, max_y


def _full_rect(img: np.ndarray) -> Rect:
    height, width = img.shape[:2]
    return Rect(0.0, 0.0, float(width), float(height))


def apply_pixelate(img: np.ndarray, rect: Rect, block: int) -> None:
    """
    Replace each block x block cell of rect with its mean colour.

    Cells are aligned to rect's top-left pixel; cells on the right and
    bottom edges are cut short by the rectangle. Means are taken per
    channel (alpha included) and truncated to integers.
    """
    height, width = img.shape[:2]
    bounds = pixel_bounds(rect, width, height)
    if bounds is None:
        return
    min_x, min_y, max_x, max_y = bounds
    block = max(int(block), MIN_PIXELATE_BLOCK)

    region = img[min_y:max_y, min_x:max_x].astype(np.uint64)
    rows = np.arange(0, region.shape[0], block)
    cols = np.arange(0, region.shape[1], block)
    sums = np.add.reduceat(np.add.reduceat(region, rows, axis=0), cols, axis=1)

    cell_h = np.diff(np.append(rows, region.shape[0]))
    cell_w = np.diff(np.append(cols, region.shape[1]))
    counts = (cell_h[:, None] * cell_w[None, :]).astype(np.uint64)
    means = (sums // counts[:, :, None]).astype(np.uint8)

    img[min_y:max_y, min_x:max_x] = np.repeat(np.repeat(means, cell_h, axis=0), cell_w, axis=1)


def apply_blur(img: np.ndarray, rect: Rect, radius: int) -> None:
    """
    Box-blur rect in place.

    Every pixel becomes the truncated mean of the (2r+1)^2 window around it,
    read from a snapshot taken before any write. The window is clipped to
    the rectangle, so edge and corner pixels average fewer samples. The
    radius is clamped to 1..MAX_BLUR_RADIUS.
    """
    height, width = img.shape[:2]
    bounds = pixel_bounds(rect, width, height)
    if bounds is None:
        return
    min_x, min_y, max_x, max_y = bounds
    radius = min(max(int(radius), 1), MAX_BLUR_RADIUS)

    snapshot = img[min_y:max_y, min_x:max_x].astype(np.int64)
    h, w = snapshot.shape[:2]

    # Summed-area table with a zero row/column in front
    table = np.zeros((h + 1, w + 1, snapshot.shape[2]), dtype=np.int64)
    table[1:, 1:] = snapshot.cumsum(axis=0).cumsum(axis=1)

    ys = np.arange(h)
    xs = np.arange(w)
    y0 = np.clip(ys - radius, 0, h - 1)
    y1 = np.clip(ys + radius, 0, h - 1) + 1
    x0 = np.clip(xs - radius, 0, w - 1)
    x1 = np.clip(xs + radius, 0, w - 1) + 1

    total = (
        table[y1[:, None], x1[None, :]]
        - table[y0[:, None], x1[None, :]]
        - table[y1[:, None], x0[None, :]]
        + table[y0[:, None], x0[None, :]]
    )
    counts = (y1 - y0)[:, None] * (x1 - x0)[None, :]
    img[min_y:max_y, min_x:max_x] = (total // counts[:, :, None]).astype(np.uint8)


def apply_pixelate_full(img: np.ndarray, block: int) -> None:
    apply_pixelate(img, _full_rect(img), block)


def apply_blur_full(img: np.ndarray, radius: int) -> None:
    apply_blur(img, _full_rect(img), radius)
