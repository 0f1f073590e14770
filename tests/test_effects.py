"""Tests for pixelate and blur."""

import numpy as np
import pytest

from shotmark.editor.effects import (
    apply_blur,
    apply_blur_full,
    apply_pixelate,
    apply_pixelate_full,
    pixel_bounds,
)
from shotmark.editor.geometry import Rect

from conftest import make_gradient, make_solid


def test_pixel_bounds_floor_ceil_and_clip():
    assert pixel_bounds(Rect(1.2, 2.7, 5.1, 6.0), 100, 100) == (1, 2, 6, 6)
    assert pixel_bounds(Rect(60, 40, -10, 5), 50, 30) == (0, 5, 50, 30)


@pytest.mark.parametrize(
    "rect",
    [Rect(5, 5, 5, 20), Rect(200, 0, 300, 10), Rect(-20, -20, -1, -1)],
)
def test_pixel_bounds_empty(rect):
    assert pixel_bounds(rect, 100, 100) is None


def test_empty_rect_leaves_image_untouched():
    img = make_gradient(30, 30)
    before = img.copy()
    apply_pixelate(img, Rect(10, 10, 10, 25), 4)
    apply_blur(img, Rect(40, 40, 60, 60), 3)
    assert np.array_equal(img, before)


def test_pixelate_uniform_region_unchanged():
    img = make_solid(40, 40, (90, 80, 70, 255))
    before = img.copy()
    apply_pixelate(img, Rect(3, 3, 37, 29), 6)
    assert np.array_equal(img, before)


def test_pixelate_cells_are_uniform_and_aligned_to_rect():
    img = make_gradient(40, 40)
    apply_pixelate(img, Rect(2, 3, 14, 10), 4)

    # First cell covers x 2..5, y 3..6
    cell = img[3:7, 2:6].reshape(-1, 4)
    assert (cell == cell[0]).all()
    assert not (img[3:7, 6:10].reshape(-1, 4) == cell[0]).all()
    # Bottom cells are cut short at y = 10 (rows 7..9)
    short = img[7:10, 2:6].reshape(-1, 4)
    assert (short == short[0]).all()


def test_pixelate_mean_is_truncated():
    img = make_solid(2, 1, (0, 0, 0, 255))
    img[0, 1] = (1, 3, 5, 255)
    apply_pixelate(img, Rect(0, 0, 2, 1), 2)
    assert tuple(img[0, 0]) == (0, 1, 2, 255)
    assert tuple(img[0, 1]) == (0, 1, 2, 255)


def test_pixelate_block_floor():
    img = make_gradient(10, 10)
    reference = img.copy()
    apply_pixelate(img, Rect(0, 0, 10, 10), 0)
    apply_pixelate(reference, Rect(0, 0, 10, 10), 2)
    assert np.array_equal(img, reference)


def test_effects_do_not_touch_outside_pixels():
    img = make_gradient(50, 50)
    before = img.copy()
    rect = Rect(10, 12, 30, 33)
    apply_pixelate(img, rect, 5)
    apply_blur(img, rect, 4)

    mask = np.ones((50, 50), dtype=bool)
    mask[12:33, 10:30] = False
    assert np.array_equal(img[mask], before[mask])


def test_blur_uniform_region_unchanged():
    img = make_solid(30, 30, (120, 60, 30, 255))
    before = img.copy()
    apply_blur(img, Rect(0, 0, 30, 30), 5)
    assert np.array_equal(img, before)


def test_blur_clips_window_to_rect():
    img = make_solid(3, 3, (0, 0, 0, 255))
    img[..., 0] = np.arange(9, dtype=np.uint8).reshape(3, 3) * 10
    apply_blur(img, Rect(0, 0, 3, 3), 1)

    # Corner averages its 2x2 neighbourhood, edge 2x3, centre 3x3
    assert img[0, 0, 0] == (0 + 10 + 30 + 40) // 4
    assert img[0, 1, 0] == (0 + 10 + 20 + 30 + 40 + 50) // 6
    assert img[1, 1, 0] == 360 // 9
    assert img[2, 2, 0] == (40 + 50 + 70 + 80) // 4


def test_blur_reads_from_snapshot():
    img = make_solid(5, 1, (0, 0, 0, 255))
    img[0, 0, 0] = 90
    apply_blur(img, Rect(0, 0, 5, 1), 1)
    # Pixel 2 would see a non-zero neighbour if pixel 1 were already blurred
    assert img[0, 1, 0] == 30
    assert img[0, 2, 0] == 0


def test_blur_radius_clamped():
    img = make_gradient(40, 40)
    clamped = img.copy()
    apply_blur(img, Rect(0, 0, 40, 40), 50)
    apply_blur(clamped, Rect(0, 0, 40, 40), 12)
    assert np.array_equal(img, clamped)


def test_full_image_variants():
    img = make_gradient(16, 16)
    ref = img.copy()
    apply_pixelate_full(img, 4)
    apply_pixelate(ref, Rect(0, 0, 16, 16), 4)
    assert np.array_equal(img, ref)

    img = make_gradient(16, 16)
    ref = img.copy()
    apply_blur_full(img, 2)
    apply_blur(ref, Rect(0, 0, 16, 16), 2)
    assert np.array_equal(img, ref)
