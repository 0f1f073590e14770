"""Tests for the bitmap font."""

import numpy as np

from shotmark.editor.geometry import Pos
from shotmark.editor.glyphs import (
    GLYPH_HEIGHT,
    GLYPHS,
    circlecount_text_scale,
    draw_text_bitmap,
    glyph_for,
    text_bitmap_size,
)

from conftest import make_solid

INK = (255, 255, 255, 255)


def test_every_glyph_is_five_by_seven():
    for ch, glyph in GLYPHS.items():
        assert glyph.shape == (7, 5), ch


def test_text_bitmap_size():
    assert text_bitmap_size("", 3) == (0, 0)
    assert text_bitmap_size("A", 1) == (5, 7)
    assert text_bitmap_size("AB", 2) == (22, 14)


def test_lowercase_uses_uppercase_glyph():
    assert glyph_for("q") is GLYPHS["Q"]
    assert glyph_for("~") is None


def test_lowercase_draws_like_uppercase():
    lower = make_solid(40, 20)
    upper = make_solid(40, 20)
    draw_text_bitmap(lower, Pos(2, 2), "ok", INK, 2)
    draw_text_bitmap(upper, Pos(2, 2), "OK", INK, 2)
    assert np.array_equal(lower, upper)


def test_unknown_character_advances_pen():
    unknown = make_solid(40, 20)
    space = make_solid(40, 20)
    draw_text_bitmap(unknown, Pos(0, 0), "~1", INK, 1)
    draw_text_bitmap(space, Pos(0, 0), " 1", INK, 1)
    assert np.array_equal(unknown, space)
    # Nothing drawn in the first cell
    assert not (unknown[:, :6] == np.array(INK, dtype=np.uint8)).all(axis=2).any()


def test_glyph_cells_scaled_as_blocks():
    img = make_solid(20, 30)
    draw_text_bitmap(img, Pos(0, 0), "-", INK, 3)
    # "-" sets row 3 across the whole cell
    band = img[9:12, 0:15]
    assert (band == np.array(INK, dtype=np.uint8)).all()
    assert not (img[0:9] == np.array(INK, dtype=np.uint8)).all(axis=2).any()


def test_text_clipped_at_image_edge():
    img = make_solid(10, 10)
    draw_text_bitmap(img, Pos(6, 6), "WW", INK, 2)
    draw_text_bitmap(img, Pos(-100, -100), "A", INK, 1)
    assert img.shape == (10, 10, 4)


def test_circlecount_scale_fits_bubble():
    for radius in (16.0, 18.0, 25.0, 35.0):
        for label in ("1", "12", "123"):
            scale = circlecount_text_scale(radius, label)
            width, height = text_bitmap_size(label, scale)
            assert scale >= 1
            if scale > 1:
                assert width <= radius * 1.6
                assert height <= radius * 1.6


def test_circlecount_scale_single_digit():
    # 1.6 * 18 = 28.8 fits four 7px rows
    assert circlecount_text_scale(18.0, "1") == 4
    assert GLYPH_HEIGHT * 4 <= 28.8
