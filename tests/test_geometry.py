"""Tests for geometry helpers and chrome layout."""

import pytest

from shotmark.editor.geometry import (
    Pos,
    Rect,
    SelectionCorner,
    hit_corner,
    image_to_screen,
    layout_tool_buttons,
    place_selection_hud,
    place_text_editor,
    place_tool_controls,
    round_half_away,
    screen_to_image,
    selection_hud_label,
    with_corner,
)


@pytest.mark.parametrize(
    "value,expected",
    [(0.5, 1), (1.5, 2), (2.5, 3), (-0.5, -1), (-2.5, -3), (2.49, 2), (0.0, 0)],
)
def test_round_half_away(value, expected):
    assert round_half_away(value) == expected


def test_rect_from_two_pos_normalizes():
    rect = Rect.from_two_pos(Pos(50, 40), Pos(10, 80))
    assert rect.as_tuple() == (10, 40, 50, 80)
    assert rect.width == 40
    assert rect.height == 40


def test_intersect_of_disjoint_rects_is_inverted():
    a = Rect(0, 0, 10, 10)
    b = Rect(20, 20, 30, 30)
    assert not a.intersects(b)
    overlap = a.intersect(b)
    assert overlap.width < 0 and overlap.height < 0


def test_hit_corner_prefers_first_corner_in_order():
    # A 2x2 rect with a large radius reaches every corner; top-left wins
    rect = Rect(0, 0, 2, 2)
    assert hit_corner(rect, Pos(1, 1), 10) is SelectionCorner.TOP_LEFT


def test_hit_corner_miss():
    rect = Rect(0, 0, 100, 100)
    assert hit_corner(rect, Pos(50, 50), 6) is None
    assert hit_corner(rect, Pos(98, 97), 6) is SelectionCorner.BOTTOM_RIGHT


def test_with_corner_moves_only_that_corner():
    rect = Rect(10, 10, 50, 50)
    moved = with_corner(rect, SelectionCorner.TOP_RIGHT, Pos(70, 0))
    assert moved.as_tuple() == (10, 0, 70, 50)


def test_screen_to_image_applies_offset_scale_and_clamp():
    image_rect = Rect(100, 50, 300, 150)
    assert screen_to_image(Pos(150, 100), image_rect, 2.0, 400, 200) == Pos(100, 100)
    assert screen_to_image(Pos(0, 0), image_rect, 2.0, 400, 200) == Pos(0, 0)
    assert screen_to_image(Pos(999, 999), image_rect, 2.0, 400, 200) == Pos(400, 200)


def test_image_to_screen_inverts_screen_to_image():
    image_rect = Rect(100, 50, 300, 150)
    screen = image_to_screen(Pos(100, 100), image_rect, 2.0)
    assert screen == Pos(150, 100)


def test_tool_buttons_stay_off_selection_and_inside_bounds():
    selection = Rect(50, 50, 150, 100)
    bounds = Rect(0, 0, 400, 300)
    positions = layout_tool_buttons(selection, bounds, (28, 28), 6, 16)

    assert 0 < len(positions) <= 16
    for pos in positions:
        button = Rect.from_min_size(pos, 28, 28)
        assert not button.intersects(selection)
        assert bounds.min_x <= button.min_x and button.max_x <= bounds.max_x
        assert bounds.min_y <= button.min_y and button.max_y <= bounds.max_y


def test_tool_buttons_fill_below_first():
    selection = Rect(100, 50, 300, 100)
    bounds = Rect(0, 0, 400, 300)
    positions = layout_tool_buttons(selection, bounds, (28, 28), 6, 3)
    assert len(positions) == 3
    assert all(pos.y == selection.max_y + 6 for pos in positions)


def test_tool_buttons_full_image_selection_falls_back_to_bottom_edge_row():
    bounds = Rect(0, 0, 400, 300)
    positions = layout_tool_buttons(bounds, bounds, (28, 28), 6, 4)
    assert len(positions) == 4
    assert all(pos.y == 300 - 28 for pos in positions)


def test_tool_buttons_zero_area_bounds():
    assert layout_tool_buttons(Rect(0, 0, 1, 1), Rect(0, 0, 0, 0), (28, 28), 6, 4) == []


def test_tool_controls_avoid_buttons():
    selection = Rect(100, 100, 300, 200)
    image_rect = Rect(0, 0, 600, 400)
    below_right = Rect(60, 206, 300, 242)
    panel = place_tool_controls(selection, image_rect, (240, 36), 6, [below_right])
    assert not panel.intersects(below_right)
    assert panel.min_x >= 0 and panel.max_x <= 600


def test_text_editor_shifted_inside_image():
    image_rect = Rect(0, 0, 300, 200)
    rect = place_text_editor(Pos(290, 195), image_rect)
    assert rect.max_x <= 300
    assert rect.max_y <= 200


def test_selection_hud():
    assert selection_hud_label(Rect(10.4, 20.5, 60.4, 50.5)) == "50x30  10,21"
    hud = place_selection_hud(Rect(10, 10, 100, 100), Rect(0, 0, 500, 500), (80, 20))
    assert hud.min == Pos(16, 16)
