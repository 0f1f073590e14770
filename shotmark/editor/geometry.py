"""
Geometry helpers for the editor.

Points and rectangles here are plain floats with no toolkit types, so the
same functions serve both image-pixel space (selection, shapes) and screen
space (palette layout, HUD placement).
"""

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, NamedTuple, Optional, Sequence, Tuple


class Pos(NamedTuple):
    """A 2D point (or vector)."""

    x: float
    y: float

    def __add__(self, other: "Pos") -> "Pos":
        return Pos(self.x + other[0], self.y + other[1])

    def __sub__(self, other: "Pos") -> "Pos":
        return Pos(self.x - other[0], self.y - other[1])

    def scaled(self, factor: float) -> "Pos":
        return Pos(self.x * factor, self.y * factor)

    def length(self) -> float:
        return math.hypot(self.x, self.y)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its min and max corners."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_two_pos(cls, a: Pos, b: Pos) -> "Rect":
        return cls(min(a.x, b.x), min(a.y, b.y), max(a.x, b.x), max(a.y, b.y))

    @classmethod
    def from_min_size(cls, pos: Pos, width: float, height: float) -> "Rect":
        return cls(pos.x, pos.y, pos.x + width, pos.y + height)

    @property
    def min(self) -> Pos:
        return Pos(self.min_x, self.min_y)

    @property
    def max(self) -> Pos:
        return Pos(self.max_x, self.max_y)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Pos:
        return Pos((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def contains(self, pos: Pos) -> bool:
        return self.min_x <= pos.x <= self.max_x and self.min_y <= pos.y <= self.max_y

    def intersects(self, other: "Rect") -> bool:
        return (
            self.min_x <= other.max_x
            and other.min_x <= self.max_x
            and self.min_y <= other.max_y
            and other.min_y <= self.max_y
        )

    def intersect(self, other: "Rect") -> "Rect":
        """Overlap of the two rects; inverted when they do not overlap."""
        return Rect(
            max(self.min_x, other.min_x),
            max(self.min_y, other.min_y),
            min(self.max_x, other.max_x),
            min(self.max_y, other.max_y),
        )

    def translate(self, dx: float, dy: float) -> "Rect":
        return Rect(self.min_x + dx, self.min_y + dy, self.max_x + dx, self.max_y + dy)

    def normalized(self) -> "Rect":
        return Rect.from_two_pos(self.min, self.max)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)


class SelectionCorner(Enum):
    TOP_LEFT = auto()
    TOP_RIGHT = auto()
    BOTTOM_LEFT = auto()
    BOTTOM_RIGHT = auto()


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def corner_pos(rect: Rect, corner: SelectionCorner) -> Pos:
    if corner is SelectionCorner.TOP_LEFT:
        return Pos(rect.min_x, rect.min_y)
    if corner is SelectionCorner.TOP_RIGHT:
        return Pos(rect.max_x, rect.min_y)
    if corner is SelectionCorner.BOTTOM_LEFT:
        return Pos(rect.min_x, rect.max_y)
    return Pos(rect.max_x, rect.max_y)


def with_corner(rect: Rect, corner: SelectionCorner, pos: Pos) -> Rect:
    """Return rect with one corner moved to pos (may be inverted)."""
    if corner is SelectionCorner.TOP_LEFT:
        return Rect(pos.x, pos.y, rect.max_x, rect.max_y)
    if corner is SelectionCorner.TOP_RIGHT:
        return Rect(rect.min_x, pos.y, pos.x, rect.max_y)
    if corner is SelectionCorner.BOTTOM_LEFT:
        return Rect(pos.x, rect.min_y, rect.max_x, pos.y)
    return Rect(rect.min_x, rect.min_y, pos.x, pos.y)


def hit_corner(rect: Rect, pos: Pos, radius: float) -> Optional[SelectionCorner]:
    """
    Find the corner handle under pos.

    Corners are tested top-left, top-right, bottom-left, bottom-right and the
    first one within radius wins.
    """
    radius_sq = radius * radius
    for corner in SelectionCorner:
        c = corner_pos(rect, corner)
        dx = pos.x - c.x
        dy = pos.y - c.y
        if dx * dx + dy * dy <= radius_sq:
            return corner
    return None


# ─── Coordinate Spaces ────────────────────────────────────────────────────


def screen_to_image(pos: Pos, image_rect: Rect, scale: float, width: int, height: int) -> Pos:
    """
    Convert a window position to image pixels.

    Args:
        pos: Pointer position in window (logical) coordinates.
        image_rect: Where the image is drawn, in window coordinates.
        scale: Device pixels per logical pixel.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The image-space position, clamped to [0, width] x [0, height].
    """
    x = (pos.x - image_rect.min_x) * scale
    y = (pos.y - image_rect.min_y) * scale
    return Pos(min(max(x, 0.0), float(width)), min(max(y, 0.0), float(height)))


def image_to_screen(pos: Pos, image_rect: Rect, scale: float) -> Pos:
    return Pos(image_rect.min_x + pos.x / scale, image_rect.min_y + pos.y / scale)


def selection_screen_rect(sel_rect_image: Rect, image_rect: Rect, scale: float) -> Rect:
    return Rect(
        image_rect.min_x + sel_rect_image.min_x / scale,
        image_rect.min_y + sel_rect_image.min_y / scale,
        image_rect.min_x + sel_rect_image.max_x / scale,
        image_rect.min_y + sel_rect_image.max_y / scale,
    )


# ─── Chrome Layout ────────────────────────────────────────────────────────


def shift_into(rect: Rect, bounds: Rect) -> Rect:
    """Translate rect so it lies inside bounds; the min edges win if it is too big."""
    if rect.max_x > bounds.max_x:
        rect = rect.translate(bounds.max_x - rect.max_x, 0.0)
    if rect.max_y > bounds.max_y:
        rect = rect.translate(0.0, bounds.max_y - rect.max_y)
    if rect.min_x < bounds.min_x:
        rect = rect.translate(bounds.min_x - rect.min_x, 0.0)
    if rect.min_y < bounds.min_y:
        rect = rect.translate(0.0, bounds.min_y - rect.min_y)
    return rect


def row_positions(
    center_x: float,
    y: float,
    count: int,
    button_size: Tuple[float, float],
    spacing: float,
    bounds: Rect,
) -> List[Pos]:
    """Lay out count buttons in a row centred on center_x, clamped to bounds."""
    total_width = count * button_size[0] + max(count - 1, 0) * spacing
    start_x = center_x - total_width / 2.0
    max_start = bounds.max_x - total_width
    if math.isfinite(max_start):
        start_x = max(bounds.min_x, min(start_x, max_start)) if max_start >= bounds.min_x else max_start
    return [Pos(start_x + i * (button_size[0] + spacing), y) for i in range(count)]


def col_positions(
    center_y: float,
    x: float,
    count: int,
    button_size: Tuple[float, float],
    spacing: float,
    bounds: Rect,
) -> List[Pos]:
    """Lay out count buttons in a column centred on center_y, clamped to bounds."""
    total_height = count * button_size[1] + max(count - 1, 0) * spacing
    start_y = center_y - total_height / 2.0
    max_start = bounds.max_y - total_height
    if math.isfinite(max_start):
        start_y = max(bounds.min_y, min(start_y, max_start)) if max_start >= bounds.min_y else max_start
    return [Pos(x, start_y + i * (button_size[1] + spacing)) for i in range(count)]


def layout_tool_buttons(
    selection: Rect,
    bounds: Rect,
    button_size: Tuple[float, float],
    spacing: float,
    count: int,
) -> List[Pos]:
    """
    Place palette buttons around the selection without covering it.

    Buttons fill a row below the selection, then a column to its right, a
    row above and a column to its left, as far as each side has room. When
    no side fits anything, a single row is laid along the selection's bottom
    edge instead. Fewer than count positions may be returned.

    Args:
        selection: Selection rectangle in screen space.
        bounds: Area the buttons must stay inside (the image's screen rect).
        button_size: (width, height) of one button.
        spacing: Gap between buttons and between buttons and the selection.
        count: Number of buttons wanted.

    Returns:
        Top-left positions, in palette order.
    """
    positions: List[Pos] = []
    remaining = count
    bw, bh = button_size
    step_x = bw + spacing
    step_y = bh + spacing

    max_fit_row = int(max(math.floor((bounds.width + spacing) / step_x), 0.0))
    max_fit_col = int(max(math.floor((bounds.height + spacing) / step_y), 0.0))
    if max_fit_row == 0 and max_fit_col == 0:
        return positions

    def fit_along(length: float, size: float, step: float) -> int:
        return int(max(math.floor((max(length, size) + spacing) / step), 1.0))

    # Below
    row_y = selection.max_y + spacing
    if row_y >= bounds.min_y and row_y + bh <= bounds.max_y:
        count_here = min(remaining, fit_along(selection.width, bw, step_x), max_fit_row)
        if count_here > 0:
            row = row_positions(selection.center.x, row_y, count_here, button_size, spacing, bounds)
            remaining -= len(row)
            positions.extend(row)

    # Right
    if remaining > 0:
        col_x = selection.max_x + spacing
        if col_x >= bounds.min_x and col_x + bw <= bounds.max_x:
            count_here = min(remaining, fit_along(selection.height, bh, step_y), max_fit_col)
            if count_here > 0:
                col = col_positions(selection.center.y, col_x, count_here, button_size, spacing, bounds)
                remaining -= len(col)
                positions.extend(col)

    # Above
    if remaining > 0:
        row_y = selection.min_y - spacing - bh
        if row_y >= bounds.min_y and row_y + bh <= bounds.max_y:
            count_here = min(remaining, fit_along(selection.width, bw, step_x), max_fit_row)
            if count_here > 0:
                row = row_positions(selection.center.x, row_y, count_here, button_size, spacing, bounds)
                remaining -= len(row)
                positions.extend(row)

    # Left
    if remaining > 0:
        col_x = selection.min_x - spacing - bw
        if col_x >= bounds.min_x and col_x + bw <= bounds.max_x:
            count_here = min(remaining, fit_along(selection.height, bh, step_y), max_fit_col)
            if count_here > 0:
                col = col_positions(selection.center.y, col_x, count_here, button_size, spacing, bounds)
                remaining -= len(col)
                positions.extend(col)

    if remaining > 0 and not positions:
        y = min(max(selection.max_y - bh, bounds.min_y), bounds.max_y - bh)
        positions.extend(
            row_positions(
                selection.center.x, y, min(remaining, max(max_fit_row, 1)), button_size, spacing, bounds
            )
        )

    return positions


def place_tool_controls(
    selection: Rect,
    image_rect: Rect,
    panel_size: Tuple[float, float],
    spacing: float,
    avoid: Sequence[Rect],
) -> Rect:
    """
    Pick a spot for the colour/size panel next to the selection.

    Candidates are below-right, below-left, above-right and above-left of
    the selection; the first one that stays on the image and does not
    overlap any rect in avoid is used, else the below-right spot.
    """
    pw, ph = panel_size
    candidates = [
        Pos(selection.max_x - pw, selection.max_y + spacing),
        Pos(selection.min_x, selection.max_y + spacing),
        Pos(selection.max_x - pw, selection.min_y - ph - spacing),
        Pos(selection.min_x, selection.min_y - ph - spacing),
    ]
    for cand in candidates:
        rect = shift_into(Rect.from_min_size(cand, pw, ph), image_rect)
        if not rect.intersects(image_rect):
            continue
        if all(not b.intersects(rect) for b in avoid):
            return rect

    fallback = Rect.from_min_size(candidates[0], pw, ph)
    if fallback.min_x < image_rect.min_x:
        fallback = fallback.translate(image_rect.min_x - fallback.min_x, 0.0)
    if fallback.max_x > image_rect.max_x:
        fallback = fallback.translate(image_rect.max_x - fallback.max_x, 0.0)
    if fallback.max_y > image_rect.max_y:
        fallback = fallback.translate(0.0, image_rect.max_y - fallback.max_y)
    return fallback


TEXT_EDITOR_SIZE = (220.0, 32.0)


def place_text_editor(anchor_screen: Pos, image_rect: Rect) -> Rect:
    """Text-entry box just below-right of the anchor, kept on the image."""
    rect = Rect.from_min_size(anchor_screen + Pos(6.0, 6.0), *TEXT_EDITOR_SIZE)
    return shift_into(rect, image_rect)


def selection_hud_label(sel_rect_image: Rect) -> str:
    width = max(round_half_away(sel_rect_image.width), 0)
    height = max(round_half_away(sel_rect_image.height), 0)
    x = round_half_away(sel_rect_image.min_x)
    y = round_half_away(sel_rect_image.min_y)
    return f"{width}x{height}  {x},{y}"


def place_selection_hud(sel_rect_screen: Rect, image_rect: Rect, size: Tuple[float, float]) -> Rect:
    """HUD box of the given size 6px inside the selection's top-left corner."""
    rect = Rect.from_min_size(sel_rect_screen.min + Pos(6.0, 6.0), *size)
    return shift_into(rect, image_rect)
