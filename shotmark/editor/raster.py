"""
Pixel-level drawing primitives.

Every function writes straight into an RGBA8 numpy buffer of shape
(height, width, 4). Writes replace pixels (no alpha blending) and all
coordinates are clipped to the buffer, so nothing here raises for
out-of-range geometry.
"""

import math
from typing import List, Sequence, Tuple

import numpy as np

from shotmark.editor.geometry import Pos, Rect, round_half_away
from shotmark.editor.glyphs import circlecount_text_scale, draw_text_bitmap, text_bitmap_size

Color = Tuple[int, int, int, int]

WHITE: Color = (255, 255, 255, 255)
BLACK: Color = (0, 0, 0, 255)

ELLIPSE_STEPS = 80
CIRCLECOUNT_PADDING = 2.0
CIRCLECOUNT_BASE_RADIUS = 15.0


def with_alpha(color: Color, alpha: int) -> Color:
    return (color[0], color[1], color[2], alpha)


def color_is_dark(color: Color) -> bool:
    """Perceptual luminance test used to pick a readable foreground."""
    luminance = 0.2126 * color[0] + 0.7152 * color[1] + 0.0722 * color[2]
    return luminance < 128.0


def circlecount_contrast_colors(color: Color) -> Tuple[Color, Color]:
    """Return (contrast, anti_contrast) for a bubble filled with color."""
    if color_is_dark(color):
        return WHITE, BLACK
    return BLACK, WHITE


def circlecount_bubble_size(size: float) -> float:
    return size + CIRCLECOUNT_BASE_RADIUS


# ─── Lines ────────────────────────────────────────────────────────────────


def draw_line(img: np.ndarray, start: Pos, end: Pos, color: Color, size: float) -> None:
    """
    Draw a thick line by stamping squares along the segment.

    The segment is walked in max(|dx|, |dy|) unit steps (at least one) and a
    square of half-width ceil(size / 2) is stamped at every rounded sample.
    """
    height, width = img.shape[:2]
    radius = int(math.ceil(max(size, 1.0) / 2.0))
    dx = end.x - start.x
    dy = end.y - start.y
    steps = int(max(abs(dx), abs(dy), 1.0))
    value = np.asarray(color, dtype=np.uint8)

    for i in range(steps + 1):
        t = i / steps
        x = round_half_away(start.x + dx * t)
        y = round_half_away(start.y + dy * t)
        x0 = max(x - radius, 0)
        x1 = min(x + radius, width - 1)
        y0 = max(y - radius, 0)
        y1 = min(y + radius, height - 1)
        if x0 <= x1 and y0 <= y1:
            img[y0:y1 + 1, x0:x1 + 1] = value


def draw_polyline(img: np.ndarray, points: Sequence[Pos], color: Color, size: float) -> None:
    for a, b in zip(points, points[1:]):
        draw_line(img, a, b, color, size)


def draw_rect_outline(img: np.ndarray, a: Pos, b: Pos, color: Color, size: float) -> None:
    rect = Rect.from_two_pos(a, b)
    top_left = Pos(rect.min_x, rect.min_y)
    top_right = Pos(rect.max_x, rect.min_y)
    bottom_right = Pos(rect.max_x, rect.max_y)
    bottom_left = Pos(rect.min_x, rect.max_y)
    draw_line(img, top_left, top_right, color, size)
    draw_line(img, top_right, bottom_right, color, size)
    draw_line(img, bottom_right, bottom_left, color, size)
    draw_line(img, bottom_left, top_left, color, size)


# ─── Filled Shapes ────────────────────────────────────────────────────────


def _edge(a: Pos, b: Pos, cx, cy):
    return (cx - a.x) * (b.y - a.y) - (cy - a.y) * (b.x - a.x)


def _pixel_bbox(img: np.ndarray, xs: Sequence[float], ys: Sequence[float]):
    """Clipped, end-exclusive pixel bounds of a float bbox, or None if empty."""
    height, width = img.shape[:2]
    min_x = int(max(math.floor(min(xs)), 0.0))
    min_y = int(max(math.floor(min(ys)), 0.0))
    max_x = int(min(math.ceil(max(xs)), float(width)))
    max_y = int(min(math.ceil(max(ys)), float(height)))
    if min_x >= max_x or min_y >= max_y:
        return None
    return min_x, min_y, max_x, max_y


def fill_triangle(img: np.ndarray, a: Pos, b: Pos, c: Pos, color: Color) -> None:
    """
    Fill a triangle with the edge-function test.

    Pixels are sampled at their centres; a pixel is inside when its three
    edge weights share a sign, so either winding order works. Degenerate
    (zero-area) triangles draw nothing.
    """
    bbox = _pixel_bbox(img, (a.x, b.x, c.x), (a.y, b.y, c.y))
    if bbox is None:
        return
    area = _edge(a, b, c.x, c.y)
    if area == 0.0:
        return

    min_x, min_y, max_x, max_y = bbox
    px = np.arange(min_x, max_x, dtype=np.float64)[None, :] + 0.5
    py = np.arange(min_y, max_y, dtype=np.float64)[:, None] + 0.5
    w0 = _edge(b, c, px, py)
    w1 = _edge(c, a, px, py)
    w2 = _edge(a, b, px, py)
    inside = ((w0 >= 0) & (w1 >= 0) & (w2 >= 0)) | ((w0 <= 0) & (w1 <= 0) & (w2 <= 0))
    img[min_y:max_y, min_x:max_x][inside] = np.asarray(color, dtype=np.uint8)


def fill_quad(img: np.ndarray, a: Pos, b: Pos, c: Pos, d: Pos, color: Color) -> None:
    """Fill quad a-b-c-d as the triangles (a, b, c) and (a, c, d)."""
    fill_triangle(img, a, b, c, color)
    fill_triangle(img, a, c, d, color)


def draw_filled_circle(img: np.ndarray, center: Pos, radius: float, color: Color) -> None:
    bbox = _pixel_bbox(
        img, (center.x - radius, center.x + radius), (center.y - radius, center.y + radius)
    )
    if bbox is None:
        return
    min_x, min_y, max_x, max_y = bbox
    dx = np.arange(min_x, max_x, dtype=np.float64)[None, :] + 0.5 - center.x
    dy = np.arange(min_y, max_y, dtype=np.float64)[:, None] + 0.5 - center.y
    inside = dx * dx + dy * dy <= radius * radius
    img[min_y:max_y, min_x:max_x][inside] = np.asarray(color, dtype=np.uint8)


# ─── Ellipse ──────────────────────────────────────────────────────────────


def ellipse_points(rect: Rect, steps: int) -> List[Pos]:
    """steps + 1 points around the ellipse inscribed in rect; first == last."""
    center = rect.center
    rx = rect.width * 0.5
    ry = rect.height * 0.5
    points = []
    for i in range(steps + 1):
        t = i / steps * math.tau
        points.append(Pos(center.x + rx * math.cos(t), center.y + ry * math.sin(t)))
    return points


def draw_ellipse(img: np.ndarray, start: Pos, end: Pos, color: Color, size: float) -> None:
    points = ellipse_points(Rect.from_two_pos(start, end), ELLIPSE_STEPS)
    draw_polyline(img, points, color, size)


# ─── Arrows ───────────────────────────────────────────────────────────────


def arrow_head_points(start: Pos, end: Pos, size: float) -> Tuple[Pos, Pos, Pos]:
    """
    Compute the arrowhead triangle for a start->end arrow.

    Returns:
        (base, left, right): the point on the shaft where the head starts and
        the two back corners of the head. The tip is end.
    """
    vec = end - start
    length = max(vec.length(), 1.0)
    direction = vec.scaled(1.0 / length)
    perp = Pos(-direction.y, direction.x)
    head_len = min(max(size * 4.0, 10.0), length * 0.8)
    head_width = min(max(size * 3.0, 6.0), length * 0.6)
    base = end - direction.scaled(head_len)
    left = base + perp.scaled(head_width * 0.5)
    right = base - perp.scaled(head_width * 0.5)
    return base, left, right


def draw_arrow(img: np.ndarray, start: Pos, end: Pos, color: Color, size: float) -> None:
    """Shaft up to the head's base, then the filled head."""
    base, left, right = arrow_head_points(start, end, size)
    draw_line(img, start, base, color, size)
    fill_triangle(img, end, left, right, color)


# ─── Callout Bubble ───────────────────────────────────────────────────────


def draw_circle_count(
    img: np.ndarray,
    center: Pos,
    pointer: Pos,
    color: Color,
    size: float,
    count: int,
) -> None:
    """
    Draw a numbered callout bubble.

    Layers, bottom to top: the leader wedge towards pointer (only when the
    pointer is outside the bubble), the outer ring in the anti-contrast
    colour with a 1px contrast outline, the inner disc in color, and the
    centred count label in the contrast colour.
    """
    contrast, anti = circlecount_contrast_colors(color)
    bubble = circlecount_bubble_size(size)
    outer = bubble + CIRCLECOUNT_PADDING

    to_pointer = pointer - center
    distance = to_pointer.length()
    if distance > bubble:
        direction = to_pointer.scaled(1.0 / distance)
        perp = Pos(-direction.y, direction.x)
        fill_quad(
            img,
            center,
            center + perp.scaled(bubble),
            pointer,
            center - perp.scaled(bubble),
            color,
        )

    draw_filled_circle(img, center, outer, anti)
    draw_ellipse(
        img,
        Pos(center.x - outer, center.y - outer),
        Pos(center.x + outer, center.y + outer),
        contrast,
        1.0,
    )
    draw_filled_circle(img, center, bubble, color)

    label = str(count)
    scale = circlecount_text_scale(bubble, label)
    text_w, text_h = text_bitmap_size(label, scale)
    text_pos = Pos(center.x - text_w / 2.0, center.y - text_h / 2.0)
    draw_text_bitmap(img, text_pos, label, contrast, scale)
