"""
Bakes annotation shapes into the captured image.

Rendering always starts from a fresh copy of the base image and replays the
committed shapes in order, so the output depends only on the base image, the
shape list and the optional in-progress shape.
"""

from typing import Iterable, Optional

import numpy as np

from shotmark.editor.effects import PixelBounds, apply_blur, apply_pixelate, pixel_bounds
from shotmark.editor.geometry import Rect
from shotmark.editor.glyphs import draw_text_bitmap
from shotmark.editor.raster import (
    draw_arrow,
    draw_circle_count,
    draw_ellipse,
    draw_line,
    draw_polyline,
    draw_rect_outline,
)
from shotmark.editor.shapes import (
    ArrowShape,
    CircleCountShape,
    CircleShape,
    EffectKind,
    EffectShape,
    LineShape,
    RectShape,
    Shape,
    StrokeShape,
    TextShape,
)


def draw_shape(img: np.ndarray, shape: Shape, include_effects: bool = True) -> None:
    """Rasterize one shape into img."""
    if isinstance(shape, StrokeShape):
        draw_polyline(img, shape.points, shape.color, shape.size)
    elif isinstance(shape, LineShape):
        draw_line(img, shape.start, shape.end, shape.color, shape.size)
    elif isinstance(shape, ArrowShape):
        draw_arrow(img, shape.start, shape.end, shape.color, shape.size)
    elif isinstance(shape, RectShape):
        draw_rect_outline(img, shape.start, shape.end, shape.color, shape.size)
    elif isinstance(shape, CircleShape):
        draw_ellipse(img, shape.start, shape.end, shape.color, shape.size)
    elif isinstance(shape, CircleCountShape):
        draw_circle_count(img, shape.center, shape.pointer, shape.color, shape.size, shape.count)
    elif isinstance(shape, TextShape):
        draw_text_bitmap(img, shape.pos, shape.text, shape.color, shape.glyph_scale)
    elif isinstance(shape, EffectShape):
        if not include_effects:
            return
        if shape.kind is EffectKind.PIXELATE:
            apply_pixelate(img, shape.rect, shape.strength)
        else:
            apply_blur(img, shape.rect, shape.strength)
    else:
        raise TypeError(f"Unknown shape type: {type(shape).__name__}")


def render_shapes(
    base: np.ndarray,
    shapes: Iterable[Shape],
    active: Optional[Shape] = None,
    include_effects: bool = True,
) -> np.ndarray:
    """
    Composite shapes over a copy of base.

    Args:
        base: Captured RGBA8 image; never modified.
        shapes: Committed shapes in z-order.
        active: In-progress shape drawn last, if any.
        include_effects: When False, effect shapes are skipped. Used to build
            the image effect previews are cut from.

    Returns:
        A new RGBA8 array the size of base.
    """
    img = base.copy()
    for shape in shapes:
        draw_shape(img, shape, include_effects)
    if active is not None:
        draw_shape(img, active, include_effects)
    return img


def crop_image_exact(img: np.ndarray, bounds: PixelBounds) -> np.ndarray:
    min_x, min_y, max_x, max_y = bounds
    return img[min_y:max_y, min_x:max_x].copy()


def crop_image(img: np.ndarray, rect: Rect) -> np.ndarray:
    """Crop img to rect's pixel bounds; an empty crop returns the whole image."""
    height, width = img.shape[:2]
    bounds = pixel_bounds(rect, width, height)
    if bounds is None:
        return img.copy()
    return crop_image_exact(img, bounds)
