"""
Annotation shapes for the Shotmark editor.

Shapes are plain data in image-pixel coordinates. Once committed to the
history they are never mutated; only the in-progress shape held by the
controller changes while the pointer button is down. Rendering and input
dispatch switch on the concrete class, so adding a kind means touching
Shape, the compositor's draw_shape and the tool factory in tools.py.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Tuple, Union

from shotmark.editor.geometry import Pos, Rect, round_half_away

Color = Tuple[int, int, int, int]

# Pixelate block and blur radius derived from the size slider
PIXELATE_MIN_BLOCK = 4
BLUR_MIN_RADIUS = 2
BLUR_MAX_RADIUS = 12


class EffectKind(Enum):
    PIXELATE = auto()
    BLUR = auto()


@dataclass
class StrokeShape:
    """Freehand polyline."""

    points: List[Pos] = field(default_factory=list)
    color: Color = (255, 0, 0, 255)
    size: float = 3.0


@dataclass
class LineShape:
    start: Pos
    end: Pos
    color: Color
    size: float


@dataclass
class ArrowShape:
    start: Pos
    end: Pos
    color: Color
    size: float


@dataclass
class RectShape:
    """Rectangle outline spanned by two opposite corners."""

    start: Pos
    end: Pos
    color: Color
    size: float


@dataclass
class CircleShape:
    """Ellipse outline inscribed in the box spanned by start and end."""

    start: Pos
    end: Pos
    color: Color
    size: float


@dataclass
class CircleCountShape:
    """
    Numbered callout bubble.

    Attributes:
        center: Bubble centre.
        pointer: Where the leader wedge points; inside the bubble means no wedge.
        count: Label shown in the bubble.
    """

    center: Pos
    pointer: Pos
    color: Color
    size: float
    count: int


@dataclass
class TextShape:
    pos: Pos
    text: str
    color: Color
    size: float

    @property
    def glyph_scale(self) -> int:
        """Bitmap-font cell size used when the text is baked into the image."""
        return max(1, round_half_away(self.size / 6.0))


@dataclass
class EffectShape:
    """Pixelate or blur region spanned by start and end."""

    start: Pos
    end: Pos
    size: float
    kind: EffectKind

    @property
    def rect(self) -> Rect:
        return Rect.from_two_pos(self.start, self.end)

    @property
    def strength(self) -> int:
        """Pixelate block size or blur radius for the current size."""
        if self.kind is EffectKind.PIXELATE:
            return max(PIXELATE_MIN_BLOCK, round_half_away(self.size))
        return min(BLUR_MAX_RADIUS, max(BLUR_MIN_RADIUS, round_half_away(self.size)))


Shape = Union[
    StrokeShape,
    LineShape,
    ArrowShape,
    RectShape,
    CircleShape,
    CircleCountShape,
    TextShape,
    EffectShape,
]

TWO_POINT_SHAPES = (LineShape, ArrowShape, RectShape, CircleShape, EffectShape)
