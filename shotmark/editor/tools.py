"""
Editor tools and palette actions.

Each drawing tool knows how to start a shape at the press point and how to
grow it while the pointer button is held. Select and Text produce no shape:
Select drives the crop selection and Text opens the inline text entry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from shotmark.editor.geometry import Pos
from shotmark.editor.raster import with_alpha
from shotmark.editor.shapes import (
    ArrowShape,
    CircleCountShape,
    CircleShape,
    Color,
    EffectKind,
    EffectShape,
    LineShape,
    RectShape,
    Shape,
    StrokeShape,
    TWO_POINT_SHAPES,
)

MARKER_ALPHA = 120
MARKER_MIN_SIZE = 6.0
TEXT_MIN_SIZE = 8.0


class Tool(Enum):
    """Editor tools; the value is the name used in config files."""

    SELECT = "select"
    PENCIL = "pencil"
    LINE = "line"
    ARROW = "arrow"
    RECT = "rect"
    CIRCLE = "circle"
    MARKER = "marker"
    MARKER_LINE = "marker_line"
    CIRCLE_COUNT = "circle_count"
    TEXT = "text"
    PIXELATE = "pixelate"
    BLUR = "blur"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_name(cls, name: str, default: "Tool") -> "Tool":
        try:
            return cls(name.strip().lower())
        except ValueError:
            return default


_DISPLAY_NAMES = {
    Tool.SELECT: "Select",
    Tool.PENCIL: "Pencil",
    Tool.LINE: "Line",
    Tool.ARROW: "Arrow",
    Tool.RECT: "Rect",
    Tool.CIRCLE: "Circle",
    Tool.MARKER: "Marker",
    Tool.MARKER_LINE: "Marker Line",
    Tool.CIRCLE_COUNT: "Circle Count",
    Tool.TEXT: "Text",
    Tool.PIXELATE: "Pixelate",
    Tool.BLUR: "Blur",
}


class Command(Enum):
    UNDO = "undo"
    COPY = "copy"
    SAVE = "save"
    CLEAR = "clear"


@dataclass(frozen=True)
class PaletteEntry:
    """One palette button: either a tool to switch to or a command to run."""

    label: str
    tool: Optional[Tool] = None
    command: Optional[Command] = None


PALETTE: List[PaletteEntry] = [
    PaletteEntry(Tool.SELECT.display_name, tool=Tool.SELECT),
    PaletteEntry(Tool.PENCIL.display_name, tool=Tool.PENCIL),
    PaletteEntry(Tool.LINE.display_name, tool=Tool.LINE),
    PaletteEntry(Tool.ARROW.display_name, tool=Tool.ARROW),
    PaletteEntry(Tool.RECT.display_name, tool=Tool.RECT),
    PaletteEntry(Tool.CIRCLE.display_name, tool=Tool.CIRCLE),
    PaletteEntry(Tool.MARKER.display_name, tool=Tool.MARKER),
    PaletteEntry(Tool.MARKER_LINE.display_name, tool=Tool.MARKER_LINE),
    PaletteEntry(Tool.CIRCLE_COUNT.display_name, tool=Tool.CIRCLE_COUNT),
    PaletteEntry(Tool.TEXT.display_name, tool=Tool.TEXT),
    PaletteEntry(Tool.PIXELATE.display_name, tool=Tool.PIXELATE),
    PaletteEntry(Tool.BLUR.display_name, tool=Tool.BLUR),
    PaletteEntry("Undo", command=Command.UNDO),
    PaletteEntry("Copy", command=Command.COPY),
    PaletteEntry("Save", command=Command.SAVE),
    PaletteEntry("Clear", command=Command.CLEAR),
]


def marker_style(color: Color, size: float):
    """Translucent, at-least-6px variant of the brush used by both marker tools."""
    return with_alpha(color, MARKER_ALPHA), max(size, MARKER_MIN_SIZE)


def begin_shape(
    tool: Tool,
    pos: Pos,
    color: Color,
    size: float,
    next_count: int,
) -> Optional[Shape]:
    """
    Create the in-progress shape for a press at pos.

    Args:
        tool: Current tool.
        pos: Press position in image pixels.
        color: Current colour.
        size: Current brush/effect size.
        next_count: Label for a new CircleCount bubble.

    Returns:
        The new shape, or None for tools that do not draw (Select, Text).
    """
    if tool is Tool.PENCIL:
        return StrokeShape(points=[pos], color=color, size=size)
    if tool is Tool.MARKER:
        marker_color, marker_size = marker_style(color, size)
        return StrokeShape(points=[pos], color=marker_color, size=marker_size)
    if tool is Tool.MARKER_LINE:
        marker_color, marker_size = marker_style(color, size)
        return LineShape(start=pos, end=pos, color=marker_color, size=marker_size)
    if tool is Tool.LINE:
        return LineShape(start=pos, end=pos, color=color, size=size)
    if tool is Tool.ARROW:
        return ArrowShape(start=pos, end=pos, color=color, size=size)
    if tool is Tool.RECT:
        return RectShape(start=pos, end=pos, color=color, size=size)
    if tool is Tool.CIRCLE:
        return CircleShape(start=pos, end=pos, color=color, size=size)
    if tool is Tool.CIRCLE_COUNT:
        return CircleCountShape(center=pos, pointer=pos, color=color, size=size, count=next_count)
    if tool is Tool.PIXELATE:
        return EffectShape(start=pos, end=pos, size=size, kind=EffectKind.PIXELATE)
    if tool is Tool.BLUR:
        return EffectShape(start=pos, end=pos, size=size, kind=EffectKind.BLUR)
    return None


def extend_shape(shape: Shape, pos: Pos) -> None:
    """Grow the in-progress shape towards pos while the button is held."""
    if isinstance(shape, StrokeShape):
        shape.points.append(pos)
    elif isinstance(shape, TWO_POINT_SHAPES):
        shape.end = pos
    elif isinstance(shape, CircleCountShape):
        shape.pointer = pos
    else:
        raise TypeError(f"Shape {type(shape).__name__} cannot be extended")
