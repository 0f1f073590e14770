"""
Crop-selection state machine.

A single rectangle in image pixels that the Select tool creates, moves and
resizes by its corners. The rectangle is always normalised and inside the
image; a drag that ends with less than one pixel of width or height drops
the selection.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from shotmark.editor.geometry import Pos, Rect, SelectionCorner, hit_corner, with_corner
from shotmark.services.logging_service import get_logger

# Corner handle hit radius in screen pixels
HANDLE_RADIUS = 6.0


class PointerPhase(Enum):
    PRESSED = auto()
    HELD = auto()
    RELEASED = auto()
    HOVER = auto()


class CursorKind(Enum):
    DEFAULT = auto()
    CROSSHAIR = auto()
    GRAB = auto()
    GRABBING = auto()
    RESIZE_NW_SE = auto()
    RESIZE_NE_SW = auto()


@dataclass(frozen=True)
class Creating:
    anchor: Pos


@dataclass(frozen=True)
class Moving:
    offset: Pos


@dataclass(frozen=True)
class Resizing:
    corner: SelectionCorner


DragState = Union[Creating, Moving, Resizing]


def resize_cursor(corner: SelectionCorner) -> CursorKind:
    if corner in (SelectionCorner.TOP_LEFT, SelectionCorner.BOTTOM_RIGHT):
        return CursorKind.RESIZE_NW_SE
    return CursorKind.RESIZE_NE_SW


class SelectionTool:
    """
    Owns the optional selection rectangle and the drag in progress.

    Positions passed in are image pixels already clamped to the image.
    """

    def __init__(self, width: int, height: int) -> None:
        self._logger = get_logger(__name__)
        self._bounds = Rect(0.0, 0.0, float(width), float(height))
        self._rect: Optional[Rect] = None
        self._drag: Optional[DragState] = None

    @property
    def rect(self) -> Optional[Rect]:
        return self._rect

    @property
    def drag(self) -> Optional[DragState]:
        return self._drag

    @property
    def bounds(self) -> Rect:
        return self._bounds

    def set_rect(self, rect: Optional[Rect]) -> None:
        """Replace the selection, normalising and clipping it to the image."""
        if rect is None:
            self._rect = None
            return
        clipped = rect.normalized().intersect(self._bounds).normalized()
        self._rect = clipped if clipped.width >= 1.0 and clipped.height >= 1.0 else None

    def clear(self) -> None:
        self._rect = None
        self._drag = None

    # ─── Pointer Handling ─────────────────────────────────────────────────

    def press(self, pos: Pos, handle_radius: float) -> None:
        """Start a drag: resize if on a corner, move if inside, else create."""
        if self._rect is not None:
            corner = hit_corner(self._rect, pos, handle_radius)
            if corner is not None:
                self._drag = Resizing(corner)
                return
            if self._rect.contains(pos):
                self._drag = Moving(pos - self._rect.min)
                return
        self._drag = Creating(pos)
        self._rect = Rect.from_two_pos(pos, pos)

    def drag_to(self, pos: Pos) -> None:
        if self._rect is None or self._drag is None:
            return
        drag = self._drag
        if isinstance(drag, Creating):
            self._rect = Rect.from_two_pos(drag.anchor, pos).intersect(self._bounds)
        elif isinstance(drag, Moving):
            width = self._rect.width
            height = self._rect.height
            min_x = min(max(pos.x - drag.offset.x, 0.0), self._bounds.width - width)
            min_y = min(max(pos.y - drag.offset.y, 0.0), self._bounds.height - height)
            self._rect = Rect(min_x, min_y, min_x + width, min_y + height)
        elif isinstance(drag, Resizing):
            moved = with_corner(self._rect, drag.corner, pos).normalized()
            self._rect = moved.intersect(self._bounds).normalized()
            # Normalising can swap which corner is under the pointer
            self._drag = Resizing(_corner_at(self._rect, pos, drag.corner))

    def release(self) -> None:
        if self._drag is None:
            return
        self._drag = None
        if self._rect is not None and (self._rect.width < 1.0 or self._rect.height < 1.0):
            self._logger.debug("Selection collapsed, discarding")
            self._rect = None
        elif self._rect is not None:
            self._logger.debug(f"Selection set to {self._rect.as_tuple()}")

    def handle(self, phase: PointerPhase, pos: Pos, handle_radius: float) -> None:
        if phase is PointerPhase.PRESSED:
            self.press(pos, handle_radius)
        elif phase is PointerPhase.HELD:
            self.drag_to(pos)
        elif phase is PointerPhase.RELEASED:
            self.drag_to(pos)
            self.release()

    def cursor(self, pos: Pos, handle_radius: float, button_down: bool) -> CursorKind:
        """Cursor shape for the pointer at pos; a pure function of the state."""
        drag = self._drag
        if drag is not None and button_down:
            if isinstance(drag, Moving):
                return CursorKind.GRABBING
            if isinstance(drag, Resizing):
                return resize_cursor(drag.corner)
            return CursorKind.CROSSHAIR
        if self._rect is not None:
            corner = hit_corner(self._rect, pos, handle_radius)
            if corner is not None:
                return resize_cursor(corner)
            if self._rect.contains(pos):
                return CursorKind.GRABBING if button_down else CursorKind.GRAB
        return CursorKind.CROSSHAIR


def _corner_at(rect: Rect, pos: Pos, fallback: SelectionCorner) -> SelectionCorner:
    """The corner of rect that pos sits on after a resize step."""
    on_left = pos.x <= rect.min_x
    on_right = pos.x >= rect.max_x
    on_top = pos.y <= rect.min_y
    on_bottom = pos.y >= rect.max_y
    if on_left and on_top:
        return SelectionCorner.TOP_LEFT
    if on_right and on_top:
        return SelectionCorner.TOP_RIGHT
    if on_left and on_bottom:
        return SelectionCorner.BOTTOM_LEFT
    if on_right and on_bottom:
        return SelectionCorner.BOTTOM_RIGHT
    return fallback
