"""
Editor interaction controller.

EditorController is the toolkit-free heart of the editor window. The Qt
canvas feeds it pointer events (window coordinates plus a press/held/
release phase), shortcuts and palette clicks; it routes them to the crop
selection or to shape construction, keeps the undo history and the effect
preview cache, and renders/exports the final image through injected sinks.
"""

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from shotmark.core.errors import ClipboardUnavailable, EncodeFailed, SaveFailed
from shotmark.editor.compositor import crop_image, render_shapes
from shotmark.editor.geometry import (
    Pos,
    Rect,
    image_to_screen,
    layout_tool_buttons,
    place_text_editor,
    place_tool_controls,
    screen_to_image,
    selection_screen_rect,
)
from shotmark.editor.history import ShapeHistory
from shotmark.editor.preview_cache import EffectPreview, EffectPreviewCache
from shotmark.editor.raster import (
    CIRCLECOUNT_PADDING,
    circlecount_bubble_size,
    circlecount_contrast_colors,
    with_alpha,
)
from shotmark.editor.selection import HANDLE_RADIUS, CursorKind, PointerPhase, SelectionTool
from shotmark.editor.shapes import Color, EffectShape, Shape, TextShape
from shotmark.editor.tools import (
    MARKER_ALPHA,
    PALETTE,
    TEXT_MIN_SIZE,
    Command,
    PaletteEntry,
    Tool,
    begin_shape,
    extend_shape,
)
from shotmark.services.logging_service import get_logger

MIN_SIZE = 1.0
MAX_SIZE = 20.0
DEFAULT_COLOR: Color = (255, 0, 0, 255)
DEFAULT_SIZE = 3.0

BUTTON_SIZE = (28.0, 28.0)
CHROME_SPACING = 6.0
CONTROLS_SIZE = (240.0, 36.0)
STATUS_LINE_HEIGHT = 20.0
EFFECT_BRUSH_COLOR: Color = (255, 255, 255, 200)


class Shortcut(Enum):
    COPY = auto()
    SAVE = auto()
    UNDO = auto()
    REDO = auto()
    ENTER = auto()
    ESCAPE = auto()


class ClipboardSink(Protocol):
    def copy_image(
        self, data: bytes, mime_type: str, fallbacks: Sequence[Tuple[bytes, str]] = ()
    ) -> str:
        """Put encoded image data on the clipboard; returns a method description."""


# (pixels, "PNG" | "BMP") -> encoded bytes, raising EncodeFailed
ImageEncoder = Callable[[np.ndarray, str], bytes]
# (pixels, path) -> None, raising SaveFailed
FileSink = Callable[[np.ndarray, Path], None]
# Asks the user for a destination; None when cancelled
SavePathPicker = Callable[[], Optional[str]]


@dataclass
class TextInput:
    """Pending inline text entry anchored at an image position."""

    pos: Pos
    text: str = ""


@dataclass(frozen=True)
class BrushPreview:
    """
    Cursor-following brush outline in screen coordinates.

    For CircleCount the preview is a miniature bubble: outer_radius is the
    ring, ring_color its outline and fill_color the ring fill.
    """

    center: Pos
    radius: float
    color: Color
    outer_radius: float = 0.0
    ring_color: Optional[Color] = None
    fill_color: Optional[Color] = None


@dataclass
class ChromeLayout:
    """Screen rectangles for the floating editor chrome."""

    buttons: List[Tuple[PaletteEntry, Rect]]
    controls: Optional[Rect] = None
    text_editor: Optional[Rect] = None

    def rects(self) -> List[Rect]:
        rects = [rect for _, rect in self.buttons]
        if self.controls is not None:
            rects.append(self.controls)
        if self.text_editor is not None:
            rects.append(self.text_editor)
        return rects


class EditorController:
    """
    Per-session editor state and logic.

    Coordinates handed to handle_pointer are window (logical) pixels; the
    view transform set with set_view maps them into image pixels.
    """

    def __init__(
        self,
        image: np.ndarray,
        clipboard: Optional[ClipboardSink] = None,
        encode: Optional[ImageEncoder] = None,
        save_file: Optional[FileSink] = None,
        ask_save_path: Optional[SavePathPicker] = None,
        config=None,
    ) -> None:
        """
        Args:
            image: Captured RGBA8 image of shape (h, w, 4); copied.
            clipboard: Clipboard sink used by copy.
            encode: PNG/BMP encoder used before handing bytes to the clipboard.
            save_file: Writes the rendered image to a path.
            ask_save_path: Save dialog; returns a path or None.
            config: Optional ConfigService supplying initial colour, size,
                tool and the close-after-save flag.
        """
        self._logger = get_logger(__name__)
        if image.ndim != 3 or image.shape[2] != 4:
            raise ValueError(f"Expected an RGBA image, got shape {image.shape}")

        self._base = np.ascontiguousarray(image, dtype=np.uint8).copy()
        self._height, self._width = self._base.shape[:2]

        self._clipboard = clipboard
        self._encode = encode
        self._save_file = save_file
        self._ask_save_path = ask_save_path

        self._history = ShapeHistory()
        self._selection = SelectionTool(self._width, self._height)
        self._previews = EffectPreviewCache()
        self._preview_base: Optional[np.ndarray] = None
        self._preview_base_version = -1

        self._tool = Tool.SELECT
        self._last_draw_tool = Tool.PENCIL
        self._color: Color = DEFAULT_COLOR
        self._size = DEFAULT_SIZE
        self._close_after_save = True
        if config is not None:
            self._color = config.default_color
            self._size = self._clamp_size(config.default_size)
            self._close_after_save = config.close_after_save
            self.set_tool(Tool.from_name(config.default_tool, Tool.SELECT))

        self._active: Optional[Shape] = None
        self._text_input: Optional[TextInput] = None
        self._status: Optional[str] = None
        self._close_requested = False

        self._image_rect = Rect(0.0, 0.0, float(self._width), float(self._height))
        self._scale = 1.0
        self._ui_rects: List[Rect] = []

        self._logger.info(f"Editor session started for {self._width}x{self._height} image")

    # ─── State ────────────────────────────────────────────────────────────

    @property
    def base_image(self) -> np.ndarray:
        return self._base

    @property
    def image_size(self) -> Tuple[int, int]:
        return self._width, self._height

    @property
    def tool(self) -> Tool:
        return self._tool

    @property
    def last_draw_tool(self) -> Tool:
        return self._last_draw_tool

    @property
    def color(self) -> Color:
        return self._color

    @property
    def size(self) -> float:
        return self._size

    @property
    def status(self) -> Optional[str]:
        return self._status

    @property
    def selection(self) -> Optional[Rect]:
        return self._selection.rect

    @property
    def shapes(self) -> Sequence[Shape]:
        return self._history.shapes

    @property
    def active_shape(self) -> Optional[Shape]:
        return self._active

    @property
    def text_input(self) -> Optional[TextInput]:
        return self._text_input

    @property
    def version(self) -> int:
        return self._history.version

    @property
    def close_requested(self) -> bool:
        return self._close_requested

    @property
    def image_rect(self) -> Rect:
        return self._image_rect

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def handle_radius(self) -> float:
        """Corner-handle hit radius in image pixels."""
        return HANDLE_RADIUS * self._scale

    # ─── Parameters ───────────────────────────────────────────────────────

    @staticmethod
    def _clamp_size(size: float) -> float:
        return max(MIN_SIZE, min(MAX_SIZE, float(size)))

    def set_tool(self, tool: Tool) -> None:
        if tool is not Tool.SELECT:
            self._last_draw_tool = tool
        if tool is not self._tool:
            self._logger.debug(f"Tool changed: {self._tool.value} -> {tool.value}")
        self._tool = tool

    def set_color(self, color: Color) -> None:
        self._color = tuple(int(c) for c in color)

    def set_size(self, size: float) -> None:
        self._size = self._clamp_size(size)

    def adjust_size(self, delta: float) -> None:
        """Mouse-wheel size change, kept within the slider range."""
        self.set_size(self._size + delta)

    def set_view(self, image_rect: Rect, scale: float) -> None:
        """Where the image is drawn in the window and its device pixel ratio."""
        self._image_rect = image_rect
        self._scale = scale if scale > 0 else 1.0

    def set_ui_rects(self, rects: Sequence[Rect]) -> None:
        """Screen rectangles currently covered by chrome widgets."""
        self._ui_rects = list(rects)

    def is_over_ui(self, pos: Pos) -> bool:
        return any(rect.contains(pos) for rect in self._ui_rects)

    def to_image(self, pos: Pos) -> Pos:
        return screen_to_image(pos, self._image_rect, self._scale, self._width, self._height)

    def to_screen(self, pos: Pos) -> Pos:
        return image_to_screen(pos, self._image_rect, self._scale)

    # ─── Pointer Input ────────────────────────────────────────────────────

    def handle_pointer(self, pos: Pos, phase: PointerPhase) -> CursorKind:
        """
        Route one pointer event.

        Args:
            pos: Pointer position in window coordinates.
            phase: PRESSED/HELD/RELEASED for the primary button, HOVER otherwise.

        Returns:
            The cursor the canvas should show.
        """
        if self._close_requested:
            return CursorKind.DEFAULT

        if phase is PointerPhase.RELEASED and (self.is_over_ui(pos) or not self._image_rect.contains(pos)):
            # A drag that started on the canvas still ends here
            self._finish_drag()
            return CursorKind.DEFAULT
        if self.is_over_ui(pos) or not self._image_rect.contains(pos):
            return CursorKind.DEFAULT

        img_pos = self.to_image(pos)
        button_down = phase in (PointerPhase.PRESSED, PointerPhase.HELD)

        if self._tool is Tool.SELECT:
            cursor = self._selection.cursor(img_pos, self.handle_radius, button_down)
            self._selection.handle(phase, img_pos, self.handle_radius)
            return cursor

        if phase is PointerPhase.RELEASED:
            self._finish_drag()
            return CursorKind.CROSSHAIR

        sel = self._selection.rect
        if sel is None or not sel.contains(img_pos):
            return CursorKind.DEFAULT

        if phase is PointerPhase.PRESSED:
            self._begin_at(img_pos)
        elif phase is PointerPhase.HELD and self._active is not None:
            extend_shape(self._active, img_pos)
        return CursorKind.CROSSHAIR

    def _begin_at(self, img_pos: Pos) -> None:
        if self._tool is Tool.TEXT:
            self._text_input = TextInput(img_pos)
            self._logger.debug(f"Text entry opened at {img_pos}")
            return
        self._active = begin_shape(
            self._tool,
            img_pos,
            self._color,
            self._size,
            self._history.next_circle_count(),
        )

    def _finish_drag(self) -> None:
        self._selection.release()
        if self._active is not None:
            shape, self._active = self._active, None
            self._commit(shape)

    def brush_preview(self, pos: Pos) -> Optional[BrushPreview]:
        """Brush outline to draw under the pointer, or None."""
        if self._tool is Tool.SELECT or self._text_input is not None:
            return None
        if self.is_over_ui(pos) or not self._image_rect.contains(pos):
            return None
        sel = self._selection.rect
        if sel is None or not sel.contains(self.to_image(pos)):
            return None

        if self._tool is Tool.CIRCLE_COUNT:
            contrast, anti = circlecount_contrast_colors(self._color)
            bubble = circlecount_bubble_size(self._size)
            return BrushPreview(
                center=pos,
                radius=bubble / self._scale,
                color=self._color,
                outer_radius=(bubble + CIRCLECOUNT_PADDING) / self._scale,
                ring_color=contrast,
                fill_color=anti,
            )

        color = self._color
        if self._tool in (Tool.MARKER, Tool.MARKER_LINE):
            color = with_alpha(self._color, MARKER_ALPHA)
        elif self._tool in (Tool.PIXELATE, Tool.BLUR):
            color = EFFECT_BRUSH_COLOR
        radius = max(max(self._size, 1.0) / self._scale * 0.5, 1.0)
        return BrushPreview(center=pos, radius=radius, color=color)

    # ─── Text Entry ───────────────────────────────────────────────────────

    def set_text(self, text: str) -> None:
        if self._text_input is not None:
            self._text_input.text = text

    def commit_text(self) -> bool:
        """Close the text entry, committing it unless it is blank."""
        pending, self._text_input = self._text_input, None
        if pending is None or not pending.text.strip():
            return False
        self._commit(
            TextShape(
                pos=pending.pos,
                text=pending.text,
                color=self._color,
                size=max(self._size, TEXT_MIN_SIZE),
            )
        )
        return True

    def cancel_text(self) -> None:
        self._text_input = None

    # ─── Commands ─────────────────────────────────────────────────────────

    def handle_shortcut(self, shortcut: Shortcut) -> None:
        if shortcut is Shortcut.COPY:
            self.copy_and_close()
        elif shortcut is Shortcut.SAVE:
            self.save()
        elif shortcut is Shortcut.UNDO:
            self.undo()
        elif shortcut is Shortcut.REDO:
            self.redo()
        elif shortcut is Shortcut.ENTER:
            if self._text_input is not None:
                self.commit_text()
            elif self._tool is Tool.SELECT and self._selection.rect is not None:
                self.set_tool(self._last_draw_tool)
        elif shortcut is Shortcut.ESCAPE:
            if self._text_input is not None:
                self.cancel_text()
            else:
                self.close()

    def activate(self, entry: PaletteEntry) -> None:
        """Run a palette button."""
        if entry.tool is not None:
            self.set_tool(entry.tool)
        elif entry.command is Command.UNDO:
            self.undo()
        elif entry.command is Command.COPY:
            self.copy_and_close()
        elif entry.command is Command.SAVE:
            self.save()
        elif entry.command is Command.CLEAR:
            self.clear()

    def _commit(self, shape: Shape) -> None:
        self._history.commit(shape)
        self._previews.clear()

    def undo(self) -> None:
        if self._history.undo() is not None:
            self._previews.clear()

    def redo(self) -> None:
        if self._history.redo() is not None:
            self._previews.clear()

    def clear(self) -> None:
        if self._history.clear():
            self._previews.clear()
            self._logger.debug("Cleared all shapes")

    def close(self) -> None:
        if not self._close_requested:
            self._logger.info("Editor session closing")
        self._close_requested = True

    # ─── Rendering ────────────────────────────────────────────────────────

    def render_full_image(self) -> np.ndarray:
        """Base image with every committed shape baked in."""
        return render_shapes(self._base, self._history.shapes)

    def render_image(self) -> np.ndarray:
        """The export image: full render cropped to the selection, if any."""
        full = self.render_full_image()
        sel = self._selection.rect
        if sel is None:
            return full
        return crop_image(full, sel)

    def preview_base(self) -> np.ndarray:
        """Committed shapes without effects; effect previews are cut from this."""
        version = self._history.version
        if self._preview_base is None or self._preview_base_version != version:
            self._preview_base = render_shapes(self._base, self._history.shapes, include_effects=False)
            self._preview_base_version = version
        return self._preview_base

    def preview_layers(self) -> List[Tuple[Shape, Optional[EffectPreview]]]:
        """
        Shapes to draw on screen, in z-order, ending with the active shape.

        Effect shapes come paired with their processed preview (None when
        the rectangle is empty); all other shapes are paired with None.
        """
        shapes = list(self._history.shapes)
        if self._active is not None:
            shapes.append(self._active)

        layers: List[Tuple[Shape, Optional[EffectPreview]]] = []
        effect_index = 0
        for shape in shapes:
            preview = None
            if isinstance(shape, EffectShape):
                preview = self._previews.get(
                    effect_index,
                    shape,
                    self._history.version,
                    self.preview_base,
                    self._width,
                    self._height,
                )
                effect_index += 1
            layers.append((shape, preview))
        return layers

    def chrome_layout(self) -> ChromeLayout:
        """Where the palette, controls panel and text entry go this frame."""
        sel = self._selection.rect
        buttons: List[Tuple[PaletteEntry, Rect]] = []
        controls = None
        if sel is not None:
            sel_screen = selection_screen_rect(sel, self._image_rect, self._scale)
            positions = layout_tool_buttons(
                sel_screen, self._image_rect, BUTTON_SIZE, CHROME_SPACING, len(PALETTE)
            )
            buttons = [
                (entry, Rect.from_min_size(pos, *BUTTON_SIZE))
                for entry, pos in zip(PALETTE, positions)
            ]
            panel_height = CONTROLS_SIZE[1] + (STATUS_LINE_HEIGHT if self._status else 0.0)
            controls = place_tool_controls(
                sel_screen,
                self._image_rect,
                (CONTROLS_SIZE[0], panel_height),
                CHROME_SPACING,
                [rect for _, rect in buttons],
            )

        text_editor = None
        if self._text_input is not None:
            text_editor = place_text_editor(self.to_screen(self._text_input.pos), self._image_rect)
        return ChromeLayout(buttons, controls, text_editor)

    # ─── Export ───────────────────────────────────────────────────────────

    def copy_to_clipboard(self) -> bool:
        """
        Render, encode and hand the image to the clipboard sink.

        PNG is offered first with BMP as the fallback encoding. Failures
        only set the status message.

        Returns:
            True if some clipboard method accepted the image.
        """
        if self._clipboard is None or self._encode is None:
            self._status = "Clipboard copy failed: no clipboard available"
            self._logger.warning(self._status)
            return False

        image = self.render_image()
        try:
            method = self._copy_encoded(image)
        except (EncodeFailed, ClipboardUnavailable) as e:
            self._status = f"Clipboard copy failed: {e}"
            self._logger.warning(self._status)
            return False

        self._status = f"Copied to clipboard ({method})"
        self._logger.info(f"Copied {image.shape[1]}x{image.shape[0]} image to clipboard via {method}")
        return True

    def _copy_encoded(self, image: np.ndarray) -> str:
        png = self._encode(image, "PNG")
        try:
            fallbacks = [(self._encode(image, "BMP"), "image/bmp")]
        except EncodeFailed as e:
            self._logger.debug(f"BMP encoding failed ({e}), offering PNG only")
            fallbacks = []
        return self._clipboard.copy_image(png, "image/png", fallbacks)

    def copy_and_close(self) -> bool:
        copied = self.copy_to_clipboard()
        if copied:
            self.close()
        return copied

    def save(self) -> bool:
        """Ask for a destination, save there and close if configured to."""
        if self._ask_save_path is None:
            self._status = "Save failed: no save dialog available"
            self._logger.warning(self._status)
            return False

        path = self._ask_save_path()
        if not path:
            self._logger.info("Save cancelled")
            return False

        saved = self.save_to(path)
        if saved and self._close_after_save:
            self.close()
        return saved

    def save_to(self, path) -> bool:
        """Render and write the export image to path. Never raises."""
        if self._save_file is None:
            self._status = "Save failed: no file writer available"
            self._logger.warning(self._status)
            return False

        image = self.render_image()
        try:
            self._save_file(image, Path(path))
        except (SaveFailed, EncodeFailed) as e:
            self._status = f"Save failed: {e}"
            self._logger.error(self._status)
            return False

        self._status = f"Saved {path}"
        self._logger.info(self._status)
        return True
