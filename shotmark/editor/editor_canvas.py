"""
Editor canvas widget for Shotmark.

The EditorCanvas is the drawing surface of the editor window. It displays:
- The captured image, fitted into the widget
- Committed shapes and the shape being drawn, as vector previews
- Pixelate/blur previews produced by the controller's preview cache
- The crop selection with dimmed surroundings, corner handles and a HUD
- A help box while there is no selection, and the brush outline

All input is translated into EditorController calls; the canvas itself
holds no editing state.
"""

import weakref
from functools import lru_cache
from typing import Optional, Tuple

import numpy as np
from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import (
    QColor,
    QFont,
    QFontMetrics,
    QImage,
    QKeyEvent,
    QKeySequence,
    QMouseEvent,
    QPainter,
    QPen,
    QPolygonF,
    QWheelEvent,
)
from PySide6.QtWidgets import QWidget

from shotmark.editor.controller import EditorController, Shortcut
from shotmark.editor.geometry import (
    Pos,
    Rect,
    place_selection_hud,
    round_half_away,
    selection_hud_label,
    selection_screen_rect,
)
from shotmark.editor.glyphs import circlecount_text_scale, draw_text_bitmap, text_bitmap_size
from shotmark.editor.preview_cache import EffectPreview
from shotmark.editor.raster import (
    CIRCLECOUNT_PADDING,
    arrow_head_points,
    circlecount_bubble_size,
    circlecount_contrast_colors,
    ellipse_points,
)
from shotmark.editor.selection import HANDLE_RADIUS, CursorKind, PointerPhase
from shotmark.editor.shapes import (
    ArrowShape,
    CircleCountShape,
    CircleShape,
    EffectShape,
    LineShape,
    RectShape,
    Shape,
    StrokeShape,
    TextShape,
)
from shotmark.services.image_codec import to_qimage
from shotmark.services.logging_service import get_logger

BACKGROUND_COLOR = QColor(26, 26, 26)
DIM_COLOR = QColor(0, 0, 0, 120)
SELECTION_BORDER_COLOR = QColor(255, 255, 255)
HANDLE_FILL_COLOR = QColor(255, 255, 255)
HANDLE_OUTLINE_COLOR = QColor(80, 144, 208)
OVERLAY_BG_COLOR = QColor(20, 20, 20, 200)
OVERLAY_TEXT_COLOR = QColor(230, 230, 230)

# On-screen ellipses are cheaper than the export's
PREVIEW_ELLIPSE_STEPS = 40
WHEEL_STEP = 120

HELP_LINES = (
    "Click and drag to select area",
    "Enter: start drawing   Ctrl+C: copy   Ctrl+S: save",
    "Ctrl+Z: undo   Ctrl+Shift+Z: redo   Esc: close",
)

_CURSORS = {
    CursorKind.DEFAULT: Qt.CursorShape.ArrowCursor,
    CursorKind.CROSSHAIR: Qt.CursorShape.CrossCursor,
    CursorKind.GRAB: Qt.CursorShape.OpenHandCursor,
    CursorKind.GRABBING: Qt.CursorShape.ClosedHandCursor,
    CursorKind.RESIZE_NW_SE: Qt.CursorShape.SizeFDiagCursor,
    CursorKind.RESIZE_NE_SW: Qt.CursorShape.SizeBDiagCursor,
}


def _qcolor(color) -> QColor:
    return QColor(*color)


def _qpoint(pos: Pos) -> QPointF:
    return QPointF(pos.x, pos.y)


def _qrect(rect: Rect) -> QRectF:
    return QRectF(rect.min_x, rect.min_y, rect.width, rect.height)


@lru_cache(maxsize=64)
def _glyph_image(text: str, color: Tuple[int, int, int, int], scale: int) -> Optional[QImage]:
    """Bitmap-font text on a transparent background, as exported."""
    width, height = text_bitmap_size(text, scale)
    if width == 0 or height == 0:
        return None
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    draw_text_bitmap(pixels, Pos(0.0, 0.0), text, color, scale)
    return to_qimage(pixels)


class EditorCanvas(QWidget):
    """
    Drawing surface bound to one EditorController.

    Signals:
        state_changed: Emitted after any input that may have changed the
            controller state (tool, selection, shapes, status, text entry).
        close_requested: Emitted once the controller asks to end the session.
    """

    state_changed = Signal()
    close_requested = Signal()

    def __init__(self, controller: EditorController, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._controller = controller
        self._base_image = to_qimage(controller.base_image)
        self._effect_images: "weakref.WeakKeyDictionary[EffectPreview, QImage]" = weakref.WeakKeyDictionary()
        self._pointer: Optional[Pos] = None
        self._button_down = False
        self._close_emitted = False

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setAttribute(Qt.WidgetAttribute.WA_OpaquePaintEvent)

    @property
    def controller(self) -> EditorController:
        return self._controller

    # ─── View ─────────────────────────────────────────────────────────────

    def _update_view(self) -> None:
        """Fit the image into the widget (never upscaled) and centre it."""
        img_w, img_h = self._controller.image_size
        if img_w == 0 or img_h == 0 or self.width() == 0 or self.height() == 0:
            return
        dpr = self.devicePixelRatioF() or 1.0
        logical_w = img_w / dpr
        logical_h = img_h / dpr
        fit = min(1.0, self.width() / logical_w, self.height() / logical_h)
        w = logical_w * fit
        h = logical_h * fit
        x = (self.width() - w) / 2.0
        y = (self.height() - h) / 2.0
        self._controller.set_view(Rect(x, y, x + w, y + h), img_w / w)

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._update_view()
        self.state_changed.emit()

    def showEvent(self, event) -> None:
        super().showEvent(event)
        self._update_view()

    def refresh(self) -> None:
        """Repaint and notify listeners; closes the session if requested."""
        self.update()
        self.state_changed.emit()
        if self._controller.close_requested and not self._close_emitted:
            self._close_emitted = True
            self.close_requested.emit()

    # ─── Painting ─────────────────────────────────────────────────────────

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.fillRect(self.rect(), BACKGROUND_COLOR)

        controller = self._controller
        image_rect = _qrect(controller.image_rect)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.drawImage(image_rect, self._base_image)

        # Shapes are painted in image pixels
        painter.save()
        painter.translate(image_rect.topLeft())
        painter.scale(1.0 / controller.scale, 1.0 / controller.scale)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, False)
        for shape, preview in controller.preview_layers():
            self._paint_shape(painter, shape, preview)
        painter.restore()

        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        selection = controller.selection
        if selection is None:
            painter.fillRect(image_rect, DIM_COLOR)
            self._paint_help(painter)
        else:
            self._paint_selection(painter, selection)

        if self._pointer is not None and not self._button_down:
            self._paint_brush_preview(painter, self._pointer)
        painter.end()

    def _paint_shape(self, painter: QPainter, shape: Shape, preview: Optional[EffectPreview]) -> None:
        if isinstance(shape, EffectShape):
            self._paint_effect(painter, preview)
            return
        if isinstance(shape, TextShape):
            image = _glyph_image(shape.text, tuple(shape.color), shape.glyph_scale)
            if image is not None:
                painter.drawImage(
                    QPointF(round_half_away(shape.pos.x), round_half_away(shape.pos.y)), image
                )
            return
        if isinstance(shape, CircleCountShape):
            self._paint_circle_count(painter, shape)
            return

        pen = QPen(_qcolor(shape.color), max(shape.size, 1.0))
        pen.setCapStyle(Qt.PenCapStyle.SquareCap)
        pen.setJoinStyle(Qt.PenJoinStyle.MiterJoin)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)

        if isinstance(shape, StrokeShape):
            if len(shape.points) == 1:
                painter.drawPoint(_qpoint(shape.points[0]))
            else:
                painter.drawPolyline(QPolygonF([_qpoint(p) for p in shape.points]))
        elif isinstance(shape, LineShape):
            painter.drawLine(_qpoint(shape.start), _qpoint(shape.end))
        elif isinstance(shape, ArrowShape):
            base, left, right = arrow_head_points(shape.start, shape.end, shape.size)
            painter.drawLine(_qpoint(shape.start), _qpoint(base))
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(_qcolor(shape.color))
            painter.drawPolygon(QPolygonF([_qpoint(shape.end), _qpoint(left), _qpoint(right)]))
        elif isinstance(shape, RectShape):
            painter.drawRect(_qrect(Rect.from_two_pos(shape.start, shape.end)))
        elif isinstance(shape, CircleShape):
            points = ellipse_points(Rect.from_two_pos(shape.start, shape.end), PREVIEW_ELLIPSE_STEPS)
            painter.drawPolyline(QPolygonF([_qpoint(p) for p in points]))

    def _paint_effect(self, painter: QPainter, preview: Optional[EffectPreview]) -> None:
        if preview is None:
            return
        image = self._effect_images.get(preview)
        if image is None:
            image = to_qimage(preview.pixels)
            self._effect_images[preview] = image
        x0, y0, _, _ = preview.bounds
        painter.drawImage(QPointF(x0, y0), image)

    def _paint_circle_count(self, painter: QPainter, shape: CircleCountShape) -> None:
        contrast, anti = circlecount_contrast_colors(shape.color)
        bubble = circlecount_bubble_size(shape.size)
        outer = bubble + CIRCLECOUNT_PADDING
        center = _qpoint(shape.center)

        painter.setPen(Qt.PenStyle.NoPen)
        to_pointer = shape.pointer - shape.center
        distance = to_pointer.length()
        if distance > bubble:
            direction = to_pointer.scaled(1.0 / distance)
            perp = Pos(-direction.y, direction.x)
            painter.setBrush(_qcolor(shape.color))
            painter.drawPolygon(
                QPolygonF(
                    [
                        center,
                        _qpoint(shape.center + perp.scaled(bubble)),
                        _qpoint(shape.pointer),
                        _qpoint(shape.center - perp.scaled(bubble)),
                    ]
                )
            )

        painter.setBrush(_qcolor(anti))
        painter.setPen(QPen(_qcolor(contrast), 1.0))
        painter.drawEllipse(center, outer, outer)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(_qcolor(shape.color))
        painter.drawEllipse(center, bubble, bubble)

        label = str(shape.count)
        scale = circlecount_text_scale(bubble, label)
        image = _glyph_image(label, tuple(contrast), scale)
        if image is not None:
            painter.drawImage(
                QPointF(
                    round_half_away(shape.center.x - image.width() / 2.0),
                    round_half_away(shape.center.y - image.height() / 2.0),
                ),
                image,
            )

    def _paint_selection(self, painter: QPainter, selection: Rect) -> None:
        controller = self._controller
        image_rect = controller.image_rect
        sel = selection_screen_rect(selection, image_rect, controller.scale)

        # Dim everything around the selection
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(DIM_COLOR)
        for rect in (
            Rect(image_rect.min_x, image_rect.min_y, image_rect.max_x, sel.min_y),
            Rect(image_rect.min_x, sel.max_y, image_rect.max_x, image_rect.max_y),
            Rect(image_rect.min_x, sel.min_y, sel.min_x, sel.max_y),
            Rect(sel.max_x, sel.min_y, image_rect.max_x, sel.max_y),
        ):
            if rect.width > 0 and rect.height > 0:
                painter.drawRect(_qrect(rect))

        painter.setPen(QPen(SELECTION_BORDER_COLOR, 1.0))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(_qrect(sel))

        painter.setPen(QPen(HANDLE_OUTLINE_COLOR, 1.5))
        painter.setBrush(HANDLE_FILL_COLOR)
        for corner in (sel.min, Pos(sel.max_x, sel.min_y), Pos(sel.min_x, sel.max_y), sel.max):
            painter.drawEllipse(_qpoint(corner), HANDLE_RADIUS, HANDLE_RADIUS)

        label = selection_hud_label(selection)
        metrics = QFontMetrics(self.font())
        size = (metrics.horizontalAdvance(label) + 12.0, metrics.height() + 6.0)
        hud = place_selection_hud(sel, image_rect, size)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(OVERLAY_BG_COLOR)
        painter.drawRoundedRect(_qrect(hud), 4.0, 4.0)
        painter.setPen(OVERLAY_TEXT_COLOR)
        painter.drawText(_qrect(hud), Qt.AlignmentFlag.AlignCenter, label)

    def _paint_help(self, painter: QPainter) -> None:
        font = QFont(self.font())
        font.setPointSizeF(font.pointSizeF() * 1.15)
        painter.setFont(font)
        metrics = QFontMetrics(font)
        line_height = metrics.height() + 4
        width = max(metrics.horizontalAdvance(line) for line in HELP_LINES) + 32
        height = line_height * len(HELP_LINES) + 24
        center = self._controller.image_rect.center
        box = QRectF(center.x - width / 2.0, center.y - height / 2.0, width, height)

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(OVERLAY_BG_COLOR)
        painter.drawRoundedRect(box, 8.0, 8.0)
        painter.setPen(OVERLAY_TEXT_COLOR)
        for i, line in enumerate(HELP_LINES):
            line_rect = QRectF(box.left(), box.top() + 12 + i * line_height, width, line_height)
            painter.drawText(line_rect, Qt.AlignmentFlag.AlignCenter, line)

    def _paint_brush_preview(self, painter: QPainter, pos: Pos) -> None:
        brush = self._controller.brush_preview(pos)
        if brush is None:
            return
        center = _qpoint(brush.center)
        if brush.ring_color is not None:
            painter.setPen(QPen(_qcolor(brush.ring_color), 1.0))
            painter.setBrush(_qcolor(brush.fill_color))
            painter.drawEllipse(center, brush.outer_radius, brush.outer_radius)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(_qcolor(brush.color))
            painter.drawEllipse(center, brush.radius, brush.radius)
            return
        painter.setPen(QPen(_qcolor(brush.color), 1.0))
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(center, brush.radius, brush.radius)

    # ─── Pointer Input ────────────────────────────────────────────────────

    def _pointer_event(self, event: QMouseEvent, phase: PointerPhase) -> None:
        pos = Pos(event.position().x(), event.position().y())
        self._pointer = pos
        cursor = self._controller.handle_pointer(pos, phase)
        self.setCursor(_CURSORS[cursor])
        self.refresh()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        self.setFocus()
        self._button_down = True
        self._pointer_event(event, PointerPhase.PRESSED)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        phase = PointerPhase.HELD if self._button_down else PointerPhase.HOVER
        self._pointer_event(event, phase)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() != Qt.MouseButton.LeftButton or not self._button_down:
            super().mouseReleaseEvent(event)
            return
        self._button_down = False
        self._pointer_event(event, PointerPhase.RELEASED)

    def leaveEvent(self, event) -> None:
        self._pointer = None
        self.update()
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Mouse wheel changes the brush size."""
        delta = event.angleDelta().y()
        if delta == 0:
            event.ignore()
            return
        self._controller.adjust_size(delta / WHEEL_STEP)
        event.accept()
        self.refresh()

    # ─── Keyboard Input ───────────────────────────────────────────────────

    def shortcut_for(self, event: QKeyEvent) -> Optional[Shortcut]:
        key = event.key()
        modifiers = event.modifiers()
        ctrl_shift = Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.ShiftModifier

        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            return Shortcut.ENTER
        if key == Qt.Key.Key_Escape:
            return Shortcut.ESCAPE
        if (modifiers & ctrl_shift) == ctrl_shift:
            if key == Qt.Key.Key_C:
                return Shortcut.COPY
            if key == Qt.Key.Key_Z:
                return Shortcut.REDO
        if event.matches(QKeySequence.StandardKey.Copy):
            return Shortcut.COPY
        if event.matches(QKeySequence.StandardKey.Save):
            return Shortcut.SAVE
        if event.matches(QKeySequence.StandardKey.Redo):
            return Shortcut.REDO
        if event.matches(QKeySequence.StandardKey.Undo):
            return Shortcut.UNDO
        return None

    def keyPressEvent(self, event: QKeyEvent) -> None:
        shortcut = self.shortcut_for(event)
        if shortcut is None:
            super().keyPressEvent(event)
            return
        self._logger.debug(f"Shortcut {shortcut.name}")
        self._controller.handle_shortcut(shortcut)
        event.accept()
        self.refresh()
