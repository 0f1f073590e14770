"""
Editor widget for Shotmark - the editor UI around the canvas.

The canvas fills the widget. Floating chrome is placed on top of it at the
rectangles computed by EditorController.chrome_layout():
- Palette buttons (tools and Undo/Copy/Save/Clear) next to the selection
- Controls panel with colour, size and the export status line
- Inline text entry while the Text tool is placing text
"""

from pathlib import Path
from typing import Dict, Optional

import numpy as np
from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QIcon, QKeyEvent, QPainter, QPen, QPixmap, QPolygonF
from PySide6.QtWidgets import (
    QColorDialog,
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QSlider,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from shotmark.editor.controller import MAX_SIZE, MIN_SIZE, EditorController
from shotmark.editor.editor_canvas import EditorCanvas
from shotmark.editor.geometry import Rect
from shotmark.editor.tools import PALETTE, Command, PaletteEntry, Tool
from shotmark.services.clipboard_service import ClipboardService
from shotmark.services.config_service import ConfigService
from shotmark.services.image_codec import encode_image, save_image
from shotmark.services.logging_service import get_logger

SAVE_FILTERS = "PNG Image (*.png);;JPEG Image (*.jpg *.jpeg);;BMP Image (*.bmp)"
ICON_SIZE = 20


class ColorButton(QPushButton):
    """Button that shows a color and opens color picker on click."""

    color_changed = Signal(QColor)

    def __init__(self, color: QColor = QColor(255, 0, 0), parent=None):
        super().__init__(parent)
        self._color = color
        self.setFixedSize(24, 24)
        self.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self.clicked.connect(self._on_click)
        self._update_style()

    @property
    def color(self) -> QColor:
        return self._color

    @color.setter
    def color(self, value: QColor) -> None:
        self._color = value
        self._update_style()

    def _update_style(self) -> None:
        self.setStyleSheet(f"""
            QPushButton {{
                background-color: {self._color.name()};
                border: 2px solid #555;
                border-radius: 4px;
            }}
            QPushButton:hover {{
                border-color: #888;
            }}
        """)

    def _on_click(self) -> None:
        color = QColorDialog.getColor(
            self._color, self, "Select Color", QColorDialog.ColorDialogOption.ShowAlphaChannel
        )
        if color.isValid():
            self._color = color
            self._update_style()
            self.color_changed.emit(color)


class TextEntry(QLineEdit):
    """Inline text box; Escape cancels instead of being swallowed."""

    cancelled = Signal()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        if event.key() == Qt.Key.Key_Escape:
            self.cancelled.emit()
            event.accept()
            return
        super().keyPressEvent(event)


class ControlsPanel(QFrame):
    """Colour, size and status for the current tool."""

    color_changed = Signal(tuple)
    size_changed = Signal(float)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._updating = False
        self._setup_ui()

    def _setup_ui(self) -> None:
        self.setStyleSheet("""
            QFrame {
                background-color: rgba(30, 30, 30, 220);
                border: 1px solid #3a3a3a;
                border-radius: 6px;
            }
            QLabel {
                color: #ddd;
                font-size: 11px;
                border: none;
                background: transparent;
            }
        """)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 4, 8, 4)
        layout.setSpacing(2)

        row = QHBoxLayout()
        row.setSpacing(8)
        self._color_btn = ColorButton()
        self._color_btn.color_changed.connect(self._on_color_changed)
        row.addWidget(self._color_btn)

        self._size_slider = QSlider(Qt.Orientation.Horizontal)
        self._size_slider.setRange(int(MIN_SIZE), int(MAX_SIZE))
        self._size_slider.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        self._size_slider.valueChanged.connect(self._on_size_changed)
        row.addWidget(self._size_slider, 1)

        self._size_label = QLabel()
        self._size_label.setFixedWidth(28)
        row.addWidget(self._size_label)
        layout.addLayout(row)

        self._status = QLabel()
        self._status.setVisible(False)
        layout.addWidget(self._status)

    def sync(self, controller: EditorController) -> None:
        """Show the controller's colour, size and status without echoing signals back."""
        self._updating = True
        self._color_btn.color = QColor(*controller.color)
        self._size_slider.setValue(round(controller.size))
        self._size_label.setText(f"{controller.size:.0f}")
        status = controller.status
        self._status.setVisible(bool(status))
        self._status.setText(status or "")
        self._updating = False

    def _on_color_changed(self, color: QColor) -> None:
        if not self._updating:
            self.color_changed.emit((color.red(), color.green(), color.blue(), color.alpha()))

    def _on_size_changed(self, value: int) -> None:
        self._size_label.setText(str(value))
        if not self._updating:
            self.size_changed.emit(float(value))


def _create_tool_icon(entry: PaletteEntry, color: QColor = QColor(220, 220, 220)) -> QIcon:
    """Draw a palette icon programmatically."""
    size = ICON_SIZE
    pixmap = QPixmap(size, size)
    pixmap.fill(Qt.GlobalColor.transparent)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    pen = QPen(color, 1.6)
    pen.setCapStyle(Qt.PenCapStyle.RoundCap)
    painter.setPen(pen)
    painter.setBrush(Qt.BrushStyle.NoBrush)

    m = 3.0
    tool = entry.tool
    command = entry.command

    if tool is Tool.SELECT:
        # Crop corners
        painter.drawLine(QPointF(m, m + 5), QPointF(m, m))
        painter.drawLine(QPointF(m, m), QPointF(m + 5, m))
        painter.drawLine(QPointF(size - m - 5, size - m), QPointF(size - m, size - m))
        painter.drawLine(QPointF(size - m, size - m), QPointF(size - m, size - m - 5))
    elif tool is Tool.PENCIL:
        painter.drawPolyline(QPolygonF([QPointF(m, 14), QPointF(7, 8), QPointF(11, 13), QPointF(size - m, 5)]))
    elif tool is Tool.LINE:
        painter.drawLine(QPointF(m, size - m), QPointF(size - m, m))
    elif tool is Tool.ARROW:
        painter.drawLine(QPointF(m, size - m), QPointF(size - m, m))
        painter.setBrush(color)
        painter.drawPolygon(QPolygonF([QPointF(size - m, m), QPointF(size - m - 6, m + 1), QPointF(size - m - 1, m + 6)]))
    elif tool is Tool.RECT:
        painter.drawRect(QRectF(m, m + 2, size - 2 * m, size - 2 * m - 4))
    elif tool is Tool.CIRCLE:
        painter.drawEllipse(QRectF(m, m, size - 2 * m, size - 2 * m))
    elif tool in (Tool.MARKER, Tool.MARKER_LINE):
        marker = QPen(QColor(255, 230, 80, 170), 5)
        marker.setCapStyle(Qt.PenCapStyle.FlatCap)
        painter.setPen(marker)
        if tool is Tool.MARKER:
            painter.drawPolyline(QPolygonF([QPointF(m, 13), QPointF(9, 8), QPointF(size - m, 10)]))
        else:
            painter.drawLine(QPointF(m, 10), QPointF(size - m, 10))
    elif tool is Tool.CIRCLE_COUNT:
        painter.setBrush(color)
        painter.drawEllipse(QRectF(m, m, size - 2 * m, size - 2 * m))
        painter.setPen(QColor(40, 40, 40))
        font = painter.font()
        font.setPixelSize(10)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(pixmap.rect(), Qt.AlignmentFlag.AlignCenter, "1")
    elif tool is Tool.TEXT:
        font = painter.font()
        font.setPixelSize(15)
        font.setBold(True)
        painter.setFont(font)
        painter.drawText(pixmap.rect(), Qt.AlignmentFlag.AlignCenter, "T")
    elif tool is Tool.PIXELATE:
        for i in range(3):
            for j in range(3):
                if (i + j) % 2 == 0:
                    painter.fillRect(QRectF(m + i * 5, m + j * 5, 4, 4), color)
    elif tool is Tool.BLUR:
        for radius, alpha in ((7.0, 60), (5.0, 120), (3.0, 220)):
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QColor(color.red(), color.green(), color.blue(), alpha))
            painter.drawEllipse(QPointF(size / 2, size / 2), radius, radius)
    elif command is Command.UNDO:
        painter.drawArc(QRectF(5, 5, 11, 10), 90 * 16, 200 * 16)
        painter.drawPolyline(QPolygonF([QPointF(4, 3), QPointF(9, 5), QPointF(6, 9)]))
    elif command is Command.COPY:
        painter.drawRect(QRectF(m, m + 4, 9, 10))
        painter.drawRect(QRectF(m + 5, m, 9, 10))
    elif command is Command.SAVE:
        painter.drawRect(QRectF(m, m, size - 2 * m, size - 2 * m))
        painter.drawRect(QRectF(m + 3, m, 8, 5))
        painter.drawRect(QRectF(m + 3, m + 9, 8, 5))
    elif command is Command.CLEAR:
        painter.drawLine(QPointF(m + 2, m + 2), QPointF(size - m - 2, size - m - 2))
        painter.drawLine(QPointF(size - m - 2, m + 2), QPointF(m + 2, size - m - 2))

    painter.end()
    return QIcon(pixmap)


class EditorWidget(QWidget):
    """
    The complete editor for one capture.

    Signals:
        close_requested: The session is over (copied, saved or dismissed).
    """

    close_requested = Signal()

    def __init__(
        self,
        image: np.ndarray,
        config: Optional[ConfigService] = None,
        clipboard: Optional[ClipboardService] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config
        if clipboard is None:
            helpers = config.clipboard_helpers if config is not None else None
            clipboard = ClipboardService(helpers)

        self._controller = EditorController(
            image,
            clipboard=clipboard,
            encode=encode_image,
            save_file=save_image,
            ask_save_path=self._ask_save_path,
            config=config,
        )

        self._buttons: Dict[PaletteEntry, QToolButton] = {}
        self._setup_ui()
        self._connect_signals()
        self._sync_chrome()

    @property
    def controller(self) -> EditorController:
        return self._controller

    @property
    def canvas(self) -> EditorCanvas:
        return self._canvas

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self._canvas = EditorCanvas(self._controller)
        layout.addWidget(self._canvas)

        # Chrome widgets float on the canvas and share its coordinates
        for entry in PALETTE:
            btn = QToolButton(self._canvas)
            btn.setIcon(_create_tool_icon(entry))
            btn.setToolTip(entry.label)
            btn.setCheckable(entry.tool is not None)
            btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
            btn.setStyleSheet("""
                QToolButton {
                    background-color: rgba(30, 30, 30, 220);
                    border: 1px solid #3a3a3a;
                    border-radius: 6px;
                }
                QToolButton:hover {
                    background-color: rgba(70, 70, 70, 230);
                }
                QToolButton:checked {
                    background-color: rgba(74, 144, 226, 0.6);
                }
            """)
            btn.clicked.connect(lambda checked=False, e=entry: self._on_palette(e))
            btn.hide()
            self._buttons[entry] = btn

        self._controls = ControlsPanel(self._canvas)
        self._controls.hide()

        self._text_entry = TextEntry(self._canvas)
        self._text_entry.setPlaceholderText("Type text, Enter to place")
        self._text_entry.hide()

    def _connect_signals(self) -> None:
        self._canvas.state_changed.connect(self._sync_chrome)
        self._canvas.close_requested.connect(self.close_requested)
        self._controls.color_changed.connect(self._on_color_changed)
        self._controls.size_changed.connect(self._on_size_changed)
        self._text_entry.textEdited.connect(self._controller.set_text)
        self._text_entry.returnPressed.connect(self._on_text_committed)
        self._text_entry.cancelled.connect(self._on_text_cancelled)

    # ─── Chrome ───────────────────────────────────────────────────────────

    def _sync_chrome(self) -> None:
        """Place and update floating widgets from the controller state."""
        layout = self._controller.chrome_layout()
        placed = {entry for entry, _ in layout.buttons}

        for entry, rect in layout.buttons:
            btn = self._buttons[entry]
            btn.setGeometry(_to_qrect(rect))
            if entry.tool is not None:
                btn.setChecked(entry.tool is self._controller.tool)
            btn.show()
        for entry, btn in self._buttons.items():
            if entry not in placed:
                btn.hide()

        if layout.controls is not None:
            self._controls.sync(self._controller)
            self._controls.setGeometry(_to_qrect(layout.controls))
            self._controls.show()
        else:
            self._controls.hide()

        if layout.text_editor is not None:
            self._text_entry.setGeometry(_to_qrect(layout.text_editor))
            if not self._text_entry.isVisible():
                self._text_entry.clear()
                self._text_entry.show()
                self._text_entry.setFocus()
        elif self._text_entry.isVisible():
            self._text_entry.hide()
            self._canvas.setFocus()

        self._controller.set_ui_rects(layout.rects())

    def _on_palette(self, entry: PaletteEntry) -> None:
        self._logger.debug(f"Palette: {entry.label}")
        self._controller.activate(entry)
        self._canvas.refresh()

    def _on_color_changed(self, color: tuple) -> None:
        self._controller.set_color(color)
        self._canvas.refresh()

    def _on_size_changed(self, size: float) -> None:
        self._controller.set_size(size)
        self._canvas.refresh()

    def _on_text_committed(self) -> None:
        self._controller.set_text(self._text_entry.text())
        self._controller.commit_text()
        self._canvas.refresh()

    def _on_text_cancelled(self) -> None:
        self._controller.cancel_text()
        self._canvas.refresh()

    # ─── Save Dialog ──────────────────────────────────────────────────────

    def _ask_save_path(self) -> Optional[str]:
        if self._config is not None:
            folder = Path(self._config.default_save_folder).expanduser()
            name = self._config.default_file_name
        else:
            folder = Path.home() / "Pictures"
            name = "screenshot.png"

        path, _ = QFileDialog.getSaveFileName(self, "Save Screenshot", str(folder / name), SAVE_FILTERS)
        return path or None


def _to_qrect(rect: Rect):
    return QRectF(rect.min_x, rect.min_y, rect.width, rect.height).toAlignedRect()
