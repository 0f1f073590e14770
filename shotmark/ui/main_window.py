"""
Editor window for Shotmark.

A frameless full-screen window holding one EditorWidget. Closing the
window (Escape, copy, save) ends the editing session.
"""

from typing import Optional

import numpy as np
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QCursor, QGuiApplication
from PySide6.QtWidgets import QMainWindow, QWidget

from shotmark.editor.editor_widget import EditorWidget
from shotmark.services.clipboard_service import ClipboardService
from shotmark.services.config_service import ConfigService
from shotmark.services.logging_service import get_logger


class EditorWindow(QMainWindow):
    """
    Top-level editor window.

    Signals:
        closed: Emitted once when the window has closed.
    """

    closed = Signal()

    def __init__(
        self,
        image: np.ndarray,
        config_service: Optional[ConfigService] = None,
        clipboard: Optional[ClipboardService] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        """
        Initialize the EditorWindow.

        Args:
            image: Captured RGBA8 image to edit.
            config_service: Optional config service for defaults and save folder.
            clipboard: Clipboard sink; built from config when omitted.
            parent: Optional parent widget.
        """
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config_service

        self._editor = EditorWidget(image, config_service, clipboard, self)
        self.setCentralWidget(self._editor)
        self._editor.close_requested.connect(self.close)

        self._setup_window(image)
        self._logger.info("EditorWindow initialized")

    def _setup_window(self, image: np.ndarray) -> None:
        height, width = image.shape[:2]
        self.setWindowTitle(f"Shotmark - {width}×{height}")
        self.setWindowFlag(Qt.WindowType.FramelessWindowHint)
        self.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint)
        self.setStyleSheet("QMainWindow { background-color: #1a1a1a; }")

    @property
    def editor(self) -> EditorWidget:
        return self._editor

    def open(self) -> None:
        """Show full screen on the screen under the cursor and take focus."""
        screen = QGuiApplication.screenAt(QCursor.pos()) or QGuiApplication.primaryScreen()
        if screen is not None:
            self.setGeometry(screen.geometry())
        self.showFullScreen()
        self.raise_()
        self.activateWindow()
        self._editor.canvas.setFocus()

    def closeEvent(self, event) -> None:
        self._logger.info("EditorWindow closing")
        self._editor.controller.close()
        event.accept()
        self.closed.emit()
