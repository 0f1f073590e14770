"""
Application core for Shotmark.

This module contains the AppCore class which is responsible for:
- Initializing the services (config, capture, clipboard)
- Applying global styling (dark theme)
- Running the capture-to-editor flow and the capture-to-file flow

This is the central orchestration point for the application.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication

from shotmark.core.capture_service import CapturedImage, CaptureMode, CaptureService
from shotmark.services.clipboard_service import ClipboardService
from shotmark.services.config_service import ConfigService
from shotmark.services.image_codec import save_image
from shotmark.services.logging_service import get_logger
from shotmark.ui.main_window import EditorWindow


class AppCore:
    """
    Central application core that wires together all components.

    The capture flow:
    1. The CLI asks for an interactive or full-screen capture
    2. CaptureService asks the portal (falling back to a Qt screen grab)
    3. The image is either saved straight to a path or opened in the editor
    """

    def __init__(
        self,
        app: QApplication,
        config_service: Optional[ConfigService] = None,
        capture_service: Optional[CaptureService] = None,
    ) -> None:
        """
        Initialize the application core.

        Args:
            app: The QApplication instance.
            config_service: Configuration; loaded from the default path when omitted.
            capture_service: Capture providers; the default chain when omitted.
        """
        self._app = app
        self._logger = get_logger(__name__)
        self._logger.info("Initializing Shotmark application core...")

        self._config_service = config_service or ConfigService()
        self._capture_service = capture_service or CaptureService()
        self._clipboard = ClipboardService(self._config_service.clipboard_helpers)
        self._editor_window: Optional[EditorWindow] = None

        self._apply_dark_theme()

    def _apply_dark_theme(self) -> None:
        """
        Apply a dark color palette to the application.

        Uses Qt's QPalette for a native-looking dark theme.
        """
        self._logger.debug("Applying dark theme...")

        palette = QPalette()

        # Window and base colors
        palette.setColor(QPalette.ColorRole.Window, QColor(45, 45, 45))
        palette.setColor(QPalette.ColorRole.WindowText, QColor(220, 220, 220))
        palette.setColor(QPalette.ColorRole.Base, QColor(35, 35, 35))
        palette.setColor(QPalette.ColorRole.AlternateBase, QColor(50, 50, 50))

        # Text colors
        palette.setColor(QPalette.ColorRole.Text, QColor(220, 220, 220))
        palette.setColor(QPalette.ColorRole.BrightText, QColor(255, 255, 255))

        # Button colors
        palette.setColor(QPalette.ColorRole.Button, QColor(55, 55, 55))
        palette.setColor(QPalette.ColorRole.ButtonText, QColor(220, 220, 220))

        # Highlight colors
        palette.setColor(QPalette.ColorRole.Highlight, QColor(80, 120, 180))
        palette.setColor(QPalette.ColorRole.HighlightedText, QColor(255, 255, 255))

        palette.setColor(QPalette.ColorRole.ToolTipBase, QColor(60, 60, 60))
        palette.setColor(QPalette.ColorRole.ToolTipText, QColor(220, 220, 220))

        # Disabled state colors
        for role in (
            QPalette.ColorRole.WindowText,
            QPalette.ColorRole.Text,
            QPalette.ColorRole.ButtonText,
        ):
            palette.setColor(QPalette.ColorGroup.Disabled, role, QColor(127, 127, 127))

        self._app.setPalette(palette)
        self._app.setStyleSheet("""
            QToolTip {
                background-color: #3d3d3d;
                color: #dcdcdc;
                border: 1px solid #5a5a5a;
                padding: 4px;
            }
            QLineEdit {
                background-color: rgba(30, 30, 30, 230);
                color: #eee;
                border: 1px solid #4a90e2;
                border-radius: 4px;
                padding: 2px 6px;
            }
        """)

        self._logger.info("Dark theme applied")

    # ─── Capture Flows ────────────────────────────────────────────────────

    def capture(self, mode: CaptureMode, delay_ms: Optional[int] = None) -> CapturedImage:
        """
        Capture the screen; CaptureFailed propagates to the caller.

        Args:
            mode: Interactive region or full screen.
            delay_ms: Delay before capturing; the configured delay when None.
        """
        if delay_ms is None:
            delay_ms = self._config_service.capture_delay_ms
        captured = self._capture_service.capture(mode, delay_ms)
        width, height = captured.size
        self._logger.info(f"Capture completed: {width}x{height} ({captured.uri})")
        return captured

    def save_capture(self, captured: CapturedImage, path: Path) -> None:
        """Write a capture to path unedited (raises SaveFailed)."""
        save_image(captured.pixels, Path(path))

    def open_editor(self, captured: CapturedImage) -> EditorWindow:
        """Open the editor window with the captured image."""
        self._logger.debug("Opening editor with captured image")
        self._editor_window = EditorWindow(captured.pixels, self._config_service, self._clipboard)
        self._editor_window.closed.connect(self._on_editor_closed)
        self._editor_window.open()
        self._logger.info("Editor opened with captured image")
        return self._editor_window

    def _on_editor_closed(self) -> None:
        self._logger.info("Editor closed, quitting")
        self._app.quit()

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def config(self) -> ConfigService:
        """Get the configuration service."""
        return self._config_service

    @property
    def editor_window(self) -> Optional[EditorWindow]:
        return self._editor_window
