"""
Clipboard service for Shotmark.

Images are handed to external helper programs so that the clipboard
content outlives the editor process: wl-copy on Wayland sessions and xclip
for X11/XWayland clients. When no helper takes the image and a Qt
application is running, the Qt clipboard is used as a last resort.
"""

import os
import subprocess
from typing import List, Optional, Sequence, Tuple

from PySide6.QtGui import QGuiApplication, QImage

from shotmark.core.errors import ClipboardUnavailable
from shotmark.services.logging_service import get_logger

DEFAULT_HELPERS = ("wl-copy", "xclip")
XCLIP_TIMEOUT_S = 5.0


def is_wayland_session() -> bool:
    return bool(os.environ.get("WAYLAND_DISPLAY")) or os.environ.get("XDG_SESSION_TYPE") == "wayland"


class ClipboardService:
    """
    Clipboard sink that tries each configured helper for every copy.

    Every helper that accepts some encoding counts, so a Wayland session
    can end up with PNG on wl-copy and BMP on xclip.
    """

    def __init__(self, helpers: Optional[Sequence[str]] = None, use_qt_fallback: bool = True) -> None:
        self._logger = get_logger(__name__)
        self._helpers: List[str] = list(helpers) if helpers is not None else list(DEFAULT_HELPERS)
        self._use_qt_fallback = use_qt_fallback

    def copy_image(
        self,
        data: bytes,
        mime_type: str,
        fallbacks: Sequence[Tuple[bytes, str]] = (),
    ) -> str:
        """
        Put encoded image bytes on the clipboard.

        Each helper is offered the primary encoding first and then every
        fallback encoding until it accepts one. The Qt clipboard is only
        used once every helper refused every encoding.

        Args:
            data: Encoded image (PNG or BMP).
            mime_type: MIME type advertised to other applications.
            fallbacks: (data, mime_type) pairs to offer a helper that
                refused the primary encoding.

        Returns:
            The methods that succeeded, e.g. "wl-copy image/png + xclip image/bmp".

        Raises:
            ClipboardUnavailable: If nothing accepted the image.
        """
        encodings = [(data, mime_type), *fallbacks]
        methods: List[str] = []
        errors: List[str] = []

        for helper in self._helpers:
            if helper == "wl-copy":
                if not is_wayland_session():
                    continue
                copy = self._copy_wl
            elif helper == "xclip":
                copy = self._copy_xclip
            else:
                errors.append(f"unknown clipboard helper '{helper}'")
                continue

            for encoded, mime in encodings:
                try:
                    copy(encoded, mime)
                except ClipboardUnavailable as e:
                    self._logger.debug(f"{helper} refused {mime}: {e}")
                    errors.append(str(e))
                    continue
                methods.append(f"{helper} {mime}")
                break

        if methods:
            method = " + ".join(methods)
            self._logger.info(f"Copied image via {method}")
            return method

        if self._use_qt_fallback:
            for encoded, _ in encodings:
                if self._copy_qt(encoded):
                    return "qt"

        raise ClipboardUnavailable("; ".join(errors) or "no clipboard helper available")

    def _copy_wl(self, data: bytes, mime_type: str) -> None:
        """Start wl-copy in the foreground; it keeps serving the data after we exit."""
        try:
            proc = subprocess.Popen(
                ["wl-copy", "--type", mime_type, "--foreground"],
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise ClipboardUnavailable(f"wl-copy: {e.strerror or e}") from e
        try:
            proc.stdin.write(data)
            proc.stdin.close()
        except OSError as e:
            proc.kill()
            raise ClipboardUnavailable(f"wl-copy: {e.strerror or e}") from e

    def _copy_xclip(self, data: bytes, mime_type: str) -> None:
        try:
            result = subprocess.run(
                ["xclip", "-selection", "clipboard", "-t", mime_type, "-i"],
                input=data,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=XCLIP_TIMEOUT_S,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ClipboardUnavailable(f"xclip: {e}") from e
        if result.returncode != 0:
            raise ClipboardUnavailable(f"xclip exited with status {result.returncode}")

    def _copy_qt(self, data: bytes) -> bool:
        app = QGuiApplication.instance()
        if app is None:
            return False
        image = QImage.fromData(data)
        if image.isNull():
            return False
        QGuiApplication.clipboard().setImage(image)
        self._logger.info("Copied image via Qt clipboard")
        return True
