"""
Capture service for Shotmark.

Two providers deliver the initial screenshot:
- PortalCaptureProvider asks xdg-desktop-portal's Screenshot interface over
  the session D-Bus. This works on Wayland and lets the compositor show its
  own region picker in interactive mode.
- ScreenGrabCaptureProvider grabs the screen under the cursor with Qt. It is
  used on X11 when the portal is missing.

Both return a CapturedImage holding an RGBA8 numpy buffer.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

import numpy as np
from PySide6.QtCore import QEventLoop, QObject, QUrl, SLOT, Slot
from PySide6.QtDBus import QDBusConnection, QDBusInterface, QDBusMessage
from PySide6.QtGui import QCursor, QGuiApplication

from shotmark.core.errors import CaptureCancelled, CaptureFailed
from shotmark.services.image_codec import from_qimage, load_image
from shotmark.services.logging_service import get_logger

PORTAL_SERVICE = "org.freedesktop.portal.Desktop"
PORTAL_PATH = "/org/freedesktop/portal/desktop"
SCREENSHOT_INTERFACE = "org.freedesktop.portal.Screenshot"
REQUEST_INTERFACE = "org.freedesktop.portal.Request"

# org.freedesktop.portal.Request::Response codes
RESPONSE_SUCCESS = 0
RESPONSE_CANCELLED = 1


class CaptureMode(Enum):
    INTERACTIVE_REGION = auto()
    FULL_SCREEN = auto()


@dataclass
class CapturedImage:
    """
    A captured screen image.

    Attributes:
        pixels: RGBA8 array of shape (height, width, 4).
        uri: Where the image came from (portal file URI or "screen:<name>").
    """

    pixels: np.ndarray = field(repr=False)
    uri: str

    @property
    def size(self):
        return self.pixels.shape[1], self.pixels.shape[0]


class PortalCaptureProvider(QObject):
    """Screenshot via org.freedesktop.portal.Screenshot."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._loop: Optional[QEventLoop] = None
        self._response: Optional[list] = None

    def request_capture(self, mode: CaptureMode) -> CapturedImage:
        """
        Ask the portal for a screenshot and wait for the user to finish.

        Raises:
            CaptureCancelled: If the user dismissed the portal dialog.
            CaptureFailed: If the bus, portal or file load fails.
        """
        bus = QDBusConnection.sessionBus()
        if not bus.isConnected():
            raise CaptureFailed("session D-Bus is not available")

        token = f"shotmark{uuid.uuid4().hex[:12]}"
        sender = bus.baseService().lstrip(":").replace(".", "_")
        handle = f"{PORTAL_PATH}/request/{sender}/{token}"

        # Subscribe before calling so a fast response cannot be missed
        self._subscribe(bus, handle)

        interface = QDBusInterface(PORTAL_SERVICE, PORTAL_PATH, SCREENSHOT_INTERFACE, bus)
        if not interface.isValid():
            self._unsubscribe(bus, handle)
            raise CaptureFailed(f"{PORTAL_SERVICE} is not available: {bus.lastError().message()}")

        options = {
            "handle_token": token,
            "modal": True,
            "interactive": mode is CaptureMode.INTERACTIVE_REGION,
        }
        self._logger.info(f"Requesting portal screenshot (interactive={options['interactive']})")
        reply = interface.call("Screenshot", "", options)
        if reply.type() == QDBusMessage.MessageType.ErrorMessage:
            self._unsubscribe(bus, handle)
            raise CaptureFailed(f"portal error: {reply.errorMessage()}")

        returned = _object_path(reply.arguments()[0]) if reply.arguments() else handle
        if returned != handle:
            # Older portals ignore handle_token
            self._unsubscribe(bus, handle)
            handle = returned
            self._subscribe(bus, handle)

        try:
            if self._response is None:
                self._loop = QEventLoop()
                self._loop.exec()
        finally:
            self._loop = None
            self._unsubscribe(bus, handle)

        code, results = self._response or (None, None)
        self._response = None
        if code == RESPONSE_CANCELLED:
            raise CaptureCancelled("screenshot cancelled")
        if code != RESPONSE_SUCCESS:
            raise CaptureFailed(f"portal request failed with response {code}")

        uri = str(results.get("uri", "")) if isinstance(results, dict) else ""
        if not uri:
            raise CaptureFailed("portal response has no image uri")
        path = QUrl(uri).toLocalFile()
        if not path:
            raise CaptureFailed(f"invalid portal file uri: {uri}")

        try:
            pixels = load_image(path)
        except OSError as e:
            raise CaptureFailed(f"io error: {e}") from e
        self._logger.info(f"Portal capture loaded: {pixels.shape[1]}x{pixels.shape[0]} from {uri}")
        return CapturedImage(pixels, uri)

    def _subscribe(self, bus: QDBusConnection, handle: str) -> None:
        bus.connect(
            PORTAL_SERVICE, handle, REQUEST_INTERFACE, "Response",
            self, SLOT("_on_response(QDBusMessage)"),
        )

    def _unsubscribe(self, bus: QDBusConnection, handle: str) -> None:
        bus.disconnect(
            PORTAL_SERVICE, handle, REQUEST_INTERFACE, "Response",
            self, SLOT("_on_response(QDBusMessage)"),
        )

    @Slot(QDBusMessage)
    def _on_response(self, message: QDBusMessage) -> None:
        args = message.arguments()
        code = int(args[0]) if args else None
        results = args[1] if len(args) > 1 else {}
        self._logger.debug(f"Portal response {code}")
        self._response = [code, results]
        if self._loop is not None:
            self._loop.quit()


def _object_path(value) -> str:
    """Object paths come back either as str or as QDBusObjectPath."""
    return value.path() if hasattr(value, "path") else str(value)


def portal_has_owner(service: str = PORTAL_SERVICE) -> bool:
    """
    Ask the bus daemon whether some process owns the portal name.

    Raises:
        CaptureFailed: If the session bus cannot be reached.
    """
    bus = QDBusConnection.sessionBus()
    if not bus.isConnected():
        raise CaptureFailed("session D-Bus is not available")
    daemon = QDBusInterface("org.freedesktop.DBus", "/org/freedesktop/DBus", "org.freedesktop.DBus", bus)
    reply = daemon.call("NameHasOwner", service)
    if reply.type() == QDBusMessage.MessageType.ErrorMessage:
        raise CaptureFailed(f"session bus error: {reply.errorMessage()}")
    args = reply.arguments()
    return bool(args[0]) if args else False


class ScreenGrabCaptureProvider:
    """Full-screen grab of the screen containing the cursor."""

    def __init__(self) -> None:
        self._logger = get_logger(__name__)

    def request_capture(self, mode: CaptureMode) -> CapturedImage:
        if QGuiApplication.instance() is None:
            raise CaptureFailed("screen grab needs a running Qt application")

        cursor_pos = QCursor.pos()
        target_screen = QGuiApplication.screenAt(cursor_pos)
        if target_screen is None:
            target_screen = QGuiApplication.primaryScreen()
            if target_screen is None:
                raise CaptureFailed("no screen available for capture")
            self._logger.warning(f"Could not find cursor screen, using primary: {target_screen.name()}")

        # grabWindow(0) captures the entire screen, not a specific window
        image = target_screen.grabWindow(0).toImage()
        if image.isNull():
            raise CaptureFailed(f"could not grab screen {target_screen.name()}")
        self._logger.info(
            f"Screen grab captured: {image.width()}x{image.height()} from {target_screen.name()}"
        )
        return CapturedImage(from_qimage(image), f"screen:{target_screen.name()}")


class CaptureService:
    """
    Tries capture providers in order until one yields an image.

    A cancelled portal dialog stops the chain: the user asked to abort.
    """

    def __init__(self, providers: Optional[List] = None) -> None:
        self._logger = get_logger(__name__)
        if providers is None:
            providers = [PortalCaptureProvider()]
            if QGuiApplication.platformName() != "wayland":
                providers.append(ScreenGrabCaptureProvider())
        self._providers = providers

    def capture(self, mode: CaptureMode, delay_ms: int = 0) -> CapturedImage:
        """
        Capture the screen.

        Args:
            mode: Interactive region pick or whole screen.
            delay_ms: Wait this long before asking.

        Raises:
            CaptureFailed: When every provider failed (or the user cancelled).
        """
        if delay_ms > 0:
            self._logger.debug(f"Waiting {delay_ms} ms before capture")
            time.sleep(delay_ms / 1000.0)

        errors: List[str] = []
        for provider in self._providers:
            try:
                return provider.request_capture(mode)
            except CaptureCancelled:
                raise
            except CaptureFailed as e:
                self._logger.warning(f"{type(provider).__name__} failed: {e}")
                errors.append(str(e))
        raise CaptureFailed("; ".join(errors) or "no capture provider available")
