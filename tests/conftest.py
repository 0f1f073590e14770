"""Shared fixtures: pixel buffers and an editor controller wired to fakes."""

import os
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pytest

from shotmark.core.errors import ClipboardUnavailable, SaveFailed
from shotmark.editor.controller import EditorController
from shotmark.editor.geometry import Pos, Rect


def make_solid(width: int, height: int, color=(10, 20, 30, 255)) -> np.ndarray:
    img = np.empty((height, width, 4), dtype=np.uint8)
    img[:, :] = color
    return img


def make_gradient(width: int, height: int) -> np.ndarray:
    """Every pixel distinct enough that crops and blurs are easy to check."""
    ys, xs = np.mgrid[0:height, 0:width]
    img = np.empty((height, width, 4), dtype=np.uint8)
    img[..., 0] = (xs * 7) % 256
    img[..., 1] = (ys * 11) % 256
    img[..., 2] = (xs + ys) % 256
    img[..., 3] = 255
    return img


class FakeClipboard:
    """Records copies; refuses MIME types listed in reject."""

    def __init__(self, reject: Tuple[str, ...] = ()) -> None:
        self.reject = reject
        self.copies: List[Tuple[bytes, str]] = []

    def copy_image(self, data: bytes, mime_type: str, fallbacks=()) -> str:
        for encoded, mime in [(data, mime_type), *fallbacks]:
            if mime not in self.reject:
                self.copies.append((encoded, mime))
                return "fake"
        raise ClipboardUnavailable(f"{mime_type} refused")


class FakeFileSink:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.saved: List[Tuple[np.ndarray, Path]] = []

    def __call__(self, pixels: np.ndarray, path: Path) -> None:
        if self.fail:
            raise SaveFailed(f"{path}: read-only file system")
        self.saved.append((pixels.copy(), path))


class FakePicker:
    def __init__(self, answer: Optional[str]) -> None:
        self.answer = answer
        self.calls = 0

    def __call__(self) -> Optional[str]:
        self.calls += 1
        return self.answer


def fake_encode(pixels: np.ndarray, fmt: str) -> bytes:
    height, width = pixels.shape[:2]
    return f"{fmt}:{width}x{height}".encode()


@pytest.fixture
def solid_image() -> np.ndarray:
    return make_solid(64, 48)


@pytest.fixture
def gradient_image() -> np.ndarray:
    return make_gradient(200, 100)


@pytest.fixture
def clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def file_sink() -> FakeFileSink:
    return FakeFileSink()


@pytest.fixture
def picker() -> FakePicker:
    return FakePicker("/tmp/shot.png")


@pytest.fixture
def controller(gradient_image, clipboard, file_sink, picker) -> EditorController:
    """Controller over a 200x100 image shown 1:1 at the window origin."""
    ctl = EditorController(
        gradient_image,
        clipboard=clipboard,
        encode=fake_encode,
        save_file=file_sink,
        ask_save_path=picker,
    )
    ctl.set_view(Rect(0.0, 0.0, 200.0, 100.0), 1.0)
    return ctl


def drag(ctl: EditorController, start, end, steps: int = 4) -> None:
    """Press at start, move in steps to end, release there."""
    from shotmark.editor.selection import PointerPhase

    start = Pos(*start)
    end = Pos(*end)
    ctl.handle_pointer(start, PointerPhase.PRESSED)
    for i in range(1, steps + 1):
        t = i / steps
        ctl.handle_pointer(Pos(start.x + (end.x - start.x) * t, start.y + (end.y - start.y) * t), PointerPhase.HELD)
    ctl.handle_pointer(end, PointerPhase.RELEASED)


_qt_app = None


@pytest.fixture
def qt_app():
    """A headless QGuiApplication shared by the whole session."""
    global _qt_app
    from PySide6.QtGui import QGuiApplication

    if QGuiApplication.instance() is None:
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
        _qt_app = QGuiApplication([])
    return QGuiApplication.instance()
