"""Tests for ClipboardService with the helper programs faked out."""

import subprocess

import pytest

from shotmark.core.errors import ClipboardUnavailable
from shotmark.editor.controller import EditorController
from shotmark.services import clipboard_service
from shotmark.services.clipboard_service import ClipboardService, is_wayland_session
from shotmark.services.image_codec import encode_image

from conftest import make_gradient


class FakeStdin:
    def __init__(self):
        self.data = b""
        self.closed = False

    def write(self, data):
        self.data += data

    def close(self):
        self.closed = True


class FakePopen:
    instances = []

    def __init__(self, args, **kwargs):
        self.args = args
        self.kwargs = kwargs
        self.stdin = FakeStdin()
        FakePopen.instances.append(self)

    def kill(self):
        pass


@pytest.fixture
def wayland(monkeypatch):
    monkeypatch.setenv("WAYLAND_DISPLAY", "wayland-0")


@pytest.fixture
def x11(monkeypatch):
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    monkeypatch.setenv("XDG_SESSION_TYPE", "x11")


@pytest.fixture
def fake_popen(monkeypatch):
    FakePopen.instances = []
    monkeypatch.setattr(clipboard_service.subprocess, "Popen", FakePopen)
    return FakePopen


def fake_run(returncode=0, calls=None):
    def run(args, **kwargs):
        if calls is not None:
            calls.append((args, kwargs))
        return subprocess.CompletedProcess(args, returncode)

    return run


def test_session_detection(monkeypatch):
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    monkeypatch.setenv("XDG_SESSION_TYPE", "wayland")
    assert is_wayland_session()
    monkeypatch.setenv("XDG_SESSION_TYPE", "x11")
    assert not is_wayland_session()


def test_wayland_uses_every_helper(wayland, fake_popen, monkeypatch):
    calls = []
    monkeypatch.setattr(clipboard_service.subprocess, "run", fake_run(calls=calls))

    method = ClipboardService(use_qt_fallback=False).copy_image(b"png-bytes", "image/png")

    assert method == "wl-copy image/png + xclip image/png"
    wl = fake_popen.instances[0]
    assert wl.args == ["wl-copy", "--type", "image/png", "--foreground"]
    assert wl.stdin.data == b"png-bytes" and wl.stdin.closed
    args, kwargs = calls[0]
    assert args == ["xclip", "-selection", "clipboard", "-t", "image/png", "-i"]
    assert kwargs["input"] == b"png-bytes"


def test_x11_skips_wl_copy(x11, fake_popen, monkeypatch):
    monkeypatch.setattr(clipboard_service.subprocess, "run", fake_run())
    method = ClipboardService(use_qt_fallback=False).copy_image(b"bmp", "image/bmp")
    assert method == "xclip image/bmp"
    assert fake_popen.instances == []


def test_failed_helper_is_skipped(wayland, fake_popen, monkeypatch):
    monkeypatch.setattr(clipboard_service.subprocess, "run", fake_run(returncode=1))
    assert ClipboardService(use_qt_fallback=False).copy_image(b"x", "image/png") == "wl-copy image/png"


def test_all_helpers_fail(x11, monkeypatch):
    def missing(args, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", args[0])

    monkeypatch.setattr(clipboard_service.subprocess, "run", missing)
    with pytest.raises(ClipboardUnavailable) as excinfo:
        ClipboardService(["xclip", "pbcopy"], use_qt_fallback=False).copy_image(b"x", "image/png")
    assert "xclip" in str(excinfo.value)
    assert "unknown clipboard helper 'pbcopy'" in str(excinfo.value)


def test_no_helpers_and_no_qt(x11):
    with pytest.raises(ClipboardUnavailable, match="no clipboard helper available"):
        ClipboardService(["wl-copy"], use_qt_fallback=False).copy_image(b"x", "image/png")


def test_xclip_timeout(x11, monkeypatch):
    def hang(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs["timeout"])

    monkeypatch.setattr(clipboard_service.subprocess, "run", hang)
    with pytest.raises(ClipboardUnavailable):
        ClipboardService(["xclip"], use_qt_fallback=False).copy_image(b"x", "image/png")


def xclip_accepting(accepted, calls):
    """subprocess.run stand-in where xclip only takes the listed MIME types."""

    def run(args, **kwargs):
        mime = args[args.index("-t") + 1]
        calls.append(mime)
        return subprocess.CompletedProcess(args, 0 if mime in accepted else 1)

    return run


def test_xclip_gets_bmp_after_wl_copy_took_png(wayland, fake_popen, monkeypatch):
    calls = []
    monkeypatch.setattr(clipboard_service.subprocess, "run", xclip_accepting({"image/bmp"}, calls))

    method = ClipboardService(use_qt_fallback=False).copy_image(
        b"png", "image/png", [(b"bmp", "image/bmp")]
    )

    assert method == "wl-copy image/png + xclip image/bmp"
    assert calls == ["image/png", "image/bmp"]
    assert [p.args[2] for p in fake_popen.instances] == ["image/png"]


def test_bmp_is_tried_before_qt_clipboard(x11, qt_app, monkeypatch):
    calls = []
    monkeypatch.setattr(clipboard_service.subprocess, "run", xclip_accepting({"image/bmp"}, calls))

    method = ClipboardService(["xclip"]).copy_image(b"png", "image/png", [(b"bmp", "image/bmp")])

    assert method == "xclip image/bmp"
    assert calls == ["image/png", "image/bmp"]


def test_qt_clipboard_is_the_last_resort(x11, qt_app, monkeypatch):
    calls = []
    monkeypatch.setattr(clipboard_service.subprocess, "run", xclip_accepting(set(), calls))
    png = encode_image(make_gradient(6, 4), "PNG")

    method = ClipboardService(["xclip"]).copy_image(png, "image/png", [(b"bmp", "image/bmp")])

    assert method == "qt"
    assert calls == ["image/png", "image/bmp"]
    assert qt_app.clipboard().image().size().toTuple() == (6, 4)


def test_editor_copy_falls_back_to_xclip_bmp(x11, qt_app, monkeypatch):
    calls = []
    monkeypatch.setattr(clipboard_service.subprocess, "run", xclip_accepting({"image/bmp"}, calls))
    ctl = EditorController(
        make_gradient(20, 10),
        clipboard=ClipboardService(["xclip"]),
        encode=encode_image,
    )

    assert ctl.copy_to_clipboard() is True

    assert calls == ["image/png", "image/bmp"]
    assert ctl.status == "Copied to clipboard (xclip image/bmp)"
