"""Tests for the capture provider chain."""

import numpy as np
import pytest

from shotmark.core import capture_service
from shotmark.core.capture_service import CapturedImage, CaptureMode, CaptureService
from shotmark.core.errors import CaptureCancelled, CaptureFailed


class FakeProvider:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.modes = []

    def request_capture(self, mode):
        self.modes.append(mode)
        if self.error is not None:
            raise self.error
        return self.result


def captured(uri="file:///tmp/shot.png"):
    return CapturedImage(np.zeros((30, 40, 4), dtype=np.uint8), uri)


def test_captured_image_size():
    assert captured().size == (40, 30)


def test_first_success_wins():
    first = FakeProvider(result=captured("portal"))
    second = FakeProvider(result=captured("screen:DP-1"))
    result = CaptureService([first, second]).capture(CaptureMode.FULL_SCREEN)
    assert result.uri == "portal"
    assert first.modes == [CaptureMode.FULL_SCREEN]
    assert second.modes == []


def test_falls_back_after_failure():
    first = FakeProvider(error=CaptureFailed("no portal"))
    second = FakeProvider(result=captured("screen:DP-1"))
    result = CaptureService([first, second]).capture(CaptureMode.INTERACTIVE_REGION)
    assert result.uri == "screen:DP-1"


def test_cancel_stops_the_chain():
    first = FakeProvider(error=CaptureCancelled("cancelled by user"))
    second = FakeProvider(result=captured())
    with pytest.raises(CaptureCancelled):
        CaptureService([first, second]).capture(CaptureMode.INTERACTIVE_REGION)
    assert second.modes == []


def test_all_failures_joined():
    service = CaptureService(
        [FakeProvider(error=CaptureFailed("no portal")), FakeProvider(error=CaptureFailed("no screen"))]
    )
    with pytest.raises(CaptureFailed, match="no portal; no screen"):
        service.capture(CaptureMode.FULL_SCREEN)


def test_empty_chain():
    with pytest.raises(CaptureFailed, match="no capture provider available"):
        CaptureService([]).capture(CaptureMode.FULL_SCREEN)


def test_delay_sleeps_before_capture(monkeypatch):
    slept = []
    monkeypatch.setattr(capture_service.time, "sleep", slept.append)
    CaptureService([FakeProvider(result=captured())]).capture(CaptureMode.FULL_SCREEN, delay_ms=250)
    assert slept == [0.25]
