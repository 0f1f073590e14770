"""Tests for the diagnose report."""

import pytest

from shotmark.core import diagnostics
from shotmark.core.diagnostics import collect_report
from shotmark.core.errors import CaptureFailed


@pytest.fixture
def portal_present(monkeypatch):
    monkeypatch.setattr(diagnostics, "portal_has_owner", lambda *args: True)


@pytest.fixture
def session_env(monkeypatch):
    monkeypatch.setenv("XDG_SESSION_TYPE", "wayland")
    monkeypatch.setenv("XDG_CURRENT_DESKTOP", "sway")
    monkeypatch.setenv("WAYLAND_DISPLAY", "wayland-1")
    monkeypatch.delenv("DISPLAY", raising=False)


def test_report_sections(tmp_path, portal_present, session_env):
    portals = tmp_path / "portals"
    portals.mkdir()
    (portals / "wlr.portal").write_text("")
    (portals / "gtk.portal").write_text("")
    conf = tmp_path / "portals.conf"
    conf.write_text("[preferred]\ndefault=wlr;gtk\n")

    lines = collect_report(portals_dir=portals, conf_paths=[tmp_path / "missing.conf", conf])

    assert lines[0] == "Shotmark diagnostics"
    assert "  XDG_SESSION_TYPE=wayland" in lines
    assert "  XDG_CURRENT_DESKTOP=sway" in lines
    assert "  DISPLAY=<unset>" in lines
    assert "  org.freedesktop.portal.Desktop: true" in lines

    backends = lines.index("portal backends:")
    assert lines[backends + 1:backends + 3] == ["  gtk.portal", "  wlr.portal"]

    assert f"  {conf}" in lines
    assert "    default=wlr;gtk" in lines
    assert f"  {tmp_path / 'missing.conf'}" not in lines
    assert "portal ping:" not in lines


def test_missing_portals_dir(tmp_path, portal_present):
    missing = tmp_path / "nope"
    lines = collect_report(portals_dir=missing, conf_paths=[])
    assert f"  {missing} not found" in lines


def test_bus_error_reported(tmp_path, monkeypatch):
    def broken(*args):
        raise CaptureFailed("D-Bus session bus not available")

    monkeypatch.setattr(diagnostics, "portal_has_owner", broken)
    lines = collect_report(portals_dir=tmp_path, conf_paths=[])
    assert "  D-Bus session bus not available" in lines


def test_ping_reports_error(tmp_path, portal_present, monkeypatch):
    class RefusingProvider:
        def request_capture(self, mode):
            raise CaptureFailed("portal returned response code 2")

    monkeypatch.setattr(diagnostics, "PortalCaptureProvider", RefusingProvider)
    lines = collect_report(ping=True, portals_dir=tmp_path, conf_paths=[])
    assert lines[-2:] == ["portal ping:", "  screenshot error: portal returned response code 2"]
