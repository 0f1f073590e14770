"""
Environment report for `shotmark diagnose`.

Collects what usually explains a failing portal capture: the session type
variables, whether xdg-desktop-portal is on the bus, which portal backends
are installed and how portals.conf routes them.
"""

import os
from pathlib import Path
from typing import List, Optional

from shotmark.core.capture_service import (
    PORTAL_SERVICE,
    CaptureMode,
    PortalCaptureProvider,
    portal_has_owner,
)
from shotmark.core.errors import CaptureFailed
from shotmark.services.logging_service import get_logger

ENV_KEYS = ("XDG_SESSION_TYPE", "XDG_CURRENT_DESKTOP", "WAYLAND_DISPLAY", "DISPLAY")
PORTALS_DIR = Path("/usr/share/xdg-desktop-portal/portals")
SYSTEM_PORTALS_CONF = Path("/usr/share/xdg-desktop-portal/portals.conf")

logger = get_logger(__name__)


def user_portals_conf() -> Path:
    return Path(os.environ.get("HOME", ".")) / ".config" / "xdg-desktop-portal" / "portals.conf"


def collect_report(
    ping: bool = False,
    portals_dir: Path = PORTALS_DIR,
    conf_paths: Optional[List[Path]] = None,
) -> List[str]:
    """
    Build the diagnostics report.

    Args:
        ping: Also request a real (interactive) screenshot from the portal.
        portals_dir: Directory holding installed *.portal backend files.
        conf_paths: portals.conf candidates; user then system by default.

    Returns:
        Report lines, ready to print.
    """
    lines = ["Shotmark diagnostics", "env:"]
    for key in ENV_KEYS:
        lines.append(f"  {key}={os.environ.get(key, '<unset>')}")

    lines += ["", "portal service:"]
    try:
        lines.append(f"  {PORTAL_SERVICE}: {str(portal_has_owner()).lower()}")
    except CaptureFailed as e:
        lines.append(f"  {e}")

    lines += ["", "portal backends:"]
    if portals_dir.exists():
        try:
            for entry in sorted(portals_dir.iterdir()):
                lines.append(f"  {entry.name}")
        except OSError as e:
            lines.append(f"  error reading {portals_dir}: {e.strerror or e}")
    else:
        lines.append(f"  {portals_dir} not found")

    lines += ["", "portals.conf:"]
    if conf_paths is None:
        conf_paths = [user_portals_conf(), SYSTEM_PORTALS_CONF]
    for path in conf_paths:
        if not path.exists():
            continue
        lines.append(f"  {path}")
        try:
            lines += [f"    {line}" for line in path.read_text(encoding="utf-8").splitlines()]
        except OSError as e:
            lines.append(f"    error: {e.strerror or e}")

    if ping:
        lines += ["", "portal ping:"]
        try:
            captured = PortalCaptureProvider().request_capture(CaptureMode.INTERACTIVE_REGION)
            lines.append(f"  screenshot ok: {captured.uri}")
        except CaptureFailed as e:
            lines.append(f"  screenshot error: {e}")

    logger.debug(f"Diagnostics collected ({len(lines)} lines)")
    return lines
