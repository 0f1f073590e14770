"""
Shotmark - screenshot capture and annotation for Linux desktops.

This is the main entry point for the application.
Run with: python -m shotmark.app [gui|full|diagnose]
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QCoreApplication, QTimer
from PySide6.QtWidgets import QApplication

from shotmark import __version__
from shotmark.core.app_core import AppCore
from shotmark.core.capture_service import CaptureMode
from shotmark.core.diagnostics import collect_report
from shotmark.core.errors import CaptureCancelled, CaptureFailed, SaveFailed
from shotmark.services.config_service import ConfigService
from shotmark.services.logging_service import get_logger, setup_logging

DEFAULT_FULL_PATH = "screenshot.png"

_should_quit = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shotmark", description="Capture and annotate screenshots.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    parser.set_defaults(delay=None, path=None)
    commands = parser.add_subparsers(dest="command")

    gui = commands.add_parser("gui", help="pick a region and open the editor")
    gui.add_argument("-d", "--delay", type=int, default=None, metavar="MS", help="delay before capture")
    gui.add_argument("-p", "--path", default=None, help="save the capture here instead of editing it")

    full = commands.add_parser("full", help="capture the whole screen to a file")
    full.add_argument("-d", "--delay", type=int, default=None, metavar="MS", help="delay before capture")
    full.add_argument("-p", "--path", default=DEFAULT_FULL_PATH, help="output file")

    diagnose = commands.add_parser("diagnose", help="print portal and session diagnostics")
    diagnose.add_argument("--ping", action="store_true", help="also request a test screenshot")
    return parser


def cleanup_and_quit(signum, frame):
    """Handle termination signals; the Qt loop picks the flag up."""
    global _should_quit
    _should_quit = True


def check_for_quit():
    """Timer callback to check if we should quit."""
    if _should_quit:
        get_logger(__name__).info("Signal received, quitting...")
        QCoreApplication.quit()


def run_diagnose(ping: bool) -> int:
    # The D-Bus calls need an application object
    app = QApplication.instance() or QApplication(sys.argv[:1])
    for line in collect_report(ping=ping):
        print(line)
    app.processEvents()
    return 0


def run_capture(args: argparse.Namespace, config: ConfigService) -> int:
    logger = get_logger(__name__)

    app = QApplication(sys.argv[:1])
    app.setApplicationName("Shotmark")
    app.setOrganizationName("Shotmark")
    app.setApplicationVersion(__version__)

    signal.signal(signal.SIGINT, cleanup_and_quit)
    signal.signal(signal.SIGTERM, cleanup_and_quit)

    # Timer to poll for quit signal (Qt event loop blocks Python signals)
    quit_timer = QTimer()
    quit_timer.timeout.connect(check_for_quit)
    quit_timer.start(100)

    core = AppCore(app, config_service=config)
    mode = CaptureMode.FULL_SCREEN if args.command == "full" else CaptureMode.INTERACTIVE_REGION

    try:
        captured = core.capture(mode, args.delay)
    except CaptureCancelled as e:
        logger.info(f"Capture cancelled: {e}")
        print(f"shotmark: {e}", file=sys.stderr)
        return 1
    except CaptureFailed as e:
        logger.error(f"Capture failed: {e}")
        print(f"shotmark: capture failed: {e}", file=sys.stderr)
        return 1

    if args.path:
        try:
            core.save_capture(captured, Path(args.path))
        except SaveFailed as e:
            logger.error(f"Save failed: {e}")
            print(f"shotmark: save failed: {e}", file=sys.stderr)
            return 1
        return 0

    core.open_editor(captured)
    logger.info("Shotmark initialization complete. Entering event loop...")
    exit_code = app.exec()
    logger.info(f"Shotmark exiting with code {exit_code}")
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for Shotmark.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    args = build_parser().parse_args(argv)
    if args.command is None:
        # No subcommand means an interactive capture
        args.command = "gui"
    config = ConfigService()
    log_path = setup_logging(args.verbose, config.log_to_file, config.log_dir)
    logger = get_logger(__name__)
    logger.info(f"Starting Shotmark {__version__} ({args.command})")
    if log_path is not None:
        logger.debug(f"Writing log to {log_path}")

    if args.command == "diagnose":
        return run_diagnose(args.ping)
    return run_capture(args, config)


if __name__ == "__main__":
    sys.exit(main())
