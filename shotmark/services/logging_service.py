"""
Logging service for Shotmark.

The console shows INFO (DEBUG with --verbose). When a log directory is
usable, a dated file additionally records DEBUG messages so that a failed
export or portal request leaves a trail even in quiet runs. Old log files
are pruned so the directory stays small.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_PATTERN = "shotmark_*.log"
KEEP_LOG_FILES = 7

_logging_initialized = False


def default_log_dir() -> Path:
    """$XDG_DATA_HOME/shotmark/logs, or ~/.local/share/shotmark/logs."""
    data_home = os.environ.get("XDG_DATA_HOME")
    base = Path(data_home) if data_home else Path.home() / ".local" / "share"
    return base / "shotmark" / "logs"


def setup_logging(
    verbose: bool = False,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Configure the root logger once per process.

    Args:
        verbose: Show DEBUG messages on the console.
        log_to_file: Also write a dated log file.
        log_dir: Where log files go. Defaults to default_log_dir().

    Returns:
        Path of the log file in use, or None when logging to the console only.
    """
    global _logging_initialized

    if _logging_initialized:
        return None

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    _logging_initialized = True

    if not log_to_file:
        return None

    log_dir = Path(log_dir).expanduser() if log_dir else default_log_dir()
    log_path = log_dir / f"shotmark_{datetime.now().strftime('%Y%m%d')}.log"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as e:
        root_logger.warning(f"Could not create log file in {log_dir}: {e}. Logging to console only.")
        return None

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    prune_old_logs(log_dir, keep=KEEP_LOG_FILES, current=log_path)
    return log_path


def prune_old_logs(log_dir: Path, keep: int, current: Optional[Path] = None) -> int:
    """
    Delete all but the newest `keep` log files. Returns how many were removed.

    File names carry the date, so name order is age order.
    """
    logs = sorted(p for p in log_dir.glob(LOG_FILE_PATTERN) if p != current)
    if current is not None:
        keep -= 1
    stale = logs[: max(0, len(logs) - max(0, keep))]
    removed = 0
    for path in stale:
        try:
            path.unlink()
        except OSError as e:
            logging.getLogger(__name__).debug(f"Could not remove old log {path}: {e}")
            continue
        removed += 1
    return removed


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; pass __name__."""
    return logging.getLogger(name)
