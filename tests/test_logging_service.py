"""Tests for logging setup and log file pruning."""

import logging

import pytest

from shotmark.services import logging_service
from shotmark.services.config_service import ConfigService
from shotmark.services.logging_service import default_log_dir, prune_old_logs, setup_logging


@pytest.fixture
def fresh_logging(monkeypatch):
    """Let setup_logging run again and put the root logger back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    monkeypatch.setattr(logging_service, "_logging_initialized", False)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_default_dir_follows_xdg_data_home(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    assert default_log_dir() == tmp_path / "shotmark" / "logs"
    monkeypatch.delenv("XDG_DATA_HOME")
    assert default_log_dir().parts[-3:] == ("share", "shotmark", "logs")


def test_verbose_sets_console_level(fresh_logging):
    assert setup_logging(verbose=True, log_to_file=False) is None
    (console,) = fresh_logging.handlers
    assert console.level == logging.DEBUG


def test_file_records_debug_in_quiet_runs(fresh_logging, tmp_path):
    log_path = setup_logging(verbose=False, log_dir=tmp_path / "logs")

    assert log_path.parent == tmp_path / "logs"
    console, file_handler = fresh_logging.handlers
    assert console.level == logging.INFO
    logging.getLogger("shotmark.test").debug("xclip refused image/png")
    file_handler.flush()
    assert "xclip refused image/png" in log_path.read_text()


def test_second_setup_is_ignored(fresh_logging, tmp_path):
    setup_logging(log_to_file=False)
    assert setup_logging(log_dir=tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_unwritable_dir_falls_back_to_console(fresh_logging, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    assert setup_logging(log_dir=blocker / "logs") is None
    assert len(fresh_logging.handlers) == 1


def test_prune_keeps_newest(tmp_path):
    for day in range(1, 6):
        (tmp_path / f"shotmark_2026100{day}.log").write_text("")
    (tmp_path / "notes.txt").write_text("")
    current = tmp_path / "shotmark_20261006.log"

    assert prune_old_logs(tmp_path, keep=3, current=current) == 3

    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "notes.txt",
        "shotmark_20261004.log",
        "shotmark_20261005.log",
    ]


def test_config_log_settings(tmp_path):
    config = ConfigService(tmp_path / "config.json")
    assert config.log_to_file is True
    assert config.log_dir is None
    config.set("log_dir", "~/shotmark-logs")
    config.set("log_to_file", False)
    assert config.log_dir.name == "shotmark-logs"
    assert "~" not in str(config.log_dir)
    assert config.log_to_file is False
