"""Tests for the command-line parser."""

import pytest

from shotmark import __version__
from shotmark.app import DEFAULT_FULL_PATH, build_parser


def test_no_subcommand():
    args = build_parser().parse_args([])
    assert args.command is None
    assert args.delay is None
    assert args.path is None


def test_gui_options():
    args = build_parser().parse_args(["-v", "gui", "-d", "500", "-p", "/tmp/out.png"])
    assert args.verbose
    assert args.command == "gui"
    assert args.delay == 500
    assert args.path == "/tmp/out.png"


def test_full_has_default_path():
    args = build_parser().parse_args(["full"])
    assert args.command == "full"
    assert args.path == DEFAULT_FULL_PATH
    assert args.delay is None


def test_diagnose_ping():
    args = build_parser().parse_args(["diagnose", "--ping"])
    assert args.command == "diagnose"
    assert args.ping


def test_version(capsys):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--version"])
    assert __version__ in capsys.readouterr().out


def test_bad_delay_rejected():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["gui", "--delay", "soon"])
