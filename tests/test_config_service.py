"""Tests for ConfigService."""

import json

from shotmark.services.config_service import DEFAULT_CONFIG, ConfigService


def test_missing_file_written_with_defaults(tmp_path):
    path = tmp_path / "shotmark" / "config.json"
    config = ConfigService(path)
    assert config.path == path
    assert json.loads(path.read_text()) == DEFAULT_CONFIG
    assert config.default_color == (255, 0, 0, 255)
    assert config.default_tool == "select"
    assert config.clipboard_helpers == ["wl-copy", "xclip"]


def test_partial_file_merged_and_completed(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"default_size": 7, "default_tool": "arrow"}))
    config = ConfigService(path)
    assert config.default_size == 7.0
    assert config.default_tool == "arrow"
    assert config.close_after_save is True

    on_disk = json.loads(path.read_text())
    assert set(DEFAULT_CONFIG) <= set(on_disk)
    assert on_disk["default_size"] == 7


def test_corrupt_file_recreated(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    config = ConfigService(path)
    assert config.default_size == DEFAULT_CONFIG["default_size"]
    assert json.loads(path.read_text()) == DEFAULT_CONFIG


def test_non_object_file_recreated(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2, 3]")
    config = ConfigService(path)
    assert config.get("default_tool") == "select"


def test_color_validation(tmp_path):
    config = ConfigService(tmp_path / "config.json")
    config.set("default_color", [10, 20, 300])
    assert config.default_color == (10, 20, 255, 255)
    config.set("default_color", "red")
    assert config.default_color == (255, 0, 0, 255)
    config.set("default_color", [1, 2])
    assert config.default_color == (255, 0, 0, 255)


def test_numeric_settings_clamped(tmp_path):
    config = ConfigService(tmp_path / "config.json")
    config.set("default_size", 99)
    assert config.default_size == 20.0
    config.set("default_size", "big")
    assert config.default_size == DEFAULT_CONFIG["default_size"]
    config.set("capture_delay_ms", -200)
    assert config.capture_delay_ms == 0
    config.set("clipboard_helpers", "xclip")
    assert config.clipboard_helpers == ["wl-copy", "xclip"]


def test_set_and_save_persist(tmp_path):
    path = tmp_path / "config.json"
    config = ConfigService(path)
    config.set("default_save_folder", str(tmp_path / "shots"))
    config.set("close_after_save", False)
    config.save()

    reloaded = ConfigService(path)
    assert reloaded.default_save_folder == str(tmp_path / "shots")
    assert reloaded.close_after_save is False
