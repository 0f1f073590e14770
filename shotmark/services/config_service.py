"""
Configuration service for Shotmark.

Settings are stored as JSON in ~/.config/shotmark/config.json following the
XDG Base Directory Specification. Missing keys fall back to defaults, a
corrupt file is recreated, and I/O failures are logged rather than raised.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from shotmark.services.logging_service import get_logger

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "shotmark"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

MIN_SIZE = 1.0
MAX_SIZE = 20.0

DEFAULT_CONFIG: Dict[str, Any] = {
    # Initial RGBA drawing colour
    "default_color": [255, 0, 0, 255],
    # Initial brush/effect size, clamped to MIN_SIZE..MAX_SIZE
    "default_size": 3.0,
    # Tool active when the editor opens
    "default_tool": "select",
    # Save dialog starts here
    "default_save_folder": str(Path.home() / "Pictures" / "Shotmark"),
    "default_file_name": "screenshot.png",
    # Clipboard helper programs, tried in order
    "clipboard_helpers": ["wl-copy", "xclip"],
    "capture_delay_ms": 0,
    "close_after_save": True,
    # Log files go here; empty means $XDG_DATA_HOME/shotmark/logs
    "log_dir": "",
    "log_to_file": True,
}


class ConfigService:
    """
    Service for managing application configuration.

    Handles loading, saving, and accessing configuration values.
    Provides sensible defaults when config file is missing or corrupted.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize the ConfigService.

        Args:
            config_path: Optional path to config file. Defaults to
                        ~/.config/shotmark/config.json
        """
        self._logger = get_logger(__name__)
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE
        self._config: Dict[str, Any] = {}

        self._load()

    @property
    def path(self) -> Path:
        return self._config_path

    def _load(self) -> None:
        """Load configuration from file, using defaults if needed."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if not self._config_path.exists():
            self._logger.info(
                f"Config file not found at {self._config_path}. Using defaults."
            )
            self._save_to_file()
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)

            if not isinstance(loaded_config, dict):
                raise ValueError("Config file does not contain a valid JSON object")

            missing = set(DEFAULT_CONFIG) - set(loaded_config)
            self._deep_merge(self._config, loaded_config)
            self._logger.info(f"Configuration loaded from {self._config_path}")
            if missing:
                self._logger.debug(f"Adding new config keys: {sorted(missing)}")
                self._save_to_file()

        except (json.JSONDecodeError, ValueError) as e:
            self._logger.warning(
                f"Config file corrupted or invalid: {e}. Recreating with defaults."
            )
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save_to_file()

        except OSError as e:
            self._logger.warning(f"Could not read config file: {e}. Using defaults.")

    def _deep_merge(self, base: Dict, override: Dict) -> None:
        """Recursively merge override dict into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save_to_file(self) -> None:
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._config_path, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2)
            self._logger.debug(f"Configuration saved to {self._config_path}")
        except OSError as e:
            self._logger.error(f"Could not save config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: The configuration key to retrieve.
            default: Default value if key doesn't exist.

        Returns:
            The configuration value, or default if not found.
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value in memory. Call save() to persist it."""
        self._config[key] = value
        self._logger.debug(f"Config key '{key}' set to '{value}'")

    def save(self) -> None:
        """Persist current configuration to disk."""
        self._save_to_file()

    # ─── Editor Defaults ──────────────────────────────────────────────────

    @property
    def default_color(self) -> Tuple[int, int, int, int]:
        """Initial drawing colour as an RGBA tuple; bad values fall back to red."""
        value = self.get("default_color", DEFAULT_CONFIG["default_color"])
        try:
            channels = [max(0, min(255, int(c))) for c in value]
        except (TypeError, ValueError):
            self._logger.warning(f"Invalid default_color {value!r}, using default")
            return tuple(DEFAULT_CONFIG["default_color"])
        if len(channels) == 3:
            channels.append(255)
        if len(channels) != 4:
            self._logger.warning(f"Invalid default_color {value!r}, using default")
            return tuple(DEFAULT_CONFIG["default_color"])
        return tuple(channels)

    @property
    def default_size(self) -> float:
        try:
            size = float(self.get("default_size", DEFAULT_CONFIG["default_size"]))
        except (TypeError, ValueError):
            return DEFAULT_CONFIG["default_size"]
        return max(MIN_SIZE, min(MAX_SIZE, size))

    @property
    def default_tool(self) -> str:
        return str(self.get("default_tool", DEFAULT_CONFIG["default_tool"]))

    # ─── Export Settings ──────────────────────────────────────────────────

    @property
    def default_save_folder(self) -> str:
        """Get the default save folder for screenshots."""
        return self.get("default_save_folder", DEFAULT_CONFIG["default_save_folder"])

    @property
    def default_file_name(self) -> str:
        return self.get("default_file_name", DEFAULT_CONFIG["default_file_name"])

    @property
    def clipboard_helpers(self) -> List[str]:
        helpers = self.get("clipboard_helpers", DEFAULT_CONFIG["clipboard_helpers"])
        if not isinstance(helpers, list):
            return list(DEFAULT_CONFIG["clipboard_helpers"])
        return [str(h) for h in helpers]

    @property
    def close_after_save(self) -> bool:
        return bool(self.get("close_after_save", True))

    # ─── Capture Settings ─────────────────────────────────────────────────

    @property
    def capture_delay_ms(self) -> int:
        try:
            return max(0, int(self.get("capture_delay_ms", 0)))
        except (TypeError, ValueError):
            return 0

    # ─── Logging Settings ─────────────────────────────────────────────────

    @property
    def log_to_file(self) -> bool:
        return bool(self.get("log_to_file", True))

    @property
    def log_dir(self) -> Optional[Path]:
        """Configured log directory, or None for the default location."""
        value = self.get("log_dir", "")
        if not isinstance(value, str) or not value.strip():
            return None
        return Path(value).expanduser()
