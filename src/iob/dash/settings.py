"""Dashboard settings with JSON persistence.

Three-level precedence:
    built-in defaults < settings file < runtime overrides

Keys are addressed with dot notation (``layout.columns``) over nested JSON.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from copy import deepcopy
from pathlib import Path
from typing import Any

from iob.dash.layout import LayoutSettings

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".iob-dash"
ENV_DIR = "IOB_DASH_DIR"
ENV_THEME = "IOB_DASH_THEME"


def _settings_defaults() -> dict[str, Any]:
    """Default settings values."""
    return {
        "layout": {
            "columns": 3,
            "padding": 1,
            "rowSpacing": 1,
            "showBorders": True,
            "minGroupWidth": 15,
        },
        "theme": {
            "name": "default",
        },
        "ui": {
            "messageRows": 8,
            "maxMessages": 20,
            "resizeDebounceMs": 100,
        },
    }


# Minimum accepted value per integer key
_INT_MINIMUMS: dict[str, int] = {
    "layout.columns": 1,
    "layout.padding": 0,
    "layout.rowSpacing": 0,
    "layout.minGroupWidth": 1,
    "ui.messageRows": 3,
    "ui.maxMessages": 1,
    "ui.resizeDebounceMs": 0,
}

_BOOL_KEYS = frozenset({"layout.showBorders"})


# --- Deep merge / dot paths ---


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into base settings.

    For nested dicts, merge recursively. For primitives and arrays,
    override value wins completely.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


_MISSING = object()


def _get_path(settings: dict[str, Any], key: str) -> Any:
    node: Any = settings
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _set_path(settings: dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    node = settings
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


def _pop_path(settings: dict[str, Any], key: str) -> None:
    parts = key.split(".")
    node: Any = settings
    for part in parts[:-1]:
        node = node.get(part) if isinstance(node, dict) else None
        if node is None:
            return
    if isinstance(node, dict):
        node.pop(parts[-1], None)


def validate_setting(key: str, value: Any) -> None:
    """Raise ``ValueError`` if *value* is not acceptable for *key*."""
    if key in _BOOL_KEYS:
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be a boolean, got {value!r}")
        return
    minimum = _INT_MINIMUMS.get(key)
    if minimum is None:
        return
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {value}")


# --- SettingsManager ---


class SettingsManager:
    """Layered dashboard settings backed by an optional JSON file.

    Use factory methods (create, in_memory) instead of calling constructor directly.
    """

    def __init__(
        self,
        *,
        settings_path: str | None,
        initial_settings: dict[str, Any],
        persist: bool = True,
        load_error: Exception | None = None,
    ) -> None:
        self._settings_path = settings_path
        self._file_settings = deepcopy(initial_settings)
        self._overrides: dict[str, Any] = {}
        self._persist = persist
        self._load_error = load_error
        self._modified_keys: set[str] = set()
        self._settings = self._merge()

        self.on_change: Callable[[str, Any], None] | None = None

    # --- Factory methods ---

    @classmethod
    def create(cls, path: str | None = None) -> SettingsManager:
        """Create a settings manager with file persistence."""
        settings_path = path or os.path.join(_default_config_dir(), "settings.json")
        settings, error = _load_from_file(settings_path)
        if error is not None:
            logger.warning("Could not load settings from %s: %s", settings_path, error)
        return cls(
            settings_path=settings_path,
            initial_settings=settings,
            persist=True,
            load_error=error,
        )

    @classmethod
    def in_memory(cls, settings: dict[str, Any] | None = None) -> SettingsManager:
        """Create an in-memory settings manager for testing."""
        return cls(
            settings_path=None,
            initial_settings=settings or {},
            persist=False,
        )

    # --- Core operations ---

    def _merge(self) -> dict[str, Any]:
        merged = deep_merge_settings(_settings_defaults(), self._file_settings)
        return deep_merge_settings(merged, self._overrides)

    def reload(self) -> None:
        """Reload the settings file from disk."""
        if self._settings_path:
            self._file_settings, self._load_error = _load_from_file(self._settings_path)
        self._modified_keys.clear()
        self._settings = self._merge()

    def apply_overrides(self, overrides: dict[str, Any]) -> None:
        """Apply runtime overrides (dot keys or nested dicts) on top of the file."""
        for key, value in overrides.items():
            if isinstance(value, dict):
                self._overrides = deep_merge_settings(self._overrides, {key: deepcopy(value)})
                continue
            validate_setting(key, value)
            _set_path(self._overrides, key, value)
        self._settings = self._merge()

    @property
    def settings(self) -> dict[str, Any]:
        """Current merged settings (read-only view)."""
        return self._settings

    @property
    def load_error(self) -> Exception | None:
        return self._load_error

    @property
    def settings_path(self) -> str | None:
        return self._settings_path

    def get(self, key: str, default: Any = None) -> Any:
        value = _get_path(self._settings, key)
        return default if value is _MISSING else value

    def has(self, key: str) -> bool:
        return _get_path(self._settings, key) is not _MISSING

    def set(self, key: str, value: Any) -> None:
        """Set *key* in the settings file layer and notify ``on_change``.

        A runtime override of the same key is dropped so the new value wins.
        """
        validate_setting(key, value)
        _set_path(self._file_settings, key, value)
        _pop_path(self._overrides, key)
        self._modified_keys.add(key)
        self._settings = self._merge()
        self._save()
        if self.on_change is not None:
            self.on_change(key, value)

    # --- Typed getters ---

    def _checked(self, key: str, default: Any) -> Any:
        value = self.get(key, default)
        try:
            validate_setting(key, value)
        except ValueError as e:
            logger.warning("Ignoring invalid setting: %s", e)
            return default
        return value

    def layout_settings(self) -> LayoutSettings:
        defaults = LayoutSettings()
        return LayoutSettings(
            columns=self._checked("layout.columns", defaults.columns),
            padding=self._checked("layout.padding", defaults.padding),
            row_spacing=self._checked("layout.rowSpacing", defaults.row_spacing),
            show_borders=self._checked("layout.showBorders", defaults.show_borders),
            min_group_width=self._checked("layout.minGroupWidth", defaults.min_group_width),
        )

    def theme_name(self) -> str:
        """Theme from the file or overrides, else ``IOB_DASH_THEME``, else ``default``."""
        for layer in (self._overrides, self._file_settings):
            value = _get_path(layer, "theme.name")
            if value is not _MISSING and value:
                return str(value)
        return os.environ.get(ENV_THEME) or "default"

    def message_rows(self) -> int:
        return self._checked("ui.messageRows", 8)

    def max_messages(self) -> int:
        return self._checked("ui.maxMessages", 20)

    def resize_debounce(self) -> float:
        """Resize debounce in seconds."""
        return self._checked("ui.resizeDebounceMs", 100) / 1000

    # --- Persistence ---

    def save(self) -> None:
        self._save()

    def _save(self) -> None:
        """Write modified keys to the settings file, preserving external changes."""
        if not self._persist or not self._settings_path:
            return
        # Don't overwrite corrupted files
        if self._load_error:
            logger.warning("Not saving settings: %s failed to load", self._settings_path)
            return

        # Re-read to capture external changes
        current_file, _ = _load_from_file(self._settings_path)
        merged: dict[str, Any] = deepcopy(current_file)
        for key in self._modified_keys:
            value = _get_path(self._file_settings, key)
            if value is not _MISSING:
                _set_path(merged, key, value)

        os.makedirs(os.path.dirname(self._settings_path) or ".", exist_ok=True)
        Path(self._settings_path).write_text(
            json.dumps(merged, indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )


# --- File I/O helpers ---


def _load_from_file(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Load settings from a JSON file. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        content = Path(path).read_text(encoding="utf-8")
        settings = json.loads(content)
    except (OSError, json.JSONDecodeError) as e:
        return {}, e
    if not isinstance(settings, dict):
        return {}, ValueError(f"{path} does not contain a JSON object")
    return settings, None


def _default_config_dir() -> str:
    """Settings directory (``IOB_DASH_DIR`` or ~/.iob-dash)."""
    return os.environ.get(ENV_DIR) or os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)
