from __future__ import annotations

import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

from easytyping.core.keybindings import normalize_keybindings
from easytyping.settings_models import (
    CAPITAL_MODE_CHOICES,
    SPACE_MODE_CHOICES,
    EasyTypingSettings,
    SettingsPaths,
    default_app_settings,
    default_easy_typing_settings,
)
from easytyping.settings_store import JsonSettingsStore, deep_merge_defaults

logger = logging.getLogger(__name__)

_CHOICE_KEYS: dict[str, tuple[str, ...]] = {
    "AutoCapitalMode": CAPITAL_MODE_CHOICES,
    "InlineCodeSpaceMode": SPACE_MODE_CHOICES,
    "InlineFormulaSpaceMode": SPACE_MODE_CHOICES,
}


def _coerce_bool(value: Any, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value or "").strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return fallback


def _clamp_int(value: Any, low: int, high: int, fallback: int) -> int:
    try:
        return max(low, min(high, int(value)))
    except (TypeError, ValueError):
        return fallback


def normalize_easy_typing_settings(raw: Any) -> EasyTypingSettings:
    """Known keys only; booleans coerced, enum values checked against their choices."""
    defaults = default_easy_typing_settings()
    data: dict[str, Any] = dict(defaults)
    if isinstance(raw, Mapping):
        for key, value in raw.items():
            if str(key) in defaults:
                data[str(key)] = value

    out: dict[str, Any] = {}
    for key, default_value in defaults.items():
        value = data.get(key, default_value)
        choices = _CHOICE_KEYS.get(key)
        if choices is not None:
            text = str(value or "").strip().lower()
            out[key] = text if text in choices else default_value
        else:
            out[key] = _coerce_bool(value, bool(default_value))
    return out  # type: ignore[return-value]


class SettingsManager:
    def __init__(
        self,
        app_dir: str | Path,
        *,
        settings_filename: str = "settings.json",
        persistent: bool = True,
    ) -> None:
        self.paths = SettingsPaths(app_dir=Path(app_dir), settings_filename=settings_filename)
        self.store = JsonSettingsStore(self.paths.settings_file, default_app_settings(), persistent=persistent)

    @property
    def settings_path(self) -> Path:
        return self.paths.settings_file

    def load(self) -> None:
        self.store.load()
        changed = self._normalize()
        if self.store.last_error:
            return
        if changed or self.store.dirty:
            self.save()

    def save(self) -> None:
        self.store.save()

    def load_error(self) -> str:
        return str(self.store.last_error or "").strip()

    def get(self, key: str, default: Any = None) -> Any:
        return self.store.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        return self.store.set(key, value)

    def easy_typing_settings(self) -> EasyTypingSettings:
        return normalize_easy_typing_settings(self.store.get("easy_typing"))

    def update_easy_typing(self, values: Mapping[str, Any] | None = None, **changes: Any) -> EasyTypingSettings:
        merged: dict[str, Any] = dict(self.easy_typing_settings())
        merged.update(dict(values or {}))
        merged.update(changes)
        normalized = normalize_easy_typing_settings(merged)
        self.store.set("easy_typing", dict(normalized))
        return normalized

    def keybindings(self) -> dict[str, dict[str, list[str]]]:
        return normalize_keybindings(self.store.get("keybindings"))

    def editor_settings(self) -> dict[str, Any]:
        return deepcopy(self.store.get("editor") or {})

    def _normalize(self) -> bool:
        data = self.store.data
        before = deepcopy(data)
        defaults = default_app_settings()

        data["easy_typing"] = dict(normalize_easy_typing_settings(data.get("easy_typing")))
        data["keybindings"] = normalize_keybindings(data.get("keybindings"))

        editor = data.get("editor")
        if not isinstance(editor, dict):
            editor = {}
        editor = deep_merge_defaults(editor, defaults["editor"])
        editor["font_family"] = str(editor.get("font_family") or "").strip()
        editor["font_size"] = _clamp_int(editor.get("font_size"), 6, 48, 11)
        editor["tab_width"] = _clamp_int(editor.get("tab_width"), 1, 16, 4)
        editor["word_wrap"] = _coerce_bool(editor.get("word_wrap"), True)
        data["editor"] = editor

        window = data.get("window")
        if not isinstance(window, dict):
            window = {}
        window = deep_merge_defaults(window, defaults["window"])
        window["width"] = _clamp_int(window.get("width"), 320, 10000, 960)
        window["height"] = _clamp_int(window.get("height"), 240, 10000, 720)
        window["last_open_file"] = str(window.get("last_open_file") or "").strip()
        data["window"] = window

        changed = data != before
        if changed:
            logger.debug("settings normalized in %s", self.paths.settings_file)
            self.store.dirty = True
        return changed


__all__ = ["SettingsManager", "normalize_easy_typing_settings"]
