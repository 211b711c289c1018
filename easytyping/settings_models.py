from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypedDict

from easytyping.core.keybindings import default_keybindings

SPACE_MODE_CHOICES: tuple[str, ...] = ("none", "soft", "strict")
CAPITAL_MODE_CHOICES: tuple[str, ...] = ("typing", "global")


class EasyTypingSettings(TypedDict, total=False):
    SelectionEnhance: bool
    SymbolAutoPairDelete: bool
    BaseObEditEnhance: bool
    FW2HWEnhance: bool
    AutoFormat: bool
    ChineseEnglishSpace: bool
    ChineseNumberSpace: bool
    EnglishNumberSpace: bool
    ChineseNoSpace: bool
    PunctuationSpace: bool
    AutoCapital: bool
    AutoCapitalMode: str  # typing | global
    InlineCodeSpaceMode: str  # none | soft | strict
    InlineFormulaSpaceMode: str  # none | soft | strict
    debug: bool


class EditorAppearanceSettings(TypedDict, total=False):
    font_family: str
    font_size: int
    tab_width: int
    word_wrap: bool


class WindowSettings(TypedDict, total=False):
    width: int
    height: int
    last_open_file: str


class AppSettings(TypedDict, total=False):
    easy_typing: EasyTypingSettings
    editor: EditorAppearanceSettings
    window: WindowSettings
    keybindings: dict[str, dict[str, list[str]]]


@dataclass(slots=True, frozen=True)
class SettingsPaths:
    app_dir: Path
    settings_filename: str = "settings.json"
    settings_file: Path = field(init=False)

    def __post_init__(self) -> None:
        app_dir = Path(self.app_dir).expanduser().resolve()
        object.__setattr__(self, "app_dir", app_dir)
        object.__setattr__(self, "settings_file", app_dir / self.settings_filename)


def default_easy_typing_settings() -> EasyTypingSettings:
    defaults: EasyTypingSettings = {
        "SelectionEnhance": True,
        "SymbolAutoPairDelete": True,
        "BaseObEditEnhance": True,
        "FW2HWEnhance": True,
        "AutoFormat": True,
        "ChineseEnglishSpace": True,
        "ChineseNumberSpace": True,
        "EnglishNumberSpace": False,
        "ChineseNoSpace": True,
        "PunctuationSpace": True,
        "AutoCapital": True,
        "AutoCapitalMode": "typing",
        "InlineCodeSpaceMode": "soft",
        "InlineFormulaSpaceMode": "soft",
        "debug": False,
    }
    return deepcopy(defaults)


def default_app_settings() -> AppSettings:
    defaults: AppSettings = {
        "easy_typing": default_easy_typing_settings(),
        "editor": {
            "font_family": "",
            "font_size": 11,
            "tab_width": 4,
            "word_wrap": True,
        },
        "window": {
            "width": 960,
            "height": 720,
            "last_open_file": "",
        },
        "keybindings": default_keybindings(),
    }
    return deepcopy(defaults)
