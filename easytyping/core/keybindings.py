"""Editor command ids, default chords, chord parsing and conflict checks.

Chords are stored in Qt's portable text form (``"Ctrl+Shift+S"``) so the
settings file stays readable and the widget can hand them to ``QKeySequence``
unchanged. Nothing here imports Qt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

KeybindingScope = str

EDITOR_SCOPE: KeybindingScope = "editor"

_MODIFIER_ALIASES: dict[str, str] = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "alt": "alt",
    "option": "alt",
    "shift": "shift",
    "meta": "meta",
    "cmd": "meta",
    "command": "meta",
    "super": "meta",
    "win": "meta",
}

_KEY_ALIASES: dict[str, str] = {
    "tab": "Tab",
    "space": "Space",
    "enter": "Return",
    "return": "Return",
    "esc": "Esc",
    "escape": "Esc",
    "backspace": "Backspace",
    "del": "Del",
    "delete": "Del",
    "slash": "/",
}


@dataclass(frozen=True, slots=True)
class KeyChord:
    key: str
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    meta: bool = False

    def to_portable_text(self) -> str:
        parts: list[str] = []
        if self.ctrl:
            parts.append("Ctrl")
        if self.alt:
            parts.append("Alt")
        if self.shift:
            parts.append("Shift")
        if self.meta:
            parts.append("Meta")
        parts.append(str(self.key or "").strip())
        return "+".join(part for part in parts if part)

    @staticmethod
    def from_portable_text(chord_text: str) -> "KeyChord | None":
        text = str(chord_text or "").strip()
        if not text:
            return None
        # "Ctrl++" binds the plus key.
        if text.endswith("++"):
            tokens = [tok.strip() for tok in text[:-2].split("+") if tok.strip()] + ["+"]
        else:
            tokens = [tok.strip() for tok in text.split("+") if tok.strip()]
        if not tokens:
            return None
        mods: set[str] = set()
        key = ""
        last = len(tokens) - 1
        for idx, token in enumerate(tokens):
            alias = _MODIFIER_ALIASES.get(token.lower())
            if alias is not None and idx < last:
                mods.add(alias)
                continue
            key = token
        if not key:
            return None
        key = _KEY_ALIASES.get(key.lower(), key)
        if len(key) == 1 and key.isalpha():
            key = key.upper()
        elif len(key) > 1 and key[0].lower() == "f" and key[1:].isdigit():
            key = "F" + key[1:]
        return KeyChord(
            key=key,
            ctrl="ctrl" in mods,
            alt="alt" in mods,
            shift="shift" in mods,
            meta="meta" in mods,
        )


@dataclass(frozen=True, slots=True)
class KeybindingAction:
    scope: KeybindingScope
    action_id: str
    action_name: str
    default_sequence: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class KeybindingConflict:
    sequence_text: str
    action_ids: tuple[str, ...]


KEYBINDING_ACTIONS: tuple[KeybindingAction, ...] = (
    KeybindingAction(EDITOR_SCOPE, "action.format_article", "Format Current Article", ("Ctrl+Shift+S",)),
    KeybindingAction(
        EDITOR_SCOPE,
        "action.format_selection",
        "Format Selected Text or Current Line",
        ("Ctrl+Shift+L",),
    ),
    KeybindingAction(EDITOR_SCOPE, "action.insert_code_block", "Insert Code Block", ("Ctrl+Shift+N",)),
    KeybindingAction(EDITOR_SCOPE, "action.toggle_auto_format", "Switch Autoformat", ("Ctrl+Tab",)),
)

_ACTION_BY_ID: dict[str, KeybindingAction] = {entry.action_id: entry for entry in KEYBINDING_ACTIONS}


def default_keybindings() -> dict[str, dict[str, list[str]]]:
    out: dict[str, dict[str, list[str]]] = {EDITOR_SCOPE: {}}
    for action in KEYBINDING_ACTIONS:
        out.setdefault(action.scope, {})[action.action_id] = list(action.default_sequence)
    return out


def action_definition(action_id: str) -> KeybindingAction | None:
    return _ACTION_BY_ID.get(str(action_id or "").strip())


def canonicalize_chord_text(text: str) -> str:
    chord = KeyChord.from_portable_text(text)
    if chord is None:
        return ""
    return chord.to_portable_text()


def normalize_sequence(value: Any) -> list[str]:
    raw: list[str] = []
    if isinstance(value, str):
        raw.extend(part for part in value.split(",") if part.strip())
    elif isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, str):
                raw.extend(part for part in item.split(",") if part.strip())
    out: list[str] = []
    for token in raw:
        text = canonicalize_chord_text(token)
        if text and text not in out:
            out.append(text)
    return out


def normalize_keybindings(raw: Any) -> dict[str, dict[str, list[str]]]:
    """Defaults overlaid with the user's known overrides; unknown actions are dropped.

    An explicitly empty list unbinds an action.
    """
    merged = default_keybindings()
    if not isinstance(raw, Mapping):
        return merged
    for scope_key, scope_payload in raw.items():
        scope = str(scope_key or "").strip().lower()
        if scope not in merged or not isinstance(scope_payload, Mapping):
            continue
        for action_key, value in scope_payload.items():
            action = action_definition(str(action_key or ""))
            if action is None or action.scope != scope:
                continue
            if isinstance(value, (list, tuple)) and not value:
                merged[scope][action.action_id] = []
                continue
            normalized = normalize_sequence(value)
            if normalized:
                merged[scope][action.action_id] = normalized
    return merged


def get_action_sequence(keybindings: Mapping[str, Mapping[str, list[str]]] | None, action_id: str) -> list[str]:
    action = action_definition(action_id)
    if action is None:
        return []
    return list(normalize_keybindings(keybindings).get(action.scope, {}).get(action.action_id, []))


def find_conflicts(keybindings: Mapping[str, Mapping[str, list[str]]] | None) -> list[KeybindingConflict]:
    """Chords bound to more than one action, in first-seen order."""
    normalized = normalize_keybindings(keybindings)
    owners: dict[str, list[str]] = {}
    for action in KEYBINDING_ACTIONS:
        for chord in normalized.get(action.scope, {}).get(action.action_id, []):
            owners.setdefault(chord, []).append(action.action_id)
    return [
        KeybindingConflict(sequence_text=chord, action_ids=tuple(action_ids))
        for chord, action_ids in owners.items()
        if len(action_ids) > 1
    ]


__all__ = [
    "EDITOR_SCOPE",
    "KEYBINDING_ACTIONS",
    "KeyChord",
    "KeybindingAction",
    "KeybindingConflict",
    "KeybindingScope",
    "action_definition",
    "canonicalize_chord_text",
    "default_keybindings",
    "find_conflicts",
    "get_action_sequence",
    "normalize_keybindings",
    "normalize_sequence",
]
