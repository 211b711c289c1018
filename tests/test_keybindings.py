"""Tests for chord parsing, keybinding normalization and conflict detection."""

import pytest

from easytyping.core.keybindings import (
    EDITOR_SCOPE,
    KEYBINDING_ACTIONS,
    KeyChord,
    action_definition,
    canonicalize_chord_text,
    default_keybindings,
    find_conflicts,
    get_action_sequence,
    normalize_keybindings,
    normalize_sequence,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("ctrl+shift+s", "Ctrl+Shift+S"),
        ("Shift+Control+l", "Ctrl+Shift+L"),
        ("cmd+n", "Meta+N"),
        ("ctrl+tab", "Ctrl+Tab"),
        ("Ctrl++", "Ctrl++"),
        ("alt+f5", "Alt+F5"),
        ("esc", "Esc"),
        ("", ""),
    ],
)
def test_canonicalize_chord_text(text, expected):
    assert canonicalize_chord_text(text) == expected


def test_modifier_alone_is_the_key():
    chord = KeyChord.from_portable_text("Shift")
    assert chord == KeyChord(key="Shift")


def test_default_keybindings_cover_every_action():
    bindings = default_keybindings()
    assert set(bindings) == {EDITOR_SCOPE}
    assert set(bindings[EDITOR_SCOPE]) == {action.action_id for action in KEYBINDING_ACTIONS}
    assert bindings[EDITOR_SCOPE]["action.toggle_auto_format"] == ["Ctrl+Tab"]


def test_action_definition():
    assert action_definition("action.insert_code_block").action_name == "Insert Code Block"
    assert action_definition("action.nope") is None


def test_normalize_sequence_dedups_and_splits():
    assert normalize_sequence("ctrl+a, Ctrl+A") == ["Ctrl+A"]
    assert normalize_sequence(["ctrl+b", 3, "ctrl+c"]) == ["Ctrl+B", "Ctrl+C"]
    assert normalize_sequence(None) == []


def test_normalize_keybindings_overrides_and_drops_unknown():
    out = normalize_keybindings(
        {
            "Editor": {"action.format_article": "ctrl+alt+f", "action.unknown": ["ctrl+u"]},
            "workbench": {"action.format_article": ["ctrl+w"]},
        }
    )
    assert out[EDITOR_SCOPE]["action.format_article"] == ["Ctrl+Alt+F"]
    assert "action.unknown" not in out[EDITOR_SCOPE]
    assert "workbench" not in out


def test_empty_list_unbinds_action():
    out = normalize_keybindings({"editor": {"action.toggle_auto_format": []}})
    assert out[EDITOR_SCOPE]["action.toggle_auto_format"] == []
    assert get_action_sequence(out, "action.toggle_auto_format") == []


def test_unparseable_value_keeps_default():
    out = normalize_keybindings({"editor": {"action.format_article": ["+"]}})
    assert out[EDITOR_SCOPE]["action.format_article"] == ["Ctrl+Shift+S"]


def test_get_action_sequence_defaults():
    assert get_action_sequence(None, "action.format_selection") == ["Ctrl+Shift+L"]
    assert get_action_sequence(None, "action.unknown") == []


def test_find_conflicts():
    assert find_conflicts(None) == []
    conflicts = find_conflicts({"editor": {"action.insert_code_block": ["Ctrl+Shift+S"]}})
    assert len(conflicts) == 1
    assert conflicts[0].sequence_text == "Ctrl+Shift+S"
    assert conflicts[0].action_ids == ("action.format_article", "action.insert_code_block")
