"""Translate Qt key events into edit descriptors, and Qt positions into string offsets.

``QTextDocument`` positions count UTF-16 code units while the engine works on
Python string indexes; the two differ only around astral characters (emoji),
so the conversions take a fast path for everything else.
"""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent

from easytyping.engine.text_model import ChangeSpan, EditDescriptor, EditOrigin

_TEXT_BLOCKING_MODIFIERS = Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier


def _has_astral(text: str) -> bool:
    return not text.isascii() and any(ord(ch) > 0xFFFF for ch in text)


def to_utf16_offset(text: str, index: int) -> int:
    index = max(0, min(index, len(text)))
    prefix = text[:index]
    if not _has_astral(prefix):
        return index
    return index + sum(1 for ch in prefix if ord(ch) > 0xFFFF)


def from_utf16_offset(text: str, position: int) -> int:
    if not _has_astral(text):
        return max(0, min(position, len(text)))
    units = 0
    for idx, ch in enumerate(text):
        if units >= position:
            return idx
        units += 2 if ord(ch) > 0xFFFF else 1
    return len(text)


def diff_span(before: str, after: str) -> ChangeSpan | None:
    """Smallest single span turning ``before`` into ``after``."""
    if before == after:
        return None
    limit = min(len(before), len(after))
    start = 0
    while start < limit and before[start] == after[start]:
        start += 1
    end_a, end_b = len(before), len(after)
    while end_a > start and end_b > start and before[end_a - 1] == after[end_b - 1]:
        end_a -= 1
        end_b -= 1
    return ChangeSpan(start, end_a, after[start:end_b])


Selection = tuple[int, int]
KeyHandler = Callable[[QKeyEvent, Selection, str], "EditDescriptor | None"]


def _backspace_edit(event: QKeyEvent, selection: Selection, doc: str) -> EditDescriptor | None:
    if event.modifiers() & _TEXT_BLOCKING_MODIFIERS:
        return None
    start, end = selection
    if start == end:
        if start == 0:
            return None
        start -= 1
    return EditDescriptor.single(start, end, "", EditOrigin.BACKWARD_DELETE)


def _delete_edit(event: QKeyEvent, selection: Selection, doc: str) -> EditDescriptor | None:
    if event.modifiers() & _TEXT_BLOCKING_MODIFIERS:
        return None
    start, end = selection
    if start == end:
        if end >= len(doc):
            return None
        end += 1
    return EditDescriptor.single(start, end, "", EditOrigin.FORWARD_DELETE)


def _enter_edit(event: QKeyEvent, selection: Selection, doc: str) -> EditDescriptor | None:
    if event.modifiers() & _TEXT_BLOCKING_MODIFIERS:
        return None
    start, end = selection
    return EditDescriptor.single(start, end, "\n", EditOrigin.INPUT)


# Keys with a fixed meaning; everything else is judged by the event text.
KEY_HANDLERS: dict[int, KeyHandler] = {
    int(Qt.Key_Backspace): _backspace_edit,
    int(Qt.Key_Delete): _delete_edit,
    int(Qt.Key_Return): _enter_edit,
    int(Qt.Key_Enter): _enter_edit,
}


def edit_for_key_event(event: QKeyEvent, selection: Selection, doc: str) -> EditDescriptor | None:
    """Edit a key press would make, or None when Qt should handle it."""
    selection = (min(selection), max(selection))
    handler = KEY_HANDLERS.get(int(event.key()))
    if handler is not None:
        return handler(event, selection, doc)

    if event.modifiers() & (Qt.ControlModifier | Qt.MetaModifier):
        return None
    text = event.text()
    if not text or not text.isprintable():
        return None
    start, end = selection
    return EditDescriptor.single(start, end, text, EditOrigin.TYPED)


def edit_for_commit_string(commit: str, selection: Selection) -> EditDescriptor | None:
    """Committed input-method text becomes a finalized composition edit."""
    if not commit:
        return None
    start, end = min(selection), max(selection)
    return EditDescriptor.single(start, end, commit, EditOrigin.COMPOSITION_FINALIZED)


__all__ = [
    "KEY_HANDLERS",
    "diff_span",
    "edit_for_commit_string",
    "edit_for_key_event",
    "from_utf16_offset",
    "to_utf16_offset",
]
