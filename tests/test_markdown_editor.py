"""Offscreen smoke tests for the QPlainTextEdit host."""

import os

import pytest

pytest.importorskip("PySide6")
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QEvent, Qt  # noqa: E402
from PySide6.QtGui import QKeyEvent  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from ETPyside.widgets import MarkdownEditor  # noqa: E402
from ETPyside.widgets.edit_events import diff_span, from_utf16_offset, to_utf16_offset  # noqa: E402
from easytyping.engine.structure import LineType  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def editor(qapp):
    widget = MarkdownEditor()
    notices = []
    widget.noticeRequested.connect(lambda message: notices.append(message))
    widget.notices = notices
    widget.set_document("notes.md", "")
    yield widget
    widget.deleteLater()


def _press(editor, text, key=Qt.Key.Key_unknown):
    event = QKeyEvent(QEvent.Type.KeyPress, int(key), Qt.KeyboardModifier.NoModifier, text)
    editor.keyPressEvent(event)


def _type(editor, text):
    for ch in text:
        key = getattr(Qt.Key, f"Key_{ch.upper()}", Qt.Key.Key_unknown) if ch.isascii() and ch.isalpha() else Qt.Key.Key_unknown
        _press(editor, ch, key)


# ============================================================================
# Offsets
# ============================================================================


def test_utf16_offsets_around_astral_characters():
    text = "a😀b"
    assert to_utf16_offset(text, 2) == 3
    assert from_utf16_offset(text, 3) == 2
    assert to_utf16_offset("abc", 2) == 2


def test_diff_span():
    span = diff_span("hello", "help me")
    assert (span.from_a, span.to_a, span.insert) == (3, 5, "p me")
    assert diff_span("same", "same") is None


# ============================================================================
# Editing through key events
# ============================================================================


def test_set_document_notice(editor):
    assert editor.notices[-1] == "EasyTyping: Parse New Active Article: notes.md"


def test_set_document_reload_refreshes_structure(editor):
    editor.set_document("notes.md", "```\nx")
    assert editor.session.parser.line_type(1) is LineType.CODEBLOCK
    assert editor.notices.count("EasyTyping: Parse New Active Article: notes.md") == 1


def test_opener_key_inserts_pair(editor):
    _type(editor, "（")
    assert editor.toPlainText() == "（）"
    assert editor.get_cursor() == 1


def test_backspace_deletes_empty_pair(editor):
    _type(editor, "（")
    _press(editor, "", Qt.Key.Key_Backspace)
    assert editor.toPlainText() == ""


def test_typing_formats_line(editor):
    _type(editor, "中文a")
    assert editor.toPlainText() == "中文 a"
    assert editor.get_cursor() == 4


def test_insert_code_block_command(editor):
    editor.insert_code_block()
    assert editor.toPlainText() == "```\n```"
    assert editor.get_cursor() == 3


def test_programmatic_insert_updates_structure(editor):
    editor.insertPlainText("```\n")
    assert editor.session.parser.line_type(0) is LineType.CODEBLOCK


def test_toggle_auto_format_command(editor):
    assert editor.toggle_auto_format() is False
    assert editor.notices[-1] == "EasyTyping: Autoformat is off!"
    _type(editor, "中文a")
    assert editor.toPlainText() == "中文a"
