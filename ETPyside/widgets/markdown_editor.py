"""QPlainTextEdit host for the Easy Typing engine."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QColor, QFont, QInputMethodEvent, QKeySequence, QShortcut, QSyntaxHighlighter, QTextCharFormat, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from easytyping.core.keybindings import KEYBINDING_ACTIONS, get_action_sequence, normalize_keybindings
from easytyping.engine.session import EditingSession
from easytyping.engine.structure import LineType
from easytyping.engine.text_model import EditDescriptor, EditOrigin

from .edit_events import diff_span, edit_for_commit_string, edit_for_key_event, from_utf16_offset, to_utf16_offset

logger = logging.getLogger(__name__)


class StructureHighlighter(QSyntaxHighlighter):
    """Shades lines the parser classified as code, formula or front matter."""

    def __init__(self, editor: "MarkdownEditor") -> None:
        super().__init__(editor.document())
        self._editor = editor

        self.fmt_code = QTextCharFormat()
        self.fmt_code.setForeground(QColor("#D7BA7D"))
        self.fmt_code.setFontFamily("monospace")

        self.fmt_formula = QTextCharFormat()
        self.fmt_formula.setForeground(QColor("#C586C0"))

        self.fmt_frontmatter = QTextCharFormat()
        self.fmt_frontmatter.setForeground(QColor("#808080"))
        self.fmt_frontmatter.setFontItalic(True)

        self._formats: dict[LineType, QTextCharFormat] = {
            LineType.CODEBLOCK: self.fmt_code,
            LineType.FORMULA: self.fmt_formula,
            LineType.FRONTMATTER: self.fmt_frontmatter,
        }

    def highlightBlock(self, text: str) -> None:
        kind = self._editor.session.parser.line_type(self.currentBlock().blockNumber())
        fmt = self._formats.get(kind) if kind is not None else None
        if fmt is not None and text:
            self.setFormat(0, len(text), fmt)


class MarkdownEditor(QPlainTextEdit):
    noticeRequested = Signal(str)

    def __init__(
        self,
        parent=None,
        *,
        settings: Mapping[str, Any] | None = None,
        keybindings: Mapping[str, Mapping[str, list[str]]] | None = None,
    ) -> None:
        super().__init__(parent)
        self.session = EditingSession(settings)
        self.file_path = ""
        self._snapshot = ""
        self._applying = False
        self._pending_origin: EditOrigin | None = None
        self._configured_shortcuts: list[QShortcut] = []
        self._keybindings = normalize_keybindings(keybindings)

        self.setTabChangesFocus(False)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.WidgetWidth)
        self.document().contentsChange.connect(self._on_contents_change)
        self._highlighter = StructureHighlighter(self)
        self._rebuild_configured_shortcuts()
        self.session.parser.parse_new_article("")

    # --------- EditorHost ---------

    def get_value(self) -> str:
        return self.toPlainText()

    def line_count(self) -> int:
        return self.document().blockCount()

    def get_line(self, line: int) -> str:
        block = self.document().findBlockByNumber(int(line))
        return block.text() if block.isValid() else ""

    def get_cursor(self) -> int:
        return from_utf16_offset(self.toPlainText(), self.textCursor().position())

    def get_selection(self) -> tuple[int, int]:
        cursor = self.textCursor()
        text = self.toPlainText()
        return from_utf16_offset(text, cursor.anchor()), from_utf16_offset(text, cursor.position())

    def replace_range(self, start: int, end: int, text: str) -> None:
        doc = self.toPlainText()
        cursor = QTextCursor(self.document())
        self._applying = True
        try:
            cursor.beginEditBlock()
            cursor.setPosition(to_utf16_offset(doc, start))
            cursor.setPosition(to_utf16_offset(doc, end), QTextCursor.KeepAnchor)
            cursor.insertText(text)
            cursor.endEditBlock()
        finally:
            self._applying = False
        self._snapshot = self.toPlainText()
        self.set_cursor(start + len(text))

    def set_cursor(self, offset: int) -> None:
        cursor = self.textCursor()
        cursor.setPosition(to_utf16_offset(self.toPlainText(), offset))
        self.setTextCursor(cursor)

    def notify(self, message: str) -> None:
        logger.info(message)
        self.noticeRequested.emit(message)

    # --------- documents and settings ---------

    def set_document(self, path: str, text: str) -> None:
        self._applying = True
        try:
            self.setPlainText(text)
        finally:
            self._applying = False
        self.file_path = str(path or "")
        self._snapshot = self.toPlainText()
        self.session.activate_document(self.file_path, self._snapshot, self)
        self._highlighter.rehighlight()

    def apply_settings(self, settings: Mapping[str, Any]) -> None:
        self.session.update_settings(settings)

    def configure_keybindings(self, keybindings: Mapping[str, Mapping[str, list[str]]] | None) -> None:
        self._keybindings = normalize_keybindings(keybindings)
        self._rebuild_configured_shortcuts()

    def set_editor_font_preferences(self, *, family: str | None = None, point_size: int | None = None) -> None:
        font = QFont(self.font())
        if family:
            font.setFamily(family)
        if point_size:
            font.setPointSize(int(point_size))
        self.setFont(font)

    # --------- commands ---------

    def format_article(self) -> None:
        self._run_command(self.session.format_article)

    def format_selection_or_line(self) -> None:
        self._run_command(self.session.format_selection_or_line)

    def insert_code_block(self) -> None:
        self._run_command(self.session.insert_code_block)

    def toggle_auto_format(self) -> bool:
        return self.session.toggle_auto_format(self)

    def _run_command(self, command: Callable[[Any], None]) -> None:
        before = self.session.parser.structure
        command(self)
        self._snapshot = self.toPlainText()
        if self.session.parser.structure != before:
            self._highlighter.rehighlight()

    def _command_callbacks(self) -> dict[str, Callable[[], Any]]:
        return {
            "action.format_article": self.format_article,
            "action.format_selection": self.format_selection_or_line,
            "action.insert_code_block": self.insert_code_block,
            "action.toggle_auto_format": self.toggle_auto_format,
        }

    def _clear_configured_shortcuts(self) -> None:
        for shortcut in self._configured_shortcuts:
            shortcut.setEnabled(False)
            shortcut.deleteLater()
        self._configured_shortcuts.clear()

    def _install_shortcut(self, sequence: list[str], callback: Callable[[], Any]) -> None:
        qseq = QKeySequence(", ".join(sequence))
        if qseq.isEmpty():
            return
        shortcut = QShortcut(qseq, self)
        shortcut.setContext(Qt.ShortcutContext.WidgetWithChildrenShortcut)
        shortcut.activated.connect(callback)
        self._configured_shortcuts.append(shortcut)

    def _rebuild_configured_shortcuts(self) -> None:
        self._clear_configured_shortcuts()
        callbacks = self._command_callbacks()
        for action in KEYBINDING_ACTIONS:
            callback = callbacks.get(action.action_id)
            if callback is None:
                continue
            for chord in get_action_sequence(self._keybindings, action.action_id):
                self._install_shortcut([chord], callback)

    # --------- input ---------

    def keyPressEvent(self, event):
        if self.isReadOnly():
            super().keyPressEvent(event)
            return
        edit = edit_for_key_event(event, self._ordered_selection(), self.toPlainText())
        if edit is None:
            super().keyPressEvent(event)
            return
        self._commit_user_edit(edit)
        self.ensureCursorVisible()
        event.accept()

    def inputMethodEvent(self, event):
        commit = event.commitString()
        if self.isReadOnly() or not commit or event.preeditString() or event.replacementLength():
            super().inputMethodEvent(event)
            return
        # Drop the preedit before committing the text ourselves.
        super().inputMethodEvent(QInputMethodEvent())
        edit = edit_for_commit_string(commit, self._ordered_selection())
        if edit is not None:
            self._commit_user_edit(edit)
        event.accept()

    def insertFromMimeData(self, source):
        self._pending_origin = EditOrigin.PASTE
        try:
            super().insertFromMimeData(source)
        finally:
            self._pending_origin = None

    def _ordered_selection(self) -> tuple[int, int]:
        anchor, head = self.get_selection()
        return min(anchor, head), max(anchor, head)

    def _commit_user_edit(self, edit: EditDescriptor) -> None:
        structure_before = self.session.parser.structure
        before = self.toPlainText()
        edit = self.session.filter_edit(before, edit)
        self._apply_edit(edit, before)
        after = self.toPlainText()
        followups = self.session.after_commit(before, after, edit, self.get_selection())
        for followup in followups:
            prev = after
            self._apply_edit(followup, prev)
            after = self.toPlainText()
            self.session.after_commit(prev, after, followup, self.get_selection())
        self._snapshot = after
        if self.session.parser.structure != structure_before:
            self._highlighter.rehighlight()

    def _apply_edit(self, edit: EditDescriptor, doc: str) -> None:
        self._applying = True
        try:
            if edit.doc_changed:
                cursor = QTextCursor(self.document())
                cursor.beginEditBlock()
                for span in sorted(edit.changes, key=lambda s: s.from_a, reverse=True):
                    cursor.setPosition(to_utf16_offset(doc, span.from_a))
                    cursor.setPosition(to_utf16_offset(doc, span.to_a), QTextCursor.KeepAnchor)
                    cursor.insertText(span.insert)
                cursor.endEditBlock()
            target = edit.target_cursor()
            if target is not None:
                self.set_cursor(target)
        finally:
            self._applying = False

    def _on_contents_change(self, position: int, chars_removed: int, chars_added: int) -> None:
        # Undo, redo, paste, drops and cuts bypass keyPressEvent; keep the structure in step.
        if self._applying:
            return
        before = self._snapshot
        after = self.toPlainText()
        span = diff_span(before, after)
        if span is None:
            return
        self._snapshot = after
        origin = self._pending_origin or EditOrigin.PROGRAMMATIC
        edit = EditDescriptor(changes=(span,), origin=origin)
        structure_before = self.session.parser.structure
        self.session.after_commit(before, after, edit, (span.from_a + len(span.insert),) * 2)
        if self.session.parser.structure != structure_before:
            # Not from inside the document signal.
            QTimer.singleShot(0, self._highlighter.rehighlight)


__all__ = ["MarkdownEditor", "StructureHighlighter"]
