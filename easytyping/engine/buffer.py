"""Headless editor host: a string, a selection and an undo history."""

from __future__ import annotations

from easytyping.engine.dispatcher import Selection
from easytyping.engine.session import EditingSession
from easytyping.engine.text_model import EditDescriptor, EditOrigin, apply_edit


class TextBuffer:
    """In-memory ``EditorHost`` that runs edits through a session like a real editor would.

    Every document-changing commit is one undo step; engine follow-ups are
    committed as their own steps.
    """

    def __init__(self, text: str = "", session: EditingSession | None = None, identity: str = "untitled.md") -> None:
        self.text = text
        self.anchor = self.head = len(text)
        self.session = session
        self.notices: list[str] = []
        self.history: list[tuple[str, Selection]] = []
        if session is not None:
            session.activate_document(identity, text, self)

    # --------- EditorHost ---------

    def get_value(self) -> str:
        return self.text

    def line_count(self) -> int:
        return self.text.count("\n") + 1

    def get_line(self, line: int) -> str:
        lines = self.text.split("\n")
        if 0 <= line < len(lines):
            return lines[line]
        return ""

    def get_cursor(self) -> int:
        return self.head

    def get_selection(self) -> Selection:
        return self.anchor, self.head

    def replace_range(self, start: int, end: int, text: str) -> None:
        self.history.append((self.text, self.get_selection()))
        self.text = self.text[:start] + text + self.text[end:]
        self.set_cursor(start + len(text))

    def set_cursor(self, offset: int) -> None:
        self.anchor = self.head = max(0, min(offset, len(self.text)))

    def notify(self, message: str) -> None:
        self.notices.append(message)

    # --------- editing ---------

    def select(self, anchor: int, head: int) -> None:
        self.anchor = max(0, min(anchor, len(self.text)))
        self.head = max(0, min(head, len(self.text)))

    def dispatch(self, edit: EditDescriptor) -> EditDescriptor:
        """Filter, commit and post-process ``edit``; return what was committed."""
        before = self.text
        if self.session is not None:
            edit = self.session.filter_edit(before, edit)
        self._commit(edit)
        if self.session is None:
            return edit
        followups = self.session.after_commit(before, self.text, edit, self.get_selection())
        for followup in followups:
            prev = self.text
            self._commit(followup)
            self.session.after_commit(prev, self.text, followup, self.get_selection())
        return edit

    def insert(self, text: str, origin: EditOrigin = EditOrigin.TYPED) -> EditDescriptor:
        start, end = sorted(self.get_selection())
        return self.dispatch(EditDescriptor.single(start, end, text, origin))

    def type(self, text: str, origin: EditOrigin = EditOrigin.TYPED) -> None:
        for ch in text:
            self.insert(ch, origin)

    def press_enter(self) -> EditDescriptor:
        return self.insert("\n", EditOrigin.INPUT)

    def backspace(self) -> EditDescriptor | None:
        start, end = sorted(self.get_selection())
        if start == end:
            if start == 0:
                return None
            start -= 1
        return self.dispatch(EditDescriptor.single(start, end, "", EditOrigin.BACKWARD_DELETE))

    def undo(self) -> bool:
        if not self.history:
            return False
        before = self.text
        self.text, (anchor, head) = self.history.pop()
        self.select(anchor, head)
        if self.session is not None:
            undo_edit = EditDescriptor.single(0, len(before), self.text, EditOrigin.PROGRAMMATIC)
            self.session.after_commit(before, self.text, undo_edit, self.get_selection())
        return True

    def _commit(self, edit: EditDescriptor) -> None:
        if edit.doc_changed:
            self.history.append((self.text, self.get_selection()))
            self.text = apply_edit(self.text, edit)
        cursor = edit.target_cursor()
        if cursor is not None:
            self.set_cursor(cursor)


__all__ = ["TextBuffer"]
