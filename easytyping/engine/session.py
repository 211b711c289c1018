"""Per-document engine context and the user-facing commands."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from easytyping.engine.dispatcher import FormatterDispatcher, Selection
from easytyping.engine.line_formatter import LineFormatter
from easytyping.engine.rewriter import TransactionRewriter
from easytyping.engine.rules import RuleTable, default_rule_table
from easytyping.engine.structure import ArticleParser
from easytyping.engine.text_model import EditDescriptor, TextPos, line_bounds, offset_to_pos, pos_to_offset
from easytyping.settings_manager import normalize_easy_typing_settings

logger = logging.getLogger(__name__)

NOTICE_PREFIX = "EasyTyping: "


class EditorHost(Protocol):
    """What the session needs from an editor. Offsets are character indexes into ``get_value()``."""

    def get_value(self) -> str: ...

    def line_count(self) -> int: ...

    def get_line(self, line: int) -> str: ...

    def get_cursor(self) -> int: ...

    def get_selection(self) -> Selection: ...

    def replace_range(self, start: int, end: int, text: str) -> None: ...

    def set_cursor(self, offset: int) -> None: ...

    def notify(self, message: str) -> None: ...


class EditingSession:
    """Owns the settings, rule table, parser and active-document identity.

    A host creates one session per editor widget, routes every candidate edit
    through ``filter_edit`` and every committed edit through ``after_commit``.
    """

    def __init__(self, settings: Mapping[str, Any] | None = None, rules: RuleTable | None = None) -> None:
        self.settings: dict[str, Any] = normalize_easy_typing_settings(settings)
        self.rules = rules if rules is not None else default_rule_table()
        self.rewriter = TransactionRewriter(self.settings, self.rules)
        self.parser = ArticleParser()
        self.formatter = LineFormatter(self.settings)
        self.dispatcher = FormatterDispatcher(self.settings, self.parser, self.formatter)
        self.active_document: str | None = None

    def update_settings(self, settings: Mapping[str, Any]) -> None:
        # In place, so the rewriter and dispatcher see the change.
        self.settings.clear()
        self.settings.update(normalize_easy_typing_settings(settings))

    # --------- document lifecycle ---------

    def activate_document(self, identity: str, text: str, host: EditorHost | None = None) -> bool:
        """Parse ``text`` if ``identity`` differs from the active document.

        Reloading the active document with different text reparses it quietly
        and returns False.
        """
        identity = str(identity or "").strip()
        if identity == self.active_document and len(self.parser):
            if text != self.parser.content:
                self.parser.parse_new_article(text)
            return False
        self.parser.parse_new_article(text)
        self.active_document = identity
        self._notify(host, f"Parse New Active Article: {identity}")
        return True

    def filter_edit(self, doc: str, edit: EditDescriptor) -> EditDescriptor:
        return self.rewriter.rewrite(doc, edit)

    def after_commit(
        self,
        before: str,
        after: str,
        edit: EditDescriptor,
        selection: Selection,
    ) -> list[EditDescriptor]:
        return self.dispatcher.after_commit(before, after, edit, selection)

    # --------- commands ---------

    def format_article(self, host: EditorHost | None) -> None:
        if host is None:
            logger.info("format_article: no active editor")
            return
        if not len(self.parser):
            logger.info("format_article: no parsed article")
            return
        text = host.get_value()
        if text != self.parser.content:
            self.parser.parse_new_article(text)

        lines = text.split("\n")
        formatted = [
            self.formatter.format_line(line, self.settings)[0] if self.parser.is_text_line(idx) else line
            for idx, line in enumerate(lines)
        ]
        new_text = "\n".join(formatted)
        if new_text != text:
            caret = offset_to_pos(text, host.get_cursor())
            host.replace_range(0, len(text), new_text)
            host.set_cursor(pos_to_offset(new_text, caret))
            self.parser.update_content(new_text)
        self._notify(host, "Format Article Done!")

    def format_one_line(self, host: EditorHost | None, line: int) -> bool:
        if host is None:
            logger.info("format_one_line: no active editor")
            return False
        self._sync(host)
        if not self.parser.is_text_line(line):
            return False
        old = host.get_line(line)
        new, _ = self.formatter.format_line(old, self.settings)
        if new == old:
            return False
        start = pos_to_offset(host.get_value(), TextPos(line, 0))
        host.replace_range(start, start + len(old), new)
        host.set_cursor(start + len(new))
        self.parser.update_content(host.get_value())
        return True

    def format_selection_or_line(self, host: EditorHost | None) -> None:
        if host is None:
            logger.info("format_selection_or_line: no active editor")
            return
        self._sync(host)
        anchor, head = host.get_selection()
        if anchor == head:
            self.format_one_line(host, offset_to_pos(host.get_value(), head).line)
            return

        text = host.get_value()
        first = offset_to_pos(text, min(anchor, head)).line
        last = offset_to_pos(text, max(anchor, head)).line
        start = pos_to_offset(text, TextPos(first, 0))
        _, end = line_bounds(text, pos_to_offset(text, TextPos(last, 0)))
        old_block = text[start:end]
        new_block = "\n".join(
            self.formatter.format_line(line, self.settings)[0] if self.parser.is_text_line(first + idx) else line
            for idx, line in enumerate(old_block.split("\n"))
        )
        if new_block == old_block:
            return
        host.replace_range(start, end, new_block)
        host.set_cursor(start + len(new_block))
        self.parser.update_content(host.get_value())

    def insert_code_block(self, host: EditorHost | None) -> None:
        """Wrap the selection in a code fence, or open an empty fence at the caret."""
        if host is None:
            logger.info("insert_code_block: no active editor")
            return
        text = host.get_value()
        anchor, head = host.get_selection()
        start, end = sorted((anchor, head))
        first_line = offset_to_pos(text, start).line
        line_start, _ = line_bounds(text, start)
        _, line_end = line_bounds(text, end)

        prefix = "\n" if start != line_start else ""
        suffix = "\n" if end != line_end else ""
        body = "```\n" + text[start:end] + "\n```" if start != end else "```\n```"
        if self.settings.get("debug"):
            logger.debug("insert code block at %d-%d", start, end)

        host.replace_range(start, end, prefix + body + suffix)
        new_text = host.get_value()
        fence_line = first_line + (1 if prefix else 0)
        host.set_cursor(pos_to_offset(new_text, TextPos(fence_line, 3)))
        self.parser.reparse(new_text, first_line)

    def toggle_auto_format(self, host: EditorHost | None = None) -> bool:
        enabled = not bool(self.settings.get("AutoFormat", False))
        self.settings["AutoFormat"] = enabled
        self._notify(host, f"Autoformat is {'on' if enabled else 'off'}!")
        return enabled

    # --------- helpers ---------

    def _sync(self, host: EditorHost) -> None:
        text = host.get_value()
        if not len(self.parser) or text != self.parser.content:
            self.parser.parse_new_article(text)

    def _notify(self, host: EditorHost | None, message: str) -> None:
        message = NOTICE_PREFIX + message
        if host is None:
            logger.info(message)
            return
        host.notify(message)


__all__ = ["NOTICE_PREFIX", "EditingSession", "EditorHost"]
