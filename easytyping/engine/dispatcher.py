"""Post-commit bookkeeping: keep the structure current and schedule line formatting."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from easytyping.engine.line_formatter import CJK_CHAR_RE, LineFormatter
from easytyping.engine.structure import ArticleParser, needs_reparse
from easytyping.engine.text_model import (
    FORMAT_USER_EVENT,
    REWRITE_USER_EVENT,
    EditDescriptor,
    EditOrigin,
    offset_to_pos,
)

logger = logging.getLogger(__name__)

_FORMAT_ORIGINS = frozenset({EditOrigin.TYPED, EditOrigin.INPUT, EditOrigin.COMPOSITION_FINALIZED})

Selection = tuple[int, int]


class FormatterDispatcher:
    def __init__(
        self,
        settings: Mapping[str, Any],
        parser: ArticleParser,
        formatter: LineFormatter | None = None,
    ) -> None:
        self._settings = settings
        self.parser = parser
        self.formatter = formatter if formatter is not None else LineFormatter(settings)

    def after_commit(
        self,
        before: str,
        after: str,
        edit: EditDescriptor,
        selection: Selection,
    ) -> list[EditDescriptor]:
        """Return the follow-up edits for a committed ``edit`` (possibly none).

        ``selection`` is the post-edit ``(anchor, head)`` pair.
        """
        if not edit.doc_changed:
            return []
        views = list(edit.iter_changes(before))

        for view in views:
            line = offset_to_pos(after, view.from_b).line
            # "$$" -> "$a$" holds no trigger character but turns a formula opener back into prose.
            triggered = needs_reparse(view.inserted, view.removed, first_line=line == 0)
            if triggered or self.parser.line_is_stale(after, line):
                self.parser.reparse(after, line)
                if self._settings.get("debug"):
                    logger.debug("EasyTyping: Reparse At Line: %d", line)
        self.parser.update_content(after)

        if edit.user_event in (FORMAT_USER_EVENT, REWRITE_USER_EVENT):
            return []
        if not bool(self._settings.get("AutoFormat", False)):
            return []
        anchor, head = selection
        if anchor != head:
            return []
        if any(view.removed for view in views):
            return []
        if not self._origin_settled(edit, views[-1].to_b, head, views[-1].inserted):
            return []

        view = views[-1]
        line = offset_to_pos(after, view.from_b).line
        if not self.parser.is_text_line(line):
            return []

        followups = self.formatter.format_line_of_doc(after, self._settings, view.from_b, head, view.inserted)
        if followups is None:
            return []
        if self._settings.get("debug"):
            logger.debug("format follow-up for line %d", line)
        return list(followups)

    @staticmethod
    def _origin_settled(edit: EditDescriptor, to_b: int, head: int, inserted: str) -> bool:
        if edit.origin in _FORMAT_ORIGINS:
            return True
        if edit.origin is EditOrigin.COMPOSING:
            # Composition is settled once the caret sits at the end of committed CJK text.
            return head == to_b and bool(CJK_CHAR_RE.search(inserted))
        return False


__all__ = ["FormatterDispatcher", "Selection"]
