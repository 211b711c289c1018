"""Pre-commit edit rewriting: selection wrap, pair-aware delete, conversion rules, auto-pair."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from easytyping.engine.rules import ConvertRule, RuleTable, default_rule_table
from easytyping.engine.text_model import (
    CHARACTER_INPUT_ORIGINS,
    REWRITE_USER_EVENT,
    ChangeSpan,
    EditDescriptor,
    EditOrigin,
    slice_doc,
)

logger = logging.getLogger(__name__)

_SELECTION_WRAP_ORIGINS = CHARACTER_INPUT_ORIGINS | {EditOrigin.REPLACE_SELECTION}


class TransactionRewriter:
    """Decide whether a candidate edit should be replaced before it commits.

    ``rewrite`` is a pure function of the pre-edit text and the edit: it never
    touches the document and never dispatches anything. The host applies the
    returned descriptor as one atomic change.
    """

    def __init__(self, settings: Mapping[str, Any], rules: RuleTable | None = None) -> None:
        self._settings = settings
        self.rules = rules if rules is not None else default_rule_table()
        self._triggers = self.rules.conversion_triggers()

    def _enabled(self, key: str) -> bool:
        return bool(self._settings.get(key, False))

    def rewrite(self, doc: str, edit: EditDescriptor) -> EditDescriptor:
        if not edit.doc_changed or edit.is_engine_edit:
            return edit
        # Multi-span edits come from multi-cursor input, which stays untouched.
        if len(edit.changes) != 1:
            return edit
        span = edit.changes[0]
        if self._enabled("debug"):
            logger.debug(
                "rewrite candidate: origin=%s from=%d to=%d insert=%r",
                edit.origin.value,
                span.from_a,
                span.to_a,
                span.insert,
            )

        if self._enabled("SelectionEnhance"):
            replaced = self._selection_replace(edit, span)
            if replaced is not None:
                return replaced

        if edit.origin is EditOrigin.BACKWARD_DELETE and self._enabled("SymbolAutoPairDelete"):
            replaced = self._pair_delete(doc, edit, span)
            if replaced is not None:
                return replaced

        if edit.origin in CHARACTER_INPUT_ORIGINS and span.from_a == span.to_a and len(span.insert) == 1:
            replaced = self._single_char_input(doc, edit, span)
            if replaced is not None:
                return replaced

        return edit

    # --------- selection wrap ---------

    def _selection_replace(self, edit: EditDescriptor, span: ChangeSpan) -> EditDescriptor | None:
        if edit.origin not in _SELECTION_WRAP_ORIGINS:
            return None
        if span.from_a == span.to_a or len(span.insert) != 1:
            return None
        pair = self.rules.selection_replace_map.get(span.insert)
        if pair is None:
            return None
        self._trace("selection wrap with %r/%r", pair.left, pair.right)
        return EditDescriptor(
            changes=(
                ChangeSpan(span.from_a, span.from_a, pair.left),
                ChangeSpan(span.to_a, span.to_a, pair.right),
            ),
            origin=edit.origin,
            user_event=REWRITE_USER_EVENT,
        )

    # --------- backward delete ---------

    def _pair_delete(self, doc: str, edit: EditDescriptor, span: ChangeSpan) -> EditDescriptor | None:
        if span.removed_length != 1 or span.insert:
            return None
        deleted = doc[span.from_a:span.to_a]
        closer = self.rules.symbol_pairs_map.get(deleted)
        if closer is not None and slice_doc(doc, span.to_a, span.to_a + 1) == closer:
            self._trace("pair delete %r%r", deleted, closer)
            return EditDescriptor.single(
                span.from_a,
                span.to_a + 1,
                "",
                edit.origin,
                user_event=REWRITE_USER_EVENT,
            )

        cursor = span.to_a
        for rule in self.rules.delete_rules:
            start = cursor - len(rule.before.left)
            end = cursor + len(rule.before.right)
            if start < 0:
                continue
            if doc[start:cursor] == rule.before.left and slice_doc(doc, cursor, end) == rule.before.right:
                self._trace("delete rule %r matched", rule.before.text)
                return EditDescriptor.single(
                    start,
                    end,
                    rule.after.text,
                    edit.origin,
                    selection=start + len(rule.after.left),
                    user_event=REWRITE_USER_EVENT,
                )
        return None

    # --------- single character input ---------

    def _single_char_input(self, doc: str, edit: EditDescriptor, span: ChangeSpan) -> EditDescriptor | None:
        ch = span.insert
        if ch in self._triggers:
            groups: list[list[ConvertRule]] = []
            if self._enabled("BaseObEditEnhance"):
                groups.append(self.rules.basic_rules)
            if self._enabled("FW2HWEnhance"):
                groups.append(self.rules.fw2hw_rules)
            for rules in groups:
                replaced = self._match_conversion(doc, edit, span.from_a, ch, rules)
                if replaced is not None:
                    return replaced

        if not self._enabled("SymbolAutoPairDelete"):
            return None

        closer = self.rules.symbol_pairs_map.get(ch)
        if closer is not None:
            self._trace("auto pair %r%r", ch, closer)
            return EditDescriptor.single(
                span.from_a,
                span.to_a,
                ch + closer,
                edit.origin,
                selection=span.from_a + 1,
                user_event=REWRITE_USER_EVENT,
            )
        full_pair = self.rules.ambiguous_closers.get(ch)
        if full_pair is not None:
            self._trace("ambiguous closer %r -> %r", ch, full_pair)
            return EditDescriptor.single(
                span.from_a,
                span.to_a,
                full_pair,
                edit.origin,
                selection=span.from_a + 1,
                user_event=REWRITE_USER_EVENT,
            )
        return None

    def _match_conversion(
        self,
        doc: str,
        edit: EditDescriptor,
        pos: int,
        ch: str,
        rules: list[ConvertRule],
    ) -> EditDescriptor | None:
        for rule in rules:
            if ch != rule.trigger:
                continue
            before_left = rule.before.left
            after_left = rule.after.left
            # Window start in pre-edit coordinates; the typed char is the last char of before.left.
            start = pos - len(before_left) + 1
            if start == -1 and before_left.startswith("\n") and "\n" not in doc[:pos]:
                # First line: there is no line break before the document start to match.
                before_left = before_left[1:]
                after_left = after_left[1:] if after_left.startswith("\n") else after_left
                start = 0
            elif start < 0:
                continue
            end = pos + len(rule.before.right)
            if doc[start:pos] + ch != before_left:
                continue
            if slice_doc(doc, pos, end) != rule.before.right:
                continue
            self._trace("conversion rule %r matched", rule.before.text)
            return EditDescriptor.single(
                start,
                end,
                after_left + rule.after.right,
                edit.origin,
                selection=start + len(after_left),
                user_event=REWRITE_USER_EVENT,
            )
        return None

    def _trace(self, message: str, *args: object) -> None:
        if self._enabled("debug"):
            logger.debug(message, *args)


def rewrite_edit(
    doc: str,
    edit: EditDescriptor,
    settings: Mapping[str, Any],
    rules: RuleTable | None = None,
) -> EditDescriptor:
    return TransactionRewriter(settings, rules).rewrite(doc, edit)


__all__ = ["TransactionRewriter", "rewrite_edit"]
