"""Edit descriptors, edit origins and offset/position helpers shared by the engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator

# userEvent tags carried by edits the engine introduces itself.
REWRITE_USER_EVENT = "EasyTyping.change"
FORMAT_USER_EVENT = "EasyTyping.format"
ENGINE_USER_EVENTS = frozenset({REWRITE_USER_EVENT, FORMAT_USER_EVENT})


class EditOrigin(str, Enum):
    TYPED = "input.type"
    INPUT = "input"
    COMPOSING = "input.type.compose"
    COMPOSITION_FINALIZED = "input.type.compose.end"
    REPLACE_SELECTION = "input.replace"
    PASTE = "input.paste"
    BACKWARD_DELETE = "delete.backward"
    FORWARD_DELETE = "delete.forward"
    PROGRAMMATIC = "programmatic"


CHARACTER_INPUT_ORIGINS = frozenset(
    {
        EditOrigin.TYPED,
        EditOrigin.COMPOSING,
        EditOrigin.COMPOSITION_FINALIZED,
    }
)
COMPOSITION_ORIGINS = frozenset({EditOrigin.COMPOSING, EditOrigin.COMPOSITION_FINALIZED})


@dataclass(frozen=True, slots=True)
class TextPos:
    line: int
    ch: int


@dataclass(frozen=True, slots=True)
class ChangeSpan:
    from_a: int
    to_a: int
    insert: str = ""

    @property
    def removed_length(self) -> int:
        return self.to_a - self.from_a


@dataclass(frozen=True, slots=True)
class ChangeView:
    """One span seen from both sides of the edit, like CodeMirror's iterChanges."""

    from_a: int
    to_a: int
    from_b: int
    to_b: int
    inserted: str
    removed: str


@dataclass(frozen=True, slots=True)
class EditDescriptor:
    changes: tuple[ChangeSpan, ...] = ()
    origin: EditOrigin = EditOrigin.PROGRAMMATIC
    # Caret offset in post-edit coordinates; None keeps the host's natural placement.
    selection: int | None = None
    user_event: str = ""

    @classmethod
    def single(
        cls,
        from_a: int,
        to_a: int,
        insert: str,
        origin: EditOrigin,
        *,
        selection: int | None = None,
        user_event: str = "",
    ) -> "EditDescriptor":
        return cls(
            changes=(ChangeSpan(from_a, to_a, insert),),
            origin=origin,
            selection=selection,
            user_event=user_event,
        )

    @property
    def doc_changed(self) -> bool:
        return any(span.removed_length or span.insert for span in self.changes)

    @property
    def is_engine_edit(self) -> bool:
        return self.user_event in ENGINE_USER_EVENTS

    def with_selection(self, selection: int | None) -> "EditDescriptor":
        return replace(self, selection=selection)

    def iter_changes(self, before: str) -> Iterator[ChangeView]:
        shift = 0
        for span in sorted(self.changes, key=lambda s: s.from_a):
            from_b = span.from_a + shift
            to_b = from_b + len(span.insert)
            yield ChangeView(
                from_a=span.from_a,
                to_a=span.to_a,
                from_b=from_b,
                to_b=to_b,
                inserted=span.insert,
                removed=before[span.from_a:span.to_a],
            )
            shift += len(span.insert) - span.removed_length

    def natural_cursor(self) -> int | None:
        """Caret after the last inserted span, in post-edit coordinates."""
        end: int | None = None
        shift = 0
        for span in sorted(self.changes, key=lambda s: s.from_a):
            end = span.from_a + shift + len(span.insert)
            shift += len(span.insert) - span.removed_length
        return end

    def target_cursor(self) -> int | None:
        if self.selection is not None:
            return self.selection
        return self.natural_cursor()


def apply_edit(text: str, edit: EditDescriptor) -> str:
    """Apply every span of ``edit`` to ``text`` (spans are in pre-edit coordinates)."""
    out = text
    for span in sorted(edit.changes, key=lambda s: s.from_a, reverse=True):
        start = max(0, min(span.from_a, len(out)))
        end = max(start, min(span.to_a, len(out)))
        out = out[:start] + span.insert + out[end:]
    return out


def slice_doc(text: str, start: int, end: int) -> str:
    """Slice with clamped bounds; negative starts never wrap around."""
    start = max(0, start)
    end = max(start, min(end, len(text)))
    return text[start:end]


def offset_to_pos(text: str, offset: int) -> TextPos:
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset)
    line_start = text.rfind("\n", 0, offset) + 1
    return TextPos(line=line, ch=offset - line_start)


def pos_to_offset(text: str, pos: TextPos) -> int:
    line_start = 0
    for _ in range(max(0, pos.line)):
        nl = text.find("\n", line_start)
        if nl < 0:
            return len(text)
        line_start = nl + 1
    line_end = text.find("\n", line_start)
    if line_end < 0:
        line_end = len(text)
    return line_start + max(0, min(pos.ch, line_end - line_start))


def line_bounds(text: str, offset: int) -> tuple[int, int]:
    """Return ``(start, end)`` offsets of the line containing ``offset`` (end excludes the break)."""
    offset = max(0, min(offset, len(text)))
    start = text.rfind("\n", 0, offset) + 1
    end = text.find("\n", offset)
    if end < 0:
        end = len(text)
    return start, end


__all__ = [
    "CHARACTER_INPUT_ORIGINS",
    "COMPOSITION_ORIGINS",
    "ENGINE_USER_EVENTS",
    "FORMAT_USER_EVENT",
    "REWRITE_USER_EVENT",
    "ChangeSpan",
    "ChangeView",
    "EditDescriptor",
    "EditOrigin",
    "TextPos",
    "apply_edit",
    "line_bounds",
    "offset_to_pos",
    "pos_to_offset",
    "slice_doc",
]
