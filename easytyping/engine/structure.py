"""Incremental line classification for Markdown documents."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_REPARSE_TRIGGER_RE = re.compile(r"[`$~\n]")
_FIRST_LINE_TRIGGER_RE = re.compile(r"[-.]")

_FENCE_OPEN_RE = re.compile(r"^\s*(?P<delim>`{3,}|~{3,})(?P<info>.*)$")
_FENCE_CLOSE_RE = re.compile(r"^\s*(?P<delim>`{3,}|~{3,})\s*$")


class LineType(str, Enum):
    TEXT = "text"
    CODEBLOCK = "codeblock"
    FORMULA = "formula"
    FRONTMATTER = "frontmatter"


@dataclass(frozen=True, slots=True)
class FenceState:
    """Block that is still open after a line; TEXT means no open block."""

    kind: LineType = LineType.TEXT
    delim: str = ""


_NO_BLOCK = FenceState()


def needs_reparse(inserted: str, removed: str, *, first_line: bool = False) -> bool:
    """True when an edit may open, close or split a block."""
    if _REPARSE_TRIGGER_RE.search(inserted) or _REPARSE_TRIGGER_RE.search(removed):
        return True
    if first_line and (_FIRST_LINE_TRIGGER_RE.search(inserted) or _FIRST_LINE_TRIGGER_RE.search(removed)):
        return True
    return False


def _classify_line(line: str, index: int, state: FenceState) -> tuple[LineType, FenceState]:
    text = line.rstrip("\r")
    stripped = text.strip()

    if state.kind is LineType.CODEBLOCK:
        m = _FENCE_CLOSE_RE.match(text)
        if m and m.group("delim")[0] == state.delim[0] and len(m.group("delim")) >= len(state.delim):
            return LineType.CODEBLOCK, _NO_BLOCK
        return LineType.CODEBLOCK, state

    if state.kind is LineType.FORMULA:
        if stripped.endswith("$$"):
            return LineType.FORMULA, _NO_BLOCK
        return LineType.FORMULA, state

    if state.kind is LineType.FRONTMATTER:
        if text in ("---", "..."):
            return LineType.FRONTMATTER, _NO_BLOCK
        return LineType.FRONTMATTER, state

    if index == 0 and text == "---":
        return LineType.FRONTMATTER, FenceState(LineType.FRONTMATTER, "---")

    m = _FENCE_OPEN_RE.match(text)
    if m:
        delim = m.group("delim")
        # A backtick info string may not contain backticks (```inline``` is not a fence).
        if not (delim[0] == "`" and "`" in m.group("info")):
            return LineType.CODEBLOCK, FenceState(LineType.CODEBLOCK, delim)

    if stripped.startswith("$$"):
        if len(stripped) >= 4 and stripped.endswith("$$"):
            return LineType.FORMULA, _NO_BLOCK
        return LineType.FORMULA, FenceState(LineType.FORMULA, "$$")

    return LineType.TEXT, _NO_BLOCK


class ArticleParser:
    """Per-document line classification with cheap re-parse from a given line.

    The parser keeps, for every line, the block state left open after it. The
    state entering line ``n`` is therefore always known from the stored prefix,
    which is what makes ``reparse`` from ``n`` valid.
    """

    def __init__(self) -> None:
        self._structure: list[LineType] = []
        self._states: list[FenceState] = []
        self._content: str = ""

    @property
    def structure(self) -> tuple[LineType, ...]:
        return tuple(self._structure)

    @property
    def content(self) -> str:
        return self._content

    def __len__(self) -> int:
        return len(self._structure)

    def parse_new_article(self, text: str) -> None:
        self._structure = []
        self._states = []
        self._content = text
        self._scan(text.split("\n"), 0, _NO_BLOCK)

    def reparse(self, text: str, from_line: int) -> None:
        from_line = max(0, int(from_line))
        if from_line > len(self._structure) or not self._structure:
            self.parse_new_article(text)
            return
        lines = text.split("\n")
        if from_line > len(lines):
            self.parse_new_article(text)
            return
        entering = self._states[from_line - 1] if from_line > 0 else _NO_BLOCK
        del self._structure[from_line:]
        del self._states[from_line:]
        self._content = text
        self._scan(lines, from_line, entering)

    def update_content(self, text: str) -> None:
        self._content = text

    def line_is_stale(self, text: str, line: int) -> bool:
        """True when ``line`` of ``text`` no longer classifies, or leaves a block, as stored."""
        lines = text.split("\n")
        if line < 0 or line >= len(self._structure) or line >= len(lines):
            return True
        entering = self._states[line - 1] if line > 0 else _NO_BLOCK
        kind, state = _classify_line(lines[line], line, entering)
        return kind is not self._structure[line] or state != self._states[line]

    def is_text_line(self, line: int) -> bool:
        if line < 0 or line >= len(self._structure):
            return False
        return self._structure[line] is LineType.TEXT

    def line_type(self, line: int) -> LineType | None:
        if line < 0 or line >= len(self._structure):
            return None
        return self._structure[line]

    def block_ranges(self) -> list[tuple[LineType, int, int]]:
        """Contiguous non-prose runs as ``(kind, first_line, last_line)``."""
        ranges: list[tuple[LineType, int, int]] = []
        start = -1
        for idx, kind in enumerate(self._structure):
            if kind is LineType.TEXT:
                if start >= 0:
                    ranges.append((self._structure[start], start, idx - 1))
                    start = -1
                continue
            # A previous line that closed its block ends the run even without prose in between.
            if start >= 0 and (kind is not self._structure[start] or self._states[idx - 1] == _NO_BLOCK):
                ranges.append((self._structure[start], start, idx - 1))
                start = -1
            if start < 0:
                start = idx
        if start >= 0:
            ranges.append((self._structure[start], start, len(self._structure) - 1))
        return ranges

    def describe(self) -> str:
        return "\n".join(f"{idx:>5} {kind.value}" for idx, kind in enumerate(self._structure))

    def _scan(self, lines: list[str], start: int, state: FenceState) -> None:
        for idx in range(start, len(lines)):
            kind, state = _classify_line(lines[idx], idx, state)
            self._structure.append(kind)
            self._states.append(state)


__all__ = ["ArticleParser", "FenceState", "LineType", "needs_reparse"]
