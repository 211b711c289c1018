"""Typographic normalization of a single Markdown line.

The line is split into inline parts (plain text, inline code, formulas, links,
bare URLs, emphasis spans). Spacing and punctuation rules only run on plain
text; code, formulas and link targets are copied verbatim, and their
boundaries follow the configured space modes. The cursor offset is carried
through every insertion and removal so the caller can restore it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from easytyping.engine.text_model import FORMAT_USER_EVENT, EditDescriptor, EditOrigin, line_bounds
from easytyping.settings_models import SPACE_MODE_CHOICES, default_easy_typing_settings

_CJK = "\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff"
_FW_PUNCT = "、。！，：；？“”‘’（）《》【】「」『』"

CJK_CHAR_RE = re.compile(f"[{_CJK}]")

_RE_CJK_NO_SPACE = re.compile(f"(?<=[{_CJK}{_FW_PUNCT}]) +(?=[{_CJK}{_FW_PUNCT}])")
_RE_CJK_LATIN = re.compile(f"(?<=[{_CJK}])(?=[A-Za-z])|(?<=[A-Za-z])(?=[{_CJK}])")
_RE_CJK_DIGIT = re.compile(f"(?<=[{_CJK}])(?=[0-9])|(?<=[0-9])(?=[{_CJK}])")
_RE_LATIN_DIGIT = re.compile(r"(?<=[A-Za-z])(?=[0-9])|(?<=[0-9])(?=[A-Za-z])")
# "std::vector" and "U.S.A" stay as they are.
_RE_PUNCT_SPACE = re.compile(r"(?<=[^:\s][,;:!?])(?=[A-Za-z])|(?<=[a-z]{2}\.)(?=[A-Z])")

_SENTENCE_BREAK_RE = re.compile(r"(?<!\.)(?<!\b[A-Za-z])[.!?]\s+|[。！？]\s*")
_SENTENCE_WORD_RE = re.compile(r"[a-z][a-z']*(?![A-Za-z])")
_LINE_PREFIX_RE = re.compile(
    r"^(?:\s*(?:[-+*]\s+(?:\[[ xX]\]\s+)?|\d+[.)]\s+|>+\s*|#{1,6}\s+))*\s*"
)

_INLINE_RE = re.compile(
    r"(?P<code>(?P<ticks>`+)[^`].*?(?<!`)(?P=ticks)(?!`))"
    r"|(?P<formula>\$\$[^$\n]+?\$\$|\$[^$\n]+?\$)"
    r"|(?P<wikilink>!?\[\[(?P<wiki_inner>[^\]\n]+?)\]\])"
    r"|(?P<link>!?\[(?P<link_text>[^\]\n]*)\]\([^)\n]*\))"
    rf"|(?P<url>(?:https?|ftp)://[^\s<>()\[\]`{_CJK}{_FW_PUNCT}]+)"
    r"|(?P<emphasis>(?P<marker>\*\*|__|~~|==)(?=\S)(?P<inner>.+?)(?<=\S)(?P=marker))"
)

FORMAT_OPTION_KEYS: tuple[str, ...] = (
    "ChineseEnglishSpace",
    "ChineseNumberSpace",
    "EnglishNumberSpace",
    "ChineseNoSpace",
    "PunctuationSpace",
    "AutoCapital",
    "AutoCapitalMode",
    "InlineCodeSpaceMode",
    "InlineFormulaSpaceMode",
)
FORMAT_DEFAULTS: dict[str, Any] = {
    key: value for key, value in default_easy_typing_settings().items() if key in FORMAT_OPTION_KEYS
}


@dataclass(slots=True)
class InlinePart:
    kind: str  # text | code | formula | wikilink | link | url | emphasis
    text: str
    begin: int
    end: int
    marker: str = ""
    visible: str = ""

    @property
    def is_text(self) -> bool:
        return self.kind == "text"


def split_inline_parts(line: str) -> list[InlinePart]:
    parts: list[InlinePart] = []
    last = 0
    for m in _INLINE_RE.finditer(line):
        if m.start() > last:
            parts.append(InlinePart("text", line[last:m.start()], last, m.start()))
        if m.group("code") is not None:
            kind, visible = "code", m.group("code")
        elif m.group("formula") is not None:
            kind, visible = "formula", m.group("formula")
        elif m.group("wikilink") is not None:
            kind, visible = "wikilink", m.group("wiki_inner").split("|")[-1]
        elif m.group("link") is not None:
            kind, visible = "link", m.group("link_text")
        elif m.group("url") is not None:
            kind, visible = "url", m.group("url")
        else:
            kind, visible = "emphasis", m.group("inner")
        parts.append(
            InlinePart(
                kind,
                m.group(0),
                m.start(),
                m.end(),
                marker=(m.group("marker") or "") if kind == "emphasis" else "",
                visible=visible,
            )
        )
        last = m.end()
    if last < len(line):
        parts.append(InlinePart("text", line[last:], last, len(line)))
    return parts


Scope = tuple[int, int]

# Characters before the inserted text that a typing edit may still touch.
TYPING_CONTEXT = 4


def _in_scope(scope: Scope | None, start: int, end: int) -> bool:
    return scope is None or (end >= scope[0] and start <= scope[1])


def _offset_scope(scope: Scope | None, offset: int) -> Scope | None:
    if scope is None:
        return None
    return scope[0] - offset, scope[1] - offset


def _shift(pos: int, start: int, end: int, repl_len: int) -> int:
    """Where ``pos`` lands after ``[start, end)`` is replaced by ``repl_len`` characters."""
    if pos >= end:
        return pos + repl_len - (end - start)
    if pos > start:
        return pos + min(repl_len, pos - start) - (pos - start)
    return pos


def _sub_tracking(
    pattern: re.Pattern[str],
    repl: str,
    text: str,
    cursor: int | None,
    scope: Scope | None = None,
) -> tuple[str, int | None, Scope | None]:
    """Substitute matches that touch ``scope``, carrying the cursor and scope along."""
    out: list[str] = []
    last = 0
    new_cursor = cursor
    new_scope = scope
    for m in pattern.finditer(text):
        start, end = m.span()
        if not _in_scope(scope, start, end):
            continue
        out.append(text[last:start])
        out.append(repl)
        if cursor is not None and new_cursor is not None:
            new_cursor += _shift(cursor, start, end, len(repl)) - cursor
        if scope is not None and new_scope is not None:
            new_scope = (
                new_scope[0] + _shift(scope[0], start, end, len(repl)) - scope[0],
                new_scope[1] + _shift(scope[1], start, end, len(repl)) - scope[1],
            )
        last = end
    out.append(text[last:])
    return "".join(out), new_cursor, new_scope


def _is_cjk(ch: str) -> bool:
    return bool(CJK_CHAR_RE.match(ch))


def _is_latin(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


class LineFormatter:
    """Applies the typographic rules of the settings mapping to one line at a time."""

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        self._config = config

    def _option(self, config: Mapping[str, Any] | None, key: str) -> Any:
        source = config if config is not None else self._config
        if source is None:
            return FORMAT_DEFAULTS[key]
        return source.get(key, FORMAT_DEFAULTS[key])

    # --------- public API ---------

    def format_line(
        self,
        line: str,
        config: Mapping[str, Any] | None = None,
        cursor: int | None = None,
        *,
        scope: Scope | None = None,
    ) -> tuple[str, int]:
        """Return ``(new_line, new_cursor)``.

        Without a cursor the whole line is in scope (every sentence may be
        capitalised) and the returned cursor is the end of the new line.
        ``scope`` limits spacing and punctuation fixes to the ``(start, end)``
        range of the input line; capitalisation is not limited by it.
        """
        if not line:
            return line, 0
        if cursor is not None:
            cursor = max(0, min(cursor, len(line)))

        prefix_end = _LINE_PREFIX_RE.match(line).end()
        new_line, new_cursor, text_spans = self._format_fragment(line, cursor, config, prefix_end, scope)
        new_line = self._capitalize(new_line, new_cursor, text_spans, config)
        if new_cursor is None:
            new_cursor = len(new_line)
        return new_line, new_cursor

    def format_line_of_doc(
        self,
        doc: str,
        config: Mapping[str, Any] | None,
        from_b: int,
        cursor: int,
        inserted: str = "",
    ) -> tuple[EditDescriptor, EditDescriptor] | None:
        """Format the line containing ``from_b`` of the committed document.

        With the caret on the line, only the inserted text and the few
        characters before it are respaced. Returns the follow-up pair
        ``(line_fix, caret_move)``, or None when nothing changes.
        """
        line_start, line_end = line_bounds(doc, from_b)
        line = doc[line_start:line_end]
        if line_start <= cursor <= line_end:
            local_from = from_b - line_start
            local_cursor = cursor - line_start
            scope = (
                max(0, local_from - TYPING_CONTEXT),
                max(local_cursor, min(local_from + len(inserted), len(line))),
            )
            new_line, new_ch = self.format_line(line, config, local_cursor, scope=scope)
            new_cursor = line_start + new_ch
        else:
            # Enter moved the caret below the edited line.
            new_line, _ = self.format_line(line, config, None)
            new_cursor = cursor + len(new_line) - len(line) if cursor > line_end else cursor
        if new_line == line:
            return None
        fix = EditDescriptor.single(
            line_start,
            line_end,
            new_line,
            EditOrigin.PROGRAMMATIC,
            selection=new_cursor,
            user_event=FORMAT_USER_EVENT,
        )
        caret = EditDescriptor(
            changes=(),
            origin=EditOrigin.PROGRAMMATIC,
            selection=new_cursor,
            user_event=FORMAT_USER_EVENT,
        )
        return fix, caret

    # --------- parts ---------

    def _format_fragment(
        self,
        text: str,
        cursor: int | None,
        config: Mapping[str, Any] | None,
        sentence_start: int | None,
        scope: Scope | None = None,
    ) -> tuple[str, int | None, list[tuple[int, int, int | None]]]:
        parts = split_inline_parts(text)
        out: list[str] = []
        out_len = 0
        new_cursor: int | None = None
        text_spans: list[tuple[int, int, int | None]] = []
        prev: InlinePart | None = None
        prev_text = ""
        cursor_done = cursor is None

        for part in parts:
            new_text, local = self._format_part(part, cursor, config, scope)
            if (
                prev is not None
                and self._boundary_in_scope(prev, part, scope)
                and self._needs_boundary_space(prev, prev_text, part, new_text, config)
            ):
                out.append(" ")
                out_len += 1
            if part.is_text:
                local_start = None
                if sentence_start is not None and part.begin <= sentence_start <= part.end:
                    local_start = out_len + (sentence_start - part.begin)
                text_spans.append((out_len, out_len + len(new_text), local_start))
            if not cursor_done and local is not None:
                new_cursor = out_len + local
                cursor_done = True
            out.append(new_text)
            out_len += len(new_text)
            prev, prev_text = part, new_text

        return "".join(out), new_cursor, text_spans

    def _format_part(
        self,
        part: InlinePart,
        cursor: int | None,
        config: Mapping[str, Any] | None,
        scope: Scope | None = None,
    ) -> tuple[str, int | None]:
        local = None
        if cursor is not None and part.begin <= cursor <= part.end:
            local = cursor - part.begin
        local_scope = _offset_scope(scope, part.begin)

        if part.is_text:
            return self._format_text(part.text, local, config, local_scope)

        if part.kind == "emphasis":
            marker = part.marker
            inner = part.text[len(marker):len(part.text) - len(marker)]
            inner_cursor = None
            if local is not None and len(marker) <= local <= len(marker) + len(inner):
                inner_cursor = local - len(marker)
            new_inner, new_inner_cursor, _ = self._format_fragment(
                inner,
                inner_cursor,
                config,
                None,
                _offset_scope(local_scope, len(marker)),
            )
            if local is not None:
                if new_inner_cursor is not None:
                    local = len(marker) + new_inner_cursor
                elif local > len(marker) + len(inner):
                    local += len(new_inner) - len(inner)
            part.visible = new_inner
            return marker + new_inner + marker, local

        return part.text, local

    def _format_text(
        self,
        text: str,
        cursor: int | None,
        config: Mapping[str, Any] | None,
        scope: Scope | None = None,
    ) -> tuple[str, int | None]:
        passes = (
            ("ChineseNoSpace", _RE_CJK_NO_SPACE, ""),
            ("ChineseEnglishSpace", _RE_CJK_LATIN, " "),
            ("ChineseNumberSpace", _RE_CJK_DIGIT, " "),
            ("EnglishNumberSpace", _RE_LATIN_DIGIT, " "),
            ("PunctuationSpace", _RE_PUNCT_SPACE, " "),
        )
        for key, pattern, repl in passes:
            if self._option(config, key):
                text, cursor, scope = _sub_tracking(pattern, repl, text, cursor, scope)
        return text, cursor

    # --------- boundaries ---------

    @staticmethod
    def _boundary_in_scope(left: InlinePart, right: InlinePart, scope: Scope | None) -> bool:
        # An inline span that reaches into the scope counts as touched as a whole.
        if _in_scope(scope, right.begin, right.begin):
            return True
        if not left.is_text and _in_scope(scope, left.begin, left.end):
            return True
        return not right.is_text and _in_scope(scope, right.begin, right.end)

    def _space_mode(self, kind: str, config: Mapping[str, Any] | None) -> str:
        key = "InlineCodeSpaceMode" if kind == "code" else "InlineFormulaSpaceMode"
        mode = str(self._option(config, key) or "none").strip().lower()
        return mode if mode in SPACE_MODE_CHOICES else "none"

    def _needs_boundary_space(
        self,
        left: InlinePart,
        left_text: str,
        right: InlinePart,
        right_text: str,
        config: Mapping[str, Any] | None,
    ) -> bool:
        if not left_text or not right_text:
            return False
        if left_text[-1].isspace() or right_text[0].isspace():
            return False

        spaced = {"code", "formula"}
        if left.kind in spaced or right.kind in spaced:
            mode = self._space_mode(right.kind if right.kind in spaced else left.kind, config)
            if mode == "none":
                return False
            if mode == "strict":
                return True
            if left.kind in spaced and right.kind in spaced:
                return False
            neighbor = self._edge_char(right, right_text, first=True) if left.kind in spaced else self._edge_char(left, left_text, first=False)
            return bool(neighbor) and neighbor.isalnum()

        lc = self._edge_char(left, left_text, first=False)
        rc = self._edge_char(right, right_text, first=True)
        if not lc or not rc:
            return False
        return self._needs_cjk_space(lc, rc, config)

    @staticmethod
    def _edge_char(part: InlinePart, text: str, *, first: bool) -> str:
        source = text if part.is_text else (part.visible or text)
        if not source:
            return ""
        return source[0] if first else source[-1]

    def _needs_cjk_space(self, lc: str, rc: str, config: Mapping[str, Any] | None) -> bool:
        if _is_cjk(lc) != _is_cjk(rc):
            other = rc if _is_cjk(lc) else lc
            if _is_latin(other) and self._option(config, "ChineseEnglishSpace"):
                return True
            if other.isdigit() and other.isascii() and self._option(config, "ChineseNumberSpace"):
                return True
        return False

    # --------- capitalisation ---------

    def _capitalize(
        self,
        line: str,
        cursor: int | None,
        text_spans: list[tuple[int, int, int | None]],
        config: Mapping[str, Any] | None,
    ) -> str:
        if not self._option(config, "AutoCapital"):
            return line
        sentences: list[tuple[int, str, int]] = []
        for start, end, sentence_start in text_spans:
            segment = line[start:end]
            starts = [m.end() for m in _SENTENCE_BREAK_RE.finditer(segment)]
            if sentence_start is not None:
                starts.insert(0, sentence_start - start)
            sentences.extend((start, segment, local) for local in starts)

        mode = str(self._option(config, "AutoCapitalMode") or "typing").strip().lower()
        if cursor is not None and mode != "global":
            # Only the sentence the caret is in, whatever its current case.
            sentences = [s for s in sentences if s[0] + s[2] < cursor][-1:]

        chars = list(line)
        for start, segment, local in sentences:
            m = _SENTENCE_WORD_RE.match(segment, local)
            if m is None:
                continue
            # Single-letter abbreviations such as "e.g." keep their case.
            if m.end() - m.start() == 1 and segment[m.end():m.end() + 1] == ".":
                continue
            chars[start + m.start()] = chars[start + m.start()].upper()
        return "".join(chars)


def format_line(line: str, config: Mapping[str, Any] | None = None, cursor: int | None = None) -> tuple[str, int]:
    return LineFormatter(config).format_line(line, config, cursor)


__all__ = [
    "CJK_CHAR_RE",
    "FORMAT_DEFAULTS",
    "FORMAT_OPTION_KEYS",
    "InlinePart",
    "LineFormatter",
    "format_line",
    "split_inline_parts",
]
