"""Conversion rule tables and trigger maps.

Rules are written the way users think about them: ``"before|after"`` strings
where ``|`` marks the cursor. ``"··|" -> "`|`"`` reads "when the text before
the cursor is ``··``, replace it with a backtick pair and leave the cursor
between them".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

CURSOR_MARKER = "|"


class MalformedRuleError(ValueError):
    """Raised when a rule string does not contain exactly one cursor marker."""


@dataclass(frozen=True, slots=True)
class PairString:
    left: str
    right: str

    @property
    def text(self) -> str:
        return self.left + self.right


@dataclass(frozen=True, slots=True)
class ConvertRule:
    before: PairString
    after: PairString

    @property
    def trigger(self) -> str:
        # The character whose insertion can complete ``before.left``.
        return self.before.left[-1:]


def parse_rule_string(text: str) -> PairString:
    if text.count(CURSOR_MARKER) != 1:
        raise MalformedRuleError(f"Rule string {text!r} must contain exactly one '{CURSOR_MARKER}'.")
    left, right = text.split(CURSOR_MARKER, 1)
    return PairString(left=left, right=right)


def rule_string_list_to_rules(pairs: Iterable[tuple[str, str]]) -> list[ConvertRule]:
    rules: list[ConvertRule] = []
    for before, after in pairs:
        rules.append(ConvertRule(before=parse_rule_string(before), after=parse_rule_string(after)))
    return rules


BASIC_CONVERT_RULE_STRINGS: tuple[tuple[str, str], ...] = (
    ("··|", "`|`"),
    ("`·|`", "```|\n```"),
    ("【【|】", "[[|]]"),
    ("【【|", "[[|]]"),
    ("￥￥|", "$|$"),
    ("$￥|$", "$$\n|\n$$"),
    ("$$|$", "$$\n|\n$$"),
    ("$$|", "$|$"),
    (">》|", ">>|"),
    ("\n》|", "\n>|"),
    (" 》|", " >|"),
    ("\n、|", "\n/|"),
    (" 、|", " /|"),
)

FW2HW_RULE_STRINGS: tuple[tuple[str, str], ...] = (
    ("。。|", ".|"),
    ("！！|", "!|"),
    ("；；|", ";|"),
    ("，，|", ",|"),
    ("：：|", ":|"),
    ("？？|", "?|"),
    ("、、|", "/|"),
    ("》》|", ">|"),
    ("《《|》", "<|"),
    ("《《|", "<|"),
)

DELETE_RULE_STRINGS: tuple[tuple[str, str], ...] = (
    ("$|$", "|"),
    ("```|\n```", "|"),
    ("==|==", "|"),
    ("$$\n|\n$$", "|"),
)

SELECTION_REPLACE_PAIRS: tuple[tuple[str, str, str], ...] = (
    ("【", "[", "]"),
    ("￥", "$", "$"),
    ("·", "`", "`"),
    ("《", "《", "》"),
    ("“", "“", "”"),
    ("”", "“", "”"),
    ("（", "（", "）"),
    ("<", "<", ">"),
    ("「", "[", "]"),
    ("『", "[", "]"),
)

SYMBOL_PAIR_STRINGS: tuple[str, ...] = ("【】", "（）", "<>", "《》", "“”", "‘’", "「」", "『』")

# Left and right variants of these quotes look alike in most CJK fonts, so the
# closing form always inserts a full pair.
AMBIGUOUS_CLOSER_PAIRS: dict[str, str] = {
    "”": "“”",
    "’": "‘’",
}


def build_selection_replace_map(entries: Iterable[tuple[str, str, str]]) -> dict[str, PairString]:
    return {trigger: PairString(left=left, right=right) for trigger, left, right in entries}


def build_symbol_pairs_map(pairs: Iterable[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for pair in pairs:
        if len(pair) != 2:
            raise MalformedRuleError(f"Symbol pair {pair!r} must be exactly two characters.")
        out[pair[0]] = pair[1]
    return out


@dataclass(slots=True)
class RuleTable:
    """All rule sets and trigger maps the rewriter consults."""

    basic_rules: list[ConvertRule] = field(default_factory=list)
    fw2hw_rules: list[ConvertRule] = field(default_factory=list)
    delete_rules: list[ConvertRule] = field(default_factory=list)
    selection_replace_map: dict[str, PairString] = field(default_factory=dict)
    symbol_pairs_map: dict[str, str] = field(default_factory=dict)
    ambiguous_closers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_strings(
        cls,
        *,
        basic: Sequence[tuple[str, str]] = BASIC_CONVERT_RULE_STRINGS,
        fw2hw: Sequence[tuple[str, str]] = FW2HW_RULE_STRINGS,
        delete: Sequence[tuple[str, str]] = DELETE_RULE_STRINGS,
        selection_pairs: Sequence[tuple[str, str, str]] = SELECTION_REPLACE_PAIRS,
        symbol_pairs: Sequence[str] = SYMBOL_PAIR_STRINGS,
        ambiguous_closers: Mapping[str, str] | None = None,
    ) -> "RuleTable":
        return cls(
            basic_rules=rule_string_list_to_rules(basic),
            fw2hw_rules=rule_string_list_to_rules(fw2hw),
            delete_rules=rule_string_list_to_rules(delete),
            selection_replace_map=build_selection_replace_map(selection_pairs),
            symbol_pairs_map=build_symbol_pairs_map(symbol_pairs),
            ambiguous_closers=dict(AMBIGUOUS_CLOSER_PAIRS if ambiguous_closers is None else ambiguous_closers),
        )

    def conversion_triggers(self) -> set[str]:
        return {rule.trigger for rule in (*self.basic_rules, *self.fw2hw_rules) if rule.trigger}


def default_rule_table() -> RuleTable:
    return RuleTable.from_strings()


__all__ = [
    "AMBIGUOUS_CLOSER_PAIRS",
    "BASIC_CONVERT_RULE_STRINGS",
    "CURSOR_MARKER",
    "DELETE_RULE_STRINGS",
    "FW2HW_RULE_STRINGS",
    "SELECTION_REPLACE_PAIRS",
    "SYMBOL_PAIR_STRINGS",
    "ConvertRule",
    "MalformedRuleError",
    "PairString",
    "RuleTable",
    "build_selection_replace_map",
    "build_symbol_pairs_map",
    "default_rule_table",
    "parse_rule_string",
    "rule_string_list_to_rules",
]
