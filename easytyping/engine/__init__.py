from .buffer import TextBuffer
from .dispatcher import FormatterDispatcher
from .line_formatter import LineFormatter, format_line
from .rewriter import TransactionRewriter, rewrite_edit
from .rules import ConvertRule, MalformedRuleError, PairString, RuleTable, default_rule_table
from .session import EditingSession, EditorHost
from .structure import ArticleParser, LineType, needs_reparse
from .text_model import (
    FORMAT_USER_EVENT,
    REWRITE_USER_EVENT,
    ChangeSpan,
    EditDescriptor,
    EditOrigin,
    TextPos,
    apply_edit,
    offset_to_pos,
    pos_to_offset,
)

__all__ = [
    "FORMAT_USER_EVENT",
    "REWRITE_USER_EVENT",
    "ArticleParser",
    "ChangeSpan",
    "ConvertRule",
    "EditDescriptor",
    "EditOrigin",
    "EditingSession",
    "EditorHost",
    "FormatterDispatcher",
    "LineFormatter",
    "LineType",
    "MalformedRuleError",
    "PairString",
    "RuleTable",
    "TextBuffer",
    "TextPos",
    "TransactionRewriter",
    "apply_edit",
    "default_rule_table",
    "format_line",
    "needs_reparse",
    "offset_to_pos",
    "pos_to_offset",
    "rewrite_edit",
]
