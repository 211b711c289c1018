"""Tests for single-line typographic formatting."""

import pytest

from easytyping.engine.line_formatter import LineFormatter, format_line, split_inline_parts
from easytyping.engine.text_model import FORMAT_USER_EVENT, apply_edit


def _fmt(line, cursor=None, **overrides):
    config = {"AutoCapital": False}
    config.update(overrides)
    return format_line(line, config, cursor)[0]


# ============================================================================
# Inline parts
# ============================================================================


def test_split_inline_parts_kinds():
    parts = split_inline_parts("see [[Page|alias]] and [t](u) at https://x.com/a `c` $f$ **b**")
    kinds = [part.kind for part in parts if not part.is_text]
    assert kinds == ["wikilink", "link", "url", "code", "formula", "emphasis"]


def test_split_inline_parts_visible_text():
    parts = {part.kind: part for part in split_inline_parts("[[Page|alias]] [text](http://u) **bold**")}
    assert parts["wikilink"].visible == "alias"
    assert parts["link"].visible == "text"
    assert parts["emphasis"].visible == "bold"
    assert parts["emphasis"].marker == "**"


def test_split_inline_parts_covers_line():
    line = "a `b` c"
    parts = split_inline_parts(line)
    assert "".join(part.text for part in parts) == line
    assert parts[1].begin == 2
    assert parts[1].end == 5


# ============================================================================
# Spacing
# ============================================================================


def test_space_between_cjk_and_latin():
    assert _fmt("中文English混合") == "中文 English 混合"


def test_space_between_cjk_and_digits():
    assert _fmt("数字123和") == "数字 123 和"


def test_latin_digit_space_off_by_default():
    assert _fmt("abc123") == "abc123"
    assert _fmt("abc123", EnglishNumberSpace=True) == "abc 123"


def test_spaces_between_cjk_removed():
    assert _fmt("中 文") == "中文"
    assert _fmt("中 文", ChineseNoSpace=False) == "中 文"


def test_space_after_punctuation():
    assert _fmt("hello,world") == "hello, world"


@pytest.mark.parametrize("line", ["std::vector", "U.S.A", "a: b"])
def test_punctuation_space_leaves_compounds(line):
    assert _fmt(line) == line


def test_full_width_punctuation_gets_no_space():
    assert _fmt("中文，English") == "中文，English"


def test_rules_disabled():
    assert _fmt("中文English", ChineseEnglishSpace=False) == "中文English"


def test_empty_line():
    assert format_line("") == ("", 0)


# ============================================================================
# Inline code, formulas, links
# ============================================================================


def test_inline_code_soft_mode():
    assert _fmt("使用`code`命令") == "使用 `code` 命令"


def test_inline_code_none_mode():
    assert _fmt("使用`code`命令", InlineCodeSpaceMode="none") == "使用`code`命令"


def test_inline_code_soft_mode_skips_punctuation():
    assert _fmt("(`x`)") == "(`x`)"


def test_inline_code_strict_mode():
    assert _fmt("(`x`)", InlineCodeSpaceMode="strict") == "( `x` )"


def test_inline_code_content_untouched():
    assert _fmt("`中文English`") == "`中文English`"


def test_inline_formula_soft_mode():
    assert _fmt("面积$S$很大") == "面积 $S$ 很大"


def test_emphasis_boundaries_use_visible_text():
    assert _fmt("这是**bold**文字") == "这是 **bold** 文字"


def test_emphasis_inner_text_is_formatted():
    assert _fmt("**中文English**") == "**中文 English**"


def test_bare_url_untouched():
    assert _fmt("访问https://example.com/a,b吧") == "访问 https://example.com/a,b 吧"


# ============================================================================
# Capitalisation
# ============================================================================


def test_capitalize_sentences_whole_line():
    assert format_line("hello world. this is it")[0] == "Hello world. This is it"


@pytest.mark.parametrize("line", ["e.g. this", "iPhone is"])
def test_capitalize_leaves_abbreviations_and_mixed_case(line):
    assert format_line(line)[0] == line


def test_capitalize_after_list_marker():
    assert format_line("- hello")[0] == "- Hello"
    assert format_line("1. hello")[0] == "1. Hello"


def test_capitalize_after_full_width_stop():
    assert format_line("中文。english")[0] == "中文。English"


def test_capitalize_typing_mode_only_touches_sentence_at_cursor():
    assert format_line("hello. world", None, 12)[0] == "hello. World"


def test_capitalize_global_mode():
    line, _ = format_line("hello. world", {"AutoCapitalMode": "global"}, 12)
    assert line == "Hello. World"


def test_capitalize_disabled():
    assert _fmt("hello world") == "hello world"


# ============================================================================
# Cursor tracking
# ============================================================================


def test_cursor_moves_past_inserted_space():
    assert format_line("中文a", None, 3) == ("中文 a", 4)


def test_cursor_moves_back_over_removed_space():
    assert format_line("中 文", None, 3) == ("中文", 2)


def test_cursor_before_change_is_kept():
    assert format_line("中文a", None, 1) == ("中文 a", 1)


def test_cursor_without_input_is_line_end():
    assert format_line("中文a") == ("中文 a", 4)


# ============================================================================
# Formatting a line inside a document
# ============================================================================


def test_format_line_of_doc_returns_fix_and_caret():
    doc = "line one\n中文a"
    fix, caret = LineFormatter().format_line_of_doc(doc, None, 11, 12)
    assert apply_edit(doc, fix) == "line one\n中文 a"
    assert fix.user_event == FORMAT_USER_EVENT
    assert fix.target_cursor() == 13
    assert not caret.doc_changed
    assert caret.selection == 13
    assert caret.user_event == FORMAT_USER_EVENT


def test_format_line_of_doc_unchanged_line():
    assert LineFormatter().format_line_of_doc("中文\nx", None, 0, 2) is None


def test_format_line_of_doc_caret_below_line():
    doc = "hello world\n"
    fix, _ = LineFormatter().format_line_of_doc(doc, None, 11, 12)
    assert apply_edit(doc, fix) == "Hello world\n"
    assert fix.selection == 12


def test_formatter_instance_config_is_used():
    formatter = LineFormatter({"ChineseEnglishSpace": False, "AutoCapital": False})
    assert formatter.format_line("中文English")[0] == "中文English"


# ============================================================================
# Typing scope
# ============================================================================


def test_scope_limits_spacing_changes():
    formatter = LineFormatter({"AutoCapital": False})
    assert formatter.format_line("中文a中文b", None, 6, scope=(4, 6)) == ("中文a中文 b", 7)
    assert formatter.format_line("中文a中文b", None, 6) == ("中文 a 中文 b", 9)


def test_format_line_of_doc_leaves_distant_spacing():
    doc = "iPhone手机 and more words heres"
    assert LineFormatter().format_line_of_doc(doc, None, 28, 29, "s") is None


def test_format_line_of_doc_spaces_near_insert():
    doc = "iPhone手机 and more 中文w"
    fix, caret = LineFormatter().format_line_of_doc(doc, None, 20, 21, "w")
    assert apply_edit(doc, fix) == "iPhone手机 and more 中文 w"
    assert caret.selection == 22


def test_scope_is_ignored_when_caret_leaves_line():
    doc = "iPhone手机 and more\n"
    fix, _ = LineFormatter({"AutoCapital": False}).format_line_of_doc(doc, None, 17, 18, "\n")
    assert apply_edit(doc, fix) == "iPhone 手机 and more\n"


# ============================================================================
# Idempotence
# ============================================================================


MIXED_LINES = [
    "中文English混合123数字",
    "使用`code`命令和$x^2$公式",
    "这是**bold**文字,and more",
    "访问https://example.com/a,b吧",
    "- hello world. this is 中文",
    "(`x`) e.g. iPhone 手机",
    "见[[Page|别名]]and[link](http://u)说明",
    "中 文 ， 测试abc",
    "hello.world? yes! 好的",
]


@pytest.mark.parametrize("line", MIXED_LINES)
def test_formatting_is_idempotent(line):
    once = format_line(line)
    assert format_line(once[0]) == once


@pytest.mark.parametrize("line", MIXED_LINES)
def test_formatting_with_caret_is_idempotent(line):
    once, caret = format_line(line, None, len(line))
    assert format_line(once, None, caret) == (once, caret)
