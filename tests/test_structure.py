"""Tests for the incremental Markdown line classifier."""

import pytest

from easytyping.engine.structure import ArticleParser, LineType, needs_reparse


def _parsed(text):
    parser = ArticleParser()
    parser.parse_new_article(text)
    return parser


# ============================================================================
# Classification
# ============================================================================


def test_plain_text_lines():
    parser = _parsed("one\ntwo")
    assert parser.structure == (LineType.TEXT, LineType.TEXT)
    assert parser.is_text_line(0)
    assert parser.is_text_line(1)


def test_fenced_code_block_lines_including_fences():
    parser = _parsed("a\n```py\nprint(1)\n```\nb")
    assert parser.structure == (
        LineType.TEXT,
        LineType.CODEBLOCK,
        LineType.CODEBLOCK,
        LineType.CODEBLOCK,
        LineType.TEXT,
    )


def test_tilde_fence():
    parser = _parsed("~~~\ncode\n~~~\nafter")
    assert parser.line_type(1) is LineType.CODEBLOCK
    assert parser.line_type(3) is LineType.TEXT


def test_closing_fence_must_match_opener_kind():
    parser = _parsed("```\n~~~\nstill code")
    assert parser.line_type(2) is LineType.CODEBLOCK


def test_inline_triple_backticks_are_not_a_fence():
    parser = _parsed("```inline```\ntext")
    assert parser.structure == (LineType.TEXT, LineType.TEXT)


def test_block_formula():
    parser = _parsed("$$\nx^2\n$$\ntext")
    assert parser.structure == (LineType.FORMULA, LineType.FORMULA, LineType.FORMULA, LineType.TEXT)


def test_single_line_block_formula():
    parser = _parsed("$$x$$\ntext")
    assert parser.structure == (LineType.FORMULA, LineType.TEXT)


def test_front_matter_only_on_first_line():
    parser = _parsed("---\ntitle: x\n---\nbody")
    assert parser.structure == (
        LineType.FRONTMATTER,
        LineType.FRONTMATTER,
        LineType.FRONTMATTER,
        LineType.TEXT,
    )
    assert _parsed("body\n---\nmore").structure == (LineType.TEXT,) * 3


def test_unclosed_block_runs_to_end():
    parser = _parsed("```\na\nb")
    assert all(kind is LineType.CODEBLOCK for kind in parser.structure)


def test_out_of_range_queries():
    parser = _parsed("x")
    assert parser.line_type(5) is None
    assert parser.line_type(-1) is None
    assert not parser.is_text_line(5)


# ============================================================================
# Incremental re-parse
# ============================================================================


def test_reparse_from_line_matches_full_parse():
    parser = _parsed("a\nb\nc")
    new_text = "a\n```\nc"
    parser.reparse(new_text, 1)
    assert parser.structure == _parsed(new_text).structure
    assert parser.content == new_text


def test_reparse_inside_open_block_uses_entering_state():
    parser = _parsed("```\nx\n```\ntail")
    new_text = "```\nx\ny\n```\ntail"
    parser.reparse(new_text, 2)
    assert parser.structure == _parsed(new_text).structure


def test_reparse_past_end_falls_back_to_full_parse():
    parser = _parsed("a")
    parser.reparse("a\nb\n$$\nc", 7)
    assert parser.structure == _parsed("a\nb\n$$\nc").structure


def test_update_content_keeps_structure():
    parser = _parsed("a\nb")
    parser.update_content("a\nbc")
    assert parser.content == "a\nbc"
    assert parser.structure == (LineType.TEXT, LineType.TEXT)


SAMPLE_DOCUMENTS = [
    "intro\n```python\nx = 1\n```\nafter",
    "~~~\n```\n~~~\ntext",
    "a\n$$\nx^2\n$$\nb\n$$x$$\nc",
    "---\ntitle: t\n---\nbody\n---\nrule",
    "---\ntitle: t\n...\n```\nunclosed\n$$",
    "$a$\n````\n```\n````\n$$\nend",
]


@pytest.mark.parametrize("text", SAMPLE_DOCUMENTS)
def test_reparse_from_any_line_keeps_full_parse(text):
    expected = _parsed(text).structure
    for line in range(len(expected)):
        parser = _parsed(text)
        parser.reparse(text, line)
        assert parser.structure == expected


def test_line_is_stale_after_in_place_edit():
    parser = _parsed("a\n$$\nb")
    assert parser.line_is_stale("a\n$a$\nb", 1)
    assert not parser.line_is_stale("a\n$$\nb", 1)
    assert not parser.line_is_stale("a\n$$\nbc", 2)


def test_line_is_stale_out_of_range():
    parser = _parsed("a")
    assert parser.line_is_stale("a", 3)
    assert parser.line_is_stale("a", -1)


# ============================================================================
# Block ranges
# ============================================================================


def test_block_ranges():
    parser = _parsed("a\n```\nx\n```\n$$\ny\n$$\nb")
    assert parser.block_ranges() == [(LineType.CODEBLOCK, 1, 3), (LineType.FORMULA, 4, 6)]


def test_block_ranges_split_adjacent_blocks():
    parser = _parsed("```\n```\n```\n```")
    assert parser.block_ranges() == [(LineType.CODEBLOCK, 0, 1), (LineType.CODEBLOCK, 2, 3)]


def test_describe_lists_every_line():
    assert _parsed("a\n$$\n$$").describe().splitlines() == [
        "    0 text",
        "    1 formula",
        "    2 formula",
    ]


# ============================================================================
# Re-parse triggers
# ============================================================================


@pytest.mark.parametrize(
    "inserted, removed, first_line, expected",
    [
        ("`", "", False, True),
        ("", "$", False, True),
        ("\n", "", False, True),
        ("~", "", False, True),
        ("abc", "", False, False),
        ("-", "", False, False),
        ("-", "", True, True),
        ("", ".", True, True),
    ],
)
def test_needs_reparse(inserted, removed, first_line, expected):
    assert needs_reparse(inserted, removed, first_line=first_line) is expected
