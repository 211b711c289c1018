"""Tests for the project metadata shipped at the repository root."""

import re
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def test_declared_readme_exists():
    text = (ROOT / "pyproject.toml").read_text(encoding="utf-8")
    match = re.search(r'^readme\s*=\s*"([^"]+)"', text, re.MULTILINE)
    assert match is not None
    assert match.group(1) == "README.md"
    assert (ROOT / match.group(1)).is_file()
