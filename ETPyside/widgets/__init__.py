"""Reusable PySide widgets shared across projects."""

from .markdown_editor import MarkdownEditor, StructureHighlighter

__all__ = ["MarkdownEditor", "StructureHighlighter"]
