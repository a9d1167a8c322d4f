"""Document editing model: spans, blocks, cursor and commands."""

from blockpad.editor.document import Document, EditResult

__all__ = ["Document", "EditResult"]
