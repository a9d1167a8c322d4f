"""Pydantic data models for Blockpad."""

from blockpad.models.block_kind import Alignment, BlockKind, FormatKind
from blockpad.models.block import Block, FormatSpan
from blockpad.models.cursor import CursorState

__all__ = ["Alignment", "Block", "BlockKind", "CursorState", "FormatKind", "FormatSpan"]
