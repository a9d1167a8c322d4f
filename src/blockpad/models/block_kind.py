"""Enumerations shared by block and payload models."""

from enum import Enum
from typing import Optional


class BlockKind(str, Enum):
    """Closed set of block variants."""

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_ITEM = "bulleted_item"
    NUMBERED_ITEM = "numbered_item"
    QUOTE = "quote"
    CODE = "code"
    DIVIDER = "divider"
    TABLE = "table"
    IMAGE = "image"
    CALENDAR = "calendar"
    CHECKLIST = "checklist"

    @property
    def is_text_bearing(self) -> bool:
        return self in TEXT_KINDS

    @property
    def has_payload(self) -> bool:
        return self in PAYLOAD_KINDS

    @property
    def is_list(self) -> bool:
        return self in LIST_KINDS

    @property
    def heading_level(self) -> Optional[int]:
        return HEADING_LEVELS.get(self)

    @classmethod
    def heading(cls, level: int) -> "BlockKind":
        """Heading kind for level 1..3."""
        for kind, kind_level in HEADING_LEVELS.items():
            if kind_level == level:
                return kind
        raise ValueError(f"Heading level must be 1, 2 or 3, got {level}")

    @classmethod
    def parse(cls, value: str) -> Optional["BlockKind"]:
        """Resolve a wire name, accepting the names older notes were saved with."""
        if not isinstance(value, str):
            return None
        value = LEGACY_KIND_NAMES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            return None


TEXT_KINDS = frozenset({
    BlockKind.PARAGRAPH,
    BlockKind.HEADING_1,
    BlockKind.HEADING_2,
    BlockKind.HEADING_3,
    BlockKind.BULLETED_ITEM,
    BlockKind.NUMBERED_ITEM,
    BlockKind.QUOTE,
    BlockKind.CODE,
})

PAYLOAD_KINDS = frozenset({
    BlockKind.TABLE,
    BlockKind.IMAGE,
    BlockKind.CALENDAR,
    BlockKind.CHECKLIST,
})

LIST_KINDS = frozenset({BlockKind.BULLETED_ITEM, BlockKind.NUMBERED_ITEM})

HEADING_LEVELS = {
    BlockKind.HEADING_1: 1,
    BlockKind.HEADING_2: 2,
    BlockKind.HEADING_3: 3,
}

LEGACY_KIND_NAMES = {
    "heading1": "heading_1",
    "heading2": "heading_2",
    "heading3": "heading_3",
    "bulletList": "bulleted_item",
    "numberedList": "numbered_item",
    "todoList": "checklist",
}


class FormatKind(str, Enum):
    """Inline style kinds. Declaration order is the rendering nesting order."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    CODE = "code"

    @property
    def rank(self) -> int:
        return FORMAT_ORDER.index(self)


FORMAT_ORDER = tuple(FormatKind)


class Alignment(str, Enum):
    """Horizontal alignment of a block."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
