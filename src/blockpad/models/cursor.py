"""CursorState model."""

from typing import Optional

from pydantic import BaseModel, Field


class CursorState(BaseModel):
    """Where the text-editing focus is: a caret, or a selection inside one block.

    Also used as the focus target a structural command hands back to the UI
    shell (always collapsed in that role).
    """

    block_id: str = Field(..., description="Block holding the caret")
    offset: int = Field(default=0, ge=0, description="Caret offset (selection anchor)")
    selection_end: Optional[int] = Field(
        default=None,
        ge=0,
        description="Other end of the selection, None for a collapsed caret"
    )

    model_config = {"frozen": True}

    @classmethod
    def caret(cls, block_id: str, offset: int = 0) -> "CursorState":
        return cls(block_id=block_id, offset=offset)

    @classmethod
    def selection(cls, block_id: str, start: int, end: int) -> "CursorState":
        return cls(block_id=block_id, offset=start, selection_end=end)

    @property
    def start(self) -> int:
        if self.selection_end is None:
            return self.offset
        return min(self.offset, self.selection_end)

    @property
    def end(self) -> int:
        if self.selection_end is None:
            return self.offset
        return max(self.offset, self.selection_end)

    @property
    def is_collapsed(self) -> bool:
        return self.start == self.end

    @property
    def selected_length(self) -> int:
        return self.end - self.start

    def collapsed_to(self, offset: int) -> "CursorState":
        return CursorState(block_id=self.block_id, offset=offset)
