"""Block and format span models."""

from typing import Optional, Union

from pydantic import BaseModel, Field, model_validator

from blockpad.models.block_kind import Alignment, BlockKind, FormatKind
from blockpad.models.payloads import (
    CalendarPayload,
    ChecklistPayload,
    ImagePayload,
    Payload,
    TablePayload,
    default_payload,
)
from blockpad.utils.ids import generate_random_uuid


class FormatSpan(BaseModel):
    """Half-open ``[start, end)`` interval of a block's text tagged with a style."""

    start: int = Field(..., ge=0, description="First formatted character")
    end: int = Field(..., ge=0, description="One past the last formatted character")
    kind: FormatKind = Field(..., description="Inline style")

    model_config = {"frozen": True}

    @property
    def length(self) -> int:
        return self.end - self.start

    def sort_key(self) -> tuple[int, int, int]:
        return (self.start, self.end, self.kind.rank)

    def shifted(self, delta: int) -> "FormatSpan":
        return FormatSpan(start=self.start + delta, end=self.end + delta, kind=self.kind)

    def is_valid_for(self, text_length: int) -> bool:
        return 0 <= self.start < self.end <= text_length


class Block(BaseModel):
    """One unit of document content.

    Text-bearing kinds carry ``text`` and ``formats``; payload kinds carry a
    ``payload`` and never formats; dividers carry neither.
    """

    id: str = Field(default_factory=generate_random_uuid, description="Stable identity within the document")
    kind: BlockKind = Field(default=BlockKind.PARAGRAPH)
    text: str = Field(default="", description="Plain text content")
    formats: tuple[FormatSpan, ...] = Field(default=(), description="Inline style spans over text")
    alignment: Alignment = Field(default=Alignment.LEFT)
    payload: Optional[Union[TablePayload, ImagePayload, CalendarPayload, ChecklistPayload]] = Field(
        default=None,
        description="Kind-specific structured data for payload kinds"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_kind_contents(self) -> "Block":
        if not self.kind.is_text_bearing and (self.text or self.formats):
            raise ValueError(f"{self.kind.value} blocks carry no text or formats")
        if self.kind.is_text_bearing and self.payload is not None:
            raise ValueError(f"{self.kind.value} blocks carry no payload")
        for span in self.formats:
            if not span.is_valid_for(len(self.text)):
                raise ValueError(
                    f"Format span [{span.start}, {span.end}) outside text of length {len(self.text)}"
                )
        return self

    @classmethod
    def create(
        cls,
        kind: BlockKind = BlockKind.PARAGRAPH,
        text: str = "",
        payload: Optional[Payload] = None,
        **kwargs,
    ) -> "Block":
        """Create a block with a fresh id and, for payload kinds, a default payload."""
        if kind.has_payload and payload is None:
            payload = default_payload(kind)
        if not kind.is_text_bearing:
            text = ""
        return cls(kind=kind, text=text, payload=payload, **kwargs)

    @property
    def is_empty(self) -> bool:
        return self.kind.is_text_bearing and self.text == ""

    def with_changes(self, **changes) -> "Block":
        """Copy with changes, re-running validation."""
        return Block.model_validate({**self._fields(), **changes})

    def _fields(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "text": self.text,
            "formats": self.formats,
            "alignment": self.alignment,
            "payload": self.payload,
        }
