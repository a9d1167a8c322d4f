"""Block document model.

A ``Document`` is an immutable, ordered arena of blocks with an id→index map
for constant-time lookups. Every mutation returns a new ``Document``; the
previous one stays valid, which keeps undo and change detection trivial.

Requests that violate model invariants (unknown block id, offset outside the
text, payload of the wrong shape) are treated as programming errors: they are
logged and the operation returns the unmodified document.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

import structlog

from blockpad.editor import formats as spans
from blockpad.models.block import Block
from blockpad.models.block_kind import Alignment, BlockKind, FormatKind
from blockpad.models.cursor import CursorState
from blockpad.models.payloads import (
    DEFAULT_CHECKLIST_TITLE,
    Payload,
    default_payload,
    payload_matches,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class EditResult:
    """Outcome of a structural operation.

    Attributes:
        document: Document after the operation (the original one on a no-op)
        focus: Where the caret should go next, None to leave focus alone
        changed: Whether the operation modified the document
    """

    document: "Document"
    focus: Optional[CursorState] = None
    changed: bool = True

    @classmethod
    def unchanged(cls, document: "Document") -> "EditResult":
        return cls(document=document, focus=None, changed=False)


class Document:
    """Ordered sequence of blocks for one note. Never empty."""

    def __init__(self, blocks: Iterable[Block] = ()):
        blocks = tuple(blocks)
        if not blocks:
            blocks = (Block.create(),)

        index = {}
        for position, block in enumerate(blocks):
            if block.id in index:
                raise ValueError(f"Duplicate block id: {block.id}")
            index[block.id] = position

        self._blocks = blocks
        self._index = index

    @classmethod
    def empty(cls) -> "Document":
        """Document holding a single empty paragraph."""
        return cls()

    @classmethod
    def from_text(cls, text: str) -> "Document":
        return cls([Block.create(BlockKind.PARAGRAPH, text or "")])

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def blocks(self) -> tuple[Block, ...]:
        return self._blocks

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __getitem__(self, position: int) -> Block:
        return self._blocks[position]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self._blocks == other._blocks

    def __hash__(self) -> int:
        return hash(self._blocks)

    def __repr__(self) -> str:
        return f"Document({len(self._blocks)} blocks)"

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._index

    def get(self, block_id: str) -> Optional[Block]:
        position = self._index.get(block_id)
        return None if position is None else self._blocks[position]

    def index_of(self, block_id: str) -> Optional[int]:
        return self._index.get(block_id)

    def previous(self, block_id: str) -> Optional[Block]:
        position = self._index.get(block_id)
        if not position:
            return None
        return self._blocks[position - 1]

    def next(self, block_id: str) -> Optional[Block]:
        position = self._index.get(block_id)
        if position is None or position + 1 >= len(self._blocks):
            return None
        return self._blocks[position + 1]

    def summary_text(self) -> str:
        """
        Plain-text mirror of the document.

        Text blocks contribute their text, other blocks a ``[kind]`` marker,
        one line per block. Saved alongside the blocks as the note's ``text``.
        """
        return "\n".join(
            block.text if block.kind.is_text_bearing else f"[{block.kind.value}]"
            for block in self._blocks
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _replaced(self, position: int, *blocks: Block) -> "Document":
        """Copy with the block at ``position`` replaced by ``blocks``."""
        return Document(self._blocks[:position] + blocks + self._blocks[position + 1:])

    def _text_block(self, block_id: str, operation: str) -> Optional[tuple[int, Block]]:
        position = self._index.get(block_id)
        if position is None:
            logger.warning("block_not_found", operation=operation, block_id=block_id)
            return None
        block = self._blocks[position]
        if not block.kind.is_text_bearing:
            logger.warning("block_not_text_bearing", operation=operation, block_id=block_id, kind=block.kind.value)
            return None
        return position, block

    # ------------------------------------------------------------------
    # Structural operations
    # ------------------------------------------------------------------

    def insert_block(
        self,
        kind: BlockKind,
        cursor: Optional[CursorState] = None,
        payload: Optional[Payload] = None,
        checklist_title: str = DEFAULT_CHECKLIST_TITLE,
    ) -> EditResult:
        """
        Insert a new block relative to the cursor.

        - caret strictly inside a text block: the block is split, the new
          block goes between the halves and the trailing half becomes a new
          paragraph carrying the trailing spans
        - caret at offset 0: the new block goes before the current one
        - caret at the end, on a non-text block, or no known cursor: after the
          current block (at the end of the document when there is none)

        Args:
            kind: Kind of block to insert
            cursor: Last known cursor, None when unknown
            payload: Payload for payload kinds (default shape when omitted)
            checklist_title: Title for a default checklist payload

        Returns:
            EditResult focusing the start of the new block
        """
        if payload is not None and not payload_matches(kind, payload):
            logger.warning("payload_kind_mismatch", kind=kind.value, payload_type=type(payload).__name__)
            payload = None
        if payload is None:
            payload = default_payload(kind, checklist_title=checklist_title)
        new_block = Block.create(kind, payload=payload)
        focus = CursorState.caret(new_block.id, 0)

        position = self._index.get(cursor.block_id) if cursor is not None else None
        if position is None:
            logger.debug("block_inserted", kind=kind.value, position=len(self._blocks))
            return EditResult(Document(self._blocks + (new_block,)), focus)

        target = self._blocks[position]
        if not target.kind.is_text_bearing:
            return EditResult(self._replaced(position, target, new_block), focus)

        text = target.text
        offset = max(0, min(cursor.offset, len(text)))

        if 0 < offset < len(text):
            before = target.with_changes(
                text=text[:offset],
                formats=spans.adjust_for_edit(target.formats, offset, len(text), 0, offset),
            )
            after = Block.create(
                BlockKind.PARAGRAPH,
                text[offset:],
                formats=spans.slice_spans(target.formats, offset, len(text)),
            )
            document = self._replaced(position, before, new_block, after)
        elif offset == 0:
            document = self._replaced(position, new_block, target)
        else:
            document = self._replaced(position, target, new_block)

        logger.debug("block_inserted", kind=kind.value, anchor=target.id, offset=offset)
        return EditResult(document, focus)

    def split_at_cursor(self, block_id: str, offset: int) -> EditResult:
        """
        Split a text block at ``offset`` (the Enter operation).

        The block keeps ``[0, offset)``; a successor holds ``[offset, end)`` with
        its spans re-based. List items continue the list, every other kind
        continues as a paragraph. An empty list item is converted to a
        paragraph in place instead (leaving the list).

        Returns:
            EditResult focusing the start of the successor (or the converted item)
        """
        found = self._text_block(block_id, "split")
        if found is None:
            return EditResult.unchanged(self)
        position, block = found

        if not 0 <= offset <= len(block.text):
            logger.warning("split_offset_out_of_range", block_id=block_id, offset=offset, length=len(block.text))
            return EditResult.unchanged(self)

        if block.kind.is_list and block.text.strip() == "":
            converted = block.with_changes(kind=BlockKind.PARAGRAPH)
            return EditResult(self._replaced(position, converted), CursorState.caret(block_id, offset))

        text = block.text
        head = block.with_changes(
            text=text[:offset],
            formats=spans.adjust_for_edit(block.formats, offset, len(text), 0, offset),
        )
        successor_kind = block.kind if block.kind.is_list else BlockKind.PARAGRAPH
        tail = Block.create(
            successor_kind,
            text[offset:],
            formats=spans.slice_spans(block.formats, offset, len(text)),
        )

        logger.debug("block_split", block_id=block_id, offset=offset, new_block_id=tail.id)
        return EditResult(self._replaced(position, head, tail), CursorState.caret(tail.id, 0))

    def merge_with_previous(self, block_id: str) -> EditResult:
        """
        Append a block's text to the previous block and remove it.

        Returns:
            EditResult focusing the join offset (the previous text's length)
            inside the previous block
        """
        found = self._text_block(block_id, "merge")
        if found is None:
            return EditResult.unchanged(self)
        position, block = found

        if position == 0:
            return EditResult.unchanged(self)
        previous = self._blocks[position - 1]
        if not previous.kind.is_text_bearing:
            logger.debug("merge_skipped_non_text_previous", block_id=block_id, previous_kind=previous.kind.value)
            return EditResult.unchanged(self)

        join = len(previous.text)
        merged = previous.with_changes(
            text=previous.text + block.text,
            formats=spans.join_spans(previous.formats, block.formats, join),
        )
        blocks = self._blocks[:position - 1] + (merged,) + self._blocks[position + 1:]

        logger.debug("block_merged", block_id=block_id, into=previous.id, join_offset=join)
        return EditResult(Document(blocks), CursorState.caret(previous.id, join))

    def merge_with_next(self, block_id: str) -> EditResult:
        """Pull the following block's text into this one (forward Delete)."""
        following = self.next(block_id)
        if following is None or block_id not in self._index:
            return EditResult.unchanged(self)
        if not self.get(block_id).kind.is_text_bearing:
            return EditResult.unchanged(self)
        return self.merge_with_previous(following.id)

    def delete_block(self, block_id: str) -> EditResult:
        """
        Remove a block. Deleting the only block leaves a fresh empty paragraph.

        Returns:
            EditResult focusing the end of the previous block, or the start of
            the next block when the first block was removed
        """
        position = self._index.get(block_id)
        if position is None:
            logger.warning("block_not_found", operation="delete", block_id=block_id)
            return EditResult.unchanged(self)

        if len(self._blocks) == 1:
            replacement = Block.create()
            logger.debug("last_block_replaced", block_id=block_id, new_block_id=replacement.id)
            return EditResult(Document([replacement]), CursorState.caret(replacement.id, 0))

        blocks = self._blocks[:position] + self._blocks[position + 1:]
        if position > 0:
            previous = self._blocks[position - 1]
            focus = CursorState.caret(previous.id, len(previous.text))
        else:
            focus = CursorState.caret(blocks[0].id, 0)

        logger.debug("block_deleted", block_id=block_id, position=position)
        return EditResult(Document(blocks), focus)

    def retype(
        self,
        block_id: str,
        new_kind: BlockKind,
        checklist_title: str = DEFAULT_CHECKLIST_TITLE,
    ) -> "Document":
        """
        Change a block's kind in place.

        Text and spans survive only between text-bearing kinds; any other
        switch resets the content to the new kind's default shape.
        """
        position = self._index.get(block_id)
        if position is None:
            logger.warning("block_not_found", operation="retype", block_id=block_id)
            return self
        block = self._blocks[position]
        if block.kind is new_kind:
            return self

        if block.kind.is_text_bearing and new_kind.is_text_bearing:
            retyped = block.with_changes(kind=new_kind)
        else:
            retyped = block.with_changes(
                kind=new_kind,
                text="",
                formats=(),
                payload=default_payload(new_kind, checklist_title=checklist_title),
            )

        logger.debug("block_retyped", block_id=block_id, old_kind=block.kind.value, new_kind=new_kind.value)
        return self._replaced(position, retyped)

    def reorder(self, block_id: str, new_index: int) -> "Document":
        """Move a block to ``new_index``. A pure permutation of the blocks."""
        position = self._index.get(block_id)
        if position is None or not 0 <= new_index < len(self._blocks):
            logger.warning("reorder_rejected", block_id=block_id, new_index=new_index)
            return self
        if position == new_index:
            return self

        blocks = list(self._blocks)
        block = blocks.pop(position)
        blocks.insert(new_index, block)
        logger.debug("block_reordered", block_id=block_id, old_index=position, new_index=new_index)
        return Document(blocks)

    def move(self, source_index: int, destination_index: int) -> "Document":
        """Reorder by positions, as reported by a drag-and-drop completion."""
        if not 0 <= source_index < len(self._blocks):
            return self
        return self.reorder(self._blocks[source_index].id, destination_index)

    # ------------------------------------------------------------------
    # Content operations
    # ------------------------------------------------------------------

    def edit_text(self, block_id: str, start: int, end: int, replacement: str = "") -> "Document":
        """
        Replace ``[start, end)`` of a block's text, adjusting its spans first.
        """
        found = self._text_block(block_id, "edit_text")
        if found is None:
            return self
        position, block = found

        if not 0 <= start <= end <= len(block.text):
            logger.warning("edit_range_out_of_range", block_id=block_id, start=start, end=end, length=len(block.text))
            return self
        if start == end and not replacement:
            return self

        text = block.text[:start] + replacement + block.text[end:]
        formats = spans.adjust_for_edit(block.formats, start, end, len(replacement), len(text))
        return self._replaced(position, block.with_changes(text=text, formats=formats))

    def set_text(self, block_id: str, new_text: str) -> "Document":
        """
        Replace a block's whole text, inferring the edited range.

        The range is the part between the longest common prefix and suffix of
        the old and new text, which is what a single keystroke or paste changes.
        """
        found = self._text_block(block_id, "set_text")
        if found is None:
            return self
        old = found[1].text
        if old == new_text:
            return self

        prefix = 0
        limit = min(len(old), len(new_text))
        while prefix < limit and old[prefix] == new_text[prefix]:
            prefix += 1
        suffix = 0
        while suffix < limit - prefix and old[len(old) - 1 - suffix] == new_text[len(new_text) - 1 - suffix]:
            suffix += 1

        return self.edit_text(block_id, prefix, len(old) - suffix, new_text[prefix:len(new_text) - suffix])

    def clear_block(self, block_id: str) -> "Document":
        found = self._text_block(block_id, "clear")
        if found is None:
            return self
        position, block = found
        if block.text == "" and not block.formats:
            return self
        return self._replaced(position, block.with_changes(text="", formats=()))

    def apply_format(self, block_id: str, kind: FormatKind, start: int, end: int) -> "Document":
        """Toggle a format span over ``[start, end)`` of a text block."""
        found = self._text_block(block_id, "apply_format")
        if found is None:
            return self
        position, block = found

        formats = spans.toggle_format(block.formats, kind, start, end, len(block.text))
        if formats == spans.normalize(block.formats):
            return self
        return self._replaced(position, block.with_changes(formats=formats))

    def set_alignment(self, block_id: str, alignment: Alignment) -> "Document":
        position = self._index.get(block_id)
        if position is None:
            logger.warning("block_not_found", operation="set_alignment", block_id=block_id)
            return self
        block = self._blocks[position]
        if block.alignment is alignment:
            return self
        return self._replaced(position, block.with_changes(alignment=alignment))

    def update_payload(self, block_id: str, payload: Payload) -> "Document":
        """Replace a payload block's data with a payload of the same shape."""
        position = self._index.get(block_id)
        if position is None:
            logger.warning("block_not_found", operation="update_payload", block_id=block_id)
            return self
        block = self._blocks[position]
        if not block.kind.has_payload or not payload_matches(block.kind, payload):
            logger.warning("payload_kind_mismatch", block_id=block_id, kind=block.kind.value)
            return self
        if block.payload == payload:
            return self
        return self._replaced(position, block.with_changes(payload=payload))
