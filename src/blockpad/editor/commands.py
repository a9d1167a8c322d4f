"""Keyboard-level editing commands.

Each command resolves the selection through the ``CursorCoordinator``,
composes document operations, and returns an ``EditResult`` whose ``focus``
tells the UI shell where to put the caret. The coordinator adopts that focus,
so the next command starts from it even if the shell never reports it back.
"""

from enum import Enum
from typing import Optional

import structlog

from blockpad.editor.cursor import CursorCoordinator, target_above, target_below
from blockpad.editor.document import Document, EditResult
from blockpad.models.block import Block
from blockpad.models.block_kind import BlockKind
from blockpad.models.cursor import CursorState
from blockpad.models.payloads import DEFAULT_CHECKLIST_TITLE, Payload

logger = structlog.get_logger()


class Key(str, Enum):
    """Keys with structural meaning."""

    ENTER = "enter"
    BACKSPACE = "backspace"
    DELETE = "delete"
    ARROW_UP = "arrow_up"
    ARROW_DOWN = "arrow_down"


def _result(before: Document, after: Document, focus: Optional[CursorState]) -> EditResult:
    return EditResult(document=after, focus=focus, changed=after is not before)


class CommandLayer:
    """Translate keys and edit requests into document operations."""

    def __init__(
        self,
        coordinator: Optional[CursorCoordinator] = None,
        checklist_title: str = DEFAULT_CHECKLIST_TITLE,
    ) -> None:
        self.coordinator = coordinator or CursorCoordinator()
        self.checklist_title = checklist_title

    def _finish(self, result: EditResult) -> EditResult:
        self.coordinator.settle(result.focus, result.document)
        if result.changed:
            logger.debug(
                "command_applied",
                focus_block=result.focus.block_id if result.focus else None,
                block_count=len(result.document),
            )
        return result

    def handle_key(self, document: Document, key: Key, current: Optional[CursorState] = None) -> EditResult:
        """
        Dispatch a structural key.

        Args:
            document: Current document
            key: Key pressed
            current: Live selection, None when no block has focus

        Returns:
            EditResult (unchanged document when the key has no effect)
        """
        handlers = {
            Key.ENTER: self.enter,
            Key.BACKSPACE: self.backspace,
            Key.DELETE: self.delete,
            Key.ARROW_UP: self.arrow_up,
            Key.ARROW_DOWN: self.arrow_down,
        }
        return handlers[key](document, current)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def enter(self, document: Document, current: Optional[CursorState] = None) -> EditResult:
        """Split the block at the caret, replacing any selection first."""
        cursor = self.coordinator.resolve(current, document)
        if cursor is None:
            return EditResult.unchanged(document)
        block = document.get(cursor.block_id)

        if not block.kind.is_text_bearing:
            anchor = CursorState.caret(block.id, 0)
            inserted = document.insert_block(BlockKind.PARAGRAPH, anchor)
            return self._finish(inserted)

        working = document
        if not cursor.is_collapsed:
            working = document.edit_text(block.id, cursor.start, cursor.end, "")

        split = working.split_at_cursor(block.id, cursor.start)
        return self._finish(EditResult(split.document, split.focus, split.document is not document))

    def backspace(self, document: Document, current: Optional[CursorState] = None) -> EditResult:
        cursor = self.coordinator.resolve(current, document)
        if cursor is None:
            return EditResult.unchanged(document)
        block = document.get(cursor.block_id)
        position = document.index_of(block.id)

        if not block.kind.is_text_bearing:
            return self._finish(document.delete_block(block.id))

        if not cursor.is_collapsed:
            if self.coordinator.is_large_selection(cursor, len(block.text)):
                return self._finish(self._remove_whole_block(document, block.id, forward=False))
            edited = document.edit_text(block.id, cursor.start, cursor.end, "")
            return self._finish(_result(document, edited, cursor.collapsed_to(cursor.start)))

        if cursor.offset > 0:
            edited = document.edit_text(block.id, cursor.offset - 1, cursor.offset, "")
            return self._finish(_result(document, edited, cursor.collapsed_to(cursor.offset - 1)))

        if block.is_empty:
            if block.kind.is_list:
                # First leave the list, a second Backspace removes the block
                retyped = document.retype(block.id, BlockKind.PARAGRAPH)
                return self._finish(_result(document, retyped, CursorState.caret(block.id, 0)))
            if position > 0:
                return self._finish(document.delete_block(block.id))
            return EditResult.unchanged(document)

        previous = document.previous(block.id)
        if previous is not None and not previous.kind.is_text_bearing:
            return self._finish(self._cross_non_text(document, previous, CursorState.caret(block.id, 0)))

        return self._finish(document.merge_with_previous(block.id))

    def delete(self, document: Document, current: Optional[CursorState] = None) -> EditResult:
        cursor = self.coordinator.resolve(current, document)
        if cursor is None:
            return EditResult.unchanged(document)
        block = document.get(cursor.block_id)

        if not block.kind.is_text_bearing:
            return self._finish(self._delete_forward(document, block.id))

        if not cursor.is_collapsed:
            if self.coordinator.is_large_selection(cursor, len(block.text)):
                return self._finish(self._remove_whole_block(document, block.id, forward=True))
            edited = document.edit_text(block.id, cursor.start, cursor.end, "")
            return self._finish(_result(document, edited, cursor.collapsed_to(cursor.start)))

        has_next = document.next(block.id) is not None
        if block.is_empty and has_next:
            return self._finish(self._delete_forward(document, block.id))

        if cursor.offset < len(block.text):
            edited = document.edit_text(block.id, cursor.offset, cursor.offset + 1, "")
            return self._finish(_result(document, edited, cursor.collapsed_to(cursor.offset)))

        following = document.next(block.id)
        if following is not None and not following.kind.is_text_bearing:
            return self._finish(self._cross_non_text(document, following, cursor))
        if has_next:
            return self._finish(document.merge_with_next(block.id))
        return EditResult.unchanged(document)

    def arrow_up(self, document: Document, current: Optional[CursorState] = None) -> EditResult:
        cursor = self.coordinator.resolve(current, document)
        target = target_above(cursor, document) if cursor else None
        return self._finish(EditResult(document, target, changed=False))

    def arrow_down(self, document: Document, current: Optional[CursorState] = None) -> EditResult:
        cursor = self.coordinator.resolve(current, document)
        target = target_below(cursor, document) if cursor else None
        return self._finish(EditResult(document, target, changed=False))

    # ------------------------------------------------------------------
    # Other commands
    # ------------------------------------------------------------------

    def type_text(self, document: Document, text: str, current: Optional[CursorState] = None) -> EditResult:
        """Insert text at the caret, replacing any selection."""
        cursor = self.coordinator.resolve(current, document)
        if cursor is None or not text:
            return EditResult.unchanged(document)
        edited = document.edit_text(cursor.block_id, cursor.start, cursor.end, text)
        focus = cursor.collapsed_to(cursor.start + len(text)) if edited is not document else None
        return self._finish(_result(document, edited, focus))

    def insert_block(
        self,
        document: Document,
        kind: BlockKind,
        current: Optional[CursorState] = None,
        payload: Optional[Payload] = None,
    ) -> EditResult:
        """Insert a block at the live or last known cursor."""
        cursor = self.coordinator.resolve(current, document)
        result = document.insert_block(kind, cursor, payload, checklist_title=self.checklist_title)
        return self._finish(result)

    def drag_reorder(self, document: Document, source_index: int, destination_index: int) -> EditResult:
        """Apply a completed drag-and-drop move."""
        moved = document.move(source_index, destination_index)
        return self._finish(_result(document, moved, None))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _remove_whole_block(self, document: Document, block_id: str, forward: bool) -> EditResult:
        """Large-selection Backspace/Delete: clear the last block, delete any other."""
        position = document.index_of(block_id)
        if position == len(document) - 1:
            cleared = document.clear_block(block_id)
            return _result(document, cleared, CursorState.caret(block_id, 0))
        if forward:
            return self._delete_forward(document, block_id)
        return document.delete_block(block_id)

    def _delete_forward(self, document: Document, block_id: str) -> EditResult:
        """Delete a block and focus the start of the block that followed it."""
        following = document.next(block_id)
        result = document.delete_block(block_id)
        if following is None or not result.changed:
            return result
        return EditResult(result.document, CursorState.caret(following.id, 0))

    def _cross_non_text(self, document: Document, neighbour: Block, caret: CursorState) -> EditResult:
        """
        Backspace/Delete reaching a non-text neighbour.

        A divider is removed and the caret stays put. Any other payload block
        takes focus, so a second key press deletes it.
        """
        if neighbour.kind is BlockKind.DIVIDER:
            removed = document.delete_block(neighbour.id)
            return EditResult(removed.document, caret, changed=removed.changed)
        return EditResult(document, CursorState.caret(neighbour.id, 0), changed=False)
