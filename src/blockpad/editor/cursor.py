"""Cursor and selection bookkeeping.

The coordinator is the bridge between a UI shell's focus events and the
document model. The shell reports what it observes (``observe``), asks for the
selection to act on (``resolve``), and applies the focus target a command
returns (``settle``). When focus has left every block, for example because a
toolbar button took it, commands fall back to the last known selection.
"""

from typing import Optional

import structlog

from blockpad.editor.document import Document
from blockpad.models.cursor import CursorState

logger = structlog.get_logger()


DEFAULT_LARGE_SELECTION_RATIO = 0.5


def clamp(cursor: CursorState, document: Document) -> Optional[CursorState]:
    """
    Fit a cursor to the current document.

    Returns:
        The cursor with offsets limited to its block's text, or None when the
        block no longer exists
    """
    block = document.get(cursor.block_id)
    if block is None:
        return None
    length = len(block.text)
    offset = min(cursor.offset, length)
    selection_end = None if cursor.selection_end is None else min(cursor.selection_end, length)
    if offset == cursor.offset and selection_end == cursor.selection_end:
        return cursor
    return CursorState(block_id=cursor.block_id, offset=offset, selection_end=selection_end)


def is_large_selection(cursor: CursorState, text_length: int, ratio: float = DEFAULT_LARGE_SELECTION_RATIO) -> bool:
    """
    Decide whether a selection should be handled as a whole-block command.

    A selection spanning the entire non-empty text always counts; otherwise
    it counts when it covers at least ``ratio`` of the text (and at least one
    character).
    """
    if cursor.is_collapsed:
        return False
    if cursor.start == 0 and cursor.end == text_length and text_length > 0:
        return True
    return cursor.selected_length >= max(1, text_length * ratio)


def target_above(cursor: CursorState, document: Document) -> Optional[CursorState]:
    """Caret target for Arrow-Up: end of the previous block when at offset 0."""
    if not cursor.is_collapsed or cursor.offset != 0:
        return None
    previous = document.previous(cursor.block_id)
    if previous is None:
        return None
    return CursorState.caret(previous.id, len(previous.text))


def target_below(cursor: CursorState, document: Document) -> Optional[CursorState]:
    """Caret target for Arrow-Down: start of the next block when at the end."""
    block = document.get(cursor.block_id)
    if block is None or not cursor.is_collapsed or cursor.offset != len(block.text):
        return None
    following = document.next(cursor.block_id)
    if following is None:
        return None
    return CursorState.caret(following.id, 0)


class CursorCoordinator:
    """
    Track the last observed selection for one editing session.

    Example:
        >>> coordinator = CursorCoordinator()
        >>> coordinator.observe(CursorState.caret("b1", 3))
        >>> coordinator.resolve(None, document)  # focus moved to a toolbar
        CursorState(block_id='b1', offset=3, selection_end=None)
    """

    def __init__(self, large_selection_ratio: float = DEFAULT_LARGE_SELECTION_RATIO) -> None:
        self.large_selection_ratio = large_selection_ratio
        self._last: Optional[CursorState] = None

    @property
    def last(self) -> Optional[CursorState]:
        return self._last

    def observe(self, cursor: Optional[CursorState]) -> None:
        """Record a selection reported by the UI. None (blur) keeps the last one."""
        if cursor is not None:
            self._last = cursor

    def resolve(self, current: Optional[CursorState], document: Document) -> Optional[CursorState]:
        """
        Selection to act on at invocation time.

        Args:
            current: Live selection, None when no block has focus
            document: Current document

        Returns:
            The live selection if any, else the last known one, clamped to the
            document; None when neither points at an existing block
        """
        for candidate in (current, self._last):
            if candidate is None:
                continue
            resolved = clamp(candidate, document)
            if resolved is not None:
                self._last = resolved
                return resolved
            logger.debug("cursor_block_missing", block_id=candidate.block_id)
        return None

    def settle(self, focus: Optional[CursorState], document: Document) -> Optional[CursorState]:
        """
        Adopt the focus target produced by a command.

        When a command returns no target the last selection is kept, dropped
        if its block was removed.
        """
        if focus is not None:
            self._last = clamp(focus, document)
        elif self._last is not None:
            self._last = clamp(self._last, document)
        return self._last

    def is_large_selection(self, cursor: CursorState, text_length: int) -> bool:
        return is_large_selection(cursor, text_length, self.large_selection_ratio)

    def reset(self) -> None:
        self._last = None
