"""Editing session facade for UI shells.

``EditorSession`` owns the current ``Document`` for one note and wires the
command layer, cursor coordinator and save scheduler together. A UI shell
only talks to this class: it reports cursor observations and input, reads
``snapshot()``/``active_formats()`` back, and moves focus to the
``EditResult.focus`` each call returns.
"""

from typing import Callable, Optional

import structlog

from blockpad.editor import formats as spans
from blockpad.editor.commands import CommandLayer, Key
from blockpad.editor.cursor import CursorCoordinator
from blockpad.editor.document import Document, EditResult
from blockpad.models.block import Block
from blockpad.models.block_kind import Alignment, BlockKind, FormatKind
from blockpad.models.config import EditorConfig
from blockpad.models.cursor import CursorState
from blockpad.models.payloads import Payload
from blockpad.services.exceptions import NoteNotFoundError
from blockpad.services.note_storage import NoteStorage
from blockpad.services.save_scheduler import SaveScheduler
from blockpad.services.serialization import deserialize_blocks

logger = structlog.get_logger()


class EditorSession:
    """One note open for editing."""

    def __init__(
        self,
        storage: NoteStorage,
        note_id: str,
        document: Optional[Document] = None,
        title: str = "",
        config: Optional[EditorConfig] = None,
        is_new_note: bool = False,
        on_save_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        config = config or EditorConfig()
        self.note_id = note_id
        self.config = config
        self.document = document or Document.empty()
        self.coordinator = CursorCoordinator(large_selection_ratio=config.large_selection_ratio)
        self.commands = CommandLayer(self.coordinator, checklist_title=config.checklist_title)
        self.scheduler = SaveScheduler(
            storage,
            note_id,
            lambda: self.document,
            title=title,
            debounce_seconds=config.save_debounce_seconds,
            min_new_note_chars=config.min_new_note_chars,
            is_new_note=is_new_note,
            on_error=on_save_error,
        )
        if not is_new_note:
            self.scheduler.mark_clean(self.document)

    @classmethod
    async def open(
        cls,
        storage: NoteStorage,
        note_id: str,
        config: Optional[EditorConfig] = None,
        create: bool = True,
        on_save_error: Optional[Callable[[Exception], None]] = None,
    ) -> "EditorSession":
        """
        Load a note and start a session on it.

        Args:
            storage: Note storage collaborator
            note_id: Note to open
            config: Editor settings (defaults when omitted)
            create: Start an empty new note when storage has none
            on_save_error: Called once for each failed save

        Raises:
            NoteNotFoundError: If the note is missing and ``create`` is False
            PersistenceError: If storage fails
        """
        try:
            record = await storage.load(note_id)
        except NoteNotFoundError:
            if not create:
                raise
            logger.info("note_created", note_id=note_id)
            return cls(storage, note_id, config=config, is_new_note=True, on_save_error=on_save_error)

        document = deserialize_blocks(record.blocks, fallback_text=record.text)
        logger.info("note_opened", note_id=note_id, block_count=len(document))
        return cls(
            storage,
            note_id,
            document=document,
            title=record.title,
            config=config,
            on_save_error=on_save_error,
        )

    @property
    def title(self) -> str:
        return self.scheduler.title

    @title.setter
    def title(self, value: str) -> None:
        if value != self.scheduler.title:
            self.scheduler.title = value
            self.scheduler.mark_dirty()

    @property
    def dirty(self) -> bool:
        return self.scheduler.dirty

    @property
    def cursor(self) -> Optional[CursorState]:
        """Last known selection."""
        return self.coordinator.last

    # ------------------------------------------------------------------
    # State exposed to the UI
    # ------------------------------------------------------------------

    def snapshot(self) -> tuple[Block, ...]:
        return self.document.blocks

    def active_formats(self, current: Optional[CursorState] = None) -> frozenset[FormatKind]:
        """Formats active at the live (or last known) selection, for toolbar state."""
        cursor = self.coordinator.resolve(current, self.document)
        if cursor is None:
            return frozenset()
        block = self.document.get(cursor.block_id)
        return spans.active_kinds(block.formats, cursor.start, cursor.end)

    def observe_cursor(self, cursor: Optional[CursorState]) -> None:
        self.coordinator.observe(cursor)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _commit(self, result: EditResult) -> EditResult:
        if result.changed and result.document is not self.document:
            self.document = result.document
            self.scheduler.mark_dirty()
        return result

    def _commit_document(self, document: Document, focus: Optional[CursorState] = None) -> EditResult:
        result = EditResult(document, focus, changed=document is not self.document)
        self.coordinator.settle(focus, document)
        return self._commit(result)

    def handle_key(self, key: Key, current: Optional[CursorState] = None) -> EditResult:
        return self._commit(self.commands.handle_key(self.document, key, current))

    def type_text(self, text: str, current: Optional[CursorState] = None) -> EditResult:
        return self._commit(self.commands.type_text(self.document, text, current))

    def set_text(self, block_id: str, new_text: str) -> EditResult:
        """Apply a block's new text as reported by an input widget."""
        return self._commit_document(self.document.set_text(block_id, new_text))

    def insert_block(
        self,
        kind: BlockKind,
        current: Optional[CursorState] = None,
        payload: Optional[Payload] = None,
    ) -> EditResult:
        return self._commit(self.commands.insert_block(self.document, kind, current, payload))

    def apply_format(self, kind: FormatKind, current: Optional[CursorState] = None) -> EditResult:
        """Toggle ``kind`` over the live (or last known) selection."""
        cursor = self.coordinator.resolve(current, self.document)
        if cursor is None or cursor.is_collapsed:
            return EditResult.unchanged(self.document)
        document = self.document.apply_format(cursor.block_id, kind, cursor.start, cursor.end)
        return self._commit_document(document, cursor)

    def retype(self, block_id: str, new_kind: BlockKind) -> EditResult:
        document = self.document.retype(block_id, new_kind, checklist_title=self.config.checklist_title)
        return self._commit_document(document)

    def set_alignment(self, block_id: str, alignment: Alignment) -> EditResult:
        return self._commit_document(self.document.set_alignment(block_id, alignment))

    def reorder(self, block_id: str, new_index: int) -> EditResult:
        return self._commit_document(self.document.reorder(block_id, new_index))

    def drag_reorder(self, source_index: int, destination_index: int) -> EditResult:
        return self._commit(self.commands.drag_reorder(self.document, source_index, destination_index))

    def update_payload(self, block_id: str, payload: Payload) -> EditResult:
        return self._commit_document(self.document.update_payload(block_id, payload))

    def delete_block(self, block_id: str) -> EditResult:
        result = self.document.delete_block(block_id)
        self.coordinator.settle(result.focus, result.document)
        return self._commit(result)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save(self) -> bool:
        return await self.scheduler.save()

    async def flush(self) -> bool:
        """Save any pending change now (shutdown, explicit save)."""
        return await self.scheduler.flush()

    async def close(self) -> None:
        await self.flush()
        self.scheduler.cancel()
