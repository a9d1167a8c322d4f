"""Debounced persistence of an editing session.

Every accepted mutation calls ``mark_dirty()``, which (re)starts a debounce
timer on the running event loop. When the timer fires, ``save()`` runs as a
task. At most one save is in flight at a time; mutations made while it runs
keep the scheduler dirty and re-arm the timer once it completes.
"""

import asyncio
import json
from datetime import datetime
from typing import Callable, Optional

import structlog

from blockpad.editor.document import Document
from blockpad.services.note_storage import NoteRecord, NoteStorage
from blockpad.services.serialization import serialize_blocks

logger = structlog.get_logger()


DEFAULT_DEBOUNCE_SECONDS = 5.0
DEFAULT_MIN_NEW_NOTE_CHARS = 3


class SaveScheduler:
    """
    Decide when a mutated document is handed to note storage.

    Example:
        >>> scheduler = SaveScheduler(storage, "meeting", lambda: session.document)
        >>> scheduler.mark_dirty()   # after each mutation
        >>> await scheduler.flush()  # on shutdown
    """

    def __init__(
        self,
        storage: NoteStorage,
        note_id: str,
        document_provider: Callable[[], Document],
        title: str = "",
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        min_new_note_chars: int = DEFAULT_MIN_NEW_NOTE_CHARS,
        is_new_note: bool = False,
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            storage: Note storage collaborator
            note_id: Note being edited
            document_provider: Returns the current document at save time
            title: Note title saved with the blocks
            debounce_seconds: Quiet period after the last mutation before saving
            min_new_note_chars: A new, untitled note is not saved until its
                plain text is longer than this
            is_new_note: Whether the note has never been saved
            on_error: Called once for each failed save
        """
        self.storage = storage
        self.note_id = note_id
        self.title = title
        self.debounce_seconds = debounce_seconds
        self.min_new_note_chars = min_new_note_chars
        self.is_new_note = is_new_note
        self.on_error = on_error
        self._document_provider = document_provider

        self.dirty = False
        self.saving = False
        self.last_saved_snapshot: Optional[str] = None
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[Exception] = None

        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def mark_clean(self, document: Document) -> None:
        """Record ``document`` as the content storage already holds."""
        self.last_saved_snapshot = self._snapshot(document)
        self.dirty = False

    def mark_dirty(self) -> None:
        """Note a mutation and restart the debounce timer."""
        self.dirty = True
        self._generation += 1
        self._restart_timer()

    def cancel(self) -> None:
        """Cancel the pending debounce timer, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _restart_timer(self) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (synchronous caller); the next flush() persists the change
            logger.debug("save_timer_unavailable", note_id=self.note_id)
            return
        self._timer = loop.call_later(self.debounce_seconds, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self._task = asyncio.get_running_loop().create_task(self.save())

    def _snapshot(self, document: Document) -> str:
        """Canonical JSON of everything a save writes except the derived text."""
        return json.dumps(
            {"title": self.title, "blocks": serialize_blocks(document.blocks)},
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
        )

    def _below_minimum(self, document: Document) -> bool:
        if not self.is_new_note or self.title.strip() or self.last_saved_snapshot is not None:
            return False
        return len(document.summary_text().strip()) <= self.min_new_note_chars

    async def save(self) -> bool:
        """
        Persist the current document if anything needs saving.

        Returns:
            True when storage was called and succeeded, False when the save
            was skipped or failed
        """
        if self.saving:
            logger.debug("save_skipped", note_id=self.note_id, reason="in_flight")
            return False

        document = self._document_provider()
        snapshot = self._snapshot(document)
        if snapshot == self.last_saved_snapshot:
            self.dirty = False
            logger.debug("save_skipped", note_id=self.note_id, reason="unchanged")
            return False

        if self._below_minimum(document):
            logger.debug("save_skipped", note_id=self.note_id, reason="below_minimum_content")
            return False

        record = NoteRecord(
            title=self.title,
            text=document.summary_text(),
            blocks=serialize_blocks(document.blocks),
        )
        generation = self._generation
        self.saving = True
        logger.info("save_started", note_id=self.note_id, block_count=len(document))

        try:
            await self.storage.save(self.note_id, record)
        except Exception as e:
            self.last_error = e
            logger.error("save_failed", note_id=self.note_id, error=str(e))
            if self.on_error is not None:
                self.on_error(e)
            return False
        finally:
            self.saving = False

        self.last_saved_snapshot = snapshot
        self.last_saved_at = datetime.now()
        self.last_error = None
        self.is_new_note = False

        if self._generation == generation:
            self.dirty = False
        else:
            # Mutated while the save was in flight
            self._restart_timer()

        logger.info("save_completed", note_id=self.note_id, still_dirty=self.dirty)
        return True

    async def flush(self) -> bool:
        """Cancel the debounce timer and save now, waiting for any save in flight."""
        self.cancel()
        if self._task is not None and not self._task.done():
            await self._task
        self.cancel()
        return await self.save()
