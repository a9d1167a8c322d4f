"""Unit tests for the debounced save scheduler."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from blockpad.editor.document import Document
from blockpad.models.block import Block
from blockpad.services.exceptions import PersistenceError
from blockpad.services.note_storage import NoteRecord
from blockpad.services.save_scheduler import SaveScheduler


class DocumentHolder:
    """Mutable reference to the current document, as an editor session keeps it."""

    def __init__(self, document):
        self.document = document

    def __call__(self):
        return self.document


@pytest.fixture
def holder():
    return DocumentHolder(Document([Block(id="a", text="some meaningful text")]))


def make_scheduler(storage, holder, **kwargs):
    kwargs.setdefault("debounce_seconds", 0.01)
    return SaveScheduler(storage, "note-1", holder, **kwargs)


class TestSave:
    """Test explicit saves."""

    @pytest.mark.asyncio
    async def test_save_persists_record(self, holder):
        """Test that save hands a full record to storage."""
        storage = AsyncMock()
        scheduler = make_scheduler(storage, holder, title="Notes")
        scheduler.mark_dirty()

        assert await scheduler.save() is True

        storage.save.assert_awaited_once()
        note_id, record = storage.save.await_args.args
        assert note_id == "note-1"
        assert isinstance(record, NoteRecord)
        assert record.title == "Notes"
        assert record.text == "some meaningful text"
        assert record.blocks[0]["id"] == "a"
        json.dumps(record.model_dump())
        assert scheduler.dirty is False
        assert scheduler.last_saved_at is not None
        scheduler.cancel()

    @pytest.mark.asyncio
    async def test_second_save_without_changes_is_noop(self, holder):
        """Test that saving twice with no mutation calls storage once."""
        storage = AsyncMock()
        scheduler = make_scheduler(storage, holder)

        assert await scheduler.save() is True
        assert await scheduler.save() is False
        assert storage.save.await_count == 1

    @pytest.mark.asyncio
    async def test_save_while_in_flight_is_skipped(self, holder):
        """Test that at most one save runs at a time."""
        release = asyncio.Event()

        async def slow_save(note_id, record):
            await release.wait()

        storage = AsyncMock()
        storage.save.side_effect = slow_save
        scheduler = make_scheduler(storage, holder)

        first = asyncio.create_task(scheduler.save())
        await asyncio.sleep(0)
        assert scheduler.saving is True

        assert await scheduler.save() is False

        release.set()
        assert await first is True
        assert storage.save.await_count == 1

    @pytest.mark.asyncio
    async def test_mutation_during_save_keeps_dirty(self, holder):
        """Test that edits made while saving are not lost."""
        release = asyncio.Event()

        async def slow_save(note_id, record):
            await release.wait()

        storage = AsyncMock()
        storage.save.side_effect = slow_save
        scheduler = make_scheduler(storage, holder, debounce_seconds=60)
        scheduler.mark_dirty()

        task = asyncio.create_task(scheduler.save())
        await asyncio.sleep(0)
        holder.document = holder.document.edit_text("a", 0, 0, "more ")
        scheduler.mark_dirty()
        release.set()
        await task

        assert scheduler.dirty is True
        assert scheduler.has_pending_timer
        scheduler.cancel()

    @pytest.mark.asyncio
    async def test_failure_keeps_dirty_and_reports_once(self, holder):
        """Test that a failed save keeps changes pending and notifies once."""
        errors = []
        storage = AsyncMock()
        storage.save.side_effect = PersistenceError("note-1", "disk full")
        scheduler = make_scheduler(storage, holder, on_error=errors.append)
        scheduler.mark_dirty()
        scheduler.cancel()

        assert await scheduler.save() is False

        assert scheduler.dirty is True
        assert isinstance(scheduler.last_error, PersistenceError)
        assert len(errors) == 1
        assert scheduler.saving is False
        assert not scheduler.has_pending_timer

    @pytest.mark.asyncio
    async def test_success_after_failure_clears_error(self, holder):
        """Test that the next successful save clears the error."""
        storage = AsyncMock()
        storage.save.side_effect = [OSError("offline"), None]
        scheduler = make_scheduler(storage, holder)

        assert await scheduler.save() is False
        assert await scheduler.save() is True
        assert scheduler.last_error is None


class TestMinimumContent:
    """Test the threshold for brand-new notes."""

    @pytest.mark.asyncio
    async def test_new_empty_note_not_saved(self):
        """Test that a new note with almost no text is not persisted."""
        storage = AsyncMock()
        holder = DocumentHolder(Document([Block(id="a", text="abc")]))
        scheduler = make_scheduler(storage, holder, is_new_note=True)

        assert await scheduler.save() is False
        storage.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_note_saved_once_long_enough(self):
        """Test that a new note is saved once it passes the threshold."""
        storage = AsyncMock()
        holder = DocumentHolder(Document([Block(id="a", text="abcd")]))
        scheduler = make_scheduler(storage, holder, is_new_note=True)

        assert await scheduler.save() is True
        assert scheduler.is_new_note is False

    @pytest.mark.asyncio
    async def test_titled_new_note_saved(self):
        """Test that a title alone is enough content."""
        storage = AsyncMock()
        scheduler = make_scheduler(storage, DocumentHolder(Document()), title="Ideas", is_new_note=True)
        assert await scheduler.save() is True

    @pytest.mark.asyncio
    async def test_existing_note_has_no_minimum(self):
        """Test that clearing an existing note is still saved."""
        storage = AsyncMock()
        scheduler = make_scheduler(storage, DocumentHolder(Document([Block(id="a")])))
        assert await scheduler.save() is True


class TestDebounce:
    """Test timer-driven saves."""

    @pytest.mark.asyncio
    async def test_burst_of_mutations_saves_once(self, holder):
        """Test that rapid mutations collapse into one save."""
        storage = AsyncMock()
        scheduler = make_scheduler(storage, holder, debounce_seconds=0.05)

        for i in range(5):
            holder.document = holder.document.edit_text("a", 0, 0, str(i))
            scheduler.mark_dirty()
            await asyncio.sleep(0.005)

        await asyncio.sleep(0.2)

        assert storage.save.await_count == 1
        assert scheduler.dirty is False
        assert storage.save.await_args.args[1].text.startswith("43210")

    @pytest.mark.asyncio
    async def test_mark_clean_suppresses_unchanged_save(self, holder):
        """Test that a freshly loaded document is not saved back."""
        storage = AsyncMock()
        scheduler = make_scheduler(storage, holder)
        scheduler.mark_clean(holder())

        assert await scheduler.save() is False
        storage.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_title_only_change_is_saved(self, holder):
        """Test that renaming a clean note reaches storage."""
        storage = AsyncMock()
        scheduler = make_scheduler(storage, holder, title="Old", debounce_seconds=60)
        scheduler.mark_clean(holder())

        scheduler.title = "New"
        scheduler.mark_dirty()

        assert await scheduler.flush() is True
        storage.save.assert_awaited_once()
        assert storage.save.await_args.args[1].title == "New"
        assert scheduler.dirty is False

    @pytest.mark.asyncio
    async def test_flush_saves_immediately(self, holder):
        """Test that flush cancels the timer and saves now."""
        storage = AsyncMock()
        scheduler = make_scheduler(storage, holder, debounce_seconds=60)
        scheduler.mark_dirty()
        assert scheduler.has_pending_timer

        assert await scheduler.flush() is True
        assert not scheduler.has_pending_timer
        storage.save.assert_awaited_once()

    def test_mark_dirty_without_loop(self, holder):
        """Test that marking dirty outside an event loop only records the change."""
        scheduler = make_scheduler(AsyncMock(), holder)
        scheduler.mark_dirty()
        assert scheduler.dirty is True
        assert not scheduler.has_pending_timer
