"""Shared test fixtures for all test modules."""

from datetime import datetime

import pytest

from blockpad.editor.document import Document
from blockpad.models.block import Block, FormatSpan
from blockpad.models.block_kind import BlockKind, FormatKind
from blockpad.models.payloads import CalendarPayload, ChecklistPayload, TablePayload
from blockpad.services.exceptions import NoteNotFoundError
from blockpad.services.note_storage import NoteRecord


class InMemoryNoteStorage:
    """Note storage keeping records in a dict, recording every save."""

    def __init__(self, records=None):
        self.records = dict(records or {})
        self.saves = []

    async def load(self, note_id: str) -> NoteRecord:
        if note_id not in self.records:
            raise NoteNotFoundError(note_id)
        return self.records[note_id]

    async def save(self, note_id: str, record: NoteRecord) -> None:
        self.saves.append((note_id, record))
        self.records[note_id] = record


@pytest.fixture
def memory_storage():
    return InMemoryNoteStorage()


@pytest.fixture
def hello_block():
    """Paragraph "hello world" with "hello" in bold."""
    return Block(
        id="hello",
        kind=BlockKind.PARAGRAPH,
        text="hello world",
        formats=(FormatSpan(start=0, end=5, kind=FormatKind.BOLD),),
    )


@pytest.fixture
def sample_document(hello_block):
    """Document with text, list, divider and payload blocks."""
    return Document([
        Block(id="title", kind=BlockKind.HEADING_1, text="Weekly sync"),
        hello_block,
        Block(id="item1", kind=BlockKind.BULLETED_ITEM, text="first"),
        Block(id="item2", kind=BlockKind.BULLETED_ITEM, text="second"),
        Block(id="rule", kind=BlockKind.DIVIDER),
        Block(id="grid", kind=BlockKind.TABLE, payload=TablePayload(rows=(("a", "b"), ("c", "d")))),
        Block(
            id="tasks",
            kind=BlockKind.CHECKLIST,
            payload=ChecklistPayload(title="Tasks").add_item("write tests"),
        ),
        Block(
            id="dates",
            kind=BlockKind.CALENDAR,
            payload=CalendarPayload(reference_date=datetime(2024, 1, 31, 9, 0)).add_event(
                "Launch", datetime(2024, 1, 15, 10, 30)
            ),
        ),
    ])
