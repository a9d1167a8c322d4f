"""Unit tests for the block document model."""

import pytest

from blockpad.editor import formats
from blockpad.editor.document import Document
from blockpad.models.block import Block, FormatSpan
from blockpad.models.block_kind import Alignment, BlockKind, FormatKind
from blockpad.models.cursor import CursorState
from blockpad.models.payloads import ChecklistPayload, ImagePayload, TablePayload

BOLD = FormatKind.BOLD
ITALIC = FormatKind.ITALIC


def bold(start, end):
    return FormatSpan(start=start, end=end, kind=BOLD)


class TestDocumentBasics:
    """Test construction and lookup."""

    def test_empty_document_has_one_paragraph(self):
        """Test that a document is never empty."""
        document = Document()
        assert len(document) == 1
        assert document[0].kind is BlockKind.PARAGRAPH
        assert document[0].text == ""

    def test_from_text(self):
        """Test seeding a document from plain text."""
        document = Document.from_text("line one\nline two")
        assert len(document) == 1
        assert document[0].text == "line one\nline two"

    def test_duplicate_ids_rejected(self):
        """Test that block ids must be unique."""
        with pytest.raises(ValueError, match="Duplicate block id"):
            Document([Block(id="a"), Block(id="a")])

    def test_lookup_and_neighbours(self, sample_document):
        """Test id lookups and adjacency."""
        assert sample_document.index_of("hello") == 1
        assert sample_document.previous("hello").id == "title"
        assert sample_document.next("hello").id == "item1"
        assert sample_document.previous("title") is None
        assert sample_document.next("dates") is None
        assert sample_document.get("missing") is None
        assert "grid" in sample_document

    def test_summary_text(self, sample_document):
        """Test the plain-text mirror."""
        lines = sample_document.summary_text().split("\n")
        assert lines[:4] == ["Weekly sync", "hello world", "first", "second"]
        assert lines[4:] == ["[divider]", "[table]", "[checklist]", "[calendar]"]


class TestInsertBlock:
    """Test inserting blocks relative to the cursor."""

    def test_insert_inside_text_splits_block(self, hello_block):
        """Test inserting mid-text puts the new block between the halves."""
        document = Document([hello_block])
        result = document.insert_block(BlockKind.DIVIDER, CursorState.caret("hello", 6))

        blocks = result.document.blocks
        assert [b.kind for b in blocks] == [BlockKind.PARAGRAPH, BlockKind.DIVIDER, BlockKind.PARAGRAPH]
        assert blocks[0].id == "hello"
        assert blocks[0].text == "hello "
        assert blocks[0].formats == (bold(0, 5),)
        assert blocks[2].text == "world"
        assert blocks[2].formats == ()
        assert result.focus == CursorState.caret(blocks[1].id, 0)

    def test_insert_splits_and_rebases_trailing_spans(self):
        """Test that spans after the split point move to the trailing paragraph."""
        block = Block(id="b", text="abcdef", formats=(bold(1, 5),))
        result = Document([block]).insert_block(BlockKind.IMAGE, CursorState.caret("b", 3))
        before, image, after = result.document.blocks
        assert before.formats == (bold(1, 3),)
        assert after.formats == (bold(0, 2),)
        assert isinstance(image.payload, ImagePayload)

    def test_insert_at_start_goes_before(self, hello_block):
        """Test that offset 0 inserts before the current block."""
        result = Document([hello_block]).insert_block(BlockKind.QUOTE, CursorState.caret("hello", 0))
        assert [b.kind for b in result.document] == [BlockKind.QUOTE, BlockKind.PARAGRAPH]

    def test_insert_at_end_goes_after(self, hello_block):
        """Test that offset == len inserts after the current block."""
        result = Document([hello_block]).insert_block(BlockKind.TABLE, CursorState.caret("hello", 11))
        assert [b.kind for b in result.document] == [BlockKind.PARAGRAPH, BlockKind.TABLE]
        assert result.document[0] == hello_block

    def test_insert_without_cursor_appends(self, sample_document):
        """Test that an unknown cursor appends at the end."""
        result = sample_document.insert_block(BlockKind.CODE)
        assert len(result.document) == len(sample_document) + 1
        assert result.document[-1].kind is BlockKind.CODE

    def test_insert_after_non_text_block(self, sample_document):
        """Test that a cursor on a payload block inserts after it."""
        result = sample_document.insert_block(BlockKind.PARAGRAPH, CursorState.caret("grid", 0))
        assert result.document.index_of(result.focus.block_id) == sample_document.index_of("grid") + 1

    def test_mismatched_payload_replaced_by_default(self):
        """Test that a payload of the wrong shape falls back to the default."""
        result = Document().insert_block(BlockKind.TABLE, payload=ImagePayload())
        assert isinstance(result.document[-1].payload, TablePayload)

    def test_checklist_title(self):
        """Test that new checklists take the given title."""
        result = Document().insert_block(BlockKind.CHECKLIST, checklist_title="Chores")
        assert result.document[-1].payload.title == "Chores"


class TestSplitAndMerge:
    """Test the Enter/Backspace structural pair."""

    def test_split_example(self):
        """Test "heXllo world" with bold [0,6) split at 6."""
        block = Block(id="b", text="heXllo world", formats=(bold(0, 6),))
        result = Document([block]).split_at_cursor("b", 6)

        head, tail = result.document.blocks
        assert (head.text, head.formats) == ("heXllo", (bold(0, 6),))
        assert (tail.text, tail.formats) == (" world", ())
        assert result.focus == CursorState.caret(tail.id, 0)

    def test_split_rebases_trailing_spans(self):
        """Test that spans after the split point are rebased to 0."""
        block = Block(id="b", text="abcdef", formats=(FormatSpan(start=4, end=6, kind=ITALIC),))
        head, tail = Document([block]).split_at_cursor("b", 2).document.blocks
        assert head.formats == ()
        assert tail.formats == (FormatSpan(start=2, end=4, kind=ITALIC),)

    def test_split_continues_list(self):
        """Test that splitting a list item creates another list item."""
        block = Block(id="b", kind=BlockKind.NUMBERED_ITEM, text="one two")
        head, tail = Document([block]).split_at_cursor("b", 3).document.blocks
        assert tail.kind is BlockKind.NUMBERED_ITEM

    def test_split_heading_continues_as_paragraph(self):
        """Test that non-list kinds continue as a paragraph."""
        block = Block(id="b", kind=BlockKind.HEADING_2, text="Title")
        head, tail = Document([block]).split_at_cursor("b", 5).document.blocks
        assert head.kind is BlockKind.HEADING_2
        assert tail.kind is BlockKind.PARAGRAPH
        assert tail.text == ""

    def test_split_empty_list_item_exits_list(self):
        """Test that Enter on an empty list item converts it in place."""
        block = Block(id="b", kind=BlockKind.BULLETED_ITEM, text="")
        result = Document([block]).split_at_cursor("b", 0)
        assert len(result.document) == 1
        assert result.document[0].kind is BlockKind.PARAGRAPH
        assert result.document[0].id == "b"

    def test_split_out_of_range_is_noop(self, hello_block):
        """Test that an invalid offset leaves the document untouched."""
        document = Document([hello_block])
        result = document.split_at_cursor("hello", 42)
        assert result.document is document
        assert not result.changed

    def test_split_non_text_block_is_noop(self, sample_document):
        """Test that payload blocks cannot be split."""
        result = sample_document.split_at_cursor("grid", 0)
        assert result.document is sample_document

    def test_merge_with_previous(self):
        """Test merging rebases spans and reports the join offset."""
        document = Document([
            Block(id="a", text="abc", formats=(bold(0, 2),)),
            Block(id="b", text="def", formats=(FormatSpan(start=1, end=3, kind=ITALIC),)),
        ])
        result = document.merge_with_previous("b")
        assert len(result.document) == 1
        merged = result.document[0]
        assert merged.id == "a"
        assert merged.text == "abcdef"
        assert merged.formats == (bold(0, 2), FormatSpan(start=4, end=6, kind=ITALIC))
        assert result.focus == CursorState.caret("a", 3)

    def test_merge_first_block_is_noop(self, sample_document):
        """Test that the first block has nothing to merge into."""
        assert not sample_document.merge_with_previous("title").changed

    def test_merge_into_non_text_block_is_noop(self):
        """Test that text is never merged into a payload block."""
        document = Document([Block.create(BlockKind.TABLE), Block(id="b", text="x")])
        assert document.merge_with_previous("b").document is document

    def test_merge_with_next(self):
        """Test forward merge pulls the next block in."""
        document = Document([Block(id="a", text="ab"), Block(id="b", text="cd")])
        result = document.merge_with_next("a")
        assert [b.text for b in result.document] == ["abcd"]
        assert result.focus == CursorState.caret("a", 2)

    @pytest.mark.parametrize("offset", range(0, 12))
    def test_split_then_merge_restores_block(self, offset):
        """Test that merge undoes split at every offset."""
        spans = (bold(0, 5), FormatSpan(start=3, end=9, kind=ITALIC), FormatSpan(start=6, end=11, kind=FormatKind.CODE))
        original = Block(id="b", text="hello world", formats=spans)
        split = Document([original]).split_at_cursor("b", offset)
        tail_id = split.document[1].id

        merged = split.document.merge_with_previous(tail_id)

        block = merged.document[0]
        assert block.text == original.text
        assert formats.segments(block.text, block.formats) == formats.segments(original.text, original.formats)
        assert merged.focus == CursorState.caret("b", offset)


class TestDeleteBlock:
    """Test block deletion."""

    def test_delete_focuses_previous_end(self, sample_document):
        """Test that deleting focuses the end of the previous block."""
        result = sample_document.delete_block("item1")
        assert "item1" not in result.document
        assert result.focus == CursorState.caret("hello", 11)

    def test_delete_first_focuses_next_start(self, sample_document):
        """Test that deleting the first block focuses the new first block."""
        result = sample_document.delete_block("title")
        assert result.focus == CursorState.caret("hello", 0)

    def test_delete_only_block_leaves_empty_paragraph(self, hello_block):
        """Test that the document never becomes empty."""
        result = Document([hello_block]).delete_block("hello")
        assert len(result.document) == 1
        assert result.document[0].is_empty
        assert result.document[0].id != "hello"

    def test_delete_everything_leaves_one_block(self, sample_document):
        """Test deleting all blocks one by one."""
        document = sample_document
        for block in sample_document:
            document = document.delete_block(block.id).document
        assert len(document) == 1
        assert document[0].kind is BlockKind.PARAGRAPH

    def test_delete_unknown_is_noop(self, sample_document):
        """Test that unknown ids are ignored."""
        assert sample_document.delete_block("nope").document is sample_document


class TestRetype:
    """Test changing block kinds."""

    def test_text_to_text_keeps_content(self, hello_block):
        """Test that text and spans survive between text kinds."""
        document = Document([hello_block]).retype("hello", BlockKind.QUOTE)
        assert document[0].kind is BlockKind.QUOTE
        assert document[0].text == "hello world"
        assert document[0].formats == hello_block.formats

    def test_text_to_payload_resets_content(self, hello_block):
        """Test switching to a payload kind starts from the default payload."""
        document = Document([hello_block]).retype("hello", BlockKind.CHECKLIST, checklist_title="Todo")
        block = document[0]
        assert block.text == "" and block.formats == ()
        assert block.payload == ChecklistPayload(title="Todo", items=())

    def test_payload_to_text_drops_payload(self, sample_document):
        """Test switching away from a payload kind."""
        document = sample_document.retype("grid", BlockKind.PARAGRAPH)
        assert document.get("grid").payload is None
        assert document.get("grid").text == ""

    def test_same_kind_is_noop(self, sample_document):
        """Test that retyping to the current kind returns the same document."""
        assert sample_document.retype("hello", BlockKind.PARAGRAPH) is sample_document


class TestReorder:
    """Test block reordering."""

    @pytest.mark.parametrize("new_index", range(0, 8))
    def test_reorder_is_permutation(self, sample_document, new_index):
        """Test reorder never changes the set of blocks."""
        document = sample_document.reorder("hello", new_index)
        assert len(document) == len(sample_document)
        assert sorted(b.id for b in document) == sorted(b.id for b in sample_document)
        assert document.get("hello") == sample_document.get("hello")
        assert document.index_of("hello") == new_index

    def test_reorder_out_of_range_is_noop(self, sample_document):
        """Test that an invalid index changes nothing."""
        assert sample_document.reorder("hello", 99) is sample_document
        assert sample_document.reorder("hello", -1) is sample_document

    def test_move_by_positions(self, sample_document):
        """Test drag-and-drop style moves."""
        document = sample_document.move(3, 0)
        assert document[0].id == "item2"
        assert document[1].id == "title"


class TestContentOperations:
    """Test text, format, alignment and payload edits."""

    def test_edit_text_insert_adjusts_spans(self, hello_block):
        """Test the "heXllo world" example."""
        document = Document([hello_block]).edit_text("hello", 2, 2, "X")
        assert document[0].text == "heXllo world"
        assert document[0].formats == (bold(0, 6),)

    def test_edit_text_out_of_range_is_noop(self, hello_block):
        """Test that a bad range leaves the document untouched."""
        document = Document([hello_block])
        assert document.edit_text("hello", 5, 40, "") is document

    def test_set_text_infers_edit(self, hello_block):
        """Test that set_text keeps spans consistent with the inferred edit."""
        document = Document([hello_block]).set_text("hello", "hello, world")
        assert document[0].formats == (bold(0, 5),)
        document = document.set_text("hello", "hel world")
        assert document[0].formats == (bold(0, 3),)

    def test_set_text_on_payload_block_is_noop(self, sample_document):
        """Test that payload blocks have no text to set."""
        assert sample_document.set_text("grid", "oops") is sample_document

    def test_clear_block(self, hello_block):
        """Test clearing text and spans."""
        document = Document([hello_block]).clear_block("hello")
        assert document[0].text == ""
        assert document[0].formats == ()
        assert document[0].id == "hello"

    def test_apply_format_toggles(self, hello_block):
        """Test applying the existing span removes it."""
        document = Document([hello_block]).apply_format("hello", BOLD, 0, 5)
        assert document[0].formats == ()
        document = document.apply_format("hello", ITALIC, 6, 11)
        assert document[0].formats == (FormatSpan(start=6, end=11, kind=ITALIC),)

    def test_apply_format_on_payload_block_is_noop(self, sample_document):
        """Test that payload blocks never get formats."""
        assert sample_document.apply_format("grid", BOLD, 0, 1) is sample_document

    def test_set_alignment(self, sample_document):
        """Test alignment changes on any kind."""
        document = sample_document.set_alignment("grid", Alignment.CENTER)
        assert document.get("grid").alignment is Alignment.CENTER

    def test_update_payload(self, sample_document):
        """Test replacing a payload with one of the same shape."""
        payload = sample_document.get("grid").payload.toggle_header()
        document = sample_document.update_payload("grid", payload)
        assert document.get("grid").payload.header is True

    def test_update_payload_wrong_shape_is_noop(self, sample_document):
        """Test that mismatched payloads are rejected."""
        assert sample_document.update_payload("grid", ImagePayload()) is sample_document
        assert sample_document.update_payload("hello", TablePayload()) is sample_document

    def test_operations_do_not_mutate_original(self, hello_block):
        """Test that documents are persistent values."""
        original = Document([hello_block])
        original.edit_text("hello", 0, 5, "")
        original.split_at_cursor("hello", 3)
        assert original[0] == hello_block
        assert len(original) == 1
