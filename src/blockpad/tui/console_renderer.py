"""Render documents for the terminal with rich.

Text blocks are rendered from their format segments, so a block looks the
same however its spans happen to be represented.
"""

from typing import Iterable

from rich.console import Group, RenderableType
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from blockpad.editor.document import Document
from blockpad.editor.formats import segments
from blockpad.models.block import Block
from blockpad.models.block_kind import Alignment, BlockKind, FormatKind
from blockpad.models.payloads import (
    CalendarPayload,
    ChecklistPayload,
    ImagePayload,
    TablePayload,
)


FORMAT_STYLES = {
    FormatKind.BOLD: "bold",
    FormatKind.ITALIC: "italic",
    FormatKind.UNDERLINE: "underline",
    FormatKind.CODE: "bold magenta on grey11",
}

HEADING_STYLES = {
    BlockKind.HEADING_1: "bold underline",
    BlockKind.HEADING_2: "bold",
    BlockKind.HEADING_3: "bold dim",
}

JUSTIFY = {
    Alignment.LEFT: "left",
    Alignment.CENTER: "center",
    Alignment.RIGHT: "right",
}


def render_inline(block: Block) -> Text:
    """Rich text for a text block's content, one style per active format."""
    text = Text(justify=JUSTIFY[block.alignment])
    for segment in segments(block.text, block.formats):
        style = " ".join(FORMAT_STYLES[kind] for kind in segment.kinds)
        text.append(segment.text, style=style or None)
    return text


def render_block(block: Block, number: int = 1) -> RenderableType:
    """
    Render one block.

    Args:
        block: Block to render
        number: Position within the current numbered list (numbered items only)
    """
    kind = block.kind

    if kind.is_text_bearing:
        body = render_inline(block)
        if kind in HEADING_STYLES:
            body.stylize(HEADING_STYLES[kind])
            return body
        if kind is BlockKind.BULLETED_ITEM:
            return Text("• ", justify=body.justify) + body
        if kind is BlockKind.NUMBERED_ITEM:
            return Text(f"{number}. ", justify=body.justify) + body
        if kind is BlockKind.QUOTE:
            body.stylize("italic")
            prefix = Text(justify=body.justify)
            prefix.append("▌ ", style="dim")
            return prefix + body
        if kind is BlockKind.CODE:
            body.stylize("on grey11")
            return body
        return body

    if kind is BlockKind.DIVIDER:
        return Rule(style="dim")
    if isinstance(block.payload, TablePayload):
        return render_table(block.payload)
    if isinstance(block.payload, ChecklistPayload):
        return render_checklist(block.payload)
    if isinstance(block.payload, ImagePayload):
        return render_image(block.payload)
    if isinstance(block.payload, CalendarPayload):
        return render_calendar(block.payload)
    return Text(f"[{kind.value}]", style="dim")


def render_table(payload: TablePayload) -> Table:
    table = Table(show_header=payload.header, show_lines=True)
    header = payload.rows[0] if payload.header and payload.rows else None
    for column, alignment in enumerate(payload.column_alignment):
        table.add_column(header[column] if header else "", justify=JUSTIFY[alignment])
    for row in payload.rows[1:] if header else payload.rows:
        table.add_row(*row)
    return table


def render_checklist(payload: ChecklistPayload) -> Text:
    text = Text()
    text.append(f"{payload.title} ({payload.completed_count}/{len(payload.items)})", style="bold")
    for item in payload.items:
        if item.completed:
            text.append("\n☑ ", style="bold green")
            text.append(item.text, style="dim strike")
        else:
            text.append("\n☐ ", style="bold yellow")
            text.append(item.text)
    return text


def render_image(payload: ImagePayload) -> Text:
    label = payload.alt or payload.src or "image"
    text = Text(justify=JUSTIFY[payload.alignment])
    text.append(f"🖼 {label}", style="cyan")
    text.append(f" ({payload.size.value})", style="dim")
    if payload.caption:
        text.append(f"\n{payload.caption}", style="italic")
    return text


def render_calendar(payload: CalendarPayload) -> Text:
    ref = payload.reference_date
    text = Text()
    text.append(f"{ref:%B %Y}", style="bold")
    text.append(f" ({payload.view.value} view)", style="dim")
    for event in sorted(payload.events, key=lambda e: e.date.replace(tzinfo=None)):
        if (event.date.year, event.date.month) != (ref.year, ref.month):
            continue
        text.append(f"\n{event.date:%d %a}  ", style="dim")
        text.append(event.title)
    return text


def render_blocks(blocks: Iterable[Block]) -> list[RenderableType]:
    """Render blocks in order, numbering consecutive numbered items."""
    rendered = []
    number = 0
    for block in blocks:
        number = number + 1 if block.kind is BlockKind.NUMBERED_ITEM else 0
        rendered.append(render_block(block, number=number))
    return rendered


def render_document(document: Document) -> Group:
    return Group(*render_blocks(document.blocks))
