"""Kind-specific payload models for non-text blocks.

Payloads are immutable values. Every editing helper returns a new payload
instead of mutating in place, so a block holding a payload can be shared
between document snapshots.
"""

import calendar
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, model_validator

from blockpad.models.block_kind import Alignment, BlockKind
from blockpad.utils.ids import generate_random_uuid


DEFAULT_CHECKLIST_TITLE = "To-do list"


class ImageSize(str, Enum):
    """Display size of an image block."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    FULL = "full"


class CalendarView(str, Enum):
    """Which calendar layout the block shows."""

    MONTH = "month"
    WEEK = "week"
    AGENDA = "agenda"


class TablePayload(BaseModel):
    """Grid of plain-text cells."""

    rows: tuple[tuple[str, ...], ...] = Field(
        default=(("", ""), ("", "")),
        description="Cell text, row-major"
    )

    header: bool = Field(
        default=False,
        description="Whether the first row is rendered as a header"
    )

    column_alignment: tuple[Alignment, ...] = Field(
        default=(Alignment.LEFT, Alignment.LEFT),
        description="Alignment per column"
    )

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def square_up(cls, data: Any) -> Any:
        """Pad ragged rows and fit ``column_alignment`` to the column count."""
        if not isinstance(data, dict) or not isinstance(data.get("rows"), (list, tuple)):
            return data
        rows = [list(row) if isinstance(row, (list, tuple)) else [] for row in data["rows"]]
        if not rows:
            return data
        width = max(1, max(len(row) for row in rows))
        rows = [row + [""] * (width - len(row)) for row in rows]

        alignment = data.get("column_alignment", ())
        alignment = list(alignment) if isinstance(alignment, (list, tuple)) else []
        alignment = (alignment + [Alignment.LEFT] * width)[:width]
        return {**data, "rows": rows, "column_alignment": alignment}

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    def set_cell(self, row: int, column: int, value: str) -> "TablePayload":
        if not (0 <= row < len(self.rows)) or not (0 <= column < len(self.rows[row])):
            return self
        cells = list(self.rows[row])
        cells[column] = value
        rows = self.rows[:row] + (tuple(cells),) + self.rows[row + 1:]
        return self.model_copy(update={"rows": rows})

    def add_row(self, after: Optional[int] = None) -> "TablePayload":
        """Insert an empty row after ``after`` (append when None)."""
        new_row = ("",) * (self.column_count or 2)
        position = len(self.rows) if after is None else max(0, min(after + 1, len(self.rows)))
        rows = self.rows[:position] + (new_row,) + self.rows[position:]
        return self.model_copy(update={"rows": rows})

    def add_column(self, after: Optional[int] = None) -> "TablePayload":
        """Insert an empty, left-aligned column after ``after`` (append when None)."""
        width = self.column_count
        position = width if after is None else max(0, min(after + 1, width))
        rows = tuple(row[:position] + ("",) + row[position:] for row in self.rows)
        alignment = (
            self.column_alignment[:position]
            + (Alignment.LEFT,)
            + self.column_alignment[position:]
        )
        return self.model_copy(update={"rows": rows, "column_alignment": alignment})

    def remove_row(self, index: int) -> "TablePayload":
        # A table keeps at least one row
        if len(self.rows) <= 1 or not (0 <= index < len(self.rows)):
            return self
        rows = self.rows[:index] + self.rows[index + 1:]
        return self.model_copy(update={"rows": rows})

    def remove_column(self, index: int) -> "TablePayload":
        if self.column_count <= 1 or not (0 <= index < self.column_count):
            return self
        rows = tuple(row[:index] + row[index + 1:] for row in self.rows)
        alignment = self.column_alignment[:index] + self.column_alignment[index + 1:]
        return self.model_copy(update={"rows": rows, "column_alignment": alignment})

    def toggle_header(self) -> "TablePayload":
        return self.model_copy(update={"header": not self.header})

    def set_column_alignment(self, column: int, alignment: Alignment) -> "TablePayload":
        if not (0 <= column < len(self.column_alignment)):
            return self
        values = list(self.column_alignment)
        values[column] = alignment
        return self.model_copy(update={"column_alignment": tuple(values)})


class ImagePayload(BaseModel):
    """Reference to an image plus its presentation settings."""

    src: str = Field(default="", description="Image URL or data URI")
    alt: str = Field(default="", description="Alternative text")
    caption: str = Field(default="", description="Caption shown under the image")
    alignment: Alignment = Field(default=Alignment.CENTER)
    size: ImageSize = Field(default=ImageSize.MEDIUM)

    model_config = {"frozen": True}


class CalendarEvent(BaseModel):
    """Single dated entry on a calendar block."""

    id: str = Field(default_factory=generate_random_uuid)
    title: str
    date: datetime
    color: Optional[str] = None

    model_config = {"frozen": True}


class CalendarPayload(BaseModel):
    """Events shown on a calendar, with the current view and month."""

    events: tuple[CalendarEvent, ...] = ()
    view: CalendarView = CalendarView.MONTH
    reference_date: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    def add_event(self, title: str, when: datetime, color: Optional[str] = None) -> "CalendarPayload":
        if not title.strip():
            return self
        event = CalendarEvent(title=title.strip(), date=when, color=color)
        return self.model_copy(update={"events": self.events + (event,)})

    def remove_event(self, event_id: str) -> "CalendarPayload":
        events = tuple(e for e in self.events if e.id != event_id)
        return self.model_copy(update={"events": events})

    def events_on(self, day: date) -> list[CalendarEvent]:
        return [e for e in self.events if e.date.date() == day]

    def navigate_month(self, step: int) -> "CalendarPayload":
        """Move the reference date by ``step`` months, clamping the day."""
        ref = self.reference_date
        month_index = ref.year * 12 + (ref.month - 1) + step
        year, month = divmod(month_index, 12)
        month += 1
        day = min(ref.day, calendar.monthrange(year, month)[1])
        return self.model_copy(update={"reference_date": ref.replace(year=year, month=month, day=day)})

    def set_view(self, view: CalendarView) -> "CalendarPayload":
        return self.model_copy(update={"view": view})


class ChecklistItem(BaseModel):
    """Single checkbox line."""

    id: str = Field(default_factory=generate_random_uuid)
    text: str
    completed: bool = False
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class ChecklistPayload(BaseModel):
    """Titled list of checkbox items."""

    items: tuple[ChecklistItem, ...] = ()
    title: str = DEFAULT_CHECKLIST_TITLE

    model_config = {"frozen": True}

    def add_item(self, text: str) -> "ChecklistPayload":
        if not text.strip():
            return self
        item = ChecklistItem(text=text.strip())
        return self.model_copy(update={"items": self.items + (item,)})

    def _replace_item(self, item_id: str, **changes) -> "ChecklistPayload":
        items = tuple(
            item.model_copy(update=changes) if item.id == item_id else item
            for item in self.items
        )
        return self.model_copy(update={"items": items})

    def toggle_item(self, item_id: str) -> "ChecklistPayload":
        items = tuple(
            item.model_copy(update={"completed": not item.completed}) if item.id == item_id else item
            for item in self.items
        )
        return self.model_copy(update={"items": items})

    def update_item_text(self, item_id: str, text: str) -> "ChecklistPayload":
        return self._replace_item(item_id, text=text)

    def remove_item(self, item_id: str) -> "ChecklistPayload":
        items = tuple(item for item in self.items if item.id != item_id)
        return self.model_copy(update={"items": items})

    def set_title(self, title: str) -> "ChecklistPayload":
        return self.model_copy(update={"title": title})

    @property
    def completed_count(self) -> int:
        return sum(1 for item in self.items if item.completed)


Payload = Union[TablePayload, ImagePayload, CalendarPayload, ChecklistPayload]

PAYLOAD_TYPES: dict[BlockKind, type[BaseModel]] = {
    BlockKind.TABLE: TablePayload,
    BlockKind.IMAGE: ImagePayload,
    BlockKind.CALENDAR: CalendarPayload,
    BlockKind.CHECKLIST: ChecklistPayload,
}


def default_payload(kind: BlockKind, checklist_title: str = DEFAULT_CHECKLIST_TITLE) -> Optional[Payload]:
    """
    Build the default payload for a block kind.

    Args:
        kind: Block kind
        checklist_title: Title given to new checklists

    Returns:
        Fresh payload for payload kinds, None for every other kind
    """
    if kind is BlockKind.CHECKLIST:
        return ChecklistPayload(title=checklist_title)
    payload_type = PAYLOAD_TYPES.get(kind)
    if payload_type is None:
        return None
    return payload_type()


def payload_matches(kind: BlockKind, payload: Optional[Payload]) -> bool:
    """Check that a payload has the shape expected for ``kind``."""
    expected = PAYLOAD_TYPES.get(kind)
    if expected is None:
        return payload is None
    return type(payload) is expected
