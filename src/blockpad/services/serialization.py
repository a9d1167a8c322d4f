"""Wire format for documents.

A document is stored as an ordered array of
``{id, kind, text, formats, alignment, payload}`` objects. Dates inside
payloads travel as ISO 8601 strings and come back as ``datetime`` values.

Loading never fails: malformed spans, payload fields and blocks are dropped
or replaced with safe defaults, and a missing or unusable array degrades to a
single paragraph holding the note's plain text.
"""

import json
from typing import Any, Iterable, Optional

import structlog
from pydantic import BaseModel, ValidationError

from blockpad.editor import formats as spans
from blockpad.editor.document import Document
from blockpad.models.block import Block
from blockpad.models.block_kind import Alignment, BlockKind
from blockpad.models.payloads import (
    PAYLOAD_TYPES,
    CalendarEvent,
    ChecklistItem,
    Payload,
    default_payload,
)
from blockpad.utils.ids import generate_random_uuid

logger = structlog.get_logger()


# Keys used by notes saved before the current wire names
LEGACY_PAYLOAD_KEYS = {
    BlockKind.TABLE: {"headers": "header", "alignment": "column_alignment"},
    BlockKind.CALENDAR: {"currentDate": "reference_date"},
    BlockKind.CHECKLIST: {},
    BlockKind.IMAGE: {},
}

NESTED_ENTRIES: dict[BlockKind, tuple[str, type[BaseModel], dict[str, str]]] = {
    BlockKind.CALENDAR: ("events", CalendarEvent, {}),
    BlockKind.CHECKLIST: ("items", ChecklistItem, {"createdAt": "created_at"}),
}


def serialize_block(block: Block) -> dict[str, Any]:
    """Convert a block to its JSON-safe wire form."""
    return {
        "id": block.id,
        "kind": block.kind.value,
        "text": block.text,
        "formats": [
            {"start": span.start, "end": span.end, "kind": span.kind.value}
            for span in block.formats
        ],
        "alignment": block.alignment.value,
        "payload": block.payload.model_dump(mode="json") if block.payload is not None else None,
    }


def serialize_blocks(blocks: Iterable[Block]) -> list[dict[str, Any]]:
    return [serialize_block(block) for block in blocks]


def to_json(blocks: Iterable[Block]) -> str:
    """Canonical JSON for a block sequence (stable key order, used for change detection)."""
    return json.dumps(serialize_blocks(blocks), sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def deserialize_blocks(raw: Any, fallback_text: str = "") -> Document:
    """
    Rebuild a document from its wire form.

    Args:
        raw: Decoded ``blocks`` value (expected: list of dicts)
        fallback_text: Plain text used when ``raw`` is absent or unusable

    Returns:
        Document (never empty)
    """
    if not isinstance(raw, list) or not raw:
        if raw is not None and raw != []:
            logger.warning("blocks_malformed", received=type(raw).__name__)
        return Document.from_text(fallback_text)

    blocks = []
    seen_ids: set[str] = set()
    for position, entry in enumerate(raw):
        block = _load_block(entry, position, seen_ids)
        if block is not None:
            seen_ids.add(block.id)
            blocks.append(block)

    if not blocks:
        logger.warning("blocks_all_dropped", received=len(raw))
        return Document.from_text(fallback_text)

    return Document(blocks)


def from_json(data: str, fallback_text: str = "") -> Document:
    try:
        raw = json.loads(data)
    except (TypeError, ValueError) as e:
        logger.warning("blocks_json_invalid", error=str(e))
        raw = None
    return deserialize_blocks(raw, fallback_text)


def _load_block(entry: Any, position: int, seen_ids: set[str]) -> Optional[Block]:
    if not isinstance(entry, dict):
        logger.warning("block_dropped", position=position, reason="not an object")
        return None

    raw_kind = entry.get("kind", entry.get("type"))
    kind = BlockKind.parse(raw_kind)
    if kind is None:
        logger.warning("block_kind_unknown", position=position, kind=str(raw_kind))
        kind = BlockKind.PARAGRAPH

    block_id = entry.get("id")
    if not isinstance(block_id, str) or not block_id or block_id in seen_ids:
        new_id = generate_random_uuid()
        if block_id is not None:
            logger.warning("block_id_reissued", position=position, old_id=str(block_id), new_id=new_id)
        block_id = new_id

    try:
        alignment = Alignment(entry.get("alignment") or Alignment.LEFT)
    except (TypeError, ValueError):
        alignment = Alignment.LEFT

    text = ""
    formats = ()
    payload = None
    if kind.is_text_bearing:
        text = entry.get("text", entry.get("content", ""))
        if not isinstance(text, str):
            text = ""
        formats = spans.sanitize(entry.get("formats") or (), len(text))
    elif kind.has_payload:
        payload = _load_payload(kind, entry.get("payload", entry.get("data")))

    return Block(id=block_id, kind=kind, text=text, formats=formats, alignment=alignment, payload=payload)


def _load_payload(kind: BlockKind, raw: Any) -> Payload:
    """Validate a payload, keeping every field that is individually valid."""
    payload_type = PAYLOAD_TYPES[kind]
    if not isinstance(raw, dict):
        return default_payload(kind)

    data = {LEGACY_PAYLOAD_KEYS[kind].get(key, key): value for key, value in raw.items()}
    if kind in NESTED_ENTRIES:
        field, entry_type, renames = NESTED_ENTRIES[kind]
        if field in data:
            data[field] = _valid_entries(entry_type, data[field], renames)

    try:
        return payload_type.model_validate(data)
    except ValidationError:
        pass

    kept: dict[str, Any] = {}
    for name in payload_type.model_fields:
        if name not in data:
            continue
        try:
            payload_type.model_validate({**kept, name: data[name]})
        except ValidationError:
            logger.warning("payload_field_dropped", kind=kind.value, field=name)
            continue
        kept[name] = data[name]
    return payload_type.model_validate(kept)


def _valid_entries(entry_type: type[BaseModel], entries: Any, renames: dict[str, str]) -> list[BaseModel]:
    if not isinstance(entries, list):
        return []
    valid = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        entry = {renames.get(key, key): value for key, value in entry.items()}
        try:
            valid.append(entry_type.model_validate(entry))
        except ValidationError:
            logger.warning("payload_entry_dropped", entry_type=entry_type.__name__)
    return valid
