"""Inline format span engine.

Spans are half-open ``[start, end)`` intervals over one block's text. This
module keeps them consistent while text is edited, split and joined, and
sweeps them into flat render segments.

All functions are pure: they take a span collection and return a new,
canonically ordered tuple.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from blockpad.models.block import FormatSpan
from blockpad.models.block_kind import FormatKind

logger = structlog.get_logger()


@dataclass(frozen=True)
class Segment:
    """Run of text sharing one set of active formats.

    Attributes:
        text: Characters in the run
        kinds: Active formats, outermost first (canonical nesting order)
    """

    text: str
    kinds: tuple[FormatKind, ...]


def normalize(spans: Iterable[FormatSpan]) -> tuple[FormatSpan, ...]:
    """Drop exact duplicates and order spans by (start, end, kind)."""
    return tuple(sorted(set(spans), key=FormatSpan.sort_key))


def toggle_format(
    spans: Iterable[FormatSpan],
    kind: FormatKind,
    start: int,
    end: int,
    text_length: int,
) -> tuple[FormatSpan, ...]:
    """
    Toggle a format over ``[start, end)``.

    An identical ``(start, end, kind)`` span is removed; otherwise a non-empty
    range inside the text is added. Empty or out-of-range selections leave the
    spans unchanged.

    Args:
        spans: Current spans
        kind: Format to toggle
        start: Selection start
        end: Selection end
        text_length: Length of the block's text

    Returns:
        Updated spans
    """
    current = normalize(spans)
    start, end = min(start, end), max(start, end)
    existing = FormatSpan(start=start, end=end, kind=kind) if start >= 0 else None

    if existing is not None and existing in current:
        return tuple(s for s in current if s != existing)

    if start == end or not (0 <= start and end <= text_length):
        return current

    return normalize(current + (existing,))


def adjust_for_edit(
    spans: Iterable[FormatSpan],
    edit_start: int,
    edit_end: int,
    inserted_length: int,
    new_length: int,
) -> tuple[FormatSpan, ...]:
    """
    Recompute spans for a text edit that replaces ``[edit_start, edit_end)``
    with ``inserted_length`` characters.

    Pure insertion has ``edit_start == edit_end``; pure deletion has
    ``inserted_length == 0``.

    Args:
        spans: Spans over the old text
        edit_start: Start of the replaced range in the old text
        edit_end: End of the replaced range in the old text
        inserted_length: Number of characters inserted at ``edit_start``
        new_length: Length of the text after the edit

    Returns:
        Spans over the new text
    """
    deleted = edit_end - edit_start
    delta = inserted_length - deleted
    adjusted = []

    for span in spans:
        if span.start >= edit_end:
            # Entirely after the edit (an insertion at a span's start pushes it right)
            adjusted.append(span.shifted(delta))
        elif span.end <= edit_start:
            adjusted.append(span)
        elif deleted == 0:
            # Insertion strictly inside the span
            adjusted.append(FormatSpan(start=span.start, end=span.end + inserted_length, kind=span.kind))
        elif edit_start <= span.start and span.end <= edit_end:
            # Wholly inside the deleted range
            continue
        elif span.start < edit_start and span.end > edit_end:
            # Deleted range wholly inside the span
            adjusted.append(FormatSpan(start=span.start, end=span.end + delta, kind=span.kind))
        elif span.start < edit_start:
            # Deletion eats the span's tail
            adjusted.append(FormatSpan(start=span.start, end=edit_start, kind=span.kind))
        else:
            # Deletion eats the span's head; the surviving tail follows any inserted text
            adjusted.append(
                FormatSpan(start=edit_start + inserted_length, end=span.end + delta, kind=span.kind)
            )

    return normalize(s for s in adjusted if s.is_valid_for(new_length))


def slice_spans(spans: Iterable[FormatSpan], start: int, end: int) -> tuple[FormatSpan, ...]:
    """Clip spans to ``[start, end)`` and re-base them to offset 0."""
    clipped = []
    for span in spans:
        lo, hi = max(span.start, start), min(span.end, end)
        if lo < hi:
            clipped.append(FormatSpan(start=lo - start, end=hi - start, kind=span.kind))
    return normalize(clipped)


def rebase(spans: Iterable[FormatSpan], delta: int) -> tuple[FormatSpan, ...]:
    return normalize(span.shifted(delta) for span in spans)


def join_spans(
    left: Iterable[FormatSpan],
    right: Iterable[FormatSpan],
    join_offset: int,
) -> tuple[FormatSpan, ...]:
    """
    Union the spans of two concatenated texts.

    ``right`` is re-based by ``join_offset``. Same-kind spans that touch at the
    join are coalesced, so joining the halves of a split restores the
    original span.
    """
    left = list(normalize(left))
    shifted = list(rebase(right, join_offset))

    for i, lspan in enumerate(left):
        if lspan.end != join_offset:
            continue
        for j, rspan in enumerate(shifted):
            if rspan.kind == lspan.kind and rspan.start == join_offset:
                left[i] = FormatSpan(start=lspan.start, end=rspan.end, kind=lspan.kind)
                del shifted[j]
                break

    return normalize(left + shifted)


def sanitize(raw_spans: Iterable, text_length: int) -> tuple[FormatSpan, ...]:
    """
    Build spans from untrusted data, silently discarding malformed entries.

    Accepts ``FormatSpan`` instances or dicts with ``start``/``end`` and either
    ``kind`` or ``type``.
    """
    valid = []
    dropped = 0
    for raw in raw_spans or ():
        span = _coerce_span(raw)
        if span is None or not span.is_valid_for(text_length):
            dropped += 1
            continue
        valid.append(span)

    if dropped:
        logger.warning("format_spans_dropped", dropped=dropped, kept=len(valid))
    return normalize(valid)


def _coerce_span(raw) -> Optional[FormatSpan]:
    if isinstance(raw, FormatSpan):
        return raw
    if not isinstance(raw, dict):
        return None
    try:
        start, end = raw["start"], raw["end"]
        kind = FormatKind(raw.get("kind", raw.get("type")))
    except (KeyError, TypeError, ValueError):
        return None
    if not isinstance(start, int) or not isinstance(end, int) or isinstance(start, bool) or isinstance(end, bool):
        return None
    if start < 0 or end < 0:
        return None
    return FormatSpan(start=start, end=end, kind=kind)


def segments(text: str, spans: Iterable[FormatSpan]) -> list[Segment]:
    """
    Sweep span boundaries into ordered text runs.

    Kinds inside each run follow the canonical nesting order, and adjacent runs
    with the same kinds are merged, so identical formatting always renders
    identically regardless of how the spans are represented.
    """
    spans = [s for s in spans if s.is_valid_for(len(text))]
    if not text:
        return []

    boundaries = sorted({0, len(text)} | {s.start for s in spans} | {s.end for s in spans})
    result: list[Segment] = []

    for lo, hi in zip(boundaries, boundaries[1:]):
        active = {s.kind for s in spans if s.start <= lo and hi <= s.end}
        kinds = tuple(sorted(active, key=lambda k: k.rank))
        if result and result[-1].kinds == kinds:
            result[-1] = Segment(text=result[-1].text + text[lo:hi], kinds=kinds)
        else:
            result.append(Segment(text=text[lo:hi], kinds=kinds))

    return result


def active_kinds(spans: Iterable[FormatSpan], start: int, end: int) -> frozenset[FormatKind]:
    """
    Formats active at a caret or over a selection.

    For a caret at ``p`` this is the formats covering the character before
    ``p`` (character 0 when ``p == 0``). For a range it is the formats
    covering every character of the range.
    """
    spans = list(spans)
    if start == end:
        probe = start - 1 if start > 0 else 0
        return frozenset(s.kind for s in spans if s.start <= probe < s.end)

    lo, hi = min(start, end), max(start, end)
    kinds = set()
    for kind in FormatKind:
        covered = _coverage(spans, kind, lo, hi)
        if covered >= hi - lo:
            kinds.add(kind)
    return frozenset(kinds)


def _coverage(spans: list[FormatSpan], kind: FormatKind, lo: int, hi: int) -> int:
    """Number of characters in ``[lo, hi)`` covered by spans of ``kind``."""
    intervals = sorted(
        (max(s.start, lo), min(s.end, hi)) for s in spans if s.kind == kind and s.start < hi and s.end > lo
    )
    covered = 0
    cursor = lo
    for a, b in intervals:
        a = max(a, cursor)
        if b > a:
            covered += b - a
            cursor = b
    return covered
