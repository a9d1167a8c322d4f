"""Nested markup tree built from rendered segments.

Formats nest in canonical order (bold outside italic outside underline
outside code), and consecutive segments share their common outer elements.
"""

from dataclasses import dataclass, field
from html import escape
from typing import Iterable, Union

from blockpad.editor.formats import Segment, segments
from blockpad.models.block import FormatSpan
from blockpad.models.block_kind import FormatKind


HTML_TAGS = {
    FormatKind.BOLD: "strong",
    FormatKind.ITALIC: "em",
    FormatKind.UNDERLINE: "u",
    FormatKind.CODE: "code",
}


@dataclass
class MarkupElement:
    """Formatting element wrapping text and nested elements."""

    kind: FormatKind
    children: list[Union["MarkupElement", str]] = field(default_factory=list)


MarkupNode = Union[MarkupElement, str]


def build_tree(runs: Iterable[Segment]) -> list[MarkupNode]:
    """
    Build a markup tree from ordered segments.

    Args:
        runs: Segments as produced by ``formats.segments``

    Returns:
        Top-level nodes (plain strings and elements)
    """
    root: list[MarkupNode] = []
    stack: list[MarkupElement] = []

    for run in runs:
        # Keep the open elements that are a prefix of this run's kinds
        common = 0
        while common < len(stack) and common < len(run.kinds) and stack[common].kind == run.kinds[common]:
            common += 1
        del stack[common:]

        for kind in run.kinds[common:]:
            element = MarkupElement(kind=kind)
            (stack[-1].children if stack else root).append(element)
            stack.append(element)

        (stack[-1].children if stack else root).append(run.text)

    return root


def render_tree(text: str, spans: Iterable[FormatSpan]) -> list[MarkupNode]:
    return build_tree(segments(text, spans))


def to_html(nodes: Iterable[MarkupNode]) -> str:
    """Serialize a markup tree to HTML, escaping text and turning newlines into ``<br>``."""
    parts = []
    for node in nodes:
        if isinstance(node, str):
            parts.append(escape(node).replace("\n", "<br>"))
        else:
            tag = HTML_TAGS[node.kind]
            parts.append(f"<{tag}>{to_html(node.children)}</{tag}>")
    return "".join(parts)


def render_html(text: str, spans: Iterable[FormatSpan]) -> str:
    return to_html(render_tree(text, spans))
