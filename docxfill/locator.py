"""Find a placeholder inside a paragraph, even when runs split it apart.

The paragraph text is the concatenation of its w:t nodes in document order.
A match is mapped back onto the nodes it overlaps so the rewriter can cut
exactly those characters out.
"""
from dataclasses import dataclass
from typing import List, Optional

from lxml import etree

from .ooxml import W_P, W_T


@dataclass
class NodeSlice:
    node: etree._Element
    start: int
    end: int


@dataclass
class SpanMatch:
    start: int
    end: int
    text: str
    slices: List[NodeSlice]

    @property
    def start_node(self) -> etree._Element:
        return self.slices[0].node

    @property
    def end_node(self) -> etree._Element:
        return self.slices[-1].node

    @property
    def single_node(self) -> bool:
        return self.start_node is self.end_node

    @property
    def inner_nodes(self) -> List[etree._Element]:
        return [s.node for s in self.slices[1:-1]]

    @property
    def prefix(self) -> str:
        return (self.start_node.text or "")[: self.slices[0].start]

    @property
    def suffix(self) -> str:
        return (self.end_node.text or "")[self.slices[-1].end :]

    @property
    def char_before(self) -> str:
        return self.text[self.start - 1] if self.start > 0 else ""

    @property
    def char_after(self) -> str:
        return self.text[self.end] if self.end < len(self.text) else ""


def _owning_paragraph(t: etree._Element):
    for ancestor in t.iterancestors(W_P):
        return ancestor
    return None


def paragraph_text_nodes(p: etree._Element) -> List[etree._Element]:
    """w:t nodes of this paragraph only; text in nested paragraphs (text boxes) is skipped."""
    return [t for t in p.iter(W_T) if _owning_paragraph(t) is p]


def paragraph_text(p: etree._Element) -> str:
    return "".join(t.text or "" for t in paragraph_text_nodes(p))


def find_span(p: etree._Element, placeholder: str, search_from: int = 0) -> Optional[SpanMatch]:
    """Locate the first occurrence of placeholder at or after search_from.

    Returns None when there is no match, or when the match cannot be pinned
    to a start and an end node.
    """
    if not placeholder:
        return None

    nodes = paragraph_text_nodes(p)
    texts = [t.text or "" for t in nodes]
    full = "".join(texts)

    start = full.find(placeholder, search_from)
    if start == -1:
        return None
    end = start + len(placeholder)

    slices: List[NodeSlice] = []
    pos = 0
    started = False
    for node, text in zip(nodes, texts):
        node_end = pos + len(text)
        if not started and pos <= start < node_end:
            started = True
        if started:
            slices.append(NodeSlice(node, max(start - pos, 0), min(end - pos, len(text))))
            if pos < end <= node_end:
                return SpanMatch(start, end, full, slices)
        pos = node_end

    return None
