"""Tree surgery for a located placeholder.

The matched characters are cut out of the text nodes they occupy and the
replacement is spliced in at the same spot:

* text without breaks lands in the start node, next to its prefix;
* text with breaks becomes w:t / w:br pairs right after the start node;
* a list of lines fills the match with its first line, and every further
  line becomes a new paragraph cloned from the original one.

Run properties (w:rPr) and paragraph properties (w:pPr) are never
interpreted, only copied.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from lxml import etree

from .errors import UnsupportedReplacementError
from .locator import SpanMatch, paragraph_text_nodes
from .ooxml import (
    W_PPR,
    W_R,
    W_RPR,
    W_T,
    is_preserved,
    make_break,
    make_paragraph,
    make_run,
    make_text,
    set_text,
)
from .values import LinesReplacement, Replacement, TextReplacement

logger = logging.getLogger(__name__)


@dataclass
class RewriteResult:
    # offset in the rewritten paragraph text right after the inserted content
    resume_at: int
    # paragraph after which further generated paragraphs should go
    last_paragraph: etree._Element
    replaced: bool = True


def clone(el: etree._Element) -> etree._Element:
    return etree.fromstring(etree.tostring(el, with_tail=False))


def _detach(t: etree._Element) -> None:
    """Remove a text node; drop its run too when only w:rPr is left behind."""
    run = t.getparent()
    if run is None:
        return
    run.remove(t)
    if run.tag == W_R and all(child.tag == W_RPR for child in run):
        holder = run.getparent()
        if holder is not None:
            holder.remove(run)


def _drop_if_empty(t: etree._Element) -> None:
    if not t.text and not is_preserved(t):
        _detach(t)


def _insert_lines_after(anchor: etree._Element, lines: Sequence[str]) -> etree._Element:
    """Insert a w:br before each line, and a w:t for every non-empty line."""
    for line in lines:
        br = make_break()
        anchor.addnext(br)
        anchor = br
        if line:
            t = make_text(line)
            anchor.addnext(t)
            anchor = t
    return anchor


def splice(match: SpanMatch, lines: Sequence[str], cut_before: int = 0, cut_after: int = 0) -> int:
    """Replace the matched characters with lines joined by w:br.

    cut_before / cut_after drop that many characters from the end of the
    prefix and the start of the suffix. Returns the length of the text now
    occupying the match.
    """
    start = match.start_node
    end = match.end_node
    prefix, suffix = match.prefix, match.suffix
    prefix = prefix[: len(prefix) - cut_before]
    suffix = suffix[cut_after:]
    first, rest = lines[0], list(lines[1:])

    for node in match.inner_nodes:
        if not is_preserved(node):
            _detach(node)

    if match.single_node:
        if rest:
            set_text(start, prefix + first)
            rest[-1] = rest[-1] + suffix
            _insert_lines_after(start, rest)
        else:
            set_text(start, prefix + first + suffix)
    else:
        set_text(start, prefix + first)
        _insert_lines_after(start, rest)
        set_text(end, suffix)
        _drop_if_empty(end)

    _drop_if_empty(start)
    return sum(len(line) for line in lines)


def _replace_text(match: SpanMatch, replacement: TextReplacement, p: etree._Element) -> RewriteResult:
    inserted = splice(match, replacement.lines)
    return RewriteResult(match.start + inserted, p)


def _run_properties(t: etree._Element) -> Optional[etree._Element]:
    run = t.getparent()
    if run is None or run.tag != W_R:
        return None
    return run.find(W_RPR)


def _neighbour(p: etree._Element, node: etree._Element, step: int) -> Optional[etree._Element]:
    """Nearest non-empty text node before (step=-1) or after (step=1) node."""
    nodes = paragraph_text_nodes(p)
    i = next(i for i, n in enumerate(nodes) if n is node) + step
    while 0 <= i < len(nodes):
        if nodes[i].text:
            return nodes[i]
        i += step
    return None


def _take_space(t: Optional[etree._Element], from_end: bool) -> None:
    """Drop one edge character; a node that only held it goes away, preserved or not."""
    if t is None:
        return
    text = t.text or ""
    text = text[:-1] if from_end else text[1:]
    if text:
        set_text(t, text)
    else:
        _detach(t)


def _replace_lines(
    match: SpanMatch,
    replacement: LinesReplacement,
    p: etree._Element,
    insert_after: Optional[etree._Element],
) -> RewriteResult:
    anchor = insert_after if insert_after is not None else p
    lines: List[str] = list(replacement.lines)
    if not lines:
        logger.warning("Empty line list for %r, leaving it in place", match.text[match.start : match.end])
        return RewriteResult(match.end, anchor, replaced=False)

    lead = match.char_before == " "
    trail = match.char_after == " "
    if lead:
        lines[0] = " " + lines[0]
    if trail:
        lines[-1] = lines[-1] + " "

    ppr = p.find(W_PPR)
    rpr = _run_properties(match.start_node)

    # adjacent spaces move into the line; the trailing one only when the
    # last line stays in this paragraph
    cut_before = 0
    if lead:
        if match.prefix:
            cut_before = 1
        else:
            _take_space(_neighbour(p, match.start_node, -1), from_end=True)
    cut_after = 0
    if trail and len(lines) == 1:
        if match.suffix:
            cut_after = 1
        else:
            _take_space(_neighbour(p, match.end_node, 1), from_end=False)

    splice(match, lines[:1], cut_before, cut_after)

    for line in lines[1:]:
        new_p = make_paragraph()
        if ppr is not None:
            new_p.append(clone(ppr))
        run = make_run()
        if rpr is not None:
            run.append(clone(rpr))
        if line:
            run.append(make_text(line))
        new_p.append(run)
        anchor.addnext(new_p)
        anchor = new_p

    start = match.start - 1 if lead else match.start
    return RewriteResult(start + len(lines[0]), anchor)


def replace_span(
    p: etree._Element,
    match: SpanMatch,
    replacement: Replacement,
    insert_after: Optional[etree._Element] = None,
) -> RewriteResult:
    if isinstance(replacement, TextReplacement):
        return _replace_text(match, replacement, p)
    if isinstance(replacement, LinesReplacement):
        return _replace_lines(match, replacement, p, insert_after)
    raise UnsupportedReplacementError(
        match.text[match.start : match.end], f"unsupported replacement type {type(replacement).__name__}"
    )


def normalize_preserved_space(root: etree._Element) -> int:
    """Empty w:t nodes marked xml:space="preserve" get a single space."""
    fixed = 0
    for t in root.iter(W_T):
        if not t.text and is_preserved(t):
            t.text = " "
            fixed += 1
    return fixed
