"""Apply a placeholder map to every document part of a package."""
import logging
import os
import re
import secrets
import shutil
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from lxml import etree

from .archive import unzip_docx, zip_docx
from .errors import ArchiveError, DocxFillError, PartError
from .locator import find_span
from .ooxml import W_P
from .rewriter import normalize_preserved_space, replace_span
from .values import Replacement, normalize_replacements, to_replacement

logger = logging.getLogger(__name__)

DEFAULT_PARTS = (
    "word/document.xml",
    "word/footer1.xml",
    "word/header1.xml",
    "word/footnotes.xml",
    "word/endnotes.xml",
)

HEADER_FOOTER_RE = re.compile(r"^(header|footer)\d*\.xml$")


@dataclass
class ReplaceReport:
    parts: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)

    def add(self, part: str, counts: Mapping[str, int]) -> None:
        self.parts.append(part)
        for placeholder, n in counts.items():
            self.counts[placeholder] = self.counts.get(placeholder, 0) + n

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def unmatched(self) -> List[str]:
        return [k for k, n in self.counts.items() if n == 0]


def candidate_parts(directory: str, all_headers: bool = False) -> List[str]:
    parts = list(DEFAULT_PARTS)
    word_dir = os.path.join(directory, "word")
    if all_headers and os.path.isdir(word_dir):
        for name in sorted(os.listdir(word_dir)):
            rel = f"word/{name}"
            if HEADER_FOOTER_RE.match(name) and rel not in parts:
                parts.append(rel)
    return parts


def replace_in_tree(
    root: etree._Element,
    placeholder: str,
    replacement: Replacement,
    replace_all: bool = True,
) -> int:
    """Substitute placeholder in every paragraph under root; returns the count."""
    count = 0
    for p in list(root.iter(W_P)):
        search_from = 0
        anchor = None
        while True:
            match = find_span(p, placeholder, search_from)
            if match is None:
                break
            result = replace_span(p, match, replacement, insert_after=anchor)
            if not result.replaced:
                break
            count += 1
            logger.debug(
                "Replaced %r at %d-%d across %d text node(s)",
                placeholder, match.start, match.end, len(match.slices),
            )
            if not replace_all:
                break
            search_from = result.resume_at
            anchor = result.last_paragraph
    return count


_PARSER = etree.XMLParser(resolve_entities=False)


def replace_in_part(
    path: str,
    replacements: Mapping[str, Replacement],
    replace_all: bool = True,
    part_name: Optional[str] = None,
) -> Dict[str, int]:
    """Parse one part, apply every replacement, write it back once."""
    name = part_name or path
    try:
        tree = etree.parse(path, _PARSER)
    except (OSError, etree.XMLSyntaxError) as exc:
        raise PartError(name, exc) from exc

    root = tree.getroot()
    counts: Dict[str, int] = {}
    for placeholder, replacement in replacements.items():
        try:
            counts[placeholder] = replace_in_tree(root, placeholder, replacement, replace_all)
        except (DocxFillError, etree.LxmlError, ValueError) as exc:
            raise PartError(name, exc, placeholder=placeholder) from exc

    fixed = normalize_preserved_space(root)
    if fixed:
        logger.debug("%s: %d empty preserved text node(s) reset to a space", name, fixed)

    try:
        tree.write(path, xml_declaration=True, encoding="UTF-8", standalone=True)
    except OSError as exc:
        raise PartError(name, exc) from exc

    logger.info("%s: %d substitution(s)", name, sum(counts.values()))
    return counts


def safe_replace(xml_path: str, old_text: str, new_text, replace_all: bool = True) -> int:
    value = to_replacement(old_text, new_text)
    return replace_in_part(xml_path, {old_text: value}, replace_all)[old_text]


def replace_multiple(
    directory: str,
    replacements: Mapping,
    strict: bool = True,
    replace_all: bool = True,
    all_headers: bool = False,
) -> ReplaceReport:
    values = normalize_replacements(replacements, strict=strict)
    report = ReplaceReport()
    for part in candidate_parts(directory, all_headers):
        path = os.path.join(directory, *part.split("/"))
        if not os.path.isfile(path):
            report.skipped.append(part)
            continue
        report.add(part, replace_in_part(path, values, replace_all, part_name=part))
    for placeholder in values:
        report.counts.setdefault(placeholder, 0)
    return report


def replace_in_all_files(directory: str, old_text: str, new_text, **options) -> ReplaceReport:
    return replace_multiple(directory, {old_text: new_text}, **options)


@contextmanager
def working_directory():
    """A private docx_* temp dir, removed however the block exits."""
    try:
        tmp = tempfile.mkdtemp(prefix="docx_")
    except OSError as exc:
        raise ArchiveError(f"cannot create working directory: {exc}") from exc
    try:
        yield tmp
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


def unique_output_name(directory: Optional[str] = None) -> str:
    name = f"output_{time.time_ns()}_{secrets.token_hex(4)}.docx"
    return os.path.join(directory, name) if directory else name


def process_docx(
    template_path: str,
    output_path: str,
    replacements: Mapping,
    strict: bool = True,
    replace_all: bool = True,
    all_headers: bool = False,
) -> ReplaceReport:
    """Extract the template, apply the replacements, pack the result to output_path."""
    values = normalize_replacements(replacements, strict=strict)
    with working_directory() as tmp:
        unzip_docx(template_path, tmp)
        report = replace_multiple(tmp, values, replace_all=replace_all, all_headers=all_headers)
        zip_docx(tmp, output_path)
    logger.info(
        "Wrote %s: %d substitution(s) in %d part(s)", output_path, report.total, len(report.parts)
    )
    return report


def generate_docx(
    template_path: str,
    replacements: Mapping,
    output_dir: Optional[str] = None,
    **options,
) -> str:
    """Like process_docx, but under a fresh unique name; returns its absolute path."""
    output = os.path.abspath(unique_output_name(output_dir))
    process_docx(template_path, output, replacements, **options)
    return output
