#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
selfcheck.py

A docx "lint" for {field} placeholder templates and the documents filled from them.

What it checks:
1) RUN_SPLIT: a placeholder split across several runs. docxfill replaces these
   fine; the report just tells you which runs will be merged on fill.
2) UNRESOLVED: placeholder tokens still present (useful on generated output).
3) EMPTY_PRESERVED: empty w:t nodes marked xml:space="preserve".

Usage:
  python -m docxfill.selfcheck file.docx
  python -m docxfill.selfcheck file.docx --mode output
  python -m docxfill.selfcheck file.docx --keys "{name},{date}"

Exit codes:
  0: ok
  2: issues found
  1: fatal error
"""
import argparse
import re
import zipfile
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from lxml import etree

from .locator import paragraph_text, paragraph_text_nodes
from .ooxml import W_P, W_R, W_T, is_preserved
from .replace import DEFAULT_PARTS, HEADER_FOOTER_RE

PLACEHOLDER_RE = re.compile(r"\{[^{}\s]+\}")


def iter_xml_parts(zf: zipfile.ZipFile) -> Iterable[Tuple[str, bytes]]:
    """Parts a fill would touch: the default list plus every header/footer."""
    names = set(zf.namelist())
    for name in sorted(names):
        base = name.rsplit("/", 1)[-1]
        if name in DEFAULT_PARTS or (name.startswith("word/") and HEADER_FOOTER_RE.match(base)):
            yield name, zf.read(name)


def placeholder_pattern(keys: Optional[List[str]]):
    if not keys:
        return PLACEHOLDER_RE
    return re.compile("|".join(re.escape(k) for k in sorted(keys, key=len, reverse=True)))


def run_index_map(p: etree._Element) -> List[int]:
    """For each character of the paragraph text, the index of the run holding it."""
    runs = {}
    char_to_run: List[int] = []
    for t in paragraph_text_nodes(p):
        run = t.getparent()
        key = runs.setdefault(run if run.tag == W_R else t, len(runs))
        char_to_run.extend([key] * len(t.text or ""))
    return char_to_run


def check_paragraph(p: etree._Element, part_name: str, p_index: int, pattern) -> List[dict]:
    full_text = paragraph_text(p)
    if not full_text:
        return []

    issues: List[dict] = []
    char_to_run = None
    for m in pattern.finditer(full_text):
        start, end = m.span()
        issues.append({"type": "UNRESOLVED", "part": part_name, "p_index": p_index, "placeholder": m.group(0)})
        if char_to_run is None:
            char_to_run = run_index_map(p)
        run_start, run_end = char_to_run[start], char_to_run[end - 1]
        if run_start != run_end:
            issues.append(
                {
                    "type": "RUN_SPLIT",
                    "part": part_name,
                    "p_index": p_index,
                    "placeholder": m.group(0),
                    "text": full_text.strip() or "[empty paragraph]",
                    "run_start": run_start + 1,
                    "run_end": run_end + 1,
                }
            )
    return issues


def check_empty_preserved(root: etree._Element, part_name: str) -> List[dict]:
    count = sum(1 for t in root.iter(W_T) if not t.text and is_preserved(t))
    if not count:
        return []
    return [{"type": "EMPTY_PRESERVED", "part": part_name, "count": count}]


def collect_issues(docx: Path, mode: str, keys: Optional[List[str]] = None) -> List[dict]:
    pattern = placeholder_pattern(keys)
    issues: List[dict] = []
    with zipfile.ZipFile(docx, "r") as zf:
        for part_name, data in iter_xml_parts(zf):
            root = etree.fromstring(data)
            for idx, p in enumerate(root.iter(W_P)):
                for issue in check_paragraph(p, part_name, idx, pattern):
                    if issue["type"] == "RUN_SPLIT" and mode in ("template", "all"):
                        issues.append(issue)
                    elif issue["type"] == "UNRESOLVED" and mode in ("output", "all"):
                        issues.append(issue)
            issues.extend(check_empty_preserved(root, part_name))
    return issues


def format_issue(item: dict) -> str:
    t = item["type"]
    if t == "RUN_SPLIT":
        return (
            f"RUN_SPLIT {item['part']}#p{item['p_index']} runs {item['run_start']}-{item['run_end']}: "
            f"{item['placeholder']} | {item['text']}"
        )
    if t == "UNRESOLVED":
        return f"UNRESOLVED {item['part']}#p{item['p_index']}: {item['placeholder']}"
    return f"EMPTY_PRESERVED {item['part']}: {item['count']} node(s)"


def run_checks(docx: Path, mode: str, max_issues: int, keys: Optional[List[str]] = None) -> int:
    issues = collect_issues(docx, mode, keys)

    if not issues:
        print("[OK] no issues found.")
        return 0

    print(f"[WARN] issues found: {min(len(issues), max_issues)}/{len(issues)}")
    for item in issues[:max_issues]:
        print(format_issue(item))
    return 2


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Docx placeholder template/output self-check.")
    parser.add_argument("docx", help="Path to .docx (template or generated output)")
    parser.add_argument(
        "--mode",
        choices=["template", "output", "all"],
        default="template",
        help="template: placeholders split across runs; output: placeholders left unreplaced; all: everything",
    )
    parser.add_argument(
        "--keys",
        default="",
        help="Comma-separated placeholders to look for (default: any {token})",
    )
    parser.add_argument("--max", type=int, default=200, help="Max issues to print (default 200)")
    args = parser.parse_args(argv)

    keys = [k.strip() for k in args.keys.split(",") if k.strip()]

    docx = Path(args.docx)
    if not docx.exists():
        print(f"[ERROR] file not found: {docx}")
        return 1

    try:
        return run_checks(docx, args.mode, args.max, keys)
    except (zipfile.BadZipFile, etree.XMLSyntaxError) as exc:
        print(f"[ERROR] cannot read {docx}: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
