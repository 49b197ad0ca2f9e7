#!/usr/bin/env python3
import argparse
import json
import logging
import os
import re
import sys
from typing import Dict, List, Optional

from docxfill import DocxFillError, generate_docx, process_docx

SET_ESCAPE_RE = re.compile(r"\\(\\|n)")


def resolve_template_path(arg: Optional[str]) -> str:
    env_path = os.getenv("DOCXFILL_TEMPLATE")
    candidates = []
    if arg:
        candidates.append(os.path.abspath(arg))
    if env_path:
        candidates.append(os.path.abspath(env_path))
    candidates.append(os.path.join(os.getcwd(), "assets", "template.docx"))

    for path in candidates:
        if os.path.exists(path):
            return path
    print("[ERROR] template not found. Tried:")
    for path in candidates:
        print(f" - {path}")
    sys.exit(1)


def parse_set(values: List[str]) -> Dict[str, object]:
    """--set KEY=VALUE pairs; in VALUE \\n is a line break and \\\\ a literal backslash."""
    result: Dict[str, object] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"--set expects KEY=VALUE, got {item!r}")
        result[key] = SET_ESCAPE_RE.sub(lambda m: "\n" if m.group(1) == "n" else "\\", value)
    return result


def load_replacements(data_path: Optional[str], sets: List[str]) -> Dict[str, object]:
    replacements: Dict[str, object] = {}
    if data_path:
        with open(data_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{data_path}: expected a JSON object of placeholder -> value")
        replacements.update(data)
    replacements.update(parse_set(sets))
    return replacements


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fill {placeholders} in a .docx template.")
    parser.add_argument("template", nargs="?", help="Template .docx (default: $DOCXFILL_TEMPLATE or assets/template.docx)")
    parser.add_argument("--data", help="JSON file: placeholder -> string or list of strings")
    parser.add_argument("--set", dest="sets", action="append", default=[], metavar="KEY=VALUE",
                        help="Extra replacement, may be repeated. \\n in VALUE is a line break; "
                             "write \\\\ for a literal backslash (C:\\\\new)")
    parser.add_argument("--out", help="Output .docx path (default: unique name in --out-dir)")
    parser.add_argument("--out-dir", default=os.getenv("DOCXFILL_OUTPUT_DIR"),
                        help="Directory for generated names (default: $DOCXFILL_OUTPUT_DIR or cwd)")
    parser.add_argument("--first-only", action="store_true",
                        help="Replace only the first occurrence per paragraph")
    parser.add_argument("--lenient", action="store_true",
                        help="Skip replacements of unsupported shape instead of failing")
    parser.add_argument("--all-headers", action="store_true",
                        help="Also fill header2/3, footer2/3 and other numbered parts")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s - %(levelname)s - %(message)s")

    template_path = resolve_template_path(args.template)

    try:
        replacements = load_replacements(args.data, args.sets)
    except (OSError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        return 2
    if not replacements:
        print("[WARN] no replacements given, the template is copied unchanged.")

    options = {
        "strict": not args.lenient,
        "replace_all": not args.first_only,
        "all_headers": args.all_headers,
    }
    try:
        if args.out:
            report = process_docx(template_path, args.out, replacements, **options)
            final_path = os.path.abspath(args.out)
            for key in report.unmatched:
                print(f"[WARN] placeholder not found: {key}")
        else:
            final_path = generate_docx(template_path, replacements, args.out_dir, **options)
    except DocxFillError as exc:
        print(f"[ERROR] {exc}")
        return 1

    print(f"[OK] Generated: {final_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
