from pathlib import Path

from docxfill.replace import process_docx
from docxfill.selfcheck import collect_issues, main, run_checks
from tests.helpers import build_docx


def test_split_placeholder_is_reported(tmp_path, capsys):
    docx = build_docx(tmp_path / "t.docx", [["Hello ", "{na", "me}"], ["{whole}"]])
    assert run_checks(Path(docx), "template", 200) == 2
    out = capsys.readouterr().out
    assert "RUN_SPLIT word/document.xml#p0 runs 2-3: {name}" in out
    assert "{whole}" not in out


def test_unresolved_placeholders_in_output(tmp_path):
    docx = build_docx(tmp_path / "t.docx", [["{a} and {b}"]], header_text="{h}")
    issues = collect_issues(Path(docx), "output")
    assert sorted(i["placeholder"] for i in issues if i["type"] == "UNRESOLVED") == ["{a}", "{b}", "{h}"]


def test_filled_output_is_clean(tmp_path, capsys):
    template = build_docx(tmp_path / "t.docx", [["Hello ", "{na", "me}"]])
    out = tmp_path / "out.docx"
    process_docx(str(template), str(out), {"{name}": "World"})
    assert run_checks(Path(out), "all", 200) == 0
    assert "[OK]" in capsys.readouterr().out


def test_keys_restrict_the_search(tmp_path):
    docx = build_docx(tmp_path / "t.docx", [["{a} {b}"]])
    issues = collect_issues(Path(docx), "output", keys=["{b}"])
    assert [i["placeholder"] for i in issues] == ["{b}"]


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.docx")]) == 1
    assert "[ERROR]" in capsys.readouterr().out


def test_main_bad_archive(tmp_path):
    bad = tmp_path / "bad.docx"
    bad.write_bytes(b"nope")
    assert main([str(bad)]) == 1
