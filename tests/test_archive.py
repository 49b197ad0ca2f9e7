import os
import zipfile

import pytest

from docxfill.archive import unzip_docx, zip_docx
from docxfill.errors import ArchiveError


def make_zip(path, entries):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries:
            zf.writestr(name, data)
    return path


def test_unzip_recreates_layout(tmp_path):
    src = make_zip(tmp_path / "in.docx", [("word/", b""), ("word/document.xml", b"<x/>"), ("[Content_Types].xml", b"<t/>")])
    dest = tmp_path / "out"
    unzip_docx(str(src), str(dest))
    assert (dest / "word" / "document.xml").read_bytes() == b"<x/>"
    assert (dest / "[Content_Types].xml").read_bytes() == b"<t/>"


def test_unzip_creates_parents_without_directory_entries(tmp_path):
    src = make_zip(tmp_path / "in.docx", [("word/_rels/document.xml.rels", b"<r/>")])
    unzip_docx(str(src), str(tmp_path / "out"))
    assert (tmp_path / "out" / "word" / "_rels" / "document.xml.rels").exists()


def test_unzip_rejects_entries_outside_destination(tmp_path):
    src = make_zip(tmp_path / "evil.docx", [("../escape.txt", b"x")])
    with pytest.raises(ArchiveError):
        unzip_docx(str(src), str(tmp_path / "out"))
    assert not (tmp_path / "escape.txt").exists()


def test_unzip_bad_archive(tmp_path):
    bad = tmp_path / "bad.docx"
    bad.write_bytes(b"not a zip")
    with pytest.raises(ArchiveError) as err:
        unzip_docx(str(bad), str(tmp_path / "out"))
    assert err.value.path == str(bad)
    assert isinstance(err.value.__cause__, zipfile.BadZipFile)


def test_unzip_missing_archive(tmp_path):
    with pytest.raises(ArchiveError):
        unzip_docx(str(tmp_path / "nope.docx"), str(tmp_path / "out"))


def test_zip_entries(tmp_path):
    src = tmp_path / "src"
    os.makedirs(src / "word" / "_rels")
    os.makedirs(src / "__MACOSX")
    (src / "word" / "document.xml").write_text("<x/>", encoding="utf-8")
    (src / "word" / "_rels" / "document.xml.rels").write_text("<r/>", encoding="utf-8")
    (src / "__MACOSX" / "junk").write_text("j", encoding="utf-8")
    (src / "__meta.txt").write_text("m", encoding="utf-8")
    (src / "[Content_Types].xml").write_text("<t/>", encoding="utf-8")

    target = tmp_path / "out" / "result.docx"
    zip_docx(str(src), str(target))

    with zipfile.ZipFile(target) as zf:
        infos = {i.filename: i for i in zf.infolist()}
        assert set(infos) == {
            "word/",
            "word/_rels/",
            "word/document.xml",
            "word/_rels/document.xml.rels",
            "[Content_Types].xml",
        }
        assert infos["word/"].file_size == 0
        assert infos["word/"].is_dir()
        assert infos["word/document.xml"].compress_type == zipfile.ZIP_DEFLATED
        assert zf.read("word/document.xml") == b"<x/>"
    assert not os.path.exists(str(target) + ".part")


def test_round_trip_keeps_bytes(tmp_path):
    payload = {"word/document.xml": b"<doc/>", "word/media/image1.png": bytes(range(256))}
    src = make_zip(tmp_path / "in.docx", list(payload.items()))
    work = tmp_path / "work"
    unzip_docx(str(src), str(work))
    zip_docx(str(work), str(tmp_path / "again.docx"))
    with zipfile.ZipFile(tmp_path / "again.docx") as zf:
        for name, data in payload.items():
            assert zf.read(name) == data


def test_zip_unwritable_target(tmp_path):
    src = tmp_path / "src"
    os.makedirs(src)
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    with pytest.raises(ArchiveError):
        zip_docx(str(src), str(blocker / "out.docx"))
