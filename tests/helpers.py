import zipfile

from docx import Document
from lxml import etree

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
NS = {"w": W_NS}
PRESERVE = ' xml:space="preserve"'


def w(tag: str) -> str:
    return f"{{{W_NS}}}{tag}"


def body(inner: str) -> etree._Element:
    return etree.fromstring(f'<w:document xmlns:w="{W_NS}"><w:body>{inner}</w:body></w:document>')


def r(text: str, preserve: bool = False, rpr: str = "") -> str:
    attr = PRESERVE if preserve else ""
    return f"<w:r>{rpr}<w:t{attr}>{text}</w:t></w:r>"


def para(*runs: str, ppr: str = "") -> str:
    return f"<w:p>{ppr}{''.join(runs)}</w:p>"


def paragraphs(root: etree._Element):
    return root.findall(".//w:body/w:p", NS)


def texts(el: etree._Element):
    return [t.text for t in el.iter(w("t"))]


def text_of(el: etree._Element) -> str:
    return "".join(t.text or "" for t in el.iter(w("t")))


def local_tags(el: etree._Element):
    return [etree.QName(child).localname for child in el]


def build_docx(path, paragraph_runs, header_text=None, footer_text=None):
    """Write a .docx whose paragraphs are made of the given run texts."""
    doc = Document()
    for runs in paragraph_runs:
        p = doc.add_paragraph()
        for text in runs:
            p.add_run(text)
    section = doc.sections[0]
    if header_text is not None:
        section.header.paragraphs[0].text = header_text
    if footer_text is not None:
        section.footer.paragraphs[0].text = footer_text
    doc.save(str(path))
    return path


def read_part(docx_path, name: str) -> etree._Element:
    with zipfile.ZipFile(docx_path) as zf:
        return etree.fromstring(zf.read(name))


def strip_part(docx_path, name: str):
    """Rewrite the package without the given member."""
    with zipfile.ZipFile(docx_path) as zf:
        members = [(info, zf.read(info)) for info in zf.infolist() if info.filename != name]
    with zipfile.ZipFile(docx_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for info, data in members:
            zf.writestr(info, data)
    return docx_path
