from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from lxml import etree

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
NS = {"w": W_NS}

W_P = qn("w:p")
W_R = qn("w:r")
W_T = qn("w:t")
W_PPR = qn("w:pPr")
W_RPR = qn("w:rPr")
XML_SPACE = qn("xml:space")


def is_preserved(t: etree._Element) -> bool:
    return t.get(XML_SPACE) == "preserve"


def needs_preserve(text: str) -> bool:
    return bool(text) and (text[0].isspace() or text[-1].isspace())


def set_text(t: etree._Element, text: str) -> None:
    """Set w:t content; mark xml:space when edges carry whitespace. Never unmarks."""
    t.text = text
    if needs_preserve(text):
        t.set(XML_SPACE, "preserve")


def make_text(text: str) -> etree._Element:
    t = OxmlElement("w:t")
    set_text(t, text)
    return t


def make_break() -> etree._Element:
    return OxmlElement("w:br")


def make_run() -> etree._Element:
    return OxmlElement("w:r")


def make_paragraph() -> etree._Element:
    return OxmlElement("w:p")


def to_bytes(root: etree._Element) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True)
