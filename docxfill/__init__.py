from .archive import unzip_docx, zip_docx
from .errors import ArchiveError, DocxFillError, PartError, UnsupportedReplacementError
from .locator import NodeSlice, SpanMatch, find_span, paragraph_text
from .replace import (
    DEFAULT_PARTS,
    ReplaceReport,
    generate_docx,
    process_docx,
    replace_in_all_files,
    replace_in_part,
    replace_multiple,
    safe_replace,
    working_directory,
)
from .rewriter import normalize_preserved_space, replace_span
from .values import LinesReplacement, TextReplacement, to_replacement

__version__ = "0.1.0"
