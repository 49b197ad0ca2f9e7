class DocxFillError(Exception):
    """Base class for every failure raised by docxfill."""


class ArchiveError(DocxFillError):
    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class PartError(DocxFillError):
    """A document part could not be parsed, rewritten or written back."""

    def __init__(self, part: str, cause, placeholder=None):
        self.part = part
        self.placeholder = placeholder
        self.cause = cause
        where = f"part {part}"
        if placeholder is not None:
            where += f", placeholder {placeholder!r}"
        super().__init__(f"{where}: {cause}")


class UnsupportedReplacementError(DocxFillError, TypeError):
    def __init__(self, placeholder, message: str):
        self.placeholder = placeholder
        super().__init__(f"placeholder {placeholder!r}: {message}")
