"""Replacement values: a text blob or an ordered list of lines.

Nothing else is accepted; shapes are checked once, when a replacement map
enters the library, so the rewriter only ever sees one of the two variants.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Tuple, Union

from .errors import UnsupportedReplacementError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextReplacement:
    text: str

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(self.text.split("\n"))

    @property
    def has_breaks(self) -> bool:
        return "\n" in self.text


@dataclass(frozen=True)
class LinesReplacement:
    lines: Tuple[str, ...]


Replacement = Union[TextReplacement, LinesReplacement]


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def to_replacement(placeholder, value) -> Replacement:
    if not isinstance(placeholder, str) or not placeholder:
        raise UnsupportedReplacementError(placeholder, "placeholder must be a non-empty string")

    if isinstance(value, (TextReplacement, LinesReplacement)):
        return value
    if isinstance(value, str):
        return TextReplacement(_normalize_newlines(value))
    if isinstance(value, (list, tuple)):
        bad = [item for item in value if not isinstance(item, str)]
        if bad:
            raise UnsupportedReplacementError(
                placeholder, f"line list holds non-string items: {type(bad[0]).__name__}"
            )
        # every item becomes its own paragraph; breaks inside one have nowhere to go
        if any("\n" in item or "\r" in item for item in value):
            raise UnsupportedReplacementError(
                placeholder, "line list items must not contain line breaks; pass a string for w:br breaks"
            )
        return LinesReplacement(tuple(value))
    raise UnsupportedReplacementError(
        placeholder, f"unsupported replacement type {type(value).__name__}; expected str or list of str"
    )


def normalize_replacements(mapping, strict: bool = True) -> Dict[str, Replacement]:
    result: Dict[str, Replacement] = {}
    for placeholder, value in mapping.items():
        try:
            result[placeholder] = to_replacement(placeholder, value)
        except UnsupportedReplacementError as exc:
            if strict:
                raise
            logger.warning("Skipping replacement: %s", exc)
    return result
