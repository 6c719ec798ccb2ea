"""
Source positions for ledger text.

Ranges are expressed as UTF-8 byte offsets into the text they were read from,
so that diagnostics and re-serialization address exactly the original bytes.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

__all__ = ["Location", "Range", "find_location"]


@lru_cache(maxsize=32)
def _utf8(text: str) -> bytes:
    return text.encode("utf-8")


@dataclass(frozen=True, slots=True)
class Location:
    """
    A position inside a text.

    Attributes:
        offset: Byte offset (UTF-8)
        rune_offset: Offset in code points
        line: 1-based line number
        column: 1-based column, counted in code points
    """

    offset: int = 0
    rune_offset: int = 0
    line: int = 1
    column: int = 1

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class Range:
    """
    A half-open byte range ``[start, end)`` of a source text.

    The text and the path of the source travel with the range so that any
    node or error can be rendered without access to the parser.
    """

    start: int = 0
    end: int = 0
    text: str = ""
    path: str = ""

    def extract(self) -> str:
        """Return the exact source text covered by the range."""
        return _utf8(self.text)[self.start : self.end].decode("utf-8")

    @property
    def empty(self) -> bool:
        return self.start == self.end

    def location(self) -> Location:
        """Return the location of the start of the range."""
        return find_location(self.text, self.start)

    def __str__(self) -> str:
        loc = self.location()
        return f"{self.path}:{loc}" if self.path else str(loc)


def find_location(text: str, offset: int) -> Location:
    """
    Compute line and column information for a byte offset.

    Args:
        text: The source text
        offset: Byte offset into the UTF-8 encoding of ``text``

    Returns:
        Location of the offset. Offsets past the end of the text are clamped.
    """
    prefix = _utf8(text)[:offset].decode("utf-8", errors="ignore")
    line = prefix.count("\n") + 1
    column = len(prefix) - (prefix.rfind("\n") + 1) + 1
    return Location(
        offset=len(prefix.encode("utf-8")),
        rune_offset=len(prefix),
        line=line,
        column=column,
    )
