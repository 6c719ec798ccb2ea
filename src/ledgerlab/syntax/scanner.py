"""
Character-level scanner for ledger text.

The scanner moves forward one code point at a time and never backtracks. It
tracks the UTF-8 byte offset used by ranges, plus code point offset, line and
column for diagnostics. The end of input is represented by ``EOF``.
"""

from __future__ import annotations

from collections.abc import Callable

from ..core.errors import ParseError, UnexpectedCharacterError, UnexpectedEOFError
from ..core.ranges import Location, Range

__all__ = [
    "EOF",
    "Scanner",
    "is_digit",
    "is_letter",
    "is_alphanumeric",
    "is_whitespace",
    "is_whitespace_or_newline",
]

EOF = "\x00"


def is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def is_letter(ch: str) -> bool:
    return ch.isalpha()


def is_alphanumeric(ch: str) -> bool:
    return ch.isalpha() or ch.isdigit()


def is_whitespace(ch: str) -> bool:
    return ch != "" and ch in " \t\r"


def is_whitespace_or_newline(ch: str) -> bool:
    return ch == "\n" or is_whitespace(ch)


class Scanner:
    """
    Forward-only cursor over a text.

    Attributes:
        text: The scanned text
        path: Source identity used in ranges
        current: The current character, or ``EOF``
        offset: Byte offset of the current character
    """

    def __init__(self, text: str, path: str = ""):
        self.text = text
        self.path = path
        self._index = 0
        self.offset = 0
        self.line = 1
        self.column = 1
        self.current = text[0] if text else EOF

    @property
    def location(self) -> Location:
        return Location(self.offset, self._index, self.line, self.column)

    def advance(self) -> None:
        """Move past the current character. Does nothing at the end of input."""
        ch = self.current
        if ch == EOF:
            return
        self.offset += 1 if ch < "\x80" else len(ch.encode("utf-8"))
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self._index += 1
        self.current = self.text[self._index] if self._index < len(self.text) else EOF

    def range_from(self, start: int) -> Range:
        """Return the range from ``start`` up to the current offset."""
        return Range(start, self.offset, self.text, self.path)

    def unexpected(self, want: str) -> ParseError:
        """Build the error for the current character not matching ``want``."""
        here = Range(self.offset, self.offset, self.text, self.path)
        if self.current == EOF:
            return UnexpectedEOFError(want, here)
        return UnexpectedCharacterError(self.current, want, here)

    def read_char(self, ch: str) -> None:
        """Consume exactly ``ch``."""
        if self.current != ch:
            raise self.unexpected(f"`{ch}`")
        self.advance()

    def read_string(self, s: str) -> Range:
        """Consume exactly the string ``s``."""
        start = self.offset
        for ch in s:
            if self.current != ch:
                raise ParseError(f'while reading "{s}"', self.range_from(start))
            self.advance()
        return self.range_from(start)

    def read_while(self, predicate: Callable[[str], bool]) -> Range:
        """Consume characters as long as ``predicate`` holds (possibly none)."""
        start = self.offset
        while self.current != EOF and predicate(self.current):
            self.advance()
        return self.range_from(start)

    def read_while1(self, predicate: Callable[[str], bool], want: str) -> Range:
        """Like ``read_while`` but require at least one character."""
        if self.current == EOF or not predicate(self.current):
            raise self.unexpected(want)
        return self.read_while(predicate)

    def read_n(self, n: int) -> Range:
        """Consume exactly ``n`` characters."""
        start = self.offset
        for _ in range(n):
            if self.current == EOF:
                raise self.unexpected(f"{n} characters")
            self.advance()
        return self.range_from(start)
