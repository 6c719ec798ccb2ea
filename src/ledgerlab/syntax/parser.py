"""
Recursive-descent parser for ledger text.

Each ``parse_*`` method consumes one grammar element and returns its
positioned syntax node. On failure it raises a ``ParseError`` that wraps the
error of the element it was parsing, so the error raised out of
``parse_file`` describes the complete context, for example::

    while parsing file `journal.knut`
      while parsing directive
        while parsing the date
          unexpected character `a`, want a digit

**Grammar (informal):**
    file        = { comment | blank-line | directive rest-of-line }
    directive   = include | [addons] date ws ( transaction | open | close
                  | price | balance )
    addons      = ( "@accrue" accrual | "@performance" performance ) eol ...
    transaction = quoted-string { ws tag } eol { booking eol }
    booking     = account ws account ws decimal ws commodity [lot] [targets]
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ..core.errors import DuplicateAnnotationError, ParseError
from . import nodes
from .scanner import (
    EOF,
    Scanner,
    is_alphanumeric,
    is_digit,
    is_letter,
    is_whitespace,
    is_whitespace_or_newline,
)

__all__ = ["Parser", "parse"]

logger = logging.getLogger(__name__)

_INTERVALS = {
    "o": "once",
    "d": "daily",
    "w": "weekly",
    "m": "monthly",
    "q": "quarterly",
    "y": "yearly",
}
_WANT_INTERVAL = "one of {" + ", ".join(f"`{w}`" for w in _INTERVALS.values()) + "}"
_WANT_ADDON = "one of {`@performance`, `@accrue`}"
_WANT_KEYWORD = 'one of {`"`, `open`, `close`, `price`, `balance`}'


class Parser:
    """
    Parser for one ledger text.

    Args:
        text: The text to parse
        path: Source identity, used in ranges and messages

    **Example Usage:**
        ```python
        from ledgerlab.syntax.parser import Parser

        file = Parser('2024-01-01 open Assets:Cash\\n', "main.knut").parse_file()
        open_ = file.directives[0].directive
        open_.account.extract()  # 'Assets:Cash'
        ```
    """

    def __init__(self, text: str, path: str = ""):
        self.scanner = Scanner(text, path)

    @contextmanager
    def _context(self, message: str, start: int | None = None) -> Iterator[int]:
        """Wrap parse errors raised in the block with ``message``."""
        start = self.scanner.offset if start is None else start
        try:
            yield start
        except ParseError as exc:
            raise ParseError(message, self.scanner.range_from(start), exc) from exc

    def _read_whitespace(self) -> None:
        self.scanner.read_while1(is_whitespace, "whitespace")

    def parse_file(self) -> nodes.File:
        """
        Parse the whole text.

        Raises:
            ParseError: With ``partial`` set to the ``File`` parsed so far,
                including a range-only ``Directive`` for a directive that
                failed midway
        """
        s = self.scanner
        start = s.offset
        directives: list[nodes.Directive] = []
        try:
            while s.current != EOF:
                if s.current in "*/#":
                    self.read_comment()
                elif is_whitespace_or_newline(s.current):
                    self.read_rest_of_whitespace_line()
                else:
                    directive_start = s.offset
                    try:
                        directive = self.parse_directive()
                    except ParseError:
                        directives.append(nodes.Directive(s.range_from(directive_start)))
                        raise
                    directives.append(directive)
                    self.read_rest_of_whitespace_line()
        except ParseError as exc:
            partial = nodes.File(s.range_from(start), directives)
            raise ParseError(
                f"while parsing file `{s.path}`", partial.range, exc, partial=partial
            ) from exc
        logger.debug("parsed %d directives from %s", len(directives), s.path or "<text>")
        return nodes.File(s.range_from(start), directives)

    def parse_directive(self) -> nodes.Directive:
        s = self.scanner
        with self._context("while parsing directive") as start:
            if s.current == "i":
                directive = self.parse_include()
            else:
                addons = self.parse_addons() if s.current == "@" else None
                date = self.parse_date()
                self._read_whitespace()
                if addons is not None or s.current == '"':
                    directive = self.parse_transaction(start, date, addons)
                elif s.current == "o":
                    directive = self.parse_open(start, date)
                elif s.current == "c":
                    directive = self.parse_close(start, date)
                elif s.current == "p":
                    directive = self.parse_price(start, date)
                elif s.current == "b":
                    directive = self.parse_assertion(start, date)
                else:
                    raise s.unexpected(_WANT_KEYWORD)
        return nodes.Directive(s.range_from(start), directive)

    def parse_transaction(
        self,
        start: int | None = None,
        date: nodes.Date | None = None,
        addons: nodes.Addons | None = None,
    ) -> nodes.Transaction:
        s = self.scanner
        with self._context("while parsing transaction", start) as start:
            description = self.parse_quoted_string()
            self.read_whitespace1()
            tags = []
            while s.current == "#":
                tags.append(self.parse_tag())
                self.read_whitespace1()
            self.read_rest_of_whitespace_line()
            bookings = []
            while s.current != EOF and not is_whitespace_or_newline(s.current):
                bookings.append(self.parse_booking())
                self.read_rest_of_whitespace_line()
        return nodes.Transaction(
            range=s.range_from(start),
            date=date or nodes.Date(),
            description=description,
            tags=tuple(tags),
            bookings=tuple(bookings),
            addons=addons,
        )

    def parse_tag(self) -> nodes.Tag:
        s = self.scanner
        with self._context("while parsing tag") as start:
            s.read_char("#")
            s.read_while1(is_alphanumeric, "a letter or a digit")
        return nodes.Tag(s.range_from(start))

    def parse_booking(self) -> nodes.Booking:
        s = self.scanner
        lot = targets = None
        with self._context("while parsing booking") as start:
            credit = self.parse_account()
            self._read_whitespace()
            debit = self.parse_account()
            self._read_whitespace()
            amount = self.parse_decimal()
            self._read_whitespace()
            commodity = self.parse_commodity()
            while self._next_after_whitespace() in ("{", "("):
                s.read_while(is_whitespace)
                annotation_start = s.offset
                if s.current == "{":
                    if lot is not None:
                        raise DuplicateAnnotationError("duplicate lot", s.range_from(annotation_start))
                    lot = self.parse_lot()
                else:
                    if targets is not None:
                        raise DuplicateAnnotationError(
                            "duplicate target commodity declarations",
                            s.range_from(annotation_start),
                        )
                    targets = self.parse_performance()
        return nodes.Booking(
            range=s.range_from(start),
            credit=credit,
            debit=debit,
            amount=amount,
            commodity=commodity,
            lot=lot,
            targets=targets,
        )

    def _next_after_whitespace(self) -> str:
        text, index = self.scanner.text, self.scanner._index
        while index < len(text) and is_whitespace(text[index]):
            index += 1
        return text[index] if index < len(text) else EOF

    def parse_lot(self) -> nodes.Lot:
        s = self.scanner
        label = date = None
        with self._context("while parsing lot") as start:
            s.read_char("{")
            s.read_while(is_whitespace)
            price = self.parse_decimal()
            s.read_while(is_whitespace)
            commodity = self.parse_commodity()
            s.read_while(is_whitespace)
            while s.current == ",":
                s.advance()
                s.read_while(is_whitespace)
                if s.current == '"' and label is None:
                    label = self.parse_quoted_string()
                elif is_digit(s.current) and date is None:
                    date = self.parse_date()
                else:
                    raise s.unexpected("a label or a date")
                s.read_while(is_whitespace)
            s.read_char("}")
        return nodes.Lot(s.range_from(start), price, commodity, label, date)

    def parse_addons(self) -> nodes.Addons:
        s = self.scanner
        performance = accrual = None
        with self._context("while parsing addons") as start:
            if s.current != "@":
                raise s.unexpected(_WANT_ADDON)
            while s.current == "@":
                at = s.offset
                s.advance()
                if s.current == "p":
                    s.read_string("performance")
                    if performance is not None:
                        raise DuplicateAnnotationError(
                            "duplicate performance annotation", s.range_from(at)
                        )
                    performance = self.parse_performance(at)
                elif s.current == "a":
                    s.read_string("accrue")
                    if accrual is not None:
                        raise DuplicateAnnotationError(
                            "duplicate accrue annotation", s.range_from(at)
                        )
                    accrual = self.parse_accrual(at)
                else:
                    raise s.unexpected(_WANT_ADDON)
                self.read_rest_of_whitespace_line()
        return nodes.Addons(s.range_from(start), performance, accrual)

    def parse_performance(self, start: int | None = None) -> nodes.Performance:
        s = self.scanner
        targets = []
        with self._context("while parsing performance", start) as start:
            s.read_char("(")
            s.read_while(is_whitespace)
            if s.current != ")":
                targets.append(self.parse_commodity())
                s.read_while(is_whitespace)
                while s.current == ",":
                    s.advance()
                    s.read_while(is_whitespace)
                    targets.append(self.parse_commodity())
                    s.read_while(is_whitespace)
            s.read_char(")")
        return nodes.Performance(s.range_from(start), tuple(targets))

    def parse_accrual(self, start: int | None = None) -> nodes.Accrual:
        s = self.scanner
        with self._context("while parsing accrual", start) as start:
            self._read_whitespace()
            interval = self.parse_interval()
            self._read_whitespace()
            begin = self.parse_date()
            self._read_whitespace()
            end = self.parse_date()
            self._read_whitespace()
            account = self.parse_account()
        return nodes.Accrual(s.range_from(start), interval, begin, end, account)

    def parse_interval(self) -> nodes.Interval:
        s = self.scanner
        with self._context("while parsing interval") as start:
            word = _INTERVALS.get(s.current)
            if word is None:
                raise s.unexpected(_WANT_INTERVAL)
            s.read_string(word)
        return nodes.Interval(s.range_from(start))

    def parse_open(self, start: int | None = None, date: nodes.Date | None = None) -> nodes.Open:
        s = self.scanner
        with self._context("while parsing `open` directive", start) as start:
            s.read_string("open")
            self._read_whitespace()
            account = self.parse_account()
        return nodes.Open(s.range_from(start), date or nodes.Date(), account)

    def parse_close(self, start: int | None = None, date: nodes.Date | None = None) -> nodes.Close:
        s = self.scanner
        with self._context("while parsing `close` directive", start) as start:
            s.read_string("close")
            self._read_whitespace()
            account = self.parse_account()
        return nodes.Close(s.range_from(start), date or nodes.Date(), account)

    def parse_price(self, start: int | None = None, date: nodes.Date | None = None) -> nodes.Price:
        s = self.scanner
        with self._context("while parsing `price` directive", start) as start:
            s.read_string("price")
            self._read_whitespace()
            commodity = self.parse_commodity()
            self._read_whitespace()
            price = self.parse_decimal()
            self._read_whitespace()
            target = self.parse_commodity()
        return nodes.Price(s.range_from(start), date or nodes.Date(), commodity, price, target)

    def parse_assertion(
        self, start: int | None = None, date: nodes.Date | None = None
    ) -> nodes.Assertion:
        s = self.scanner
        with self._context("while parsing `balance` directive", start) as start:
            s.read_string("balance")
            self._read_whitespace()
            account = self.parse_account()
            self._read_whitespace()
            amount = self.parse_decimal()
            self._read_whitespace()
            commodity = self.parse_commodity()
        return nodes.Assertion(s.range_from(start), date or nodes.Date(), account, amount, commodity)

    def parse_include(self) -> nodes.Include:
        s = self.scanner
        with self._context("while parsing `include` statement") as start:
            s.read_string("include")
            self._read_whitespace()
            path = self.parse_quoted_string()
        return nodes.Include(s.range_from(start), path)

    def parse_quoted_string(self) -> nodes.QuotedString:
        s = self.scanner
        content = None
        with self._context("while parsing quoted string") as start:
            s.read_char('"')
            content = s.read_while(lambda ch: ch != '"')
            s.read_char('"')
        return nodes.QuotedString(s.range_from(start), content)

    def parse_account(self) -> nodes.Account:
        s = self.scanner
        macro = False
        with self._context("while parsing account") as start:
            if s.current == "$":
                macro = True
                s.advance()
                s.read_while1(is_letter, "a letter")
            else:
                while True:
                    s.read_while1(is_alphanumeric, "a letter or a digit")
                    if s.current != ":":
                        break
                    s.advance()
        return nodes.Account(s.range_from(start), macro)

    def parse_commodity(self) -> nodes.Commodity:
        s = self.scanner
        with self._context("while parsing commodity") as start:
            s.read_while1(is_alphanumeric, "a letter or a digit")
        return nodes.Commodity(s.range_from(start))

    def parse_decimal(self) -> nodes.Number:
        s = self.scanner
        with self._context("while parsing decimal") as start:
            if s.current == "-":
                s.advance()
            s.read_while1(is_digit, "a digit")
            if s.current == ".":
                s.advance()
                s.read_while1(is_digit, "a digit")
        return nodes.Number(s.range_from(start))

    def parse_date(self) -> nodes.Date:
        s = self.scanner
        with self._context("while parsing the date") as start:
            for width in (4, 2, 2):
                if width != 4:
                    s.read_char("-")
                for _ in range(width):
                    if not is_digit(s.current):
                        raise s.unexpected("a digit")
                    s.advance()
        return nodes.Date(s.range_from(start))

    def read_comment(self):
        s = self.scanner
        with self._context("while reading comment") as start:
            if s.current in ("*", "#"):
                s.advance()
            elif s.current == "/":
                s.advance()
                s.read_char("/")
            else:
                raise ParseError(
                    "unexpected input, want one of {`*`, `//`, `#`}",
                    s.range_from(s.offset),
                )
            s.read_while(lambda ch: ch != "\n")
        return s.range_from(start)

    def read_rest_of_whitespace_line(self):
        """Consume trailing whitespace and the newline (or accept the end of input)."""
        s = self.scanner
        with self._context("while reading the rest of the line") as start:
            s.read_while(is_whitespace)
            if s.current != EOF:
                s.read_char("\n")
        return s.range_from(start)

    def read_whitespace1(self):
        """
        Consume whitespace, requiring either whitespace, a newline or the end
        of input to follow. The newline is not consumed.
        """
        s = self.scanner
        if s.current != EOF and not is_whitespace_or_newline(s.current):
            raise s.unexpected("whitespace or a newline")
        return s.read_while(is_whitespace)


def parse(text: str, path: str = "") -> nodes.File:
    """Parse a complete ledger text."""
    return Parser(text, path).parse_file()
