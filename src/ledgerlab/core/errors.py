"""
Error classes for ledgerlab.

This module defines the exception hierarchy shared by the parser, the day
index and the processing stages. Every failure surfaces as a subclass of
``LedgerError`` so callers can handle one uniform failure type.

**Families:**
- Syntax errors: ``ParseError`` and its subclasses, always carrying a source
  range and an optional wrapped cause that forms a diagnostic chain
- Ledger errors: account lifecycle violations and failed balance assertions
- Resource errors: ``IncludeError`` for unreadable included journals
- ``ConfigError`` for invalid report configuration

**Example Usage:**
    ```python
    from ledgerlab.core.errors import ParseError
    from ledgerlab.syntax.parser import Parser

    try:
        Parser("\\nasdf", "journal.knut").parse_file()
    except ParseError as e:
        print(e.format())
    ```
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

from .ranges import Range

if TYPE_CHECKING:
    from .directives import Assertion, Close, Posting
    from .registry import Account


class LedgerError(Exception):
    """Base class for all ledgerlab errors."""


class ConfigError(ValueError):
    """Raised when a report configuration cannot be parsed or validated."""


class ParseError(LedgerError):
    """
    Syntax error with source range and parse context.

    Parse errors nest: each parsing function that fails wraps the error of
    the function it called, so the outermost error describes the whole
    context stack down to the offending character.

    Attributes:
        message: Human-readable description of this level of the chain
        range: Source range this level covers
        wrapped: The underlying parse error, if any
        partial: Partially parsed result (set on file-level errors)
    """

    def __init__(
        self,
        message: str,
        range: Range | None = None,
        wrapped: ParseError | None = None,
        partial: Any = None,
    ):
        self.message = message
        self.range = range if range is not None else Range()
        self.wrapped = wrapped
        self.partial = partial
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return (
            self.message == other.message
            and self.range == other.range
            and self.wrapped == other.wrapped
        )

    __hash__ = Exception.__hash__

    def __repr__(self) -> str:
        return (
            f"ParseError(message={self.message!r}, "
            f"range=({self.range.start}, {self.range.end}), "
            f"wrapped={self.wrapped!r})"
        )

    def chain(self) -> list[ParseError]:
        """Return the error chain from outermost to innermost."""
        result: list[ParseError] = []
        err: ParseError | None = self
        while err is not None:
            result.append(err)
            err = err.wrapped
        return result

    def format(self) -> str:
        """Render the whole chain, one level per line, with positions."""
        lines = []
        for depth, err in enumerate(self.chain()):
            lines.append(f"{'  ' * depth}{err.range}: {err.message}")
        return "\n".join(lines)


class UnexpectedCharacterError(ParseError):
    """Raised by the scanner when the current character does not match."""

    def __init__(self, got: str, want: str, range: Range):
        self.got = got
        self.want = want
        super().__init__(f"unexpected character `{got}`, want {want}", range)


class UnexpectedEOFError(ParseError):
    """Raised by the scanner when the input ends prematurely."""

    def __init__(self, want: str, range: Range):
        self.want = want
        super().__init__(f"unexpected end of file, want {want}", range)


class DuplicateAnnotationError(ParseError):
    """Raised when an annotation appears twice on the same directive."""


class IncludeError(LedgerError):
    """
    Raised when an included journal cannot be opened.

    Attributes:
        source: Path of the including file
        path: Resolved path of the include
    """

    def __init__(self, source: str, path: str, cause: Exception):
        self.source = source
        self.path = path
        super().__init__(f"{source}: error including `{path}`: {cause}")


class AccountError(LedgerError):
    """Base class for account lifecycle violations."""


class InvalidAccountError(AccountError):
    """Raised for malformed account names or unknown account types."""


class AccountAlreadyOpenError(AccountError):
    """Raised when an account is opened twice."""

    def __init__(self, account: Account, date):
        self.account = account
        self.date = date
        super().__init__(f"{date}: account {account} is already open")


class AccountNotOpenError(AccountError):
    """Raised when closing an account that is not open."""

    def __init__(self, close: Close):
        self.close = close
        super().__init__(f"{close.date}: cannot close {close.account}, it is not open")


class PostingToClosedOrUnopenedAccountError(AccountError):
    """Raised when a posting references an account outside its lifecycle."""

    def __init__(self, date, posting: Posting, account: Account):
        self.date = date
        self.posting = posting
        self.account = account
        super().__init__(
            f"{date}: posting {posting} references account {account} "
            "which is not open"
        )


class CloseWithNonZeroBalanceError(AccountError):
    """Raised when an account is closed while it still holds a balance."""

    def __init__(self, close: Close, balances: dict[Any, Decimal]):
        self.close = close
        self.balances = balances
        remaining = ", ".join(f"{v} {c}" for c, v in balances.items())
        super().__init__(
            f"{close.date}: cannot close {close.account} with non-zero "
            f"balance ({remaining})"
        )


class AssertionFailedError(LedgerError):
    """
    Raised when a balance assertion does not hold.

    Attributes:
        assertion: The failing assertion directive
        expected: Asserted quantity
        actual: Running balance at the assertion date
    """

    def __init__(self, assertion: Assertion, expected: Decimal, actual: Decimal):
        self.assertion = assertion
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{assertion.date}: assertion failed for {assertion.account}: "
            f"expected {expected} {assertion.commodity}, got {actual} "
            f"{assertion.commodity}"
        )


class PipelineCancelledError(LedgerError):
    """Raised by channel operations once the pipeline has been cancelled."""
