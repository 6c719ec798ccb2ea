"""
Positioned syntax tree.

Every node records the source range it was parsed from, so that the text of
any token can be recovered exactly with ``node.range.extract()``. Nodes are
plain values; semantic checks happen when they are converted into
``ledgerlab.core.directives``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.ranges import Range

__all__ = [
    "Date",
    "Account",
    "Commodity",
    "Number",
    "QuotedString",
    "Interval",
    "Tag",
    "Lot",
    "Booking",
    "Performance",
    "Accrual",
    "Addons",
    "Open",
    "Close",
    "Price",
    "Assertion",
    "Include",
    "Transaction",
    "Directive",
    "File",
]


@dataclass(frozen=True, slots=True)
class _Token:
    range: Range = Range()

    def extract(self) -> str:
        return self.range.extract()


class Date(_Token):
    pass


class Commodity(_Token):
    pass


class Number(_Token):
    pass


class Interval(_Token):
    pass


class Tag(_Token):
    """A ``#tag``; the range includes the leading ``#``."""


@dataclass(frozen=True, slots=True)
class Account:
    """An account name, or an account macro reference like ``$dividend``."""

    range: Range = Range()
    macro: bool = False

    def extract(self) -> str:
        return self.range.extract()


@dataclass(frozen=True, slots=True)
class QuotedString:
    """A double-quoted string; ``content`` excludes the quotes."""

    range: Range = Range()
    content: Range = Range()


@dataclass(frozen=True, slots=True)
class Lot:
    range: Range = Range()
    price: Number = Number()
    commodity: Commodity = Commodity()
    label: QuotedString | None = None
    date: Date | None = None


@dataclass(frozen=True, slots=True)
class Performance:
    range: Range = Range()
    targets: tuple[Commodity, ...] = ()


@dataclass(frozen=True, slots=True)
class Booking:
    range: Range = Range()
    credit: Account = Account()
    debit: Account = Account()
    amount: Number = Number()
    commodity: Commodity = Commodity()
    lot: Lot | None = None
    targets: Performance | None = None


@dataclass(frozen=True, slots=True)
class Accrual:
    range: Range = Range()
    interval: Interval = Interval()
    start: Date = Date()
    end: Date = Date()
    account: Account = Account()


@dataclass(frozen=True, slots=True)
class Addons:
    range: Range = Range()
    performance: Performance | None = None
    accrual: Accrual | None = None


@dataclass(frozen=True, slots=True)
class Open:
    range: Range = Range()
    date: Date = Date()
    account: Account = Account()


@dataclass(frozen=True, slots=True)
class Close:
    range: Range = Range()
    date: Date = Date()
    account: Account = Account()


@dataclass(frozen=True, slots=True)
class Price:
    range: Range = Range()
    date: Date = Date()
    commodity: Commodity = Commodity()
    price: Number = Number()
    target: Commodity = Commodity()


@dataclass(frozen=True, slots=True)
class Assertion:
    range: Range = Range()
    date: Date = Date()
    account: Account = Account()
    amount: Number = Number()
    commodity: Commodity = Commodity()


@dataclass(frozen=True, slots=True)
class Include:
    range: Range = Range()
    path: QuotedString = QuotedString()


@dataclass(frozen=True, slots=True)
class Transaction:
    range: Range = Range()
    date: Date = Date()
    description: QuotedString = QuotedString()
    tags: tuple[Tag, ...] = ()
    bookings: tuple[Booking, ...] = ()
    addons: Addons | None = None


@dataclass(frozen=True, slots=True)
class Directive:
    """A top-level directive; ``directive`` is None for a partial parse."""

    range: Range = Range()
    directive: Open | Close | Price | Assertion | Include | Transaction | None = None


@dataclass(frozen=True, slots=True)
class File:
    range: Range = Range()
    directives: list[Directive] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.range.text

    @property
    def path(self) -> str:
        return self.range.path
