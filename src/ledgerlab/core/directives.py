"""
Journal directives.

The directive types form a closed union (``Directive``). They are immutable;
consumers dispatch over them with ``isinstance`` and raise ``TypeError`` for
anything outside the union.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import ROUND_DOWN, Decimal

from .dates import Interval, Period
from .ranges import Range
from .registry import Account, Commodity

__all__ = [
    "Open",
    "Close",
    "Price",
    "Assertion",
    "Lot",
    "Posting",
    "Accrual",
    "Transaction",
    "Include",
    "Directive",
]


@dataclass(frozen=True, slots=True)
class Open:
    date: date
    account: Account
    range: Range | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Close:
    date: date
    account: Account
    range: Range | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Price:
    """One unit of ``commodity`` is worth ``price`` units of ``target``."""

    date: date
    commodity: Commodity
    price: Decimal
    target: Commodity
    range: Range | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Assertion:
    """Expected running balance of ``account`` in ``commodity`` at ``date``."""

    date: date
    account: Account
    amount: Decimal
    commodity: Commodity
    range: Range | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Lot:
    """Acquisition details of a position."""

    price: Decimal
    commodity: Commodity
    label: str | None = None
    date: date | None = None


@dataclass(frozen=True, slots=True)
class Posting:
    """
    A balanced movement of ``quantity`` units from ``credit`` to ``debit``.

    A posting debits and credits in one step, so it always nets to zero.
    """

    credit: Account
    debit: Account
    quantity: Decimal
    commodity: Commodity
    lot: Lot | None = None
    targets: tuple[Commodity, ...] | None = None

    def __str__(self) -> str:
        return f"{self.credit} {self.debit} {self.quantity} {self.commodity}"


@dataclass(frozen=True, slots=True)
class Accrual:
    """Spread a transaction's income or expense over ``period``."""

    interval: Interval
    period: Period
    account: Account

    def expand(self, transaction: Transaction) -> list[Transaction]:
        """
        Split a transaction into its accrual schedule.

        On the transaction date, the income or expense side of each posting
        is replaced by the accrual account. Then, on each interval end date
        of the accrual period, a share of the quantity moves between the
        accrual account and the income or expense account. Shares are
        truncated to the precision of the quantity (at least cents) and the
        remainder goes to the first share. Postings that do not touch
        exactly one income or expense account are kept unchanged.
        """
        dates = self.period.dates(self.interval)
        immediate: list[Posting] = []
        schedule: list[list[Posting]] = [[] for _ in dates]
        for posting in transaction.postings:
            credit_ie, debit_ie = posting.credit.is_ie(), posting.debit.is_ie()
            if credit_ie == debit_ie:
                immediate.append(posting)
                continue
            if credit_ie:
                immediate.append(replace(posting, credit=self.account))
            else:
                immediate.append(replace(posting, debit=self.account))
            for i, quantity in enumerate(_split(posting.quantity, len(dates))):
                if credit_ie:
                    schedule[i].append(
                        replace(posting, debit=self.account, quantity=quantity)
                    )
                else:
                    schedule[i].append(
                        replace(posting, credit=self.account, quantity=quantity)
                    )

        result = [replace(transaction, postings=tuple(immediate), accrual=None)]
        for i, (d, postings) in enumerate(zip(dates, schedule, strict=True), start=1):
            if not postings:
                continue
            result.append(
                replace(
                    transaction,
                    date=d,
                    description=f"{transaction.description} (accrual {i}/{len(dates)})",
                    postings=tuple(postings),
                    accrual=None,
                )
            )
        return result


def _split(quantity: Decimal, n: int) -> list[Decimal]:
    exponent = min(quantity.as_tuple().exponent, -2)
    quantum = Decimal(1).scaleb(exponent)
    share = (quantity / n).quantize(quantum, rounding=ROUND_DOWN)
    shares = [share] * n
    shares[0] += quantity - share * n
    return shares


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    A dated, described set of postings.

    Attributes:
        targets: Performance target commodities; None when the transaction
            carries no performance annotation, an empty tuple when it
            explicitly names none
    """

    date: date
    description: str
    postings: tuple[Posting, ...]
    tags: tuple[str, ...] = ()
    accrual: Accrual | None = None
    targets: tuple[Commodity, ...] | None = None
    range: Range | None = field(default=None, compare=False)

    def order_key(self) -> tuple:
        """Sort key: date, then position in the source."""
        if self.range is None:
            return (self.date, "", 0)
        return (self.date, self.range.path, self.range.start)


@dataclass(frozen=True, slots=True)
class Include:
    path: str
    range: Range | None = field(default=None, compare=False)


Directive = Open | Close | Price | Assertion | Transaction | Include
