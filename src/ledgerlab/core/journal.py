"""
Day-indexed journal.

The journal groups directives by date into ``Day`` buckets. Days are created
lazily on first reference and traversed in ascending date order. The
processing stages attach derived state (normalized prices, running balances
and values) to the days as they pass through.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from .amounts import Amounts
from .dates import Period
from .directives import Assertion, Close, Directive, Include, Open, Price, Transaction
from .registry import Commodity, Registry

__all__ = ["Day", "Journal"]

logger = logging.getLogger(__name__)


@dataclass(eq=False, slots=True)
class Day:
    """
    All directives of one date plus the state derived by the stages.

    Attributes:
        normalized: Conversion factors into the valuation commodity, set by
            the price stage
        amounts: Running balances at the end of the day, keyed by
            ``Key.of(account, commodity)``, set by the balance stage
        value: ``amounts`` converted into the valuation commodity
    """

    date: date | None
    openings: list[Open] = field(default_factory=list)
    closings: list[Close] = field(default_factory=list)
    prices: list[Price] = field(default_factory=list)
    assertions: list[Assertion] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    normalized: dict[Commodity, Decimal] | None = None
    amounts: Amounts = field(default_factory=Amounts)
    value: Amounts = field(default_factory=Amounts)

    def __repr__(self) -> str:
        return (
            f"Day({self.date}, openings={len(self.openings)}, "
            f"transactions={len(self.transactions)})"
        )


class Journal:
    """
    Directives indexed by date.

    **Example Usage:**
        ```python
        from ledgerlab.core.journal import Journal

        journal = Journal(registry)
        for directive in directives:
            journal.add(directive)
        for day in journal.sorted_days():
            ...
        ```
    """

    def __init__(self, registry: Registry | None = None):
        self.registry = registry or Registry()
        self.days: dict[date, Day] = {}

    def day(self, d: date) -> Day:
        """Return the day for ``d``, creating it if needed."""
        day = self.days.get(d)
        if day is None:
            day = self.days[d] = Day(d)
        return day

    def add(self, directive: Directive) -> None:
        """
        Route a directive to its day.

        Transactions with an accrual are expanded into their schedule.

        Raises:
            TypeError: For includes, which must be resolved while loading,
                and for objects that are not directives
        """
        if isinstance(directive, Open):
            self.day(directive.date).openings.append(directive)
        elif isinstance(directive, Close):
            self.day(directive.date).closings.append(directive)
        elif isinstance(directive, Price):
            self.day(directive.date).prices.append(directive)
        elif isinstance(directive, Assertion):
            self.day(directive.date).assertions.append(directive)
        elif isinstance(directive, Transaction):
            if directive.accrual is not None:
                for t in directive.accrual.expand(directive):
                    self.day(t.date).transactions.append(t)
            else:
                self.day(directive.date).transactions.append(directive)
        elif isinstance(directive, Include):
            raise TypeError(f"unresolved include of {directive.path!r}")
        else:
            raise TypeError(f"unknown directive: {directive!r}")

    def extend(self, directives: Iterable[Directive]) -> Journal:
        for d in directives:
            self.add(d)
        return self

    def sorted_days(self) -> list[Day]:
        """Return all days ascending by date, transactions in source order."""
        days = sorted(self.days.values(), key=lambda d: d.date)
        for day in days:
            day.transactions.sort(key=Transaction.order_key)
        return days

    def period(self) -> Period | None:
        """Return the period spanned by the journal, or None if it is empty."""
        if not self.days:
            return None
        return Period(min(self.days), max(self.days))

    def __len__(self) -> int:
        return len(self.days)
