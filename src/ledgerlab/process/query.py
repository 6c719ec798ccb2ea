"""
Queries feeding period aggregates into reports.

``BalanceQuery`` inserts the end-of-period balances (or, with ``diff``, the
change over the period) into a ``Report``. ``RegisterQuery`` inserts the
individual postings of each period into a ``Register``. Both pass the
aggregates through, so they can sit anywhere at the end of a pipeline.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import replace
from decimal import Decimal
from typing import Protocol

from ..core.amounts import Key, Predicate, allow_all, by_name
from ..core.registry import Commodity
from .periods import PeriodAggregate

__all__ = [
    "ReportSink",
    "BalanceQuery",
    "RegisterQuery",
    "filter_account",
    "filter_other",
    "filter_commodity",
    "filter_description",
]


class ReportSink(Protocol):
    """Anything that accepts keyed amounts."""

    def insert(self, key: Key, value: Decimal) -> None: ...


def filter_account(patterns: Iterable[str]) -> Predicate[Key]:
    match = by_name(patterns)
    return lambda key: match(key.account)


def filter_other(patterns: Iterable[str]) -> Predicate[Key]:
    match = by_name(patterns)
    return lambda key: match(key.other)


def filter_commodity(patterns: Iterable[str]) -> Predicate[Key]:
    match = by_name(patterns)
    return lambda key: match(key.commodity)


def filter_description(patterns: Iterable[str]) -> Predicate[Key]:
    regexes = [re.compile(p) for p in patterns]
    if not regexes:
        return allow_all
    return lambda key: key.description is not None and any(
        r.search(key.description) for r in regexes
    )


class BalanceQuery:
    """
    Insert period balances into a report.

    Args:
        report: Target with an ``insert(key, value)`` method
        mapper: Key transform applied before insertion
        predicate: Selects the keys to insert (applied before mapping)
        valuation: Insert valued balances in this commodity instead of
            quantities
        diff: Insert the change over each period instead of the balance
    """

    def __init__(
        self,
        report: ReportSink,
        mapper: Callable[[Key], Key] | None = None,
        predicate: Predicate[Key] | None = None,
        valuation: Commodity | None = None,
        diff: bool = False,
    ):
        self.report = report
        self.mapper = mapper
        self.predicate = predicate or allow_all
        self.valuation = valuation
        self.diff = diff

    def __call__(self, aggregates: Iterable[PeriodAggregate]) -> Iterator[PeriodAggregate]:
        for aggregate in aggregates:
            if self.valuation is not None:
                current, previous = aggregate.values, aggregate.prev_values
            else:
                current, previous = aggregate.amounts, aggregate.prev_amounts
            source = current.minus(previous) if self.diff else current
            for key, value in source.items():
                if value == 0:
                    continue
                key = replace(key, date=aggregate.period.end, valuation=self.valuation)
                if not self.predicate(key):
                    continue
                self.report.insert(self.mapper(key) if self.mapper else key, value)
            yield aggregate


class RegisterQuery:
    """
    Insert the postings of each period into a register.

    Every posting yields two keys, one per side: the credited account with
    the negated quantity and the debited account with the quantity, each
    with the opposite account as ``other``. With a valuation commodity the
    postings are valued at the prices of their day and postings that
    cannot be valued are skipped.
    """

    def __init__(
        self,
        register: ReportSink,
        mapper: Callable[[Key], Key] | None = None,
        predicate: Predicate[Key] | None = None,
        valuation: Commodity | None = None,
    ):
        self.register = register
        self.mapper = mapper
        self.predicate = predicate or allow_all
        self.valuation = valuation

    def __call__(self, aggregates: Iterable[PeriodAggregate]) -> Iterator[PeriodAggregate]:
        for aggregate in aggregates:
            for day in aggregate.days:
                for t in day.transactions:
                    for p in t.postings:
                        value = p.quantity
                        if self.valuation is not None:
                            factor = (day.normalized or {}).get(p.commodity)
                            if factor is None:
                                continue
                            value = p.quantity * factor
                        for account, other, v in (
                            (p.credit, p.debit, -value),
                            (p.debit, p.credit, value),
                        ):
                            key = Key(
                                date=aggregate.period.end,
                                account=account,
                                other=other,
                                commodity=p.commodity,
                                valuation=self.valuation,
                                description=t.description,
                            )
                            if self.predicate(key):
                                self.register.insert(
                                    self.mapper(key) if self.mapper else key, v
                                )
            yield aggregate
