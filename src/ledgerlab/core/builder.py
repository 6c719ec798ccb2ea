"""
Conversion from syntax nodes to journal directives.

The builder validates what the grammar cannot: calendar dates, account types,
accrual windows and account macros. Violations are raised as ``ParseError``
pointing at the offending source range.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from datetime import date
from decimal import Decimal, InvalidOperation

from ..syntax import nodes
from .dates import Interval, Period
from .directives import (
    Accrual,
    Assertion,
    Close,
    Directive,
    Include,
    Lot,
    Open,
    Posting,
    Price,
    Transaction,
)
from .errors import InvalidAccountError, ParseError
from .registry import Account, Commodity, Registry

__all__ = ["Builder"]


class Builder:
    """
    Builds directives for one registry.

    Args:
        registry: Registry used to intern accounts and commodities
        macros: Substitutions for account macros, e.g.
            ``{"dividend": "Income:Dividends"}``
    """

    def __init__(self, registry: Registry, macros: Mapping[str, str] | None = None):
        self.registry = registry
        self.macros = dict(macros or {})

    def build_file(self, file: nodes.File) -> Iterator[Directive]:
        for d in file.directives:
            yield self.build(d)

    def build(self, directive: nodes.Directive) -> Directive:
        d = directive.directive
        if isinstance(d, nodes.Transaction):
            return self._transaction(d)
        if isinstance(d, nodes.Open):
            return Open(self._date(d.date), self._account(d.account), d.range)
        if isinstance(d, nodes.Close):
            return Close(self._date(d.date), self._account(d.account), d.range)
        if isinstance(d, nodes.Price):
            return Price(
                self._date(d.date),
                self._commodity(d.commodity),
                self._decimal(d.price),
                self._commodity(d.target),
                d.range,
            )
        if isinstance(d, nodes.Assertion):
            return Assertion(
                self._date(d.date),
                self._account(d.account),
                self._decimal(d.amount),
                self._commodity(d.commodity),
                d.range,
            )
        if isinstance(d, nodes.Include):
            return Include(d.path.content.extract(), d.range)
        raise TypeError(f"unknown directive: {directive!r}")

    def _transaction(self, t: nodes.Transaction) -> Transaction:
        accrual = targets = None
        if t.addons is not None:
            if t.addons.accrual is not None:
                accrual = self._accrual(t.addons.accrual)
            if t.addons.performance is not None:
                targets = tuple(self._commodity(c) for c in t.addons.performance.targets)
        return Transaction(
            date=self._date(t.date),
            description=t.description.content.extract(),
            postings=tuple(self._posting(b) for b in t.bookings),
            tags=tuple(tag.extract()[1:] for tag in t.tags),
            accrual=accrual,
            targets=targets,
            range=t.range,
        )

    def _posting(self, b: nodes.Booking) -> Posting:
        lot = None
        if b.lot is not None:
            lot = Lot(
                price=self._decimal(b.lot.price),
                commodity=self._commodity(b.lot.commodity),
                label=b.lot.label.content.extract() if b.lot.label else None,
                date=self._date(b.lot.date) if b.lot.date else None,
            )
        return Posting(
            credit=self._account(b.credit),
            debit=self._account(b.debit),
            quantity=self._decimal(b.amount),
            commodity=self._commodity(b.commodity),
            lot=lot,
            targets=(
                tuple(self._commodity(c) for c in b.targets.targets)
                if b.targets is not None
                else None
            ),
        )

    def _accrual(self, a: nodes.Accrual) -> Accrual:
        start, end = self._date(a.start), self._date(a.end)
        if start > end:
            raise ParseError(
                f"accrual period starts after it ends ({start} > {end})", a.range
            )
        return Accrual(
            interval=Interval.parse(a.interval.extract()),
            period=Period(start, end),
            account=self._account(a.account),
        )

    def _date(self, d: nodes.Date) -> date:
        try:
            return date.fromisoformat(d.extract())
        except ValueError as exc:
            raise ParseError(f"invalid date `{d.extract()}`: {exc}", d.range) from exc

    def _decimal(self, n: nodes.Number) -> Decimal:
        try:
            return Decimal(n.extract())
        except InvalidOperation as exc:
            raise ParseError(f"invalid decimal `{n.extract()}`", n.range) from exc

    def _commodity(self, c: nodes.Commodity) -> Commodity:
        return self.registry.commodity(c.extract())

    def _account(self, a: nodes.Account) -> Account:
        name = a.extract()
        if a.macro:
            target = self.macros.get(name[1:])
            if target is None:
                raise ParseError(f"unresolved account macro `{name}`", a.range)
            name = target
        try:
            return self.registry.account(name)
        except InvalidAccountError as exc:
            raise ParseError(str(exc), a.range) from exc
