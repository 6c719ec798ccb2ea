"""
Tests for building directives from syntax nodes.
"""

from datetime import date
from decimal import Decimal

import pytest
from ledgerlab.core.builder import Builder
from ledgerlab.core.dates import Interval, Period
from ledgerlab.core.directives import Include, Open, Price, Transaction
from ledgerlab.core.errors import ParseError
from ledgerlab.core.registry import Registry
from ledgerlab.syntax.parser import parse


def build(text: str, macros=None, registry=None):
    builder = Builder(registry or Registry(), macros)
    return list(builder.build_file(parse(text, "main.knut")))


class TestBuilder:
    """Test conversion and semantic validation."""

    def test_simple_directives(self):
        """Test open, price and include conversion."""
        registry = Registry()
        directives = build(
            '2020-01-01 open Assets:Cash\n2020-01-02 price USD 0.9 CHF\ninclude "x.knut"\n',
            registry=registry,
        )
        assert directives[0] == Open(date(2020, 1, 1), registry.account("Assets:Cash"))
        assert directives[1] == Price(
            date(2020, 1, 2), registry.commodity("USD"), Decimal("0.9"), registry.commodity("CHF")
        )
        assert directives[2] == Include("x.knut")
        assert directives[0].range.extract() == "2020-01-01 open Assets:Cash"

    def test_transaction(self):
        """Test a transaction with tags, lot, targets and accrual."""
        registry = Registry()
        text = (
            "@performance(USD)\n"
            "@accrue quarterly 2020-01-01 2020-12-31 Assets:Accrued\n"
            '2020-01-05 "Buy" #invest\n'
            'Assets:Cash Assets:Stocks 10 AAPL {150 USD, "lot", 2020-01-01} (CHF)\n'
        )
        (t,) = build(text, registry=registry)
        assert isinstance(t, Transaction)
        assert t.description == "Buy"
        assert t.tags == ("invest",)
        assert t.targets == (registry.commodity("USD"),)
        assert t.accrual.interval is Interval.QUARTERLY
        assert t.accrual.period == Period(date(2020, 1, 1), date(2020, 12, 31))
        (p,) = t.postings
        assert p.quantity == Decimal("10")
        assert p.lot.price == Decimal("150")
        assert p.lot.label == "lot"
        assert p.lot.date == date(2020, 1, 1)
        assert p.targets == (registry.commodity("CHF"),)

    def test_macro_resolution(self):
        """Test that account macros resolve through the macro table."""
        registry = Registry()
        (o,) = build("2020-01-01 open $dividend\n", {"dividend": "Income:Dividends"}, registry)
        assert o.account is registry.account("Income:Dividends")

    def test_unresolved_macro(self):
        """Test that unknown macros are reported at their range."""
        with pytest.raises(ParseError, match="unresolved account macro `\\$dividend`") as info:
            build("2020-01-01 open $dividend\n")
        assert info.value.range.extract() == "$dividend"

    def test_invalid_date(self):
        """Test that impossible calendar dates are rejected."""
        with pytest.raises(ParseError, match="invalid date `2020-02-30`"):
            build("2020-02-30 open Assets:Cash\n")

    def test_invalid_account_type(self):
        """Test that unknown account types are reported as parse errors."""
        with pytest.raises(ParseError, match="invalid type `Foo`") as info:
            build("2020-01-01 open Foo:Bar\n")
        assert info.value.range.extract() == "Foo:Bar"

    def test_accrual_window_order(self):
        """Test that an accrual may not end before it starts."""
        text = (
            "@accrue monthly 2020-12-31 2020-01-01 Assets:Accrued\n"
            '2020-01-05 "x"\n'
            "Assets:Cash Expenses:Rent 10 CHF\n"
        )
        with pytest.raises(ParseError, match="starts after it ends"):
            build(text)
