"""
Tests for closing income and expenses into retained earnings.
"""

from datetime import date
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st
from ledgerlab.core.amounts import Amounts, Key
from ledgerlab.core.dates import Interval
from ledgerlab.core.registry import Registry
from ledgerlab.pipeline import run_stages
from ledgerlab.process.balance import BalanceStage
from ledgerlab.process.close import CloseStage, close_amounts
from ledgerlab.process.periods import PeriodFilter
from ledgerlab.process.prices import PriceStage

JOURNAL = (
    "2021-01-01 open Assets:Cash\n"
    "2021-01-01 open Income:Salary\n"
    "\n"
    '2021-01-10 "Salary"\n'
    "Income:Salary Assets:Cash 100 CHF\n"
    "\n"
    '2021-02-10 "Salary"\n'
    "Income:Salary Assets:Cash 50 CHF\n"
)

NAMES = ["Assets:Cash", "Income:Salary", "Expenses:Rent", "Equity:RetainedEarnings"]


class TestCloseStage:
    """Test period-scoped income and expenses."""

    def test_monthly_close(self, journal_from, registry):
        """Test that each period shows only its own income."""
        journal = journal_from(JOURNAL)
        jan, feb = run_stages(
            journal.sorted_days(),
            PriceStage(None),
            BalanceStage(),
            PeriodFilter(to_date=date(2021, 2, 28), interval=Interval.MONTHLY),
            CloseStage(registry),
        )
        chf = registry.commodity("CHF")
        salary = Key.of(registry.account("Income:Salary"), chf)
        cash = Key.of(registry.account("Assets:Cash"), chf)
        retained = Key.of(registry.account("Equity:RetainedEarnings"), chf)

        assert jan.amounts[salary] == -100
        assert retained not in jan.amounts
        assert feb.amounts[salary] == -50
        assert feb.amounts[retained] == -100
        assert feb.amounts[cash] == 150
        assert sum(feb.amounts.values()) == 0
        assert salary not in feb.prev_amounts

    def test_disabled(self, journal_from, registry):
        """Test that a disabled stage keeps cumulative balances."""
        journal = journal_from(JOURNAL)
        _, feb = run_stages(
            journal.sorted_days(),
            PriceStage(None),
            BalanceStage(),
            PeriodFilter(to_date=date(2021, 2, 28), interval=Interval.MONTHLY),
            CloseStage(registry, enabled=False),
        )
        salary = Key.of(registry.account("Income:Salary"), registry.commodity("CHF"))
        assert feb.amounts[salary] == -150


class TestCloseAmounts:
    """Property tests for closing."""

    @given(
        st.dictionaries(
            st.tuples(st.sampled_from(NAMES), st.sampled_from(["CHF", "USD"])),
            st.decimals(min_value=-1000, max_value=1000, places=2),
        )
    )
    def test_idempotent_and_conserving(self, entries):
        """Test that closing twice equals closing once and preserves totals."""
        registry = Registry()
        equity = registry.account("Equity:RetainedEarnings")
        amounts = Amounts(
            {Key.of(registry.account(a), registry.commodity(c)): v for (a, c), v in entries.items()}
        )
        once = close_amounts(amounts, equity)
        assert close_amounts(once, equity) == once
        assert not any(k.account.is_ie() for k in once)
        assert once.sum_over() == amounts.sum_over()
