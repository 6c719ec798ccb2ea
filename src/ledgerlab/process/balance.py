"""
Running balances with account lifecycle and assertion checks.

The running state is an explicit ``Balance`` value. ``Balance.apply`` folds
one day into a new ``Balance`` and leaves the previous one untouched, so the
state after any prefix of days can be inspected on its own. ``BalanceStage``
threads the fold through the day stream and stores each day's snapshot (and
its valuation) on the day.

Within a day the order is: openings, transactions, assertions, closings.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from decimal import Decimal

from ..core.amounts import Amounts, Key
from ..core.errors import (
    AccountAlreadyOpenError,
    AccountNotOpenError,
    AssertionFailedError,
    CloseWithNonZeroBalanceError,
    PostingToClosedOrUnopenedAccountError,
)
from ..core.journal import Day
from ..core.registry import Account, Commodity

__all__ = ["EPSILON", "Balance", "BalanceStage"]

logger = logging.getLogger(__name__)

# assertions and closings tolerate differences up to this amount
EPSILON = Decimal("1e-9")


@dataclass(frozen=True, slots=True)
class Balance:
    """
    Accumulated ledger state.

    Attributes:
        amounts: Quantity per ``Key.of(account, commodity)``
        accounts: Currently open accounts
    """

    amounts: Amounts = field(default_factory=Amounts)
    accounts: frozenset[Account] = frozenset()

    def apply(self, day: Day) -> Balance:
        """
        Return the balance after processing ``day``.

        Raises:
            AccountAlreadyOpenError: If an open account is opened again
            PostingToClosedOrUnopenedAccountError: If a posting touches an
                account that is not open
            AssertionFailedError: If an assertion does not hold
            AccountNotOpenError: If a closed or unknown account is closed
            CloseWithNonZeroBalanceError: If a closed account holds a balance
        """
        amounts = self.amounts.clone()
        accounts = set(self.accounts)

        for o in day.openings:
            if o.account in accounts:
                raise AccountAlreadyOpenError(o.account, o.date)
            accounts.add(o.account)

        for t in day.transactions:
            for p in t.postings:
                for account in (p.credit, p.debit):
                    if account not in accounts:
                        raise PostingToClosedOrUnopenedAccountError(t.date, p, account)
                amounts.add(Key.of(p.credit, p.commodity), -p.quantity)
                amounts.add(Key.of(p.debit, p.commodity), p.quantity)

        for a in day.assertions:
            actual = amounts.get(Key.of(a.account, a.commodity), Decimal(0))
            if abs(actual - a.amount) > EPSILON:
                raise AssertionFailedError(a, a.amount, actual)

        for c in day.closings:
            if c.account not in accounts:
                raise AccountNotOpenError(c)
            keys = [k for k in amounts if k.account is c.account]
            remaining = {k.commodity: amounts[k] for k in keys if abs(amounts[k]) > EPSILON}
            if remaining:
                raise CloseWithNonZeroBalanceError(c, remaining)
            for k in keys:
                del amounts[k]
            accounts.discard(c.account)

        return Balance(amounts, frozenset(accounts))

    def is_open(self, account: Account) -> bool:
        return account in self.accounts

    def totals(self) -> dict[Commodity, Decimal]:
        """Sum of all balances per commodity; zero for a consistent ledger."""
        result: dict[Commodity, Decimal] = {}
        for k, v in self.amounts.items():
            result[k.commodity] = result.get(k.commodity, Decimal(0)) + v
        return result


class BalanceStage:
    """
    Fold days into running balances.

    Sets ``day.amounts`` to the end-of-day balances and, with a valuation
    commodity, ``day.value`` to those balances converted with
    ``day.normalized``. Commodities that cannot be converted are left out
    of ``day.value``.
    """

    def __init__(self, valuation: Commodity | None = None):
        self.valuation = valuation
        self.balance = Balance()
        self._unvalued: set[Commodity] = set()

    def __call__(self, days: Iterable[Day]) -> Iterator[Day]:
        for day in days:
            self.balance = self.balance.apply(day)
            day.amounts = self.balance.amounts
            if self.valuation is not None:
                day.value = self._value(day)
            yield day

    def _value(self, day: Day) -> Amounts:
        factors = day.normalized or {}
        value = Amounts()
        for key, quantity in day.amounts.items():
            factor = factors.get(key.commodity)
            if factor is None:
                if key.commodity not in self._unvalued:
                    self._unvalued.add(key.commodity)
                    logger.warning(
                        "%s: no price path from %s to %s", day.date, key.commodity, self.valuation
                    )
                continue
            value[key] = quantity * factor
        return value
