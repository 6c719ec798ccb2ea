"""
Closing of income and expense accounts into retained earnings.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import replace

from ..core.amounts import Amounts, Key
from ..core.registry import Account, Registry
from .periods import PeriodAggregate

__all__ = ["close_amounts", "CloseStage"]


def close_amounts(amounts: Amounts, equity: Account) -> Amounts:
    """
    Move all income and expense balances into ``equity``.

    Each income or expense key is removed and its quantity is added to the
    key with the same commodity (and other fields) on ``equity``. The result
    holds no income or expense keys, so closing twice changes nothing.
    """
    result = Amounts()
    for key, value in amounts.items():
        if key.account is not None and key.account.is_ie():
            result.add(replace(key, account=equity), value)
        else:
            result.add(key, value)
    return result


class CloseStage:
    """
    Make income and expense balances period-scoped.

    For each period, the income and expense balances carried in from the
    previous period are closed into the retained earnings account: the
    previous snapshot is closed completely, and the end snapshot is shifted
    by the same closing entries. Income and expense accounts then show only
    the activity of the period, while the balance sheet still sums to zero.
    Disabled, the stage passes aggregates through unchanged.
    """

    def __init__(
        self,
        registry: Registry,
        enabled: bool = True,
        retained_earnings: str = "Equity:RetainedEarnings",
    ):
        self.enabled = enabled
        self.equity = registry.account(retained_earnings) if enabled else None

    def __call__(self, aggregates: Iterable[PeriodAggregate]) -> Iterator[PeriodAggregate]:
        for aggregate in aggregates:
            if self.enabled:
                aggregate.amounts, aggregate.prev_amounts = self._close(
                    aggregate.amounts, aggregate.prev_amounts
                )
                aggregate.values, aggregate.prev_values = self._close(
                    aggregate.values, aggregate.prev_values
                )
            yield aggregate

    def _close(self, amounts: Amounts, previous: Amounts) -> tuple[Amounts, Amounts]:
        closed_previous = close_amounts(previous, self.equity)
        entries = closed_previous.minus(previous)
        result = amounts.clone()
        for key, value in entries.items():
            result.add(key, value)
        return result.nonzero(), closed_previous.nonzero()
