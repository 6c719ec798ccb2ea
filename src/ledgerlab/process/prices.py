"""
Price graph and valuation factors.

This module keeps the most recent quote for every commodity pair together
with its implicit inverse, and resolves conversion factors from any
connected commodity into a valuation commodity by breadth-first search.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from decimal import Decimal

from ..core.directives import Price
from ..core.errors import LedgerError
from ..core.journal import Day
from ..core.registry import Commodity

__all__ = ["Prices", "PriceStage"]

logger = logging.getLogger(__name__)

ONE = Decimal(1)


class Prices:
    """
    Conversion graph built from price directives.

    ``graph[a][b] = x`` means one unit of ``a`` is worth ``x`` units of
    ``b``. Inserting a quote overwrites the previous quote of the pair and
    its inverse, so the latest quote wins.
    """

    def __init__(self):
        self.graph: dict[Commodity, dict[Commodity, Decimal]] = {}

    def insert(self, price: Price) -> None:
        if price.price == 0:
            raise LedgerError(f"{price.date}: zero price for {price.commodity}")
        self.graph.setdefault(price.commodity, {})[price.target] = price.price
        self.graph.setdefault(price.target, {})[price.commodity] = ONE / price.price

    def normalize(self, valuation: Commodity) -> dict[Commodity, Decimal]:
        """
        Resolve factors into ``valuation`` for every reachable commodity.

        Returns:
            Mapping of commodity to the value of one unit in ``valuation``.
            Commodities without a path are absent.
        """
        factors = {valuation: ONE}
        todo = deque([valuation])
        while todo:
            current = todo.popleft()
            for neighbor in self.graph.get(current, {}):
                if neighbor in factors:
                    continue
                factors[neighbor] = self.graph[neighbor][current] * factors[current]
                todo.append(neighbor)
        return factors


class PriceStage:
    """
    Attach valuation factors to every day.

    Days are processed in order; the factors of a day reflect all quotes up
    to and including that day. Without a valuation commodity the stage
    passes days through unchanged.
    """

    def __init__(self, valuation: Commodity | None):
        self.valuation = valuation
        self.prices = Prices()

    def __call__(self, days: Iterable[Day]) -> Iterator[Day]:
        if self.valuation is None:
            yield from days
            return
        normalized = {self.valuation: ONE}
        for day in days:
            if day.prices:
                for price in day.prices:
                    self.prices.insert(price)
                normalized = self.prices.normalize(self.valuation)
                logger.debug(
                    "%s: %d commodities valued in %s", day.date, len(normalized), self.valuation
                )
            day.normalized = normalized
            yield day
