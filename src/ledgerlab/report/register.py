"""
Register report: flows grouped by date.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pandas as pd

from ..core.amounts import Amounts, Key

__all__ = ["RegisterNode", "Register"]


class RegisterNode:
    """All flows of one date."""

    __slots__ = ("date", "amounts")

    def __init__(self, d: date | None):
        self.date = d
        self.amounts = Amounts()

    def rows(self) -> list[Key]:
        """Keys ordered by other account, then commodity."""
        return sorted(
            self.amounts,
            key=lambda k: (
                k.other.name if k.other else "",
                k.commodity.name if k.commodity else "",
                k.account.name if k.account else "",
                k.description or "",
            ),
        )


class Register:
    """
    Flows keyed by date.

    Amounts are stored from the perspective of ``key.account``; a register
    line shows the flow into ``key.other``, i.e. the negated amount.
    """

    def __init__(self):
        self.nodes: dict[date | None, RegisterNode] = {}

    def insert(self, key: Key, value: Decimal) -> None:
        node = self.nodes.get(key.date)
        if node is None:
            node = self.nodes[key.date] = RegisterNode(key.date)
        node.amounts.add(key, value)

    def sorted_nodes(self) -> list[RegisterNode]:
        return sorted(self.nodes.values(), key=lambda n: n.date or date.min)

    def to_frame(self) -> pd.DataFrame:
        """
        Flatten the register into a DataFrame, one row per flow.

        The ``amount`` column holds the flow into ``other``.
        """
        rows = []
        for node in self.sorted_nodes():
            for key in node.rows():
                rows.append(
                    {
                        "date": node.date,
                        "account": key.account.name if key.account else None,
                        "other": key.other.name if key.other else None,
                        "commodity": key.commodity.name if key.commodity else None,
                        "valuation": key.valuation.name if key.valuation else None,
                        "description": key.description,
                        "amount": -node.amounts[key],
                    }
                )
        columns = ["date", "account", "other", "commodity", "valuation", "description", "amount"]
        return pd.DataFrame(rows, columns=columns)
