"""
Hierarchical account report.

A ``Report`` holds two trees: one for asset and liability accounts and one
for equity, income and expense accounts. Amounts are inserted at the node of
their account; intermediate nodes are created on demand from the account's
ancestor chain. After all insertions, ``compute_weights`` ranks the nodes by
the absolute size of their valued amounts, which orders ``children()``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pandas as pd

from ..core.amounts import Amounts, Key
from ..core.concurrency import fork_join, parallel
from ..core.registry import Account, Registry

__all__ = ["Node", "Report"]

logger = logging.getLogger(__name__)


class Node:
    """
    A report node for one account (None for a tree root).

    Attributes:
        account: The account of the node
        amounts: Amounts inserted directly at this node
        weight: Display weight; more negative sorts first
    """

    __slots__ = ("account", "amounts", "weight", "_children")

    def __init__(self, account: Account | None):
        self.account = account
        self.amounts = Amounts()
        self.weight = 0.0
        self._children: dict[Account, Node] = {}

    def insert(self, key: Key, value: Decimal) -> None:
        self.amounts.add(key, value)

    def leaf(self, ancestors: list[Account]) -> Node:
        """Return the node at the end of ``ancestors``, creating the path."""
        node = self
        for account in ancestors:
            child = node._children.get(account)
            if child is None:
                child = node._children[account] = Node(account)
            node = child
        return node

    def children(self) -> list[Node]:
        """Children ordered by account type, weight, then name."""
        return sorted(
            self._children.values(),
            key=lambda n: (n.account.type.order, n.weight, n.account.name),
        )

    @property
    def segment(self) -> str:
        return self.account.segment if self.account is not None else ""

    def own_weight(self) -> float:
        """Negated magnitude of the valued amounts inserted at this node."""
        valued = self.amounts.sum_over(lambda k: k.valuation is not None)
        return -float(abs(valued))

    def compute_totals(self, result: Amounts, mapper: Callable[[Key], Key] | None) -> Amounts:
        for child in self._children.values():
            child.compute_totals(result, mapper)
        return self.amounts.sum_into_by(result, None, mapper)

    def __repr__(self) -> str:
        return f"Node({self.account}, weight={self.weight})"


class Report:
    """
    Account tree built from keyed amounts.

    Args:
        registry: Registry resolving account ancestors
        max_workers: Pool size for the parallel weight and total passes

    **Example Usage:**
        ```python
        report = Report(registry)
        report.insert(Key(account=cash, commodity=chf, valuation=chf), Decimal(100))
        report.compute_weights()
        for node in report.al.children():
            print(node.account, node.weight)
        ```
    """

    def __init__(self, registry: Registry, max_workers: int = 4):
        self.registry = registry
        self.max_workers = max_workers
        self.al = Node(None)
        self.eie = Node(None)
        self._cache: dict[Account, Node] = {}

    def insert(self, key: Key, value: Decimal) -> None:
        """Insert an amount at its account's node. Keys without account are ignored."""
        account = key.account
        if account is None:
            return
        node = self._cache.get(account)
        if node is None:
            root = self.al if account.is_al() else self.eie
            node = self._cache[account] = root.leaf(self.registry.accounts.ancestors(account))
        node.insert(key, value)

    def compute_weights(self) -> None:
        """
        Compute all node weights bottom-up.

        Sibling subtrees are processed concurrently; each node's weight is
        its own weight plus the weights of its children.
        """

        def combine(node: Node, weights: list[float]) -> float:
            node.weight = node.own_weight() + sum(weights)
            return node.weight

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            parallel(
                lambda: fork_join(self.al, Node.children, combine, pool),
                lambda: fork_join(self.eie, Node.children, combine, pool),
            )
        logger.debug("weights: al=%s eie=%s", self.al.weight, self.eie.weight)

    def totals(self, mapper: Callable[[Key], Key] | None = None) -> tuple[Amounts, Amounts]:
        """Return the mapped totals of the two trees."""
        al, eie = parallel(
            lambda: self.al.compute_totals(Amounts(), mapper),
            lambda: self.eie.compute_totals(Amounts(), mapper),
        )
        return al, eie

    def nodes(self) -> list[tuple[int, Node]]:
        """Depth-first list of ``(depth, node)`` in display order."""
        result: list[tuple[int, Node]] = []

        def walk(node: Node, depth: int) -> None:
            for child in node.children():
                result.append((depth, child))
                walk(child, depth + 1)

        walk(self.al, 0)
        walk(self.eie, 0)
        return result

    def to_frame(self) -> pd.DataFrame:
        """
        Flatten the report into a DataFrame.

        Returns:
            One row per node and key with columns ``account``, ``depth``,
            ``date``, ``commodity``, ``valuation``, ``amount`` and
            ``weight``, in display order
        """
        rows = []
        for depth, node in self.nodes():
            for key in node.amounts.sorted_keys():
                rows.append(
                    {
                        "account": node.account.name,
                        "depth": depth,
                        "date": key.date,
                        "commodity": key.commodity.name if key.commodity else None,
                        "valuation": key.valuation.name if key.valuation else None,
                        "amount": node.amounts[key],
                        "weight": node.weight,
                    }
                )
        columns = ["account", "depth", "date", "commodity", "valuation", "amount", "weight"]
        return pd.DataFrame(rows, columns=columns)
