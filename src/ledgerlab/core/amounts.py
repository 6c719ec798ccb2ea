"""
Keyed decimal amounts.

``Amounts`` maps a ``Key`` to a ``Decimal`` quantity. Keys are sparse: any
field may be None, which is how aggregations drop a dimension. ``KeyMapper``
builds new keys field by field and the predicate helpers select keys.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, TypeVar

from .registry import Account, Commodity

__all__ = [
    "Key",
    "Amounts",
    "KeyMapper",
    "Predicate",
    "identity",
    "allow_all",
    "all_of",
    "any_of",
    "negate",
    "by_name",
]

T = TypeVar("T")
Predicate = Callable[[T], bool]
Mapper = Callable[[T], T]

ZERO = Decimal(0)


@dataclass(frozen=True, slots=True)
class Key:
    """Aggregation key for an amount."""

    date: date | None = None
    account: Account | None = None
    other: Account | None = None
    commodity: Commodity | None = None
    valuation: Commodity | None = None
    description: str | None = None

    @classmethod
    def of(cls, account: Account, commodity: Commodity) -> Key:
        """Key of a running balance."""
        return cls(account=account, commodity=commodity)

    def sort_key(self) -> tuple:
        return (
            self.date or date.min,
            (self.account.type.order, self.account.name) if self.account else (-1, ""),
            self.other.name if self.other else "",
            self.commodity.name if self.commodity else "",
            self.valuation.name if self.valuation else "",
            self.description or "",
        )


class Amounts(dict[Key, Decimal]):
    """Decimal amounts by key."""

    def add(self, key: Key, value: Decimal) -> None:
        self[key] = self.get(key, ZERO) + value

    def clone(self) -> Amounts:
        return Amounts(self)

    def minus(self, other: Amounts) -> Amounts:
        """Return ``self - other`` over the union of keys."""
        result = self.clone()
        for key, value in other.items():
            result.add(key, -value)
        return result

    def sum_over(self, predicate: Predicate[Key] | None = None) -> Decimal:
        return sum(
            (v for k, v in self.items() if predicate is None or predicate(k)), ZERO
        )

    def sum_into_by(
        self,
        result: Amounts,
        predicate: Predicate[Key] | None,
        mapper: Callable[[Key], Key] | None,
    ) -> Amounts:
        """Add the selected amounts into ``result``, re-keyed by ``mapper``."""
        for key, value in self.items():
            if predicate is not None and not predicate(key):
                continue
            result.add(mapper(key) if mapper is not None else key, value)
        return result

    def sum_by(
        self,
        predicate: Predicate[Key] | None = None,
        mapper: Callable[[Key], Key] | None = None,
    ) -> Amounts:
        return self.sum_into_by(Amounts(), predicate, mapper)

    def nonzero(self) -> Amounts:
        return Amounts((k, v) for k, v in self.items() if v != ZERO)

    def sorted_keys(self) -> list[Key]:
        return sorted(self, key=Key.sort_key)


def identity(value: T) -> T:
    return value


@dataclass(frozen=True, slots=True)
class KeyMapper:
    """
    Field-wise key transform.

    Each field holds a mapper for that key field. A field mapper of None
    drops the field (maps it to None), so the default ``KeyMapper()`` maps
    every key to the empty key.
    """

    date: Mapper[Any] | None = None
    account: Mapper[Any] | None = None
    other: Mapper[Any] | None = None
    commodity: Mapper[Any] | None = None
    valuation: Mapper[Any] | None = None
    description: Mapper[Any] | None = None

    def __call__(self, key: Key) -> Key:
        return Key(
            date=self.date(key.date) if self.date else None,
            account=self.account(key.account) if self.account else None,
            other=self.other(key.other) if self.other else None,
            commodity=self.commodity(key.commodity) if self.commodity else None,
            valuation=self.valuation(key.valuation) if self.valuation else None,
            description=self.description(key.description) if self.description else None,
        )

    @classmethod
    def identity(cls) -> KeyMapper:
        return cls(identity, identity, identity, identity, identity, identity)


def allow_all(_: Any) -> bool:
    return True


def all_of(*predicates: Predicate[T]) -> Predicate[T]:
    def predicate(value: T) -> bool:
        return all(p(value) for p in predicates)

    return predicate


def any_of(*predicates: Predicate[T]) -> Predicate[T]:
    def predicate(value: T) -> bool:
        return any(p(value) for p in predicates)

    return predicate


def negate(predicate: Predicate[T]) -> Predicate[T]:
    return lambda value: not predicate(value)


def by_name(patterns: Iterable[str]) -> Predicate[Any]:
    """Match named objects (accounts, commodities) against any regex.

    An empty pattern list allows everything.
    """
    regexes = [re.compile(p) for p in patterns]
    if not regexes:
        return allow_all

    def predicate(value: Any) -> bool:
        return value is not None and any(r.search(value.name) for r in regexes)

    return predicate
