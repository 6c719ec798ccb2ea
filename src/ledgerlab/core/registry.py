"""
Registry for interning accounts and commodities.

Accounts and commodities are interned: the registry hands out exactly one
object per name, so they compare and hash by identity. The registry is safe
to share between the threads that parse included journals concurrently.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Callable, Iterable
from enum import Enum

from .errors import InvalidAccountError

__all__ = [
    "AccountType",
    "Account",
    "Commodity",
    "AccountRegistry",
    "CommodityRegistry",
    "Registry",
    "shorten",
    "remap",
]

_SEGMENT = re.compile(r"^\w+$")


class AccountType(Enum):
    """Account type classification, derived from the first name segment."""

    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSES = "Expenses"

    @property
    def order(self) -> int:
        """Display order: balance sheet types first."""
        return _TYPE_ORDER[self]

    def is_al(self) -> bool:
        return self in (AccountType.ASSETS, AccountType.LIABILITIES)

    def is_ie(self) -> bool:
        return self in (AccountType.INCOME, AccountType.EXPENSES)


_TYPE_ORDER = {t: i for i, t in enumerate(AccountType)}


class Commodity:
    """An interned commodity symbol such as ``USD`` or ``AAPL``."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Commodity({self.name!r})"

    def __lt__(self, other: Commodity) -> bool:
        return self.name < other.name


class Account:
    """
    An interned account.

    Attributes:
        name: Full colon-separated name, e.g. ``Assets:Bank:Checking``
        type: Account type derived from the first segment
        parent: Parent account, or None for a top-level account
        level: Number of segments
    """

    __slots__ = ("name", "type", "parent", "level")

    def __init__(self, name: str, type: AccountType, parent: Account | None):
        self.name = name
        self.type = type
        self.parent = parent
        self.level = 1 if parent is None else parent.level + 1

    @property
    def segment(self) -> str:
        """The last name segment."""
        return self.name.rsplit(":", 1)[-1]

    def is_al(self) -> bool:
        return self.type.is_al()

    def is_ie(self) -> bool:
        return self.type.is_ie()

    def ancestors(self) -> list[Account]:
        """Return the chain from the top-level account down to this one."""
        chain = []
        account: Account | None = self
        while account is not None:
            chain.append(account)
            account = account.parent
        chain.reverse()
        return chain

    def ancestor(self, level: int) -> Account:
        """Return the ancestor at ``level`` (or self if already shallower)."""
        account = self
        while account.level > level and account.parent is not None:
            account = account.parent
        return account

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Account({self.name!r})"

    def __lt__(self, other: Account) -> bool:
        return (self.type.order, self.name) < (other.type.order, other.name)


class AccountRegistry:
    """
    Registry handing out interned accounts.

    Parents are created on demand, so every account's ancestors exist.
    """

    def __init__(self):
        self._accounts: dict[str, Account] = {}
        self._lock = threading.RLock()

    def get(self, name: str) -> Account:
        """
        Return the account with the given name, creating it if needed.

        Raises:
            InvalidAccountError: If the name is malformed or its first
                segment is not a known account type
        """
        account = self._accounts.get(name)
        if account is not None:
            return account
        with self._lock:
            account = self._accounts.get(name)
            if account is None:
                account = self._create(name)
            return account

    def _create(self, name: str) -> Account:
        segments = name.split(":")
        if not all(_SEGMENT.match(s) for s in segments):
            raise InvalidAccountError(f"invalid account name: `{name}`")
        try:
            account_type = AccountType(segments[0])
        except ValueError:
            types = ", ".join(t.value for t in AccountType)
            raise InvalidAccountError(
                f"account `{name}` has invalid type `{segments[0]}`, want one of {types}"
            ) from None
        parent = self.get(":".join(segments[:-1])) if len(segments) > 1 else None
        account = Account(name, account_type, parent)
        self._accounts[name] = account
        return account

    def ancestors(self, account: Account) -> list[Account]:
        return account.ancestors()

    def __contains__(self, name: str) -> bool:
        return name in self._accounts

    def __iter__(self):
        return iter(sorted(self._accounts.values()))

    def __len__(self) -> int:
        return len(self._accounts)


class CommodityRegistry:
    """Registry handing out interned commodities."""

    def __init__(self):
        self._commodities: dict[str, Commodity] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Commodity:
        commodity = self._commodities.get(name)
        if commodity is not None:
            return commodity
        with self._lock:
            return self._commodities.setdefault(name, Commodity(name))

    def __contains__(self, name: str) -> bool:
        return name in self._commodities

    def __iter__(self):
        return iter(sorted(self._commodities.values()))

    def __len__(self) -> int:
        return len(self._commodities)


class Registry:
    """
    Interning registry for one journal.

    **Example Usage:**
        ```python
        from ledgerlab.core.registry import Registry

        registry = Registry()
        cash = registry.account("Assets:Cash")
        assert cash is registry.account("Assets:Cash")
        assert cash.parent is registry.account("Assets")
        ```
    """

    def __init__(self):
        self.accounts = AccountRegistry()
        self.commodities = CommodityRegistry()

    def account(self, name: str) -> Account:
        return self.accounts.get(name)

    def commodity(self, name: str) -> Commodity:
        return self.commodities.get(name)


def shorten(
    accounts: AccountRegistry, mapping: Iterable[tuple[int, str]]
) -> Callable[[Account | None], Account | None]:
    """
    Build an account mapper that truncates accounts to a level.

    Args:
        accounts: Registry used to intern the ancestors
        mapping: ``(level, regex)`` rules; the first rule whose regex
            matches the account name applies

    Returns:
        Mapper returning the ancestor at the rule's level, or the account
        itself when no rule matches
    """
    rules = [(level, re.compile(pattern)) for level, pattern in mapping]
    cache: dict[Account, Account] = {}

    def mapper(account: Account | None) -> Account | None:
        if account is None:
            return None
        result = cache.get(account)
        if result is None:
            result = account
            for level, regex in rules:
                if regex.search(account.name):
                    result = accounts.get(account.ancestor(max(level, 1)).name)
                    break
            cache[account] = result
        return result

    return mapper


def remap(
    accounts: AccountRegistry, patterns: Iterable[str], target: str
) -> Callable[[Account | None], Account | None]:
    """Build an account mapper that merges all matching accounts into ``target``."""
    regexes = [re.compile(p) for p in patterns]
    if not regexes:
        return lambda account: account
    merged = accounts.get(target)

    def mapper(account: Account | None) -> Account | None:
        if account is not None and any(r.search(account.name) for r in regexes):
            return merged
        return account

    return mapper
