"""
Sequential processing stages over the day stream.

Each stage is a callable taking an iterable and returning an iterator, so
stages compose by plain function application and every day passes through
one stage completely before the next stage sees it:

    prices -> balance -> periods -> close -> query
"""

from __future__ import annotations

from .balance import EPSILON, Balance, BalanceStage
from .close import CloseStage, close_amounts
from .periods import PeriodAggregate, PeriodFilter
from .prices import Prices, PriceStage
from .query import (
    BalanceQuery,
    RegisterQuery,
    ReportSink,
    filter_account,
    filter_commodity,
    filter_description,
    filter_other,
)

__all__ = [
    "EPSILON",
    "Balance",
    "BalanceStage",
    "CloseStage",
    "close_amounts",
    "PeriodAggregate",
    "PeriodFilter",
    "Prices",
    "PriceStage",
    "BalanceQuery",
    "RegisterQuery",
    "ReportSink",
    "filter_account",
    "filter_commodity",
    "filter_description",
    "filter_other",
]
