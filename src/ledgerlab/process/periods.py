"""
Bucketing of the day stream into reporting periods.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date

from ..core.amounts import Amounts
from ..core.dates import Interval, Partition, Period, end_of, today
from ..core.journal import Day

__all__ = ["PeriodAggregate", "PeriodFilter"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PeriodAggregate:
    """
    One reporting period.

    Attributes:
        period: The period
        days: Days that fell into the period
        amounts: Balances at the end of the period
        values: Valued balances at the end of the period
        prev_amounts: Balances at the end of the previous period
        prev_values: Valued balances at the end of the previous period
    """

    period: Period
    days: list[Day] = field(default_factory=list)
    amounts: Amounts = field(default_factory=Amounts)
    values: Amounts = field(default_factory=Amounts)
    prev_amounts: Amounts = field(default_factory=Amounts)
    prev_values: Amounts = field(default_factory=Amounts)

    @property
    def date(self) -> date:
        return self.period.end


class PeriodFilter:
    """
    Group days into the periods of a partition.

    The partition is built when the first day with a transaction arrives:
    it spans from ``max(from_date, first transaction date)`` to the end of
    the interval containing ``to_date`` (today by default), keeping only the
    ``last`` periods if requested. Days before the first reported period
    form the baseline of the first aggregate; days after the last period are
    consumed but dropped. Every period is emitted, also those without days,
    carrying the latest balances forward.

    Args:
        from_date: Earliest reported date
        to_date: Latest reported date
        interval: Period length
        last: Keep only this many trailing periods (0 keeps all)
    """

    def __init__(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
        interval: Interval = Interval.ONCE,
        last: int = 0,
    ):
        self.from_date = from_date
        self.to_date = to_date
        self.interval = interval
        self.last = last
        self.partition: Partition | None = None

    def build_partition(self, first: date) -> Partition:
        start = first if self.from_date is None else max(self.from_date, first)
        end = end_of(self.to_date or today(), self.interval)
        return Partition(Period(start, end), self.interval, self.last)

    def __call__(self, days: Iterable[Day]) -> Iterator[PeriodAggregate]:
        baseline = latest = Day(None)
        buffered: list[Day] = []
        current = 0
        partition = None

        def emit(index: int) -> PeriodAggregate | None:
            nonlocal baseline, buffered
            aggregate = None
            if index > 0:
                aggregate = PeriodAggregate(
                    period=partition.periods[index],
                    days=buffered,
                    amounts=latest.amounts,
                    values=latest.value,
                    prev_amounts=baseline.amounts,
                    prev_values=baseline.value,
                )
            baseline, buffered = latest, []
            return aggregate

        for day in days:
            if partition is None:
                if not day.transactions:
                    continue
                partition = self.partition = self.build_partition(day.date)
                logger.debug("reporting %d periods: %r", len(partition), partition)
            index = partition.index(day.date)
            if index is None:
                continue
            while current < index:
                aggregate = emit(current)
                if aggregate is not None:
                    yield aggregate
                current += 1
            buffered.append(day)
            latest = day

        if partition is None:
            return
        while current < len(partition.periods):
            aggregate = emit(current)
            if aggregate is not None:
                yield aggregate
            current += 1
