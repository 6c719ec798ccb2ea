"""
Calendar intervals, periods and partitions.

A ``Partition`` splits a ``Period`` into contiguous, interval-aligned
sub-periods and maps arbitrary dates onto the end date of the sub-period that
contains them. The end dates are kept in a ``numpy.datetime64`` array so that
alignment is a single ``searchsorted`` call.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

import numpy as np

__all__ = [
    "Interval",
    "Period",
    "Partition",
    "start_of",
    "end_of",
    "today",
]

ONE_DAY = timedelta(days=1)


class Interval(Enum):
    """Reporting interval."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: str | Interval) -> Interval:
        """Parse an interval from its lowercase name."""
        if isinstance(value, Interval):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            names = ", ".join(i.value for i in cls)
            raise ValueError(f"invalid interval '{value}', want one of {names}") from None

    def __str__(self) -> str:
        return self.value


def _add_months(d: date, months: int) -> date:
    index = d.year * 12 + d.month - 1 + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(d.day, calendar.monthrange(year, month)[1]))


def start_of(d: date, interval: Interval) -> date:
    """Return the first date of the interval containing ``d``.

    Weeks start on Monday.
    """
    if interval in (Interval.ONCE, Interval.DAILY):
        return d
    if interval is Interval.WEEKLY:
        return d - timedelta(days=d.weekday())
    if interval is Interval.MONTHLY:
        return d.replace(day=1)
    if interval is Interval.QUARTERLY:
        return date(d.year, (d.month - 1) // 3 * 3 + 1, 1)
    if interval is Interval.YEARLY:
        return date(d.year, 1, 1)
    raise ValueError(f"unknown interval: {interval!r}")


def end_of(d: date, interval: Interval) -> date:
    """Return the last date of the interval containing ``d``.

    Weeks end on Sunday.
    """
    if interval in (Interval.ONCE, Interval.DAILY):
        return d
    if interval is Interval.WEEKLY:
        return d + timedelta(days=6 - d.weekday())
    if interval is Interval.MONTHLY:
        return d.replace(day=calendar.monthrange(d.year, d.month)[1])
    if interval is Interval.QUARTERLY:
        return _add_months(start_of(d, Interval.QUARTERLY), 3) - ONE_DAY
    if interval is Interval.YEARLY:
        return date(d.year, 12, 31)
    raise ValueError(f"unknown interval: {interval!r}")


def today() -> date:
    """Return the current local date."""
    return date.today()


@dataclass(frozen=True, slots=True)
class Period:
    """A closed date range ``[start, end]``."""

    start: date
    end: date

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def clip(self, other: Period) -> Period:
        """Return the intersection-style clip of this period to ``other``."""
        return Period(max(self.start, other.start), min(self.end, other.end))

    def dates(self, interval: Interval, n: int = 0) -> list[date]:
        """
        Return the interval end dates within the period.

        The last date is clipped to the end of the period. With ``n > 0``
        only the last ``n`` dates are returned.
        """
        if interval is Interval.ONCE:
            return [self.end]
        result = []
        current = self.start
        while current <= self.end:
            result.append(min(end_of(current, interval), self.end))
            current = end_of(current, interval) + ONE_DAY
        if n > 0 and len(result) > n:
            result = result[-n:]
        return result

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


class Partition:
    """
    Contiguous interval-aligned decomposition of a period.

    ``periods`` is sorted ascending and starts with an open-ended ``before``
    period which ends the day before the first kept sub-period; it
    collects everything that happened before the reported range. Building
    walks backward from the end of the span, so with ``last > 0`` the oldest
    sub-periods are the ones dropped.

    **Example Usage:**
        ```python
        from datetime import date
        from ledgerlab.core.dates import Interval, Partition, Period

        p = Partition(Period(date(2024, 1, 15), date(2024, 3, 31)), Interval.MONTHLY)
        p.end_dates()              # [2024-01-31, 2024-02-29, 2024-03-31]
        p.align(date(2024, 2, 3))  # 2024-02-29
        ```
    """

    def __init__(self, span: Period, interval: Interval, last: int = 0):
        self.span = span
        self.interval = interval
        periods: list[Period] = []
        if span.start <= span.end:
            if interval is Interval.ONCE:
                periods.append(span)
            else:
                end = span.end
                while end >= span.start and not (0 < last <= len(periods)):
                    start = max(start_of(end, interval), span.start)
                    periods.append(Period(start, end))
                    end = start - ONE_DAY
        first_start = periods[-1].start if periods else span.start
        before_end = min(first_start - ONE_DAY, span.end)
        periods.append(Period(date.min, before_end))
        periods.reverse()
        self.periods = periods
        self._ends = np.array([p.end for p in periods], dtype="datetime64[D]")

    @property
    def before(self) -> Period:
        return self.periods[0]

    def __len__(self) -> int:
        return len(self.periods) - 1

    def __iter__(self) -> Iterator[Period]:
        return iter(self.periods[1:])

    def contains(self, d: date) -> bool:
        return self.span.contains(d)

    def align(self, d: date) -> date | None:
        """
        Map a date to the end date of the first period ending on or after it.

        Dates before the span map to the end of the ``before`` period. Dates
        after the last period return None.
        """
        index = int(np.searchsorted(self._ends, np.datetime64(d, "D"), side="left"))
        if index < len(self.periods):
            return self.periods[index].end
        return None

    def index(self, d: date) -> int | None:
        """Like ``align`` but return the position in ``periods``."""
        index = int(np.searchsorted(self._ends, np.datetime64(d, "D"), side="left"))
        return index if index < len(self.periods) else None

    def start_dates(self) -> list[date]:
        return [p.start for p in self.periods[1:]]

    def end_dates(self) -> list[date]:
        return [p.end for p in self.periods[1:]]

    def __repr__(self) -> str:
        return f"Partition({self.span}, {self.interval}, periods={len(self)})"
