"""
Tests for intervals, periods and partitions.
"""

from datetime import date, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st
from ledgerlab.core.dates import Interval, Partition, Period, end_of, start_of

STEPPED = [i for i in Interval if i is not Interval.ONCE]


class TestIntervalBoundaries:
    """Test start_of and end_of for each interval."""

    @pytest.mark.parametrize(
        "interval, start, end",
        [
            (Interval.DAILY, date(2024, 5, 15), date(2024, 5, 15)),
            (Interval.WEEKLY, date(2024, 5, 13), date(2024, 5, 19)),
            (Interval.MONTHLY, date(2024, 5, 1), date(2024, 5, 31)),
            (Interval.QUARTERLY, date(2024, 4, 1), date(2024, 6, 30)),
            (Interval.YEARLY, date(2024, 1, 1), date(2024, 12, 31)),
        ],
    )
    def test_boundaries(self, interval, start, end):
        """Test the interval containing 2024-05-15 (a Wednesday)."""
        d = date(2024, 5, 15)
        assert start_of(d, interval) == start
        assert end_of(d, interval) == end

    def test_february_leap_year(self):
        """Test month ends in leap and common years."""
        assert end_of(date(2024, 2, 10), Interval.MONTHLY) == date(2024, 2, 29)
        assert end_of(date(2023, 2, 10), Interval.MONTHLY) == date(2023, 2, 28)

    def test_parse(self):
        """Test interval parsing from names."""
        assert Interval.parse("Monthly") is Interval.MONTHLY
        assert Interval.parse(Interval.DAILY) is Interval.DAILY
        with pytest.raises(ValueError, match="invalid interval"):
            Interval.parse("fortnightly")


class TestPeriod:
    """Test period helpers."""

    def test_dates_clip_last(self):
        """Test that the last interval end is clipped to the period end."""
        p = Period(date(2020, 1, 1), date(2020, 3, 15))
        assert p.dates(Interval.MONTHLY) == [
            date(2020, 1, 31),
            date(2020, 2, 29),
            date(2020, 3, 15),
        ]
        assert p.dates(Interval.MONTHLY, 2) == [date(2020, 2, 29), date(2020, 3, 15)]
        assert p.dates(Interval.ONCE) == [date(2020, 3, 15)]

    def test_contains_and_clip(self):
        """Test containment and clipping."""
        p = Period(date(2020, 1, 1), date(2020, 12, 31))
        assert p.contains(date(2020, 6, 1))
        assert not p.contains(date(2021, 1, 1))
        assert p.clip(Period(date(2020, 6, 1), date(2021, 6, 1))) == Period(
            date(2020, 6, 1), date(2020, 12, 31)
        )


class TestPartition:
    """Test partitions and date alignment."""

    def test_monthly_partition(self):
        """Test a partial first month and alignment to month ends."""
        p = Partition(Period(date(2024, 1, 15), date(2024, 3, 31)), Interval.MONTHLY)
        assert len(p) == 3
        assert p.end_dates() == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
        assert p.start_dates() == [date(2024, 1, 15), date(2024, 2, 1), date(2024, 3, 1)]
        assert p.before.end == date(2024, 1, 14)
        assert p.align(date(2024, 2, 3)) == date(2024, 2, 29)
        assert p.align(date(2023, 12, 1)) == date(2024, 1, 14)
        assert p.align(date(2024, 4, 1)) is None
        assert p.index(date(2024, 3, 31)) == 3
        assert p.index(date(2020, 1, 1)) == 0

    def test_last_keeps_trailing_periods(self):
        """Test that last drops the oldest periods into the before period."""
        p = Partition(Period(date(2024, 1, 15), date(2024, 3, 31)), Interval.MONTHLY, last=2)
        assert p.end_dates() == [date(2024, 2, 29), date(2024, 3, 31)]
        assert p.before.end == date(2024, 1, 31)
        assert p.align(date(2024, 1, 20)) == date(2024, 1, 31)

    def test_once(self):
        """Test that the once interval yields the span itself."""
        span = Period(date(2024, 1, 15), date(2024, 3, 31))
        p = Partition(span, Interval.ONCE)
        assert list(p) == [span]

    def test_empty_span(self):
        """Test a span that ends before it starts."""
        p = Partition(Period(date(2024, 2, 1), date(2024, 1, 1)), Interval.MONTHLY)
        assert len(p) == 0
        assert p.before.end == date(2024, 1, 1)

    @given(
        st.dates(min_value=date(1990, 1, 1), max_value=date(2030, 12, 31)),
        st.integers(min_value=0, max_value=800),
        st.sampled_from(STEPPED),
    )
    def test_partition_covers_span(self, start, length, interval):
        """Test that partitions are contiguous, cover the span and align inside it."""
        span = Period(start, start + timedelta(days=length))
        p = Partition(span, interval)
        periods = list(p)
        assert periods[0].start == span.start
        assert periods[-1].end == span.end
        for a, b in zip(periods, periods[1:]):
            assert a.end + timedelta(days=1) == b.start
        for period in periods[:-1]:
            assert period.end == end_of(period.end, interval)
        d = span.start
        while d <= span.end:
            end = p.align(d)
            assert end is not None and end >= d
            assert p.periods[p.index(d)].contains(d)
            d += timedelta(days=max(1, length // 25))
