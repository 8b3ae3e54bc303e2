"""
Aggregate tables: bucket completeness, gap filling and counting rules
"""
from datetime import date, timedelta

import pytest

from catflap.models.presence import Period, PresenceState, split_events
from catflap.modules.presence import aggregators
from catflap.modules.presence.aggregators import DailyStat, find_incomplete_days
from catflap.modules.presence.periods import reconstruct_periods
from helpers import make_event, utc

CET = timedelta(hours=1)
UTC = timedelta(0)


class TestDailyStats:

    def test_every_day_present_and_fully_unknown_without_events(self):
        rows = aggregators.daily_stats([], [], date(2025, 1, 1), date(2025, 1, 5), CET)

        assert [r.date for r in rows] == [date(2025, 1, d) for d in range(1, 6)]
        for row in rows:
            assert (row.hours_inside, row.hours_outside, row.hours_unknown) == (0.0, 0.0, 24.0)
            assert (row.entries, row.exits) == (0, 0)

    def test_gap_is_filled_with_unknown(self):
        # inside 08:00-12:00 local, nothing else known that day
        events = [make_event(utc(2025, 1, 1, 7), "in"), make_event(utc(2025, 1, 1, 11), "out")]
        periods = reconstruct_periods(events)

        [row] = aggregators.daily_stats(events, periods, date(2025, 1, 1), date(2025, 1, 1), CET)

        assert row.hours_inside == pytest.approx(4.0)
        assert row.hours_outside == 0.0
        assert row.hours_unknown == pytest.approx(20.0)
        assert (row.entries, row.exits) == (1, 1)

    def test_fully_covered_day_gets_no_filler(self):
        periods = [
            Period(utc(2024, 12, 31, 23), utc(2025, 1, 1, 11), PresenceState.inside),
            Period(utc(2025, 1, 1, 11), utc(2025, 1, 1, 23), PresenceState.outside),
        ]

        [row] = aggregators.daily_stats([], periods, date(2025, 1, 1), date(2025, 1, 1), CET)

        assert (row.hours_inside, row.hours_outside, row.hours_unknown) == (12.0, 12.0, 0.0)

    def test_period_spanning_midnight_is_apportioned(self):
        events = [make_event(utc(2025, 1, 1, 20), "out"), make_event(utc(2025, 1, 2, 3), "in")]
        periods = reconstruct_periods(events)

        rows = aggregators.daily_stats(events, periods, date(2025, 1, 1), date(2025, 1, 2), CET)

        assert rows[0].hours_outside == pytest.approx(3.0)
        assert rows[1].hours_outside == pytest.approx(4.0)
        assert find_incomplete_days(rows) == []

    def test_events_counted_on_their_local_day(self):
        late_exit = make_event(utc(2025, 1, 1, 23, 30), "out")  # 00:30 on Jan 2 locally

        rows = aggregators.daily_stats([late_exit], [], date(2025, 1, 1), date(2025, 1, 2), CET)

        assert rows[0].exits == 0
        assert rows[1].exits == 1


class TestHourlyDistribution:

    def test_all_hours_present(self):
        rows = aggregators.hourly_distribution([], [], CET)

        assert [r.hour for r in rows] == list(range(24))
        assert all(r.hours_inside == r.hours_outside == r.hours_unknown == 0.0 for r in rows)

    def test_hours_and_counts_by_local_hour(self):
        events = [make_event(utc(2025, 1, 1, 6, 30), "in"), make_event(utc(2025, 1, 1, 8), "out")]
        periods = reconstruct_periods(events)

        rows = aggregators.hourly_distribution(events, periods, CET)

        assert rows[7].hours_inside == pytest.approx(0.5)
        assert rows[8].hours_inside == pytest.approx(1.0)
        assert rows[7].entries == 1
        assert rows[9].exits == 1
        assert sum(r.hours_inside for r in rows) == pytest.approx(1.5)


class TestMonthlyDistribution:

    def test_months_of_year_fold_across_years(self):
        events = [
            make_event(utc(2024, 3, 10, 8), "in"),
            make_event(utc(2024, 3, 10, 10), "out"),
            make_event(utc(2025, 3, 10, 8), "in"),
            make_event(utc(2025, 3, 10, 11), "out"),
        ]
        valid = split_events(events).valid_events
        periods = [p for p in reconstruct_periods(valid) if p.state is PresenceState.inside]

        rows = aggregators.monthly_distribution(valid, periods, UTC)

        assert [r.month for r in rows] == list(range(1, 13))
        assert rows[2].hours_inside == pytest.approx(5.0)
        assert (rows[2].entries, rows[2].exits) == (2, 2)
        assert rows[3].entries == 0


class TestMonthlyTables:

    def test_time_series_sums_daily_rows(self):
        rows = [
            DailyStat(date(2025, 1, 31), 1.1, 2.2, 20.7, 0, 0),
            DailyStat(date(2025, 2, 1), 3.3, 4.4, 16.3, 0, 0),
            DailyStat(date(2025, 2, 2), 0.1, 0.2, 23.7, 0, 0),
        ]

        series = aggregators.monthly_time_series(rows, date(2025, 1, 31), date(2025, 2, 2))

        assert [m.month for m in series] == ["2025-01", "2025-02"]
        assert series[1].hours_inside == sum(r.hours_inside for r in rows[1:])
        assert series[1].hours_unknown == sum(r.hours_unknown for r in rows[1:])

    def test_activity_has_every_month_in_range(self):
        events = [make_event(utc(2025, 3, 5, 8), "in"), make_event(utc(2025, 3, 5, 9), "out")]

        rows = aggregators.monthly_activity(events, date(2025, 1, 1), date(2025, 3, 31), CET)

        assert [(r.month, r.entries, r.exits) for r in rows] == [
            ("2025-01", 0, 0), ("2025-02", 0, 0), ("2025-03", 1, 1)
        ]

    def test_prey_counts_include_invalid_direction(self):
        events = [
            make_event(utc(2025, 1, 5, 8), "in", prey=True),
            make_event(utc(2025, 1, 6, 8), "invalid", prey=True),
            make_event(utc(2025, 1, 7, 8), "out"),
            make_event(utc(2025, 1, 31, 23, 30), "in", prey=True),  # February locally
        ]

        rows = aggregators.monthly_prey_counts(events, date(2025, 1, 1), date(2025, 2, 28), CET)

        assert [(r.month, r.prey_count) for r in rows] == [("2025-01", 2), ("2025-02", 1)]
