"""
Aggregate views over periods and events.

Each table is keyed over its whole domain before anything is added, so empty
buckets come out as explicit zeros. Entry/exit counts only ever look at valid
events; prey counts look at every event.
"""
from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple

from catflap.models.presence import Direction, Event, Period, PresenceState
from catflap.modules.presence.calendar import (
    Grid,
    days_in_range,
    local_day,
    local_hour,
    month_key,
    months_in_range,
    split_interval,
)

HOURS_PER_DAY = 24.0

# Floating-point slack before a day counts as short of 24 hours
GAP_EPSILON = 0.01


@dataclass(frozen=True)
class DailyStat:
    date: date
    hours_inside: float
    hours_outside: float
    hours_unknown: float
    entries: int
    exits: int

    @property
    def hours_total(self) -> float:
        return self.hours_inside + self.hours_outside + self.hours_unknown


@dataclass(frozen=True)
class HourlyStat:
    hour: int
    hours_inside: float
    hours_outside: float
    hours_unknown: float
    entries: int
    exits: int


@dataclass(frozen=True)
class MonthlyStat:
    """Month-of-year (1-12) summed over every year in range"""
    month: int
    hours_inside: float
    hours_outside: float
    hours_unknown: float
    entries: int
    exits: int


@dataclass(frozen=True)
class MonthlyHours:
    month: str      # YYYY-MM
    hours_inside: float
    hours_outside: float
    hours_unknown: float


@dataclass(frozen=True)
class MonthlyActivity:
    month: str
    entries: int
    exits: int


@dataclass(frozen=True)
class MonthlyPreyCount:
    month: str
    prey_count: int


def _state_hours(periods: Iterable[Period], grid: Grid,
                 offset: timedelta) -> Dict[object, Dict[PresenceState, float]]:
    """Sum split contributions per (bucket, state)"""
    totals = defaultdict(lambda: dict.fromkeys(PresenceState, 0.0))
    for period in periods:
        for key, hours in split_interval(period.start, period.end, grid, offset):
            totals[key][period.state] += hours
    return totals


def _direction_counts(events: Iterable[Event], key_of) -> Tuple[Counter, Counter]:
    entries, exits = Counter(), Counter()
    for event in events:
        if event.direction is Direction.IN:
            entries[key_of(event)] += 1
        elif event.direction is Direction.OUT:
            exits[key_of(event)] += 1
    return entries, exits


def daily_stats(valid_events: Sequence[Event], periods: Sequence[Period],
                start_day: date, end_day: date, offset: timedelta) -> List[DailyStat]:
    """
    Hours per state and entry/exit counts for every local day in range.

    Time no period covers is booked as unknown, so every row sums to 24h.
    """
    hours = _state_hours(periods, Grid.DAY, offset)
    entries, exits = _direction_counts(valid_events, lambda e: local_day(e.timestamp, offset))

    rows = []
    for day in days_in_range(start_day, end_day):
        by_state = hours.get(day, dict.fromkeys(PresenceState, 0.0))
        inside = by_state[PresenceState.inside]
        outside = by_state[PresenceState.outside]
        unknown = by_state[PresenceState.unknown]

        missing = HOURS_PER_DAY - (inside + outside + unknown)
        if missing > GAP_EPSILON:
            unknown += missing

        rows.append(DailyStat(
            date=day,
            hours_inside=inside,
            hours_outside=outside,
            hours_unknown=unknown,
            entries=entries[day],
            exits=exits[day],
        ))
    return rows


def hourly_distribution(valid_events: Sequence[Event], periods: Sequence[Period],
                        offset: timedelta) -> List[HourlyStat]:
    """Hour-of-day profile (0-23) summed across the whole range"""
    hours = _state_hours(periods, Grid.HOUR, offset)
    entries, exits = _direction_counts(valid_events, lambda e: local_hour(e.timestamp, offset))

    rows = []
    for hour in range(24):
        by_state = hours.get(hour, dict.fromkeys(PresenceState, 0.0))
        rows.append(HourlyStat(
            hour=hour,
            hours_inside=by_state[PresenceState.inside],
            hours_outside=by_state[PresenceState.outside],
            hours_unknown=by_state[PresenceState.unknown],
            entries=entries[hour],
            exits=exits[hour],
        ))
    return rows


def monthly_distribution(valid_events: Sequence[Event], periods: Sequence[Period],
                         offset: timedelta) -> List[MonthlyStat]:
    """Month-of-year profile (1-12), the seasonal view"""
    by_month = defaultdict(lambda: dict.fromkeys(PresenceState, 0.0))
    for key, by_state in _state_hours(periods, Grid.MONTH, offset).items():
        month = int(key[5:])
        for state, value in by_state.items():
            by_month[month][state] += value
    entries, exits = _direction_counts(
        valid_events, lambda e: int(month_key(e.timestamp, offset)[5:])
    )

    rows = []
    for month in range(1, 13):
        by_state = by_month.get(month, dict.fromkeys(PresenceState, 0.0))
        rows.append(MonthlyStat(
            month=month,
            hours_inside=by_state[PresenceState.inside],
            hours_outside=by_state[PresenceState.outside],
            hours_unknown=by_state[PresenceState.unknown],
            entries=entries[month],
            exits=exits[month],
        ))
    return rows


def monthly_time_series(daily: Sequence[DailyStat], start_day: date,
                        end_day: date) -> List[MonthlyHours]:
    """
    Hours per state for every YYYY-MM in range, summed from the daily rows.

    Built from the gap-filled daily table rather than from the periods, so
    each month reconciles exactly with its days.
    """
    rows_by_month = defaultdict(list)
    for row in daily:
        rows_by_month[f"{row.date.year:04d}-{row.date.month:02d}"].append(row)

    series = []
    for month in months_in_range(start_day, end_day):
        rows = rows_by_month.get(month, [])
        series.append(MonthlyHours(
            month=month,
            hours_inside=sum(r.hours_inside for r in rows),
            hours_outside=sum(r.hours_outside for r in rows),
            hours_unknown=sum(r.hours_unknown for r in rows),
        ))
    return series


def monthly_activity(valid_events: Sequence[Event], start_day: date, end_day: date,
                     offset: timedelta) -> List[MonthlyActivity]:
    entries, exits = _direction_counts(valid_events, lambda e: month_key(e.timestamp, offset))
    return [
        MonthlyActivity(month=month, entries=entries[month], exits=exits[month])
        for month in months_in_range(start_day, end_day)
    ]


def monthly_prey_counts(all_events: Sequence[Event], start_day: date, end_day: date,
                        offset: timedelta) -> List[MonthlyPreyCount]:
    """Prey sightings per month, invalid-direction events included"""
    counts = Counter(month_key(e.timestamp, offset) for e in all_events if e.prey)
    return [
        MonthlyPreyCount(month=month, prey_count=counts[month])
        for month in months_in_range(start_day, end_day)
    ]


def find_incomplete_days(daily: Iterable[DailyStat],
                         epsilon: float = GAP_EPSILON) -> List[DailyStat]:
    """Rows whose hours do not add up to 24 (a splitting bug if non-empty)"""
    return [row for row in daily if abs(row.hours_total - HOURS_PER_DAY) > epsilon]
