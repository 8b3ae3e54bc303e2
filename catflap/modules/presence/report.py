"""
Report data assembly - folds periods and aggregates into one structure
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence

from catflap.models.presence import Direction, Event, Period, split_events
from catflap.modules.presence import aggregators
from catflap.modules.presence.aggregators import (
    DailyStat,
    HourlyStat,
    MonthlyActivity,
    MonthlyHours,
    MonthlyPreyCount,
    MonthlyStat,
)
from catflap.modules.presence.periods import reconstruct_periods

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportData:
    start_date: date
    end_date: date
    events: List[Event]             # most recent first, possibly capped
    periods: List[Period]
    total_time_inside: float
    total_time_outside: float
    total_time_unknown: float
    total_entries: int
    total_exits: int
    total_prey: int
    daily_stats: List[DailyStat]
    hourly_distribution: List[HourlyStat]
    monthly_distribution: List[MonthlyStat]
    monthly_time_series: List[MonthlyHours]
    monthly_activity: List[MonthlyActivity]
    monthly_prey_counts: List[MonthlyPreyCount]


def assemble_report(events: Sequence[Event], start_day: date, end_day: date,
                    offset: timedelta, event_limit: Optional[int] = None) -> ReportData:
    """
    Build every view of a date range from its events.

    Args:
        events: Events of the range, in storage order
        start_day: First local day of the report
        end_day: Last local day of the report (inclusive)
        offset: Local UTC offset for all calendar grouping
        event_limit: Cap on the display event list, None for no cap

    Returns:
        ReportData whose totals are the sums of its daily table

    Raises:
        ValueError: If end_day is before start_day
    """
    if end_day < start_day:
        raise ValueError(f"Report end {end_day} is before start {start_day}")

    all_events, valid_events = split_events(events)
    periods = reconstruct_periods(valid_events)

    daily = aggregators.daily_stats(valid_events, periods, start_day, end_day, offset)
    for row in aggregators.find_incomplete_days(daily):
        logger.warning(f"Day {row.date} adds up to {row.hours_total:.3f}h instead of 24h")

    display = list(reversed(all_events))
    if event_limit is not None:
        display = display[:event_limit]

    return ReportData(
        start_date=start_day,
        end_date=end_day,
        events=display,
        periods=periods,
        # Totals come from the gap-filled daily table, not from the periods
        total_time_inside=sum(row.hours_inside for row in daily),
        total_time_outside=sum(row.hours_outside for row in daily),
        total_time_unknown=sum(row.hours_unknown for row in daily),
        total_entries=sum(1 for e in valid_events if e.direction is Direction.IN),
        total_exits=sum(1 for e in valid_events if e.direction is Direction.OUT),
        total_prey=sum(1 for e in all_events if e.prey),
        daily_stats=daily,
        hourly_distribution=aggregators.hourly_distribution(valid_events, periods, offset),
        monthly_distribution=aggregators.monthly_distribution(valid_events, periods, offset),
        monthly_time_series=aggregators.monthly_time_series(daily, start_day, end_day),
        monthly_activity=aggregators.monthly_activity(valid_events, start_day, end_day, offset),
        monthly_prey_counts=aggregators.monthly_prey_counts(all_events, start_day, end_day, offset),
    )
