"""
Calendar splitting in a fixed local offset.

Every boundary (day, hour, month) is taken from the local calendar fields of
the shifted instant, then expressed as an aware datetime in that same fixed
zone, so comparisons against UTC instants stay exact. There is no DST: the
offset applies uniformly to the whole year.
"""
from __future__ import annotations

import enum
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Tuple, Union

BucketKey = Union[date, int, str]


class Grid(enum.Enum):
    """Bucket granularity"""
    DAY = "day"
    HOUR = "hour"
    MONTH = "month"


def local_zone(offset: timedelta) -> timezone:
    """Fixed-offset tzinfo for the local calendar"""
    return timezone(offset)


def to_local(t: datetime, offset: timedelta) -> datetime:
    return t.astimezone(local_zone(offset))


def local_day(t: datetime, offset: timedelta) -> date:
    return to_local(t, offset).date()


def local_hour(t: datetime, offset: timedelta) -> int:
    return to_local(t, offset).hour


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_key(t: datetime, offset: timedelta) -> str:
    """YYYY-MM of the local month containing t"""
    local = to_local(t, offset)
    return format_month(local.year, local.month)


def _bucket_start(local: datetime, grid: Grid) -> datetime:
    if grid is Grid.DAY:
        return local.replace(hour=0, minute=0, second=0, microsecond=0)
    if grid is Grid.HOUR:
        return local.replace(minute=0, second=0, microsecond=0)
    return local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _next_bucket(bucket_start: datetime, grid: Grid) -> datetime:
    if grid is Grid.DAY:
        return bucket_start + timedelta(days=1)
    if grid is Grid.HOUR:
        return bucket_start + timedelta(hours=1)
    if bucket_start.month == 12:
        return bucket_start.replace(year=bucket_start.year + 1, month=1)
    return bucket_start.replace(month=bucket_start.month + 1)


def _bucket_key(bucket_start: datetime, grid: Grid) -> BucketKey:
    if grid is Grid.DAY:
        return bucket_start.date()
    if grid is Grid.HOUR:
        return bucket_start.hour
    return format_month(bucket_start.year, bucket_start.month)


def split_interval(start: datetime, end: datetime, grid: Grid,
                   offset: timedelta) -> List[Tuple[BucketKey, float]]:
    """
    Apportion [start, end) across the buckets of a grid.

    Args:
        start: Aware start instant
        end: Aware end instant
        grid: Day, hour or month buckets
        offset: Local UTC offset the buckets are aligned to

    Returns:
        (bucket key, overlap hours) for every bucket with positive overlap,
        in time order. Keys are dates for DAY, local hour 0-23 for HOUR and
        "YYYY-MM" for MONTH. Empty when start >= end.
    """
    if start >= end:
        return []

    contributions = []
    bucket = _bucket_start(to_local(start, offset), grid)
    while bucket < end:
        following = _next_bucket(bucket, grid)
        overlap_start = max(start, bucket)
        overlap_end = min(end, following)
        if overlap_start < overlap_end:
            hours = (overlap_end - overlap_start).total_seconds() / 3600.0
            contributions.append((_bucket_key(bucket, grid), hours))
        bucket = following
    return contributions


def days_in_range(start_day: date, end_day: date) -> List[date]:
    """Every calendar day from start_day to end_day inclusive"""
    return [start_day + timedelta(days=i) for i in range((end_day - start_day).days + 1)]


def months_in_range(start_day: date, end_day: date) -> List[str]:
    """Every YYYY-MM touched by [start_day, end_day]"""
    months = []
    year, month = start_day.year, start_day.month
    while (year, month) <= (end_day.year, end_day.month):
        months.append(format_month(year, month))
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return months


def range_bounds(start_day: date, end_day: date,
                 offset: timedelta) -> Tuple[datetime, datetime]:
    """
    Absolute instants covering whole local days.

    Returns:
        (local midnight of start_day, local 23:59:59.999 of end_day) as
        aware UTC datetimes
    """
    zone = local_zone(offset)
    start = datetime.combine(start_day, time.min, tzinfo=zone)
    end = datetime.combine(end_day, time(23, 59, 59, 999000), tzinfo=zone)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
