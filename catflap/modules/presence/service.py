"""
Presence Report Module - loads a date range and builds its report data
"""
import logging
from datetime import date, timedelta
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from catflap.modules.presence.calendar import range_bounds
from catflap.modules.presence.report import ReportData, assemble_report
from catflap.modules.storage.service import EventStore

logger = logging.getLogger(__name__)


def default_week_range(today: date) -> Tuple[date, date]:
    """Current week, Sunday through today"""
    days_since_sunday = (today.weekday() + 1) % 7
    return today - timedelta(days=days_since_sunday), today


class PresenceReportModule:
    """
    Report generation over the stored event snapshot.

    Every call reads the store once and recomputes periods and tables from
    scratch; nothing derived is persisted.
    """

    def __init__(self, db: Session, local_offset: timedelta, event_limit: Optional[int] = None):
        self.store = EventStore(db)
        self.local_offset = local_offset
        self.event_limit = event_limit

    def generate_report_data(self, start_day: date, end_day: date) -> ReportData:
        """
        Build the report for whole local days start_day..end_day.

        Raises:
            ValueError: If end_day is before start_day
        """
        if end_day < start_day:
            raise ValueError(f"Report end {end_day} is before start {start_day}")

        start, end = range_bounds(start_day, end_day, self.local_offset)
        events = self.store.get_events_by_date_range(start, end)
        report = assemble_report(events, start_day, end_day, self.local_offset, self.event_limit)

        logger.info(f"Report {report.start_date} to {report.end_date}: {len(events)} events")
        logger.info(f"Entries: {report.total_entries}, exits: {report.total_exits}")
        logger.info(
            f"Hours inside: {report.total_time_inside:.1f}, "
            f"outside: {report.total_time_outside:.1f}, "
            f"unknown: {report.total_time_unknown:.1f}"
        )
        return report
