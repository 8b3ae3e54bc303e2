"""
Presence report API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import List, Optional

from catflap.core import config
from catflap.core.database import get_db
from catflap.models.presence import Direction, PresenceState
from catflap.modules.presence.service import PresenceReportModule, default_week_range
from pydantic import BaseModel

router = APIRouter(prefix="/api/reports", tags=["reports"])


# Response models
class ReportEventResponse(BaseModel):
    id: str
    timestamp: datetime
    direction: Direction
    confidence: float
    prey: bool
    image_file: Optional[str]

    class Config:
        from_attributes = True


class PeriodResponse(BaseModel):
    start: datetime
    end: datetime
    state: PresenceState
    duration_hours: float

    class Config:
        from_attributes = True


class DailyStatResponse(BaseModel):
    date: date
    hours_inside: float
    hours_outside: float
    hours_unknown: float
    entries: int
    exits: int

    class Config:
        from_attributes = True


class HourlyStatResponse(BaseModel):
    hour: int
    hours_inside: float
    hours_outside: float
    hours_unknown: float
    entries: int
    exits: int

    class Config:
        from_attributes = True


class MonthlyStatResponse(BaseModel):
    month: int
    hours_inside: float
    hours_outside: float
    hours_unknown: float
    entries: int
    exits: int

    class Config:
        from_attributes = True


class MonthlyHoursResponse(BaseModel):
    month: str
    hours_inside: float
    hours_outside: float
    hours_unknown: float

    class Config:
        from_attributes = True


class MonthlyActivityResponse(BaseModel):
    month: str
    entries: int
    exits: int

    class Config:
        from_attributes = True


class MonthlyPreyCountResponse(BaseModel):
    month: str
    prey_count: int

    class Config:
        from_attributes = True


class ReportResponse(BaseModel):
    start_date: date
    end_date: date
    events: List[ReportEventResponse]
    periods: List[PeriodResponse]
    total_time_inside: float
    total_time_outside: float
    total_time_unknown: float
    total_entries: int
    total_exits: int
    total_prey: int
    daily_stats: List[DailyStatResponse]
    hourly_distribution: List[HourlyStatResponse]
    monthly_distribution: List[MonthlyStatResponse]
    monthly_time_series: List[MonthlyHoursResponse]
    monthly_activity: List[MonthlyActivityResponse]
    monthly_prey_counts: List[MonthlyPreyCountResponse]

    class Config:
        from_attributes = True


# Endpoints
@router.get("", response_model=ReportResponse)
def get_report(start: Optional[date] = None, end: Optional[date] = None,
               db: Session = Depends(get_db)):
    """Presence report for whole days start..end (default: current week)"""
    if start is None and end is None:
        start, end = default_week_range(datetime.now(tz=config.local_zone()).date())
    elif start is None or end is None:
        raise HTTPException(status_code=400, detail="Provide both start and end, or neither")

    module = PresenceReportModule(db, config.local_offset(), config.REPORT_EVENT_LIMIT)
    try:
        report = module.generate_report_data(start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ReportResponse.model_validate(report)
