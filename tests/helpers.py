"""
Shared builders for presence tests
"""
import itertools
from datetime import datetime, timezone

from catflap.models.presence import Direction, Event

_ids = itertools.count(1)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_event(timestamp: datetime, direction: str, prey: bool = False,
               event_id: str = None, image_file: str = None) -> Event:
    """Event with a fresh id unless one is given"""
    return Event(
        id=event_id or f"evt_test_{next(_ids)}",
        timestamp=timestamp,
        direction=Direction(direction),
        confidence=0.0 if direction == "invalid" else 0.9,
        prey=prey,
        image_file=image_file,
    )
