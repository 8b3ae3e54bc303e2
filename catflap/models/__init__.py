"""Database and domain models"""
from catflap.models.events import Base, EventRecord
from catflap.models.presence import (
    Direction, Event, EventViews, InvalidTimestampError, Period, PresenceState
)

__all__ = [
    'Base', 'EventRecord', 'Direction', 'Event', 'EventViews',
    'InvalidTimestampError', 'Period', 'PresenceState'
]
