"""
Presence period reconstruction from ordered events
"""
from typing import List, Sequence

from catflap.models.presence import Direction, Event, Period, PresenceState


def infer_state(first: Event, second: Event) -> PresenceState:
    """State between two consecutive valid events"""
    if first.direction is Direction.IN and second.direction is Direction.OUT:
        return PresenceState.inside
    if first.direction is Direction.OUT and second.direction is Direction.IN:
        return PresenceState.outside
    # in->in or out->out: a detection was missed or fired twice
    return PresenceState.unknown


def reconstruct_periods(valid_events: Sequence[Event]) -> List[Period]:
    """
    Turn time-ordered valid events into one period per adjacent pair.

    Args:
        valid_events: Events ascending by timestamp, invalid ones removed

    Returns:
        len(valid_events) - 1 periods, or an empty list for fewer than two
        events
    """
    return [
        Period(start=current.timestamp, end=following.timestamp,
               state=infer_state(current, following))
        for current, following in zip(valid_events, valid_events[1:])
    ]
