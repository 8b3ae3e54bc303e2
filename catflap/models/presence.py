"""
Presence domain records - events as observed and periods derived from them
"""
from __future__ import annotations

import enum
import random
import re
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional


class Direction(enum.Enum):
    """Direction read from the cat flap camera overlay"""
    IN = "in"
    OUT = "out"
    INVALID = "invalid"     # OCR could not classify the image


class PresenceState(enum.Enum):
    """Where the cat was between two consecutive events"""
    inside = "inside"
    outside = "outside"
    unknown = "unknown"     # same direction twice in a row


class InvalidTimestampError(ValueError):
    """Raised when a stored or submitted timestamp cannot be parsed"""


_FRACTION = re.compile(r'(T\d{2}:\d{2}:\d{2})\.(\d+)')


def _six_digit_fraction(match) -> str:
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


def parse_timestamp(text: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing "Z" or an explicit offset. Naive strings are taken
    as UTC.

    Raises:
        InvalidTimestampError: If the text is not a valid timestamp
    """
    if not isinstance(text, str):
        raise InvalidTimestampError(f"Timestamp must be a string, got {text!r}")
    s = text.strip()
    if s.endswith(('Z', 'z')):
        s = s[:-1] + '+00:00'
    # fromisoformat on 3.10 only takes 3 or 6 fraction digits
    s = _FRACTION.sub(_six_digit_fraction, s, count=1)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as exc:
        raise InvalidTimestampError(f"Invalid timestamp: {text!r}") from exc
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and 'Z'"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    if dt.microsecond % 1000:
        return dt.strftime('%Y-%m-%dT%H:%M:%S.%fZ')
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def generate_event_id() -> str:
    """Unique event id: evt_<epoch ms>_<7 random base36 chars>"""
    alphabet = string.digits + string.ascii_lowercase
    suffix = ''.join(random.choices(alphabet, k=7))
    return f"evt_{int(time.time() * 1000)}_{suffix}"


@dataclass(frozen=True)
class Event:
    """
    One observation of the cat passing the flap.

    Attributes:
        id: Opaque unique id assigned at ingestion
        timestamp: Aware UTC instant of the observation
        direction: in / out / invalid
        confidence: Classifier confidence in [0, 1], advisory only
        prey: Prey observed (independent of direction), defaults to False
        raw_text: OCR text the classification was based on, if kept
        image_file: File name of the stored image, if kept
    """
    id: str
    timestamp: datetime
    direction: Direction
    confidence: float
    prey: bool = False
    raw_text: Optional[str] = None
    image_file: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.direction is not Direction.INVALID

    def to_dict(self) -> dict:
        """JSON shape used by the event store export and the API"""
        data = {
            'id': self.id,
            'timestamp': format_timestamp(self.timestamp),
            'direction': self.direction.value,
            'confidence': self.confidence,
            'prey': self.prey,
        }
        if self.raw_text is not None:
            data['rawText'] = self.raw_text
        if self.image_file is not None:
            data['imageFile'] = self.image_file
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        """
        Build an event from its JSON shape.

        Older files carry neither prey nor rawText; both default.

        Raises:
            InvalidTimestampError: If the timestamp is unparsable
            ValueError: If the direction or another field is malformed
        """
        try:
            direction = Direction(data['direction'])
            prey = data.get('prey', False)
            if not isinstance(prey, bool):
                raise ValueError(f"Field 'prey' must be true or false, got {prey!r}")
            return cls(
                id=str(data['id']),
                timestamp=parse_timestamp(data['timestamp']),
                direction=direction,
                confidence=float(data.get('confidence', 0.0)),
                prey=prey,
                raw_text=data.get('rawText'),
                image_file=data.get('imageFile'),
            )
        except KeyError as exc:
            raise ValueError(f"Event is missing field {exc.args[0]!r}") from exc
        except TypeError as exc:
            raise ValueError(f"Malformed event: {data!r}") from exc


class EventViews(NamedTuple):
    """Both views of one event range"""
    all_events: List[Event]
    valid_events: List[Event]


def split_events(events) -> EventViews:
    """
    Order events by timestamp and separate out the classifiable ones.

    The sort is stable, so events sharing a timestamp keep their
    insertion order. Invalid events stay in all_events (display, prey
    counts) but never reach period reconstruction or entry/exit counts.
    """
    ordered = sorted(events, key=lambda e: e.timestamp)
    valid = [e for e in ordered if e.is_valid]
    return EventViews(all_events=ordered, valid_events=valid)


@dataclass(frozen=True)
class Period:
    """Closed interval between two consecutive valid events"""
    start: datetime
    end: datetime
    state: PresenceState

    @property
    def duration_hours(self) -> float:
        return max(0.0, (self.end - self.start).total_seconds() / 3600.0)

    def to_dict(self) -> dict:
        return {
            'start': format_timestamp(self.start),
            'end': format_timestamp(self.end),
            'state': self.state.value,
            'durationHours': self.duration_hours,
        }
