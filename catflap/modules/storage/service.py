"""
Event store - ordered persistence of presence events
"""
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from catflap.models.events import EventRecord
from catflap.models.presence import Event

logger = logging.getLogger(__name__)


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


class EventStore:
    """
    Single-writer store of presence events.

    Events come back ascending by timestamp, ties in insertion order.
    save_events() replaces the whole list in one transaction, so a reader
    sees either the previous list or the new one, never a mix.
    """

    def __init__(self, db: Session):
        self.db = db

    def _ordered(self):
        return self.db.query(EventRecord)\
            .order_by(EventRecord.timestamp, EventRecord.position)

    def load_events(self) -> List[Event]:
        """All stored events (empty list when nothing is stored)"""
        return [record.to_event() for record in self._ordered().all()]

    def get_events_by_date_range(self, start: datetime, end: datetime) -> List[Event]:
        """Events with start <= timestamp <= end"""
        records = self._ordered()\
            .filter(EventRecord.timestamp >= _naive_utc(start))\
            .filter(EventRecord.timestamp <= _naive_utc(end))\
            .all()
        return [record.to_event() for record in records]

    def has_timestamp(self, timestamp: datetime) -> bool:
        """Whether an event at exactly this instant is already stored"""
        return self.db.query(EventRecord.id)\
            .filter(EventRecord.timestamp == _naive_utc(timestamp))\
            .first() is not None

    def save_events(self, events: Iterable[Event]):
        """Replace the stored list with events, kept in the given order"""
        events = list(events)
        try:
            self.db.query(EventRecord).delete(synchronize_session='evaluate')
            self.db.add_all(
                EventRecord.from_event(event, position)
                for position, event in enumerate(events)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Saved {len(events)} events")

    def add_event(self, event: Event):
        """Append one event after everything stored so far"""
        try:
            last = self.db.query(func.max(EventRecord.position)).scalar()
            position = 0 if last is None else last + 1
            self.db.add(EventRecord.from_event(event, position))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.debug(f"Stored event {event.id} ({event.direction.value}) at {event.timestamp}")

    def import_events(self, payload) -> int:
        """
        Replace the stored list with events given in their JSON shape.

        Every entry is parsed and ids are checked for uniqueness before the
        store is touched; any bad entry aborts the whole import.

        Raises:
            InvalidTimestampError: If any timestamp cannot be parsed
            ValueError: If an entry is malformed or an id repeats

        Returns:
            Number of events imported
        """
        if not isinstance(payload, list):
            raise ValueError("Expected a list of events")
        events = [Event.from_dict(item) for item in payload]

        seen = set()
        for event in events:
            if event.id in seen:
                raise ValueError(f"Duplicate event id {event.id!r}")
            seen.add(event.id)

        self.save_events(sorted(events, key=lambda e: e.timestamp))
        return len(events)

    def export_json(self, path: str) -> int:
        """
        Write all events to a JSON file, replacing it atomically.

        Returns:
            Number of events written
        """
        events = self.load_events()
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump([e.to_dict() for e in events], fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return len(events)

    def import_json(self, path: str) -> int:
        """Replace the stored list with the events of a JSON file (see import_events)"""
        with open(path, encoding='utf-8') as fh:
            payload = json.load(fh)
        return self.import_events(payload)
