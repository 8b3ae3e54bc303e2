"""
Event table - persistent form of the presence events
"""
from sqlalchemy import Column, String, Integer, Float, DateTime, Boolean, Text, Enum
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

from catflap.models.presence import Direction, Event

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class EventRecord(Base):
    """Stored presence event (timestamps kept as naive UTC)"""
    __tablename__ = 'presence_events'

    id = Column(String(64), primary_key=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    direction = Column(
        Enum(Direction, values_callable=lambda e: [m.value for m in e], name='direction'),
        nullable=False
    )
    confidence = Column(Float, nullable=False, default=0.0)

    # Secondary observation, independent of direction
    prey = Column(Boolean, nullable=False, default=False)

    # Classification evidence
    raw_text = Column(Text, nullable=True)
    image_file = Column(String(255), nullable=True)

    # Insertion order, breaks ties between equal timestamps
    position = Column(Integer, nullable=False, index=True)

    # Metadata
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<EventRecord(id={self.id}, direction={self.direction.value}, time={self.timestamp})>"

    def to_event(self) -> Event:
        """Convert to the immutable domain event"""
        return Event(
            id=self.id,
            timestamp=self.timestamp.replace(tzinfo=timezone.utc),
            direction=self.direction,
            confidence=self.confidence,
            prey=bool(self.prey),
            raw_text=self.raw_text,
            image_file=self.image_file,
        )

    @classmethod
    def from_event(cls, event: Event, position: int) -> "EventRecord":
        return cls(
            id=event.id,
            timestamp=event.timestamp.astimezone(timezone.utc).replace(tzinfo=None),
            direction=event.direction,
            confidence=event.confidence,
            prey=event.prey,
            raw_text=event.raw_text,
            image_file=event.image_file,
            position=position,
        )
