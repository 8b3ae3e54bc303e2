"""
Capture Module - records one event per photo from the cat flap camera
"""
import logging
import os
from datetime import datetime, timezone
from typing import Callable, Optional
from sqlalchemy.orm import Session

from catflap.models.presence import Event, generate_event_id
from catflap.modules.classifier.service import OcrResult
from catflap.modules.storage.service import EventStore

logger = logging.getLogger(__name__)

Classifier = Callable[[bytes], OcrResult]


class CaptureModule:
    """
    Live ingestion path.

    Each photo is classified and stored as an event together with its image,
    so later rescans can re-read it. Unclassifiable photos are still stored
    with direction "invalid"; photos the classifier fails on are dropped.
    """

    def __init__(self, db: Session, classify: Classifier, images_dir: str):
        self.store = EventStore(db)
        self.classify = classify
        self.images_dir = images_dir

    def record_capture(self, image_bytes: bytes,
                       timestamp: Optional[datetime] = None) -> Optional[Event]:
        """
        Classify a photo and store the resulting event.

        Args:
            image_bytes: Encoded image as received
            timestamp: When the photo was taken, now if omitted

        Returns:
            The stored event, or None when nothing was recorded
        """
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        if self.store.has_timestamp(timestamp):
            logger.info(f"Skipping duplicate capture at {timestamp.isoformat()}")
            return None

        try:
            result = self.classify(image_bytes)
        except Exception as e:
            logger.error(f"Error classifying photo from {timestamp.isoformat()}: {e}", exc_info=True)
            return None

        event_id = generate_event_id()
        event = Event(
            id=event_id,
            timestamp=timestamp,
            direction=result.direction,
            confidence=result.confidence,
            prey=result.prey,
            raw_text=result.raw_text,
            image_file=self._save_image(event_id, image_bytes),
        )

        self.store.add_event(event)
        logger.info(
            f"Recorded {event.direction.value} event at {event.timestamp.isoformat()}"
            f"{' (prey)' if event.prey else ''}"
        )
        return event

    def _save_image(self, event_id: str, image_bytes: bytes) -> str:
        os.makedirs(self.images_dir, exist_ok=True)
        filename = f"{event_id}.jpg"
        with open(os.path.join(self.images_dir, filename), 'wb') as fh:
            fh.write(image_bytes)
        return filename
