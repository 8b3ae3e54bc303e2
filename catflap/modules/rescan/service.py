"""
Rescan Module - re-classifies stored events from their saved images
"""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple
from sqlalchemy.orm import Session

from catflap.models.presence import Event
from catflap.modules.classifier.service import OcrResult
from catflap.modules.storage.service import EventStore

logger = logging.getLogger(__name__)

Classifier = Callable[[bytes], OcrResult]


@dataclass(frozen=True)
class RescanResult:
    considered: int     # events in range with a readable image
    changed: int
    failed: int         # image reads or classifications that raised


class RescanModule:
    """
    Batch correction of stored classifications.

    Only direction and prey decide whether an event changed; a changed event
    also takes the new confidence and raw text. Id, timestamp and order are
    never touched. Images are read and classified in parallel, each task
    only touching its own event; the store is rewritten once at the end,
    and only when something changed.
    """

    def __init__(self, db: Session, classify: Classifier, images_dir: str, max_workers: int = 4):
        self.store = EventStore(db)
        self.classify = classify
        self.images_dir = images_dir
        self.max_workers = max(1, max_workers)

    def rescan(self, start: datetime, end: datetime) -> RescanResult:
        """
        Re-classify every event in [start, end] that has a stored image.

        Raises:
            FileNotFoundError: If the images directory does not exist
        """
        if not os.path.isdir(self.images_dir):
            raise FileNotFoundError(
                f"Images directory {self.images_dir} does not exist. No images to rescan."
            )

        events = self.store.load_events()
        by_id: Dict[str, Event] = {event.id: event for event in events}

        candidates = [e for e in events if start <= e.timestamp <= end and self._has_image(e)]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            outcomes = list(executor.map(self._classify_event, candidates))

        considered = changed = failed = 0
        for event, result in outcomes:
            if result is None:
                failed += 1
                continue
            considered += 1

            if event.direction is result.direction and event.prey == result.prey:
                continue

            by_id[event.id] = replace(
                event,
                direction=result.direction,
                confidence=result.confidence,
                prey=result.prey,
                raw_text=result.raw_text,
            )
            changed += 1
            logger.info(
                f"Updated event {event.id}: {event.direction.value}{' (prey)' if event.prey else ''}"
                f" -> {result.direction.value}{' (prey)' if result.prey else ''}"
            )

        if changed > 0:
            self.store.save_events(by_id.values())
            logger.info(f"Saved {changed} updated events")

        logger.info(f"Rescan finished: {considered} considered, {changed} changed, {failed} failed")
        return RescanResult(considered=considered, changed=changed, failed=failed)

    def _has_image(self, event: Event) -> bool:
        if not event.image_file:
            logger.info(f"Skipping event {event.id}: no image file")
            return False
        # plain file names only, never a path out of images_dir
        name = event.image_file
        if name in ('.', '..') or '/' in name or '\\' in name or os.path.basename(name) != name:
            logger.warning(f"Skipping event {event.id}: image file {name!r} is not a plain file name")
            return False
        if not os.path.isfile(os.path.join(self.images_dir, event.image_file)):
            logger.info(f"Skipping event {event.id}: image file not found")
            return False
        return True

    def _classify_event(self, event: Event) -> Tuple[Event, Optional[OcrResult]]:
        try:
            logger.debug(f"Rescanning image for event {event.id} at {event.timestamp.isoformat()}")
            with open(os.path.join(self.images_dir, event.image_file), 'rb') as fh:
                image_bytes = fh.read()
            return event, self.classify(image_bytes)
        except Exception as e:
            logger.error(f"Error rescanning image {event.image_file}: {e}", exc_info=True)
            return event, None
