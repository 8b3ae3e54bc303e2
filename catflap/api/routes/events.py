"""
Event API endpoints - listing, export, import, capture and rescan
"""
import logging
from datetime import date
from functools import partial
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from catflap.core import config
from catflap.core.database import get_db
from catflap.models.presence import InvalidTimestampError, parse_timestamp
from catflap.modules.capture.service import CaptureModule
from catflap.modules.classifier.service import CropRegion, classify_image
from catflap.modules.presence.calendar import range_bounds
from catflap.modules.rescan.service import RescanModule
from catflap.modules.storage.service import EventStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["events"])


def get_classifier():
    """Image classifier configured with the overlay crop region"""
    crop = CropRegion(
        x=config.OCR_CROP_X,
        y=config.OCR_CROP_Y,
        width=config.OCR_CROP_WIDTH,
        height=config.OCR_CROP_HEIGHT,
    )
    return partial(classify_image, crop=crop)


def get_images_dir() -> str:
    return config.IMAGES_DIR


@router.get("")
def list_events(start: date, end: date, db: Session = Depends(get_db)):
    """Stored events of whole local days start..end"""
    range_start, range_end = range_bounds(start, end, config.local_offset())
    events = EventStore(db).get_events_by_date_range(range_start, range_end)
    return [event.to_dict() for event in events]


@router.get("/export")
def export_events(db: Session = Depends(get_db)):
    """Every stored event, in the JSON shape accepted by /import"""
    return [event.to_dict() for event in EventStore(db).load_events()]


@router.post("/import")
def import_events(payload: List[dict] = Body(...), db: Session = Depends(get_db)):
    """
    Replace the whole store with the given events.

    Nothing is written if any entry fails to parse or an id repeats.
    """
    try:
        imported = EventStore(db).import_events(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"imported": imported}


@router.post("/capture")
def capture_photo(
    photo: UploadFile = File(...),
    timestamp: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    classify=Depends(get_classifier),
    images_dir: str = Depends(get_images_dir)
):
    """
    Classify an uploaded cat flap photo and record it.

    timestamp is when the photo was taken (ISO-8601), for backfilling older
    photos; now if omitted. A photo whose timestamp is already stored is
    skipped.
    """
    taken_at = None
    if timestamp:
        try:
            taken_at = parse_timestamp(timestamp)
        except InvalidTimestampError as e:
            raise HTTPException(status_code=400, detail=str(e))

    contents = photo.file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Empty image file")

    capture = CaptureModule(db, classify, images_dir)
    event = capture.record_capture(contents, timestamp=taken_at)

    if event is None:
        return {"recorded": False}
    return {"recorded": True, "event": event.to_dict()}


@router.post("/rescan")
def rescan_events(
    start: date,
    end: date,
    db: Session = Depends(get_db),
    classify=Depends(get_classifier),
    images_dir: str = Depends(get_images_dir)
):
    """Re-classify stored events of start..end from their images"""
    range_start, range_end = range_bounds(start, end, config.local_offset())
    module = RescanModule(db, classify, images_dir, max_workers=config.RESCAN_WORKERS)

    try:
        result = module.rescan(range_start, range_end)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        "considered": result.considered,
        "changed": result.changed,
        "failed": result.failed
    }
