"""
Service configuration loaded from the environment (.env supported)
"""
import os
from datetime import timedelta, timezone
from dotenv import load_dotenv

load_dotenv()

# Database URL from environment
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///./data/catflap.db')

# Fixed UTC offset used for every day/hour/month boundary (no DST)
LOCAL_OFFSET_HOURS = float(os.getenv('LOCAL_OFFSET_HOURS', 1))

# Where captured images are kept for later rescans
IMAGES_DIR = os.getenv('IMAGES_DIR', './images')

# Region of the camera overlay that holds the status text
OCR_CROP_X = int(os.getenv('OCR_CROP_X', 100))
OCR_CROP_Y = int(os.getenv('OCR_CROP_Y', 50))
OCR_CROP_WIDTH = int(os.getenv('OCR_CROP_WIDTH', 200))
OCR_CROP_HEIGHT = int(os.getenv('OCR_CROP_HEIGHT', 100))

# How many recent events a report carries for display
REPORT_EVENT_LIMIT = int(os.getenv('REPORT_EVENT_LIMIT', 100))

RESCAN_WORKERS = int(os.getenv('RESCAN_WORKERS', 4))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


def local_offset() -> timedelta:
    """Configured local offset as a timedelta"""
    return timedelta(hours=LOCAL_OFFSET_HOURS)


def local_zone() -> timezone:
    """Fixed-offset tzinfo of the configured local time"""
    return timezone(local_offset())
