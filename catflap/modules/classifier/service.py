"""
Direction Classifier - reads the cat flap camera overlay text
Uses OpenCV for image preparation and tesseract for OCR
"""
import logging
import re
from dataclasses import dataclass

import cv2
import numpy as np
import pytesseract

from catflap.models.presence import Direction

logger = logging.getLogger(__name__)

# Results below this confidence retry on the full image
MIN_CONFIDENCE = 0.5

# The overlay repeats its status line; this many hits count as a reading
MIN_REPEATS = 4

_OUT_PATTERN = re.compile(r"out\s*-\s*skipped\s*prey\s*detection")
_IN_NO_PREY_PATTERN = re.compile(r"in\s*-\s*no\s*prey\s*detected")
_IN_PREY_PATTERN = re.compile(r"in\s*-\s*\S*\s*prey\s*detected")


class ImageDecodeError(ValueError):
    """Raised when image bytes cannot be decoded"""


@dataclass(frozen=True)
class OcrResult:
    direction: Direction
    confidence: float
    prey: bool
    raw_text: str


@dataclass(frozen=True)
class CropRegion:
    """Pixel rectangle holding the overlay text"""
    x: int
    y: int
    width: int
    height: int


def analyze_text(raw_text: str) -> OcrResult:
    """
    Classify OCR text from the overlay.

    Rules, in order:
    - "out - skipped prey detection" at least 4 times: out
    - "in - <word> prey detected" without "no": in, with prey
    - "in - no prey detected" at least 4 times: in
    - anything else: invalid
    """
    text = raw_text.lower()

    out_count = len(_OUT_PATTERN.findall(text))
    in_no_prey_count = len(_IN_NO_PREY_PATTERN.findall(text))
    in_prey_count = len([m for m in _IN_PREY_PATTERN.findall(text) if 'no' not in m])

    if out_count >= MIN_REPEATS:
        return OcrResult(Direction.OUT, 0.9, False, raw_text)

    if in_prey_count >= 1:
        return OcrResult(Direction.IN, 0.9, True, raw_text)

    if in_no_prey_count >= MIN_REPEATS:
        return OcrResult(Direction.IN, 0.9, False, raw_text)

    return OcrResult(Direction.INVALID, 0.0, False, raw_text)


def _decode(image_bytes: bytes) -> np.ndarray:
    nparr = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if image is None:
        raise ImageDecodeError("Invalid image data")
    return image


def _ocr(image: np.ndarray) -> str:
    return pytesseract.image_to_string(image, lang='eng').strip()


def detect_direction(image_bytes: bytes, crop: CropRegion) -> OcrResult:
    """
    Classify using only the overlay region.

    The crop is converted to grayscale and contrast-stretched before OCR.
    """
    image = _decode(image_bytes)
    region = image[crop.y:crop.y + crop.height, crop.x:crop.x + crop.width]
    if region.size == 0:
        raise ImageDecodeError(f"Crop {crop} lies outside the {image.shape[1]}x{image.shape[0]} image")

    gray = cv2.cvtColor(region, cv2.COLOR_BGR2GRAY)
    normalized = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)
    return analyze_text(_ocr(normalized))


def detect_direction_full_image(image_bytes: bytes) -> OcrResult:
    """Classify using the whole image (fallback and calibration)"""
    image = _decode(image_bytes)
    rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    return analyze_text(_ocr(rgb))


def classify_image(image_bytes: bytes, crop: CropRegion) -> OcrResult:
    """Crop first, full image when the crop gives nothing usable"""
    result = detect_direction(image_bytes, crop)

    if result.direction is Direction.INVALID or result.confidence < MIN_CONFIDENCE:
        logger.debug("Cropped OCR failed, trying full image")
        result = detect_direction_full_image(image_bytes)

    logger.info(
        f"OCR result: direction={result.direction.value}, prey={result.prey}, "
        f"confidence={result.confidence:.2f}"
    )
    return result
