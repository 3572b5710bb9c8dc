from __future__ import annotations

import base64
import binascii
import io
import mimetypes
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from errors import ValidationError

AUTO_ASPECT_RATIO = "auto"
# Declaration order breaks ties when snapping.
ASPECT_RATIO_CANDIDATES: Tuple[Tuple[str, float], ...] = (
    ("1:1", 1.0),
    ("16:9", 16 / 9),
    ("9:16", 9 / 16),
    ("4:3", 4 / 3),
    ("3:4", 3 / 4),
)
ASPECT_RATIOS = tuple(name for name, _ in ASPECT_RATIO_CANDIDATES)
VIDEO_DEFAULT_ASPECT_RATIO = "16:9"
IMAGE_DEFAULT_ASPECT_RATIO = "1:1"


@dataclass(frozen=True)
class InlineImage:
    """An uploaded image ready to be attached to a remote request."""

    data: bytes
    mime_type: str = "image/png"


def _guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "image/jpeg"


def ingest_upload(payload: bytes, filename: str = "", content_type: Optional[str] = None) -> InlineImage:
    if not payload:
        raise ValidationError("Uploaded image is empty.")
    if content_type and not content_type.startswith("image/"):
        raise ValidationError("Only image files are supported.")
    mime_type = content_type or _guess_mime_type(filename)
    return InlineImage(data=payload, mime_type=mime_type)


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("utf-8")


def decode_base64(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image data is not valid base64.") from exc


def image_dimensions(data: bytes) -> Tuple[int, int]:
    """Pixel (width, height) decoded from the image bytes."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("Could not decode image dimensions.") from exc


def format_resolution(width: int, height: int) -> str:
    return f"{width} x {height}"


def nearest_aspect_ratio(width: int, height: int) -> str:
    if width <= 0 or height <= 0:
        raise ValidationError(f"Invalid image size: {width}x{height}")
    ratio = width / height
    best_name, best_value = ASPECT_RATIO_CANDIDATES[0]
    for name, value in ASPECT_RATIO_CANDIDATES[1:]:
        if abs(value - ratio) < abs(best_value - ratio):
            best_name, best_value = name, value
    return best_name


def validate_aspect_ratio(value: Optional[str]) -> str:
    cleaned = (value or AUTO_ASPECT_RATIO).strip()
    if cleaned != AUTO_ASPECT_RATIO and cleaned not in ASPECT_RATIOS:
        raise ValidationError(f"Unsupported aspect ratio: {value!r}")
    return cleaned
