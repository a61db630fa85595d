"""Capture date, orientation and camera model resolution."""

import json
import subprocess
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pillow_heif
from PIL import Image, UnidentifiedImageError

from .constants import (EXIF_DATE_FORMAT, EXIF_IFD_POINTER, TAG_DATETIME_DIGITIZED,
                        TAG_MAKE, TAG_MODEL, TAG_ORIENTATION, check_tool_availability,
                        get_logger)
from .exceptions import MetadataReadError

logger = get_logger("photoimport.metadata")

# HEIC/HEIF pictures open through Pillow like any other format
pillow_heif.register_heif_opener()

VALID_ORIENTATIONS = range(1, 9)

# ffprobe format tags holding the recording device, in priority order
VIDEO_MODEL_TAGS = ("com.apple.quicktime.model", "model")
VIDEO_MAKE_TAGS = ("com.apple.quicktime.make", "make")


class DateSource(Enum):
    EMBEDDED = "embedded"
    FILESYSTEM = "filesystem"
    NOW = "now"


@dataclass(frozen=True)
class ResolvedMetadata:
    """Metadata resolved once per file and reused by every later stage."""
    date: datetime
    date_source: DateSource
    orientation: Optional[int] = None
    camera_model: Optional[str] = None


def clean_exif_string(value: Any) -> str:
    """Decode an EXIF text value and strip NUL terminators and whitespace."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return str(value).replace("\x00", "").strip()


def parse_exif_datetime(value: Any) -> Optional[datetime]:
    """Strictly parse a 'yyyy:MM:dd HH:mm:ss' value; None when malformed."""
    text = clean_exif_string(value)
    if not text:
        return None
    try:
        return datetime.strptime(text, EXIF_DATE_FORMAT)
    except ValueError:
        logger.debug(f"Ignoring malformed EXIF date: {text!r}")
        return None


def parse_orientation(value: Any) -> Optional[int]:
    """Return a standard orientation code (1-8) or None."""
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    try:
        code = int(clean_exif_string(value))
    except (TypeError, ValueError):
        return None
    return code if code in VALID_ORIENTATIONS else None


def choose_camera_model(model: Any, make: Any) -> Optional[str]:
    """Prefer the model, fall back to the make; blank values count as absent."""
    for candidate in (model, make):
        text = clean_exif_string(candidate)
        if text:
            return text
    return None


def file_creation_time(file_path: Path) -> Optional[datetime]:
    """Filesystem creation time, or modification time where birth time is unknown."""
    try:
        stat = file_path.stat()
    except OSError as e:
        logger.debug(f"Cannot stat {file_path}: {e}")
        return None

    timestamp = getattr(stat, "st_birthtime", None) or stat.st_mtime
    try:
        return datetime.fromtimestamp(timestamp)
    except (OverflowError, OSError, ValueError):
        return None


def _fallback_date(file_path: Path) -> Tuple[datetime, DateSource]:
    created = file_creation_time(file_path)
    if created is not None:
        return created, DateSource.FILESYSTEM
    return datetime.now(), DateSource.NOW


def read_exif_fields(image: Image.Image) -> Dict[str, Any]:
    """Pull the raw fields used for import decisions out of an open image."""
    exif = image.getexif()
    try:
        exif_ifd = exif.get_ifd(EXIF_IFD_POINTER)
    except Exception as e:
        logger.debug(f"Unreadable EXIF sub-directory: {e}")
        exif_ifd = {}

    return {
        "date_digitized": exif_ifd.get(TAG_DATETIME_DIGITIZED),
        "orientation": exif.get(TAG_ORIENTATION),
        "model": exif.get(TAG_MODEL),
        "make": exif.get(TAG_MAKE),
    }


def resolve_picture_metadata(file_path: Path) -> ResolvedMetadata:
    """Resolve date, orientation and camera model for a picture.

    Date precedence: embedded DateTimeDigitized, then filesystem creation
    time, then now. Missing or malformed fields degrade silently; only a file
    that cannot be opened as an image raises MetadataReadError.
    """
    try:
        with Image.open(file_path) as image:
            fields = read_exif_fields(image)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise MetadataReadError(f"Cannot read image {file_path}: {e}") from e

    date = parse_exif_datetime(fields["date_digitized"])
    if date is not None:
        source = DateSource.EMBEDDED
    else:
        date, source = _fallback_date(file_path)

    return ResolvedMetadata(
        date=date,
        date_source=source,
        orientation=parse_orientation(fields["orientation"]),
        camera_model=choose_camera_model(fields["model"], fields["make"]),
    )


def get_video_tags(file_path: Path) -> Dict[str, str]:
    """Read container format tags with ffprobe; empty when unavailable."""
    if not check_tool_availability("ffprobe"):
        return {}

    try:
        result = subprocess.run([
            "ffprobe", "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            str(file_path)
        ], capture_output=True, text=True, check=True)
        data = json.loads(result.stdout)
    except subprocess.CalledProcessError as e:
        logger.debug(f"ffprobe failed for {file_path}: {e}")
        return {}
    except json.JSONDecodeError as e:
        logger.debug(f"Failed to parse ffprobe JSON output for {file_path}: {e}")
        return {}
    except OSError as e:
        logger.debug(f"Could not run ffprobe for {file_path}: {e}")
        return {}

    tags = data.get("format", {}).get("tags", {}) or {}
    return {str(key).lower(): value for key, value in tags.items()}


def resolve_video_metadata(file_path: Path, want_camera_model: bool = False) -> ResolvedMetadata:
    """Resolve metadata for a video: filesystem date, optional device model."""
    date, source = _fallback_date(file_path)

    camera_model = None
    if want_camera_model:
        tags = get_video_tags(file_path)
        model = next((tags[k] for k in VIDEO_MODEL_TAGS if tags.get(k)), None)
        make = next((tags[k] for k in VIDEO_MAKE_TAGS if tags.get(k)), None)
        camera_model = choose_camera_model(model, make)

    return ResolvedMetadata(date=date, date_source=source, camera_model=camera_model)
