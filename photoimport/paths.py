"""
Destination directory layout and candidate filenames.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .constants import FILENAME_DATE_FORMAT, MONTH_ABBREVIATIONS, get_logger
from .media import MediaKind

logger = get_logger("photoimport.paths")

PATH_SEPARATORS = ("/", "\\")


@dataclass(frozen=True)
class PathResult:
    """Destination directory, or the reason it could not be created."""
    path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.path is not None


def month_folder_name(date: datetime) -> str:
    """Month folder in MM_Mon form, e.g. 05_May."""
    return f"{date.month:02d}_{MONTH_ABBREVIATIONS[date.month - 1]}"


def destination_for(root: Path, date: datetime, kind: MediaKind) -> Path:
    """Pure mapping from (root, date, kind) to the destination directory."""
    year_dir = root / f"{date.year:04d}"
    if kind is MediaKind.VIDEO:
        return year_dir
    return year_dir / month_folder_name(date)


def build_destination(root: Path, date: datetime, kind: MediaKind) -> PathResult:
    """Compute the destination directory and make sure it exists.

    Safe to call repeatedly and from concurrent workers; a directory that
    cannot be created is reported in the result rather than raised.
    """
    directory = destination_for(root, date, kind)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot create destination {directory}: {e}")
        return PathResult(error=f"Cannot create {directory}: {e}")
    return PathResult(path=directory)


def sanitize_name_part(text: str) -> str:
    """Keep a metadata-derived name fragment free of path separators."""
    for separator in PATH_SEPARATORS:
        text = text.replace(separator, "-")
    return text.strip()


def build_candidate_name(date: datetime, prefix: str = "", suffix: str = "",
                         camera_model: Optional[str] = None) -> str:
    """Base filename: prefix + yyyyMMdd_HHmmss + optional _model + suffix."""
    name = f"{prefix}{date.strftime(FILENAME_DATE_FORMAT)}"
    if camera_model:
        model = sanitize_name_part(camera_model)
        if model:
            name += f"_{model}"
    return name + suffix


def has_path_separator(text: str) -> bool:
    return any(separator in text for separator in PATH_SEPARATORS)
