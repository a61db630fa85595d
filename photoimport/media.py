"""
Media file classification and import-tree enumeration.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Tuple

from .config import ImportSettings
from .constants import JUNK_EXTENSIONS, JUNK_FILENAMES, MANUAL_MOVE_DIR


class MediaKind(Enum):
    PICTURE = "picture"
    VIDEO = "video"


@dataclass(frozen=True)
class MediaFile:
    """A file under import, identified by its original path."""
    path: Path
    kind: MediaKind

    @property
    def extension(self) -> str:
        """Lower-cased extension, used for classification."""
        return self.path.suffix.lower()

    @property
    def suffix(self) -> str:
        """Extension as found on disk, used for the output filename."""
        return self.path.suffix

    @property
    def is_picture(self) -> bool:
        return self.kind is MediaKind.PICTURE

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    @classmethod
    def classify(cls, path: Path, settings: ImportSettings) -> "MediaFile":
        kind = MediaKind.VIDEO if settings.is_video_extension(path.suffix) else MediaKind.PICTURE
        return cls(path=path, kind=kind)


def is_junk_file(path: Path) -> bool:
    """Check for OS clutter files that are never imported."""
    return path.name.lower() in JUNK_FILENAMES or path.suffix.lower() in JUNK_EXTENSIONS


def find_media_files(settings: ImportSettings) -> Tuple[List[MediaFile], List[MediaFile], List[Path]]:
    """Find files under the import root, split into pictures, videos and junk.

    The manual-fallback folder is skipped so reviewed copies are never
    imported a second time.
    """
    import_root = settings.import_dir
    manual_dir = import_root / MANUAL_MOVE_DIR
    pictures = []
    videos = []
    junk = []

    for file_path in sorted(import_root.rglob("*")):
        if not file_path.is_file():
            continue
        if file_path == manual_dir or manual_dir in file_path.parents:
            continue

        media = MediaFile.classify(file_path, settings)
        if media.is_video:
            videos.append(media)
        elif is_junk_file(file_path):
            junk.append(file_path)
        else:
            pictures.append(media)

    return pictures, videos, junk
