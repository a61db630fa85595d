"""
Collision-safe placement of files, manual fallback copies and import cleanup.
"""

import os
import shutil
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .constants import JUNK_FILENAMES, MANUAL_MOVE_DIR, MAX_COLLISION_SUFFIX, get_logger


class PlaceMode(Enum):
    MOVE = "move"
    COPY = "copy"


@dataclass(frozen=True)
class PlaceResult:
    """Final location of a placed file, or why placement failed."""
    success: bool
    path: Optional[Path] = None
    error: Optional[str] = None

    @classmethod
    def placed(cls, path: Path) -> "PlaceResult":
        return cls(success=True, path=path)

    @classmethod
    def failed(cls, error: str) -> "PlaceResult":
        return cls(success=False, error=error)


def candidate_paths(dest_dir: Path, base_name: str, ext: str) -> Iterator[Path]:
    """Yield the base name followed by the _1 .. _9 alternates, in order."""
    yield dest_dir / f"{base_name}{ext}"
    for counter in range(1, MAX_COLLISION_SUFFIX + 1):
        yield dest_dir / f"{base_name}_{counter}{ext}"


def timestamp_suffix(now: Optional[datetime] = None) -> str:
    """High-resolution timestamp used when every numbered slot is taken."""
    return (now or datetime.now()).strftime("%m%d%YT%I%M%S%f%p")


class FileOperations:
    """Moves and copies files into place without overwriting existing names.

    Probing for a free name and claiming it happen under a per-directory
    lock, so concurrent workers targeting the same directory never pick the
    same name.
    """

    def __init__(self):
        self.logger = get_logger("photoimport.files")
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _directory_lock(self, directory: Path) -> threading.Lock:
        key = os.path.normcase(os.path.abspath(directory))
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @staticmethod
    def ensure_directory(directory: Path) -> None:
        """Create directory and parents if needed."""
        directory.mkdir(parents=True, exist_ok=True)

    def _transfer(self, source: Path, dest: Path, mode: PlaceMode) -> None:
        if mode is PlaceMode.MOVE:
            shutil.move(str(source), str(dest))
            if source.exists():
                # Copied but not removed: withdraw the copy so the source stays the only one
                try:
                    dest.unlink()
                except OSError as e:
                    self.logger.warning(f"Could not remove partial move target {dest}: {e}")
                raise FileExistsError(f"Source file still exists after move: {source}")
        else:
            shutil.copy2(str(source), str(dest))

        if not dest.exists():
            raise FileNotFoundError(f"File not found after {mode.value}: {dest}")

    def place(self, source: Path, dest_dir: Path, base_name: str, ext: str,
              mode: PlaceMode = PlaceMode.MOVE) -> PlaceResult:
        """Place source in dest_dir as base_name+ext, or the first free _N alternate.

        Returns a failed result when all ten names are taken or the transfer
        itself fails; never raises for I/O problems.
        """
        with self._directory_lock(dest_dir):
            try:
                target = next((p for p in candidate_paths(dest_dir, base_name, ext)
                               if not p.exists()), None)
                if target is None:
                    return PlaceResult.failed(
                        f"All {MAX_COLLISION_SUFFIX + 1} names for {base_name}{ext} "
                        f"are taken in {dest_dir}")

                self._transfer(source, target, mode)
            except OSError as e:
                self.logger.error(f"Failed to {mode.value} {source} -> {dest_dir}: {e}")
                return PlaceResult.failed(f"{type(e).__name__}: {e}")

        self.logger.info(f"{source} -> {target}")
        return PlaceResult.placed(target)

    def place_manual(self, source: Path, import_root: Path, base_name: str,
                     ext: str) -> PlaceResult:
        """Copy source into the ManualMove review folder under the import root.

        The original always stays in place. Name exhaustion falls back to a
        timestamp suffix instead of failing; only an I/O failure of the copy
        itself produces a failed result.
        """
        manual_dir = import_root / MANUAL_MOVE_DIR

        with self._directory_lock(manual_dir):
            try:
                self.ensure_directory(manual_dir)
                target = next((p for p in candidate_paths(manual_dir, base_name, ext)
                               if not p.exists()), None)
                while target is None or target.exists():
                    target = manual_dir / f"{base_name}_{timestamp_suffix()}{ext}"

                self._transfer(source, target, PlaceMode.COPY)
            except OSError as e:
                self.logger.error(f"Manual fallback copy failed for {source}: {e}")
                return PlaceResult.failed(f"{type(e).__name__}: {e}")

        self.logger.warning(f"Copied to manual review: {source} -> {target}")
        return PlaceResult.placed(target)

    def cleanup_import_directory(self, import_root: Path) -> List[Path]:
        """Prune empty subfolders of the import tree, bottom-up.

        Folders holding only leftover junk (Thumbs.db, .DS_Store) have it
        removed first. The import root itself is kept. Returns the removed
        folders; failures are logged and skipped.
        """
        removed = []
        for thisdir, subdirs, _ in os.walk(import_root, topdown=False):
            for thissubdir in subdirs:
                directory = Path(thisdir) / thissubdir
                try:
                    entries = list(directory.iterdir())
                    if any(e.name.lower() not in JUNK_FILENAMES or not e.is_file()
                           for e in entries):
                        continue
                    for junk in entries:
                        junk.unlink()
                    directory.rmdir()
                    removed.append(directory)
                except OSError as e:
                    self.logger.debug(f"Could not remove {directory}: {e}")

        if removed:
            self.logger.info(f"Removed {len(removed)} empty import folders")
        return removed
