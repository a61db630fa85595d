"""
Run statistics and error lists for an import.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class OutcomeKind(Enum):
    MOVED = "moved"
    MANUAL_FALLBACK = "manual_fallback"
    FAILED = "failed"


@dataclass(frozen=True)
class PlacementOutcome:
    """What happened to one file during a run."""
    kind: OutcomeKind
    path: Optional[Path] = None

    @classmethod
    def moved(cls, path: Path) -> "PlacementOutcome":
        return cls(OutcomeKind.MOVED, path)

    @classmethod
    def manual_fallback(cls, path: Path) -> "PlacementOutcome":
        return cls(OutcomeKind.MANUAL_FALLBACK, path)

    @classmethod
    def failed(cls) -> "PlacementOutcome":
        return cls(OutcomeKind.FAILED)


@dataclass(frozen=True)
class FileFailure:
    """A file that could not be placed or uploaded, and why."""
    path: Path
    reason: str

    @property
    def name(self) -> str:
        return self.path.name


class ImportReport:
    """Thread-safe tracking of per-file outcomes for one import run."""

    def __init__(self):
        self._lock = threading.Lock()
        self._stats = {
            'pictures': 0,
            'videos': 0,
            'manual': 0,
            'failed': 0,
            'uploaded': 0,
            'junk': 0,
            'total_size': 0,
        }
        self._move_errors: List[FileFailure] = []
        self._upload_errors: List[FileFailure] = []
        self._outcomes: Dict[Path, PlacementOutcome] = {}

    def _increment(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._stats[key] += amount

    def record_placed(self, is_video: bool, file_size: int) -> None:
        """Record a file moved into the archive, updating count and size."""
        with self._lock:
            self._stats['videos' if is_video else 'pictures'] += 1
            self._stats['total_size'] += file_size

    def record_manual(self, path: Path, reason: str) -> None:
        """Record a file copied to manual review instead of being placed."""
        with self._lock:
            self._stats['manual'] += 1
            self._move_errors.append(FileFailure(path, reason))

    def record_failed(self, path: Path, reason: str) -> None:
        """Record a file that could not even be copied to manual review."""
        with self._lock:
            self._stats['failed'] += 1
            self._move_errors.append(FileFailure(path, reason))

    def record_upload_error(self, path: Path, reason: str) -> None:
        with self._lock:
            self._upload_errors.append(FileFailure(path, reason))

    def increment_uploaded(self) -> None:
        self._increment('uploaded')

    def increment_junk(self, count: int = 1) -> None:
        self._increment('junk', count)

    def record_outcome(self, path: Path, outcome: PlacementOutcome) -> None:
        with self._lock:
            self._outcomes[path] = outcome

    @property
    def outcomes(self) -> Dict[Path, PlacementOutcome]:
        """Outcome per original file path."""
        with self._lock:
            return dict(self._outcomes)

    @property
    def move_errors(self) -> List[FileFailure]:
        with self._lock:
            return list(self._move_errors)

    @property
    def upload_errors(self) -> List[FileFailure]:
        with self._lock:
            return list(self._upload_errors)

    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._move_errors or self._upload_errors)

    def get_stats(self) -> Dict[str, int]:
        """Get a copy of current statistics."""
        with self._lock:
            return self._stats.copy()

    def get_total_files(self) -> int:
        stats = self.get_stats()
        return stats['pictures'] + stats['videos']

    def get_total_size_mb(self) -> float:
        return self.get_stats()['total_size'] / (1024 * 1024)

    # Individual stat getters for reporting
    def get_pictures(self) -> int:
        return self.get_stats()['pictures']

    def get_videos(self) -> int:
        return self.get_stats()['videos']

    def get_manual(self) -> int:
        return self.get_stats()['manual']

    def get_failed(self) -> int:
        return self.get_stats()['failed']

    def get_uploaded(self) -> int:
        return self.get_stats()['uploaded']

    def get_junk(self) -> int:
        return self.get_stats()['junk']
