"""
Per-run import logs and the global import audit log.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from .report import ImportReport


class HistoryManager:
    """Writes a detailed log per run and a one-line summary per import."""

    def __init__(self, root_dir: Path, import_dir: Path):
        self.root_dir = root_dir
        self.import_dir = import_dir
        self.history_dir = self.root_dir / "history"
        self.imports_audit_log = self.root_dir / "imports.log"
        self._handler: Optional[logging.FileHandler] = None
        self._logger: Optional[logging.Logger] = None

        timestamp = datetime.now().strftime("%Y-%m-%d")
        folder_name = f"{timestamp}+{self._sanitize_name(import_dir)}"

        # Keep earlier runs from the same day in their own folders
        folder = self.history_dir / folder_name
        counter = 1
        while folder.exists() and any(folder.iterdir()):
            folder = self.history_dir / f"{folder_name}-{counter:02d}"
            counter += 1

        self.run_folder = folder
        self.run_log = folder / "import.log"

    @staticmethod
    def _sanitize_name(path: Path) -> str:
        """Convert a directory path to a safe folder name."""
        sanitized = re.sub(r'[^\w\-_]', '-', path.name)
        sanitized = re.sub(r'-+', '-', sanitized)
        return sanitized.strip('-') or "import"

    def attach(self, logger: logging.Logger) -> None:
        """Send everything the logger emits during this run to the run log."""
        self.run_folder.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(self.run_log, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
        ))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        self._handler = handler
        self._logger = logger

    def detach(self) -> None:
        if self._handler and self._logger:
            self._logger.removeHandler(self._handler)
            self._handler.close()
        self._handler = None
        self._logger = None

    def log_import_summary(self, picture_dir: Path, video_dir: Path,
                           report: ImportReport) -> None:
        """Append the run summary to the global imports.log."""
        self.root_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        status = "PARTIAL" if report.has_errors() else "SUCCESS"
        summary = (
            f"{timestamp} | {status} | "
            f"Import: {self.import_dir} | Pictures: {picture_dir} | Videos: {video_dir} | "
            f"Files: {report.get_total_files()} ({report.get_pictures()} pictures, "
            f"{report.get_videos()} videos) | Size: {report.get_total_size_mb():.1f}MB | "
            f"Manual: {report.get_manual()} | Failed: {report.get_failed()} | "
            f"Upload errors: {len(report.upload_errors)} | History: {self.run_folder.name}\n"
        )

        with open(self.imports_audit_log, 'a', encoding='utf-8') as f:
            f.write(summary)
