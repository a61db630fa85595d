"""
Core import pipeline: classify, resolve, normalize, place and upload.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from .config import ImportSettings
from .exceptions import ConfigurationError, MetadataReadError
from .constants import get_logger
from .file_operations import FileOperations, PlaceMode
from .media import MediaFile, find_media_files
from .metadata import (ResolvedMetadata, file_creation_time, resolve_picture_metadata,
                       resolve_video_metadata)
from .orientation import normalize_orientation
from .paths import build_candidate_name, build_destination, has_path_separator
from .progress import ProgressContext
from .report import FileFailure, ImportReport, PlacementOutcome
from .upload import HttpUploadClient, UploadClient, UploadSession

Notifier = Callable[[List[FileFailure], List[FileFailure]], None]


class ImportStage(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PROCESSING_PICTURES = "processing pictures"
    PROCESSING_VIDEOS = "processing videos"
    CLEANUP = "cleanup"
    DONE = "done"


@dataclass
class ImportRun:
    """State shared by every file of one run."""
    report: ImportReport = field(default_factory=ImportReport)
    upload_session: Optional[UploadSession] = None
    progress: ProgressContext = field(default_factory=ProgressContext)


class PhotoImporter:
    """Imports a directory tree of pictures and videos into dated archives."""

    def __init__(self, settings: ImportSettings, upload_client: Optional[UploadClient] = None,
                 notifier: Optional[Notifier] = None,
                 file_ops: Optional[FileOperations] = None):
        self.settings = settings
        self.notifier = notifier
        self.file_ops = file_ops or FileOperations()
        self.logger = get_logger()
        self.stage = ImportStage.IDLE

        if upload_client is None and settings.upload_enabled:
            upload_client = HttpUploadClient(settings.upload_endpoint, settings.upload_timeout)
        self.upload_client = upload_client

    def _enter(self, stage: ImportStage) -> None:
        self.logger.debug(f"Import stage: {self.stage.value} -> {stage.value}")
        self.stage = stage

    def validate(self) -> None:
        """Check the settings before anything touches the filesystem."""
        import_dir = self.settings.import_dir
        if not import_dir.exists():
            raise ConfigurationError(f"Import directory does not exist: {import_dir}")
        if not import_dir.is_dir():
            raise ConfigurationError(f"Import path is not a directory: {import_dir}")
        for label, value in (("prefix", self.settings.filename_prefix),
                             ("suffix", self.settings.filename_suffix)):
            if has_path_separator(value):
                raise ConfigurationError(f"Filename {label} contains a path separator: {value!r}")

    def prepare_destinations(self) -> None:
        """Create the picture and video roots; failures surface per file later."""
        for root in (self.settings.picture_dir, self.settings.video_dir):
            try:
                self.file_ops.ensure_directory(root)
            except OSError as e:
                self.logger.error(f"Cannot create destination root {root}: {e}")

    def start_upload_session(self) -> Optional[UploadSession]:
        """Authenticate once if uploads are enabled."""
        if not self.settings.upload_enabled or self.upload_client is None:
            return None

        session = UploadSession(self.upload_client, self.settings.credentials)
        session.start()
        return session

    def find_files(self):
        return find_media_files(self.settings)

    def run(self, progress_ctx: Optional[ProgressContext] = None) -> ImportReport:
        """Run a complete import and return its report.

        Raises ConfigurationError, before any side effect, when the import
        directory is missing. Every other problem is recorded per file.
        """
        self._enter(ImportStage.VALIDATING)
        try:
            self.validate()
        except ConfigurationError as e:
            self.logger.error(str(e))
            self._enter(ImportStage.DONE)
            raise

        self.logger.info(f"Starting import: {self.settings.import_dir} -> "
                         f"{self.settings.picture_dir}, {self.settings.video_dir}")
        self.prepare_destinations()

        run = ImportRun(upload_session=self.start_upload_session(),
                        progress=progress_ctx or ProgressContext())

        pictures, videos, junk = self.find_files()
        run.report.increment_junk(len(junk))
        run.progress.set_total(len(pictures) + len(videos))
        self.logger.info(f"Found {len(pictures)} pictures and {len(videos)} videos")

        self._enter(ImportStage.PROCESSING_PICTURES)
        self.process_files(pictures, run)

        self._enter(ImportStage.PROCESSING_VIDEOS)
        self.process_files(videos, run)

        self._enter(ImportStage.CLEANUP)
        self.file_ops.cleanup_import_directory(self.settings.import_dir)

        if run.report.has_errors() and self.notifier is not None:
            try:
                self.notifier(run.report.move_errors, run.report.upload_errors)
            except Exception as e:
                self.logger.error(f"Error notification failed: {e}")

        self._enter(ImportStage.DONE)
        return run.report

    def process_files(self, files: List[MediaFile], run: ImportRun) -> None:
        """Process files one by one, or on a worker pool when configured."""
        if self.settings.workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.workers) as executor:
                list(executor.map(lambda media: self._process_with_progress(media, run), files))
        else:
            for media in files:
                self._process_with_progress(media, run)

    def _process_with_progress(self, media: MediaFile, run: ImportRun) -> PlacementOutcome:
        run.progress.update(f"Importing {media.path.name}")
        outcome = self.process_file(media, run)
        run.report.record_outcome(media.path, outcome)
        run.progress.advance()
        return outcome

    def resolve_metadata(self, media: MediaFile) -> ResolvedMetadata:
        if media.is_picture:
            return resolve_picture_metadata(media.path)
        return resolve_video_metadata(media.path, want_camera_model=self.settings.use_camera_model)

    def candidate_name(self, date: datetime, camera_model: Optional[str] = None) -> str:
        if not self.settings.use_camera_model:
            camera_model = None
        return build_candidate_name(date, self.settings.filename_prefix,
                                    self.settings.filename_suffix, camera_model)

    def _fallback_name(self, media: MediaFile) -> str:
        """Name for a file whose metadata could not be read."""
        return self.candidate_name(file_creation_time(media.path) or datetime.now())

    def process_file(self, media: MediaFile, run: ImportRun) -> PlacementOutcome:
        """Run one file through resolve -> normalize -> path -> place -> upload."""
        base_name = None
        try:
            metadata = self.resolve_metadata(media)
            base_name = self.candidate_name(metadata.date, metadata.camera_model)

            if media.is_picture:
                normalize_orientation(media.path, metadata.orientation)

            root = self.settings.picture_dir if media.is_picture else self.settings.video_dir
            destination = build_destination(root, metadata.date, media.kind)
            if not destination.ok:
                return self._manual_fallback(media, base_name, destination.error, run)

            file_size = media.path.stat().st_size
            placed = self.file_ops.place(media.path, destination.path, base_name,
                                         media.suffix, PlaceMode.MOVE)
            if not placed.success:
                return self._manual_fallback(media, base_name, placed.error, run)

        except MetadataReadError as e:
            self.logger.warning(str(e))
            return self._manual_fallback(media, self._fallback_name(media), str(e), run)
        except Exception as e:
            self.logger.error(f"Error processing {media.path}: {e}")
            return self._manual_fallback(media, base_name or self._fallback_name(media),
                                         f"{type(e).__name__}: {e}", run)

        run.report.record_placed(media.is_video, file_size)
        if media.is_picture and run.upload_session is not None:
            self._upload(media, metadata, placed.path, run)
        return PlacementOutcome.moved(placed.path)

    def _manual_fallback(self, media: MediaFile, base_name: str, reason: str,
                         run: ImportRun) -> PlacementOutcome:
        """Copy an unplaceable file to ManualMove and record the move error."""
        copied = self.file_ops.place_manual(media.path, self.settings.import_dir,
                                            base_name, media.suffix)
        if copied.success:
            run.report.record_manual(media.path, reason)
            return PlacementOutcome.manual_fallback(copied.path)

        self.logger.error(f"Could not place {media.path}: {reason}; "
                          f"manual copy failed: {copied.error}")
        run.report.record_failed(media.path, f"{reason}; manual copy failed: {copied.error}")
        return PlacementOutcome.failed()

    def _upload(self, media: MediaFile, metadata: ResolvedMetadata, final_path: Path,
                run: ImportRun) -> None:
        result = run.upload_session.upload_picture(metadata.date, final_path)
        if result.success:
            run.report.increment_uploaded()
        else:
            run.report.record_upload_error(media.path, result.message)
