"""
photoimport - Import pictures and videos into a dated archive.

Scans an import folder, dates every file from its embedded metadata,
straightens pictures according to their EXIF orientation, and files them
under year/month folders with collision-safe names. Files that cannot be
placed are copied to a ManualMove folder for review.
"""

__version__ = "1.0.0"


# Public API
from .cli import main
from .config import Config, ImportSettings, UploadCredentials
from .core import ImportStage, PhotoImporter
from .file_operations import FileOperations, PlaceMode
from .report import ImportReport, OutcomeKind, PlacementOutcome
from .upload import HttpUploadClient, UploadClient, UploadSession

__all__ = [ "main", "Config", "ImportSettings", "UploadCredentials", "ImportStage",
            "PhotoImporter", "FileOperations", "PlaceMode", "ImportReport", "OutcomeKind",
            "PlacementOutcome", "HttpUploadClient", "UploadClient", "UploadSession" ]
