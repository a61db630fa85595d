"""
Shared constants, logger and console accessors for photo imports.
"""

import logging
import shutil
from typing import Optional

from rich.console import Console

PROGRAM = "photoimport"

# Junk files never imported; leftovers are removed during cleanup
JUNK_FILENAMES = ("thumbs.db", ".ds_store")
JUNK_EXTENSIONS = (".ini",)

# Review folder for files that could not be placed normally
MANUAL_MOVE_DIR = "ManualMove"

# Alternates tried after the base name is taken: _1 through _9
MAX_COLLISION_SUFFIX = 9

DEFAULT_VIDEO_EXTENSIONS = ".mov,.mp4,.avi,.m4v,.mpg,.mpeg,.3gp,.mts,.wmv,.mkv"

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"
FILENAME_DATE_FORMAT = "%Y%m%d_%H%M%S"

# English month names, independent of the process locale
MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                       "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
MONTH_NAMES = ("January", "February", "March", "April", "May", "June", "July",
               "August", "September", "October", "November", "December")

# EXIF tag ids
EXIF_IFD_POINTER = 0x8769
GPS_IFD_POINTER = 0x8825
TAG_DATETIME_DIGITIZED = 0x9004
TAG_ORIENTATION = 0x0112
TAG_MAKE = 0x010F
TAG_MODEL = 0x0110

DEFAULT_ORIENTATION = 1

_console: Optional[Console] = None


def get_console() -> Console:
    """Shared rich console for progress, log and summary output."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def get_logger(name: str = PROGRAM) -> logging.Logger:
    return logging.getLogger(name)


def check_tool_availability(cmd: str) -> bool:
    """Check whether an external command is on the PATH."""
    return shutil.which(cmd) is not None
