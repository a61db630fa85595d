"""
pytest configuration and fixtures for photoimport tests.
"""

import io
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pillow_heif
import pytest
from PIL import Image

from photoimport.config import ImportSettings, UploadCredentials
from photoimport.upload import UploadClient, UploadResult

# Fixture pictures can be written as HEIC
pillow_heif.register_heif_opener()

RED = (255, 0, 0)
BLUE = (0, 0, 255)


@dataclass
class CliResult:
    """Result from running CLI command."""
    exit_code: int
    output: str
    error: str


@dataclass
class ImportTree:
    """Import root plus the two destination roots of a test run."""
    import_dir: Path
    picture_dir: Path
    video_dir: Path


def set_file_time(file_path: Path, when: datetime) -> None:
    timestamp = when.timestamp()
    os.utime(file_path, (timestamp, timestamp))


def write_picture(file_path: Path, date_digitized: Optional[str] = None,
                  orientation: Optional[int] = None, model: Optional[str] = None,
                  make: Optional[str] = None, size=(40, 20), image_format: str = "JPEG") -> Path:
    """Write a picture whose left half is red and right half blue, with EXIF tags."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    width, height = size
    image = Image.new("RGB", size, BLUE)
    image.paste(RED, (0, 0, width // 2, height))

    exif = Image.Exif()
    if orientation is not None:
        exif[0x0112] = orientation
    if model is not None:
        exif[0x0110] = model
    if make is not None:
        exif[0x010F] = make
    if date_digitized is not None:
        exif[0x8769] = {0x9004: date_digitized}

    image.save(file_path, format=image_format, exif=exif.tobytes(), quality=95)
    return file_path


def write_video(file_path: Path, when: Optional[datetime] = None,
                content: bytes = b"\x00\x00\x00\x18ftypqt  fake movie data") -> Path:
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(content)
    if when is not None:
        set_file_time(file_path, when)
    return file_path


@pytest.fixture
def import_tree(tmp_path) -> ImportTree:
    """Fresh import folder and destination roots (the roots are not created)."""
    import_dir = tmp_path / "import"
    import_dir.mkdir()
    return ImportTree(import_dir=import_dir,
                      picture_dir=tmp_path / "pictures",
                      video_dir=tmp_path / "videos")


@pytest.fixture
def make_settings(import_tree):
    """Build ImportSettings pointing at the test tree."""

    def build(**overrides) -> ImportSettings:
        values = dict(import_dir=import_tree.import_dir,
                      picture_dir=import_tree.picture_dir,
                      video_dir=import_tree.video_dir)
        values.update(overrides)
        return ImportSettings(**values)

    return build


class FakeUploadClient(UploadClient):
    """In-memory upload service recording every call."""

    def __init__(self, accept_auth: bool = True, reject_files: tuple = ()):
        self.accept_auth = accept_auth
        self.reject_files = reject_files
        self.auth_calls: List[UploadCredentials] = []
        self.uploads: List[dict] = []

    def authenticate(self, credentials):
        self.auth_calls.append(credentials)
        if not self.accept_auth:
            return UploadResult.failed("Failed: bad credentials")
        return UploadResult.ok(token="token-123")

    def upload(self, token, app_id, month_name, year, local_path, filename):
        self.uploads.append(dict(token=token, app_id=app_id, month_name=month_name,
                                 year=year, local_path=Path(local_path), filename=filename))
        if filename in self.reject_files:
            return UploadResult.failed("Failed: rejected by service")
        return UploadResult.ok(message="stored")


GOOD_CREDENTIALS = UploadCredentials(username="alice", password="secret",
                                     app_id="app-1", shared_secret="shh")


@pytest.fixture
def fake_upload_client():
    return FakeUploadClient()


@pytest.fixture
def test_config_path(tmp_path):
    """Test-specific config path inside an isolated program root."""
    program_root = tmp_path / "program_root"
    program_root.mkdir()
    return program_root / "config.yml"


@pytest.fixture
def cli_runner():
    """Create a CLI runner that captures output and uses test config."""

    def run_cli(*args, config_path=None, answer="n"):
        """Run photoimport CLI with given arguments.

        Args:
            *args: Command line arguments
            config_path: Optional config path for test isolation
            answer: Reply given to the confirmation prompt

        Returns:
            CliResult with exit_code, output, and error
        """
        from photoimport.cli import main
        from photoimport.constants import get_console

        old_stdout = sys.stdout
        old_stderr = sys.stderr
        old_argv = sys.argv
        stdout = io.StringIO()
        stderr = io.StringIO()

        console = get_console()
        console.input = lambda prompt="": answer

        try:
            sys.stdout = stdout
            sys.stderr = stderr
            sys.argv = ['photoimport'] + [str(a) for a in args]

            exit_code = main(config_path=config_path)

            return CliResult(exit_code=exit_code, output=stdout.getvalue(),
                             error=stderr.getvalue())
        except SystemExit as e:
            return CliResult(exit_code=e.code if e.code is not None else 0,
                             output=stdout.getvalue(), error=stderr.getvalue())
        finally:
            sys.stdout = old_stdout
            sys.stderr = old_stderr
            sys.argv = old_argv
            del console.input

    return run_cli
