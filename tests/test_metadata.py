"""
Test capture date, orientation and camera model resolution.
"""

import os
from datetime import datetime

import pytest

from conftest import set_file_time, write_picture, write_video
from photoimport.exceptions import MetadataReadError
from photoimport.metadata import (DateSource, choose_camera_model, clean_exif_string,
                                  file_creation_time, parse_exif_datetime, parse_orientation,
                                  resolve_picture_metadata, resolve_video_metadata)


class TestDateResolution:
    """Test the embedded -> filesystem -> now precedence."""

    def test_embedded_date_wins_over_filesystem(self, tmp_path):
        picture = write_picture(tmp_path / "IMG_0001.JPG", date_digitized="2023:05:10 14:22:01")
        set_file_time(picture, datetime(2019, 1, 1, 8, 0, 0))

        metadata = resolve_picture_metadata(picture)

        assert metadata.date == datetime(2023, 5, 10, 14, 22, 1)
        assert metadata.date_source is DateSource.EMBEDDED

    def test_missing_date_uses_filesystem_time(self, tmp_path):
        picture = write_picture(tmp_path / "scan.jpg")
        set_file_time(picture, datetime(2020, 2, 29, 12, 30, 45))

        metadata = resolve_picture_metadata(picture)

        assert metadata.date == file_creation_time(picture)
        assert metadata.date_source is DateSource.FILESYSTEM

    @pytest.mark.parametrize("bad_date", [
        "2023-05-10 14:22:01",
        "2023:13:10 14:22:01",
        "0000:00:00 00:00:00",
        "    :  :     :  :  ",
        "yesterday",
    ])
    def test_malformed_date_falls_through(self, tmp_path, bad_date):
        picture = write_picture(tmp_path / "bad.jpg", date_digitized=bad_date)
        set_file_time(picture, datetime(2021, 7, 4, 9, 15, 0))

        metadata = resolve_picture_metadata(picture)

        assert metadata.date_source is DateSource.FILESYSTEM
        assert metadata.date == file_creation_time(picture)

    def test_now_when_file_cannot_be_stat(self, tmp_path, monkeypatch):
        picture = write_picture(tmp_path / "gone.jpg")
        monkeypatch.setattr("photoimport.metadata.file_creation_time", lambda path: None)

        before = datetime.now()
        metadata = resolve_picture_metadata(picture)
        after = datetime.now()

        assert metadata.date_source is DateSource.NOW
        assert before <= metadata.date <= after

    @pytest.mark.skipif(hasattr(os.stat_result, "st_birthtime"),
                        reason="platform reports a real creation time")
    def test_creation_time_uses_mtime_without_birth_time(self, tmp_path):
        target = tmp_path / "file.bin"
        target.write_bytes(b"x")
        set_file_time(target, datetime(2018, 3, 3, 3, 3, 3))

        assert file_creation_time(target) == datetime(2018, 3, 3, 3, 3, 3)

    def test_parse_exif_datetime_strips_terminators(self):
        assert parse_exif_datetime("2023:05:10 14:22:01\x00") == datetime(2023, 5, 10, 14, 22, 1)
        assert parse_exif_datetime(b"2001:01:02 03:04:05") == datetime(2001, 1, 2, 3, 4, 5)
        assert parse_exif_datetime(None) is None
        assert parse_exif_datetime("") is None


class TestPictureFields:
    """Test orientation and camera model extraction."""

    def test_orientation_read(self, tmp_path):
        picture = write_picture(tmp_path / "rotated.jpg", orientation=6)
        assert resolve_picture_metadata(picture).orientation == 6

    def test_orientation_absent(self, tmp_path):
        picture = write_picture(tmp_path / "plain.jpg")
        assert resolve_picture_metadata(picture).orientation is None

    @pytest.mark.parametrize("raw, expected", [
        (1, 1), (8, 8), ("6", 6), ((3,), 3), (0, None), (9, None), ("1H", None), (None, None),
    ])
    def test_parse_orientation(self, raw, expected):
        assert parse_orientation(raw) == expected

    def test_model_preferred_over_make(self, tmp_path):
        picture = write_picture(tmp_path / "cam.jpg", model="EOS 5D", make="Canon")
        assert resolve_picture_metadata(picture).camera_model == "EOS 5D"

    def test_make_used_when_model_blank(self, tmp_path):
        picture = write_picture(tmp_path / "cam.jpg", model="   ", make="Canon")
        assert resolve_picture_metadata(picture).camera_model == "Canon"

    def test_no_camera_fields(self, tmp_path):
        picture = write_picture(tmp_path / "cam.jpg")
        assert resolve_picture_metadata(picture).camera_model is None

    def test_camera_model_trimmed(self):
        assert choose_camera_model("iPhone 12\x00\x00 ", None) == "iPhone 12"
        assert choose_camera_model("\x00", "\x00") is None
        assert clean_exif_string(b"Pixel 7\x00") == "Pixel 7"

    def test_heic_fields_read(self, tmp_path):
        picture = write_picture(tmp_path / "IMG_0002.HEIC", date_digitized="2023:05:10 14:22:01",
                                model="iPhone 14 Pro", image_format="HEIF")

        metadata = resolve_picture_metadata(picture)

        assert metadata.date == datetime(2023, 5, 10, 14, 22, 1)
        assert metadata.date_source is DateSource.EMBEDDED
        assert metadata.camera_model == "iPhone 14 Pro"

    def test_unreadable_picture_raises(self, tmp_path):
        broken = tmp_path / "broken.jpg"
        broken.write_bytes(b"this is not an image")

        with pytest.raises(MetadataReadError):
            resolve_picture_metadata(broken)


class TestVideoMetadata:
    """Test video date and device resolution."""

    def test_video_uses_filesystem_time(self, tmp_path):
        clip = write_video(tmp_path / "clip.MOV", when=datetime(2023, 6, 1, 18, 5, 9))

        metadata = resolve_video_metadata(clip)

        assert metadata.date == file_creation_time(clip)
        assert metadata.date_source is DateSource.FILESYSTEM
        assert metadata.orientation is None
        assert metadata.camera_model is None

    def test_video_camera_model_from_tags(self, tmp_path, monkeypatch):
        clip = write_video(tmp_path / "clip.mov")
        monkeypatch.setattr("photoimport.metadata.get_video_tags",
                            lambda path: {"com.apple.quicktime.make": "Apple",
                                          "com.apple.quicktime.model": "iPhone 14 Pro"})

        assert resolve_video_metadata(clip, want_camera_model=True).camera_model == "iPhone 14 Pro"
        assert resolve_video_metadata(clip, want_camera_model=False).camera_model is None

    def test_video_camera_model_without_ffprobe(self, tmp_path, monkeypatch):
        clip = write_video(tmp_path / "clip.mp4")
        monkeypatch.setattr("photoimport.metadata.check_tool_availability", lambda cmd: False)

        assert resolve_video_metadata(clip, want_camera_model=True).camera_model is None
