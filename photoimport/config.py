"""
Configuration management for photoimport.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

from .constants import DEFAULT_VIDEO_EXTENSIONS, PROGRAM, get_logger
from .exceptions import ConfigurationError

UPLOAD_FIELDS = ("endpoint", "username", "password", "app_id", "shared_secret", "timeout")


def parse_video_extensions(value: str) -> FrozenSet[str]:
    """Parse a comma-separated extension list into lower-case dotted suffixes."""
    extensions = set()
    for item in value.split(","):
        item = item.strip().lower()
        if not item:
            continue
        if not item.startswith("."):
            item = f".{item}"
        extensions.add(item)
    return frozenset(extensions)


class Config:
    """Manages the YAML configuration file and last-used settings."""

    def __init__(self, config_path: Optional[Path] = None):
        # Default config location: ~/.<PROGRAM>/config.yml
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / f".{PROGRAM}" / "config.yml"
        self.program_root = self.config_path.parent
        self.data = self._load_config()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except Exception as e:
            get_logger().warning(f"Could not load config: {e}")
            return {}

        if not isinstance(data, dict):
            get_logger().warning(f"Ignoring config {self.config_path}: expected a mapping")
            return {}
        return data

    def save_config(self) -> None:
        """Save current configuration to file."""
        self.program_root.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self.data, f, default_flow_style=False)
        except Exception as e:
            get_logger().error(f"Could not save config: {e}")

    def get_import_dir(self) -> Optional[str]:
        return self.data.get('import_dir')

    def get_picture_dir(self) -> Optional[str]:
        return self.data.get('picture_dir')

    def get_video_dir(self) -> Optional[str]:
        return self.data.get('video_dir')

    def get_filename_prefix(self) -> str:
        return self.data.get('filename_prefix') or ""

    def get_filename_suffix(self) -> str:
        return self.data.get('filename_suffix') or ""

    def get_use_camera_model(self) -> bool:
        return bool(self.data.get('use_camera_model', False))

    def get_upload_enabled(self) -> bool:
        return bool(self.data.get('upload_enabled', False))

    def get_video_extensions(self) -> str:
        """Get the comma-separated list of recognized video extensions."""
        return self.data.get('video_extensions') or DEFAULT_VIDEO_EXTENSIONS

    def get_workers(self) -> int:
        try:
            return max(1, int(self.data.get('workers', 1)))
        except (TypeError, ValueError):
            return 1

    def get_upload_settings(self) -> Dict[str, Any]:
        """Get upload service settings, with environment variable overrides.

        Each field can be set through PHOTOIMPORT_UPLOAD_<FIELD>, which keeps
        credentials out of the YAML file.
        """
        section = self.data.get('upload') or {}
        settings = {}
        for name in UPLOAD_FIELDS:
            env_name = f"{PROGRAM.upper()}_UPLOAD_{name.upper()}"
            value = os.environ.get(env_name, section.get(name))
            if value is not None:
                settings[name] = value
        return settings

    def update_paths(self, import_dir: str, picture_dir: str, video_dir: str) -> None:
        """Update and save the last used paths."""
        self.data['import_dir'] = import_dir
        self.data['picture_dir'] = picture_dir
        self.data['video_dir'] = video_dir
        self.save_config()


@dataclass(frozen=True)
class UploadCredentials:
    username: str = ""
    password: str = ""
    app_id: str = ""
    shared_secret: str = ""

    @property
    def is_complete(self) -> bool:
        """True when no credential field is blank."""
        return all(str(value).strip() for value in
                   (self.username, self.password, self.app_id, self.shared_secret))


@dataclass(frozen=True)
class ImportSettings:
    """Static configuration consumed by the import pipeline."""
    import_dir: Path
    picture_dir: Path
    video_dir: Path
    filename_prefix: str = ""
    filename_suffix: str = ""
    use_camera_model: bool = False
    upload_enabled: bool = False
    video_extensions: FrozenSet[str] = field(
        default_factory=lambda: parse_video_extensions(DEFAULT_VIDEO_EXTENSIONS))
    workers: int = 1
    upload_endpoint: str = ""
    upload_timeout: float = 60.0
    credentials: UploadCredentials = field(default_factory=UploadCredentials)

    @classmethod
    def from_config(cls, config: Config, **overrides: Any) -> "ImportSettings":
        """Build settings from a Config, letting non-None overrides win."""
        upload = config.get_upload_settings()
        try:
            timeout = float(upload.get('timeout', 60.0))
        except (TypeError, ValueError):
            timeout = 60.0

        values: Dict[str, Any] = {
            'import_dir': config.get_import_dir(),
            'picture_dir': config.get_picture_dir(),
            'video_dir': config.get_video_dir(),
            'filename_prefix': config.get_filename_prefix(),
            'filename_suffix': config.get_filename_suffix(),
            'use_camera_model': config.get_use_camera_model(),
            'upload_enabled': config.get_upload_enabled(),
            'video_extensions': config.get_video_extensions(),
            'workers': config.get_workers(),
            'upload_endpoint': str(upload.get('endpoint', "")),
            'upload_timeout': timeout,
            'credentials': UploadCredentials(
                username=str(upload.get('username', "")),
                password=str(upload.get('password', "")),
                app_id=str(upload.get('app_id', "")),
                shared_secret=str(upload.get('shared_secret', "")),
            ),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        for key in ('import_dir', 'picture_dir', 'video_dir'):
            if not values[key]:
                raise ConfigurationError(f"Missing required setting: {key}")
            values[key] = Path(values[key]).expanduser()

        if isinstance(values['video_extensions'], str):
            values['video_extensions'] = parse_video_extensions(values['video_extensions'])
        else:
            values['video_extensions'] = frozenset(values['video_extensions'])

        return cls(**values)

    def is_video_extension(self, ext: str) -> bool:
        return ext.lower() in self.video_extensions
