"""
Photo service upload: authentication handshake and per-picture submission.
"""

import hashlib
import hmac
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import requests

from .config import UploadCredentials
from .constants import MONTH_NAMES, get_logger

FAILED_PREFIX = "Failed:"


@dataclass(frozen=True)
class UploadResult:
    """Outcome of an authentication or upload call.

    On a successful authentication `token` holds the session token; failures
    carry a message starting with "Failed:".
    """
    success: bool
    token: Optional[str] = None
    message: str = ""

    @classmethod
    def ok(cls, token: Optional[str] = None, message: str = "") -> "UploadResult":
        return cls(success=True, token=token, message=message)

    @classmethod
    def failed(cls, reason: str) -> "UploadResult":
        if not reason.startswith(FAILED_PREFIX):
            reason = f"{FAILED_PREFIX} {reason}"
        return cls(success=False, message=reason)


class UploadClient:
    """Interface of the remote photo service."""

    def authenticate(self, credentials: UploadCredentials) -> UploadResult:
        raise NotImplementedError

    def upload(self, token: str, app_id: str, month_name: str, year: str,
               local_path: Path, filename: str) -> UploadResult:
        raise NotImplementedError


class HttpUploadClient(UploadClient):
    """Photo service client over HTTP, one attempt per call."""

    def __init__(self, endpoint: str, timeout: float = 60.0,
                 session: Optional[requests.Session] = None):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.logger = get_logger("photoimport.upload")

    @staticmethod
    def sign(credentials: UploadCredentials) -> str:
        """HMAC-SHA256 of app id + username, keyed with the shared secret."""
        message = f"{credentials.app_id}{credentials.username}".encode("utf-8")
        return hmac.new(credentials.shared_secret.encode("utf-8"), message,
                        hashlib.sha256).hexdigest()

    def authenticate(self, credentials: UploadCredentials) -> UploadResult:
        if not self.endpoint:
            return UploadResult.failed("no upload endpoint configured")

        try:
            resp = self.http.post(f"{self.endpoint}/auth", data={
                "username": credentials.username,
                "password": credentials.password,
                "app_id": credentials.app_id,
                "signature": self.sign(credentials),
            }, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            return UploadResult.failed(f"authentication request error: {e}")

        if resp.status_code != 200:
            return UploadResult.failed(f"authentication rejected (HTTP {resp.status_code})")

        try:
            token = resp.json().get("token")
        except (ValueError, AttributeError):
            token = None
        if not token:
            return UploadResult.failed("authentication response carried no token")
        return UploadResult.ok(token=str(token))

    def upload(self, token: str, app_id: str, month_name: str, year: str,
               local_path: Path, filename: str) -> UploadResult:
        file_path = Path(local_path) / filename
        try:
            with open(file_path, "rb") as f:
                resp = self.http.post(f"{self.endpoint}/upload", data={
                    "token": token,
                    "app_id": app_id,
                    "album": f"{month_name} {year}",
                    "folder": year,
                    "filename": filename,
                }, files={"file": (filename, f)}, timeout=self.timeout)
        except OSError as e:
            return UploadResult.failed(f"cannot read {file_path}: {e}")
        except requests.exceptions.RequestException as e:
            return UploadResult.failed(f"upload request error: {e}")

        if resp.status_code not in (200, 201):
            short = (resp.text or "").strip().replace("\n", " ")
            return UploadResult.failed(f"HTTP {resp.status_code}: {short[:200]}")
        return UploadResult.ok(message=f"Uploaded {filename}")


class UploadSession:
    """Authenticates once per run and uploads placed pictures.

    A missing credential field or a rejected handshake leaves the session
    inactive for the whole run; uploads are then refused without contacting
    the service.
    """

    def __init__(self, client: UploadClient, credentials: UploadCredentials):
        self.client = client
        self.credentials = credentials
        self.logger = get_logger("photoimport.upload")
        self._token: Optional[str] = None
        self._failure: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._token is not None

    @property
    def failure(self) -> Optional[str]:
        return self._failure

    def start(self) -> bool:
        """Run the authentication handshake; True when uploads are possible."""
        with self._lock:
            if self._token is not None or self._failure is not None:
                return self._token is not None

            if not self.credentials.is_complete:
                self._failure = f"{FAILED_PREFIX} incomplete upload credentials"
            else:
                try:
                    result = self.client.authenticate(self.credentials)
                except Exception as e:
                    result = UploadResult.failed(f"authentication error: {e}")
                if result.success and result.token:
                    self._token = result.token
                else:
                    self._failure = result.message or f"{FAILED_PREFIX} authentication rejected"

            if self._failure:
                self.logger.warning(f"Upload disabled for this run: {self._failure}")
            else:
                self.logger.info("Upload session authenticated")
            return self._token is not None

    def upload_picture(self, date: datetime, final_path: Path) -> UploadResult:
        """Upload a placed picture into the album for its capture month."""
        if self._token is None:
            return UploadResult.failed("upload unavailable")

        month_name = MONTH_NAMES[date.month - 1]
        try:
            result = self.client.upload(self._token, self.credentials.app_id, month_name,
                                        str(date.year), final_path.parent, final_path.name)
        except Exception as e:
            result = UploadResult.failed(f"upload error: {e}")

        if result.success:
            self.logger.info(f"Uploaded {final_path.name} to {month_name} {date.year}")
        else:
            self.logger.warning(f"Upload failed for {final_path.name}: {result.message}")
        return result
