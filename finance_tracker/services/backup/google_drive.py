"""
Google Drive Backup Transport

The backup is one JSON file, `finance_backup.json`, in the Drive
application data folder. The folder is private to the app and hidden
from the user's regular Drive view.

DESIGN DECISION: The backup file is updated in place. Uploading only
creates a new file when none exists yet, so restore always finds a
single, current backup.
"""

import json
from typing import Any, Optional

import requests
import structlog
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.config import GoogleDriveSettings, get_settings
from finance_tracker.services.backup.interface import (
    BackupNotFoundError,
    BackupTransportInterface,
    InvalidBackupError,
    TransportError,
)
from finance_tracker.services.storage import ConnectionError


DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.appdata"]
FILES_URL = "https://www.googleapis.com/drive/v3/files"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"

logger = structlog.get_logger(__name__)


class GoogleDriveClient:
    """
    Low-level Drive client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(
        self,
        settings: Optional[GoogleDriveSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self._settings = settings or get_settings().google_drive
        self._session = session

    @property
    def settings(self) -> GoogleDriveSettings:
        return self._settings

    def connect(self) -> requests.Session:
        """
        Authorized HTTP session for the Drive API.

        Uses service account credentials for authentication.
        """
        if self._session is None:
            try:
                credentials = service_account.Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=DRIVE_SCOPES,
                )
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to load Google credentials: {e}")
            self._session = AuthorizedSession(credentials)
        return self._session

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(
            (requests.ConnectionError, requests.Timeout)
        ),
        reraise=True,
    )
    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        return self.connect().request(
            method,
            url,
            timeout=self._settings.timeout_seconds,
            **kwargs,
        )

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send a request and fail with TransportError on any HTTP error."""
        try:
            response = self._send(method, url, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"Google Drive {method} {url} failed: {e}")
        return response


class GoogleDriveBackupTransport(BackupTransportInterface):
    """Backup stored as a JSON file in the Drive app data folder."""

    def __init__(self, client: Optional[GoogleDriveClient] = None):
        self._client = client or GoogleDriveClient()

    @property
    def _file_name(self) -> str:
        return self._client.settings.backup_file_name

    @property
    def _folder(self) -> str:
        return self._client.settings.folder

    def find_backup_id(self) -> Optional[str]:
        """Id of the existing backup file, or None."""
        response = self._client.request(
            "GET",
            FILES_URL,
            params={
                "spaces": self._folder,
                "q": f"'{self._folder}' in parents and name='{self._file_name}'",
                "fields": "files(id, name)",
            },
        )
        files = response.json().get("files") or []
        return files[0]["id"] if files else None

    def upload(self, payload: dict[str, Any]) -> str:
        body = json.dumps(payload).encode("utf-8")

        file_id = self.find_backup_id()
        if file_id is None:
            response = self._client.request(
                "POST",
                FILES_URL,
                json={"name": self._file_name, "parents": [self._folder]},
            )
            file_id = response.json()["id"]
            logger.info("drive_backup_created", file_id=file_id)

        self._client.request(
            "PATCH",
            f"{UPLOAD_URL}/{file_id}",
            params={"uploadType": "media"},
            data=body,
            headers={"Content-Type": "application/json"},
        )
        logger.info("drive_backup_uploaded", file_id=file_id, size_bytes=len(body))
        return file_id

    def download(self) -> dict[str, Any]:
        file_id = self.find_backup_id()
        if file_id is None:
            raise BackupNotFoundError("No backup found in Google Drive.")

        response = self._client.request(
            "GET",
            f"{FILES_URL}/{file_id}",
            params={"alt": "media"},
        )
        try:
            data = response.json()
        except ValueError as e:
            raise InvalidBackupError(f"Backup {file_id} is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise InvalidBackupError(f"Backup {file_id} is not a JSON object")

        logger.info("drive_backup_downloaded", file_id=file_id)
        return data
