"""
Google Drive API Client.

Downloads stored PDF files by id.
"""

from typing import Any, Dict

from approval_resender.core.exceptions import DriveError
from approval_resender.infrastructure.http.google_client import GoogleApiClient


DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"


class DriveClient(GoogleApiClient):
    """Client for files.get (metadata and media)."""

    service_name = "drive"
    error_class = DriveError

    def get_metadata(self, file_id: str) -> Dict[str, Any]:
        """
        Probe a file's metadata.

        A 404 here means the file is not visible to this credential set.

        Raises:
            DriveError: If the file cannot be read.
        """
        response = self._request(
            "GET",
            f"{DRIVE_FILES_URL}/{file_id}",
            params={"fields": "id,name,mimeType", "supportsAllDrives": "true"},
        )
        return response.json()

    def download(self, file_id: str) -> bytes:
        """
        Download a file's binary content.

        Raises:
            DriveError: If the download fails.
        """
        response = self._request(
            "GET",
            f"{DRIVE_FILES_URL}/{file_id}",
            params={"alt": "media", "supportsAllDrives": "true"},
        )
        return response.content
