"""
HTTP Client Package.

Google REST clients:
- Sheets (values.get)
- Drive (files.get)
- Gmail (users.messages.send)
"""

from approval_resender.infrastructure.http.drive_client import DriveClient
from approval_resender.infrastructure.http.gmail_client import GmailClient
from approval_resender.infrastructure.http.google_client import GoogleApiClient
from approval_resender.infrastructure.http.sheets_client import SheetsClient


__all__ = [
    "DriveClient",
    "GmailClient",
    "GoogleApiClient",
    "SheetsClient",
]
