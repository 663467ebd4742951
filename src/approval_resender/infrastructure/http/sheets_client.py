"""
Google Sheets API Client.

Reads whole A1 ranges; all filtering happens in the repositories.
"""

from typing import List
from urllib.parse import quote

from approval_resender.core.exceptions import SheetsError
from approval_resender.infrastructure.http.google_client import GoogleApiClient
from approval_resender.infrastructure.logging import log_duration


SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class SheetsClient(GoogleApiClient):
    """Client for spreadsheets.values.get."""

    service_name = "sheets"
    error_class = SheetsError

    @log_duration("sheets_get_values")
    def get_values(self, spreadsheet_id: str, range_a1: str) -> List[List[str]]:
        """
        Fetch every row of a range.

        Args:
            spreadsheet_id: Spreadsheet id.
            range_a1: A1 range such as ``form2!A:AA``.

        Returns:
            Rows as lists of cell strings; trailing empty cells are
            omitted by the API, so rows may be ragged. An empty range
            yields ``[]``.

        Raises:
            SheetsError: If the API call fails.
        """
        url = f"{SHEETS_API_URL}/{spreadsheet_id}/values/{quote(range_a1, safe='!:')}"
        response = self._request("GET", url)
        return response.json().get("values", [])
