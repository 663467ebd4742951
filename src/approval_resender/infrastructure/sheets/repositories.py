"""
Sheet Repositories.

Read-only repositories over Google Sheets ranges. Each fetch reads the
whole range once and binds the header row to the expected schema.
"""

from typing import Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from approval_resender.core.exceptions import ConfigurationError
from approval_resender.core.normalization import (
    normalize_label,
    normalize_scope,
    normalize_ulok,
    unique_emails,
)
from approval_resender.core.result import Lookup
from approval_resender.infrastructure.http import SheetsClient
from approval_resender.infrastructure.logging import get_logger
from approval_resender.infrastructure.sheets.models import (
    DIRECTORY_SCHEMA,
    RAB_FORM_SCHEMA,
    SPK_SCHEMA,
    ApprovalRecord,
    ColumnSpec,
    DirectoryEntry,
    HeaderMap,
    SpkRecord,
)


logger = get_logger(__name__)


R = TypeVar("R")

# Header row occupies sheet row 1; data index 0 is sheet row 2
HEADER_OFFSET = 2


def sheet_name_of(range_a1: str) -> str:
    """``form2!A:AA`` -> ``form2``."""
    return range_a1.split("!", 1)[0].strip("'")


class SheetRepository:
    """Base repository bound to one spreadsheet range."""

    def __init__(
        self,
        client: SheetsClient,
        spreadsheet_id: str,
        range_a1: str,
    ) -> None:
        self._client = client
        self._spreadsheet_id = spreadsheet_id
        self._range = range_a1

    @property
    def sheet_name(self) -> str:
        return sheet_name_of(self._range)

    def _fetch_rows(self) -> List[List[str]]:
        if not self._spreadsheet_id:
            raise ConfigurationError(
                "spreadsheet_id",
                f"Spreadsheet id for sheet {self.sheet_name} is not configured.",
            )
        return self._client.get_values(self._spreadsheet_id, self._range)


class RecordRepository(SheetRepository, Generic[R]):
    """Locates a submission row by its (ulok, lingkup) key."""

    schema: Sequence[ColumnSpec] = ()
    record_class: Type = object

    def find(self, ulok: str, lingkup: str) -> Lookup[R]:
        """
        Find the first row whose normalized key matches.

        Args:
            ulok: Raw ulok as typed by the user.
            lingkup: Raw work scope as typed by the user.

        Returns:
            Lookup with the record, or not-found with a user-facing reason.

        Raises:
            SchemaMismatchError: If the header row drifted.
            SheetsError: If the Sheets API call fails.
        """
        rows = self._fetch_rows()
        if not rows:
            return Lookup.not_found(f"Data {self.sheet_name} kosong.")

        bound = HeaderMap(rows[0]).bind(self.schema, self.sheet_name)
        target_ulok = normalize_ulok(ulok)
        target_scope = normalize_scope(lingkup)

        for index, row in enumerate(rows[1:]):
            values = bound.read(row)
            if (
                normalize_ulok(values["ulok"]) == target_ulok
                and normalize_scope(values["scope"]) == target_scope
            ):
                row_number = index + HEADER_OFFSET
                logger.info(
                    f"Row located in {self.sheet_name}",
                    extra={"extra_fields": {
                        "sheet": self.sheet_name,
                        "row": row_number,
                        "ulok": target_ulok,
                    }}
                )
                return Lookup.found(self.record_class.from_fields(row_number, values))

        return Lookup.not_found(f"Data tidak ditemukan di {self.sheet_name}.")


class ApprovalRecordRepository(RecordRepository[ApprovalRecord]):
    """RAB submissions (form2)."""

    schema = RAB_FORM_SCHEMA
    record_class = ApprovalRecord


class SpkRecordRepository(RecordRepository[SpkRecord]):
    """SPK submissions (SPK_Data)."""

    schema = SPK_SCHEMA
    record_class = SpkRecord


class DirectoryRepository(SheetRepository):
    """Branch directory (Cabang): who holds which title where."""

    def entries(self) -> List[DirectoryEntry]:
        """
        Read the whole directory.

        Raises:
            SchemaMismatchError: If CABANG/JABATAN/EMAIL_SAT is missing.
            SheetsError: If the Sheets API call fails.
        """
        rows = self._fetch_rows()
        if not rows:
            return []

        bound = HeaderMap(rows[0]).bind(DIRECTORY_SCHEMA, self.sheet_name)
        return [DirectoryEntry(**bound.read(row)) for row in rows[1:]]


def matching_entries(
    entries: Iterable[DirectoryEntry],
    branch: str,
    titles: Iterable[str],
) -> List[DirectoryEntry]:
    """Directory rows at branch holding any of titles (case/trim-insensitive)."""
    target_branch = normalize_label(branch)
    target_titles = {normalize_label(t) for t in titles}
    return [
        entry for entry in entries
        if normalize_label(entry.branch) == target_branch
        and normalize_label(entry.title) in target_titles
    ]


def emails_for(
    entries: Iterable[DirectoryEntry],
    branch: str,
    titles: Iterable[str],
) -> List[str]:
    """Deduplicated, non-blank emails of matching directory rows."""
    return unique_emails(e.email for e in matching_entries(entries, branch, titles))


def find_title_emails(
    entries: Sequence[DirectoryEntry],
    branch: str,
    title: str,
) -> Lookup[List[str]]:
    """
    Resolve everyone holding title at branch.

    Returns:
        Lookup of a non-empty email list, or not-found explaining
        whether the directory, the title or the email cells were empty.
    """
    if not entries:
        return Lookup.not_found("Sheet Cabang kosong.")

    matches = matching_entries(entries, branch, (title,))
    if not matches:
        return Lookup.not_found(f"Jabatan {title} tidak ditemukan di cabang {branch}.")

    emails = unique_emails(e.email for e in matches)
    if not emails:
        return Lookup.not_found(
            "Email tujuan ditemukan tapi datanya kosong di sheet Cabang."
        )

    return Lookup.found(emails)


def split_submitter(
    submitter: Optional[str],
    others: Iterable[Optional[str]],
) -> Tuple[List[str], List[str]]:
    """
    Separate the submitter from the team recipients.

    Returns:
        (submitter list of 0 or 1, team list without the submitter),
        both deduplicated with blanks dropped.
    """
    submitters = unique_emails([submitter])
    excluded = {email.lower() for email in submitters}
    team = [email for email in unique_emails(others) if email.lower() not in excluded]
    return submitters, team
