"""
Sheet Data Models.

Column schemas for the form2, SPK_Data and Cabang sheets, the header
binding that maps column names to positions, and the row records.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple

from approval_resender.core.exceptions import SchemaMismatchError
from approval_resender.core.normalization import cell_text, normalize_label


@dataclass(frozen=True)
class ColumnSpec:
    """
    One expected column.

    Attributes:
        field_name: Record attribute the column feeds.
        headers: Accepted header spellings, first match wins.
        required: Whether a missing header is schema drift.
        strip: Whether cell text is trimmed. Status cells are routed
            by exact string match and keep their whitespace.
    """
    field_name: str
    headers: Tuple[str, ...]
    required: bool = True
    strip: bool = True


class BoundSchema:
    """A schema whose columns have been located in a concrete header row."""

    def __init__(
        self,
        sheet: str,
        positions: Dict[str, Optional[int]],
        raw_fields: Sequence[str] = (),
    ) -> None:
        self.sheet = sheet
        self._positions = positions
        self._raw_fields = frozenset(raw_fields)

    def position(self, field_name: str) -> Optional[int]:
        return self._positions.get(field_name)

    def read(self, row: Sequence[Any]) -> Dict[str, str]:
        """Extract every schema field from a (possibly ragged) row."""
        values = {}
        for name, index in self._positions.items():
            if index is None or index >= len(row) or row[index] is None:
                values[name] = ""
            elif name in self._raw_fields:
                values[name] = str(row[index])
            else:
                values[name] = cell_text(row[index])
        return values


class HeaderMap:
    """Case-insensitive, trimmed header name -> column index."""

    def __init__(self, header_row: Sequence[Any]) -> None:
        self._index: Dict[str, int] = {}
        for position, header in enumerate(header_row):
            key = normalize_label(header)
            if key and key not in self._index:
                self._index[key] = position

    def index_of(self, *names: str) -> Optional[int]:
        for name in names:
            position = self._index.get(normalize_label(name))
            if position is not None:
                return position
        return None

    def bind(self, schema: Sequence[ColumnSpec], sheet: str) -> BoundSchema:
        """
        Locate every schema column.

        Raises:
            SchemaMismatchError: If a required column is absent.
        """
        positions: Dict[str, Optional[int]] = {}
        missing: List[str] = []
        for column in schema:
            position = self.index_of(*column.headers)
            if position is None and column.required:
                missing.append(column.headers[0])
            positions[column.field_name] = position

        if missing:
            raise SchemaMismatchError(sheet, missing)

        raw_fields = [column.field_name for column in schema if not column.strip]
        return BoundSchema(sheet, positions, raw_fields)


RAB_FORM_SCHEMA: Tuple[ColumnSpec, ...] = (
    ColumnSpec("status", ("Status",), strip=False),
    ColumnSpec("timestamp", ("Timestamp",)),
    ColumnSpec("link_pdf", ("Link PDF",)),
    ColumnSpec("link_pdf_non_sbo", ("Link PDF Non-SBO", "Link PDF NonSBO")),
    ColumnSpec("coordinator_email", ("Pemberi Persetujuan Koordinator",)),
    ColumnSpec("coordinator_time", ("Waktu Persetujuan Koordinator",)),
    ColumnSpec("manager_email", ("Pemberi Persetujuan Manager",)),
    ColumnSpec("manager_time", ("Waktu Persetujuan Manager",)),
    ColumnSpec("creator_email", ("Email_Pembuat", "Email Pembuat")),
    ColumnSpec("ulok", ("Nomor Ulok",)),
    ColumnSpec("project", ("Proyek",)),
    ColumnSpec("address", ("Alamat",)),
    ColumnSpec("branch", ("Cabang",)),
    ColumnSpec("scope", ("Lingkup_Pekerjaan", "Lingkup Pekerjaan")),
    ColumnSpec("link_pdf_rekap", ("Link PDF Rekapitulasi",), required=False),
    ColumnSpec("store_name", ("Nama_Toko", "Nama Toko"), required=False),
)

SPK_SCHEMA: Tuple[ColumnSpec, ...] = (
    ColumnSpec("status", ("Status",), strip=False),
    ColumnSpec("ulok", ("Nomor Ulok",)),
    ColumnSpec("scope", ("Lingkup Pekerjaan", "Lingkup_Pekerjaan")),
    ColumnSpec("branch", ("Cabang",)),
    ColumnSpec("submitter_email", ("Dibuat Oleh",)),
    ColumnSpec("project", ("Proyek", "Jenis_Toko"), required=False),
    ColumnSpec("store_name", ("Nama_Toko", "Nama Toko"), required=False),
    ColumnSpec("store_code", ("Kode Toko",), required=False),
    ColumnSpec("approver_email", ("Disetujui Oleh",), required=False),
    ColumnSpec("approval_time", ("Waktu Persetujuan",), required=False),
    ColumnSpec("link_pdf", ("Link PDF",), required=False),
    ColumnSpec("rejection_reason", ("Alasan Penolakan",), required=False),
)

DIRECTORY_SCHEMA: Tuple[ColumnSpec, ...] = (
    ColumnSpec("branch", ("CABANG",)),
    ColumnSpec("title", ("JABATAN",)),
    ColumnSpec("email", ("EMAIL_SAT",)),
)


class _SheetRecord:
    """Shared constructor for row-backed records."""

    @classmethod
    def from_fields(cls, row_number: int, values: Dict[str, str]):
        names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        return cls(row_number=row_number, **{k: v for k, v in values.items() if k in names})


@dataclass(frozen=True)
class ApprovalRecord(_SheetRecord):
    """
    A RAB submission row from the form2 sheet.

    Attributes:
        row_number: 1-based sheet row, used in approval callback links.
        status: Workflow status string.
        coordinator_email: Coordinator who approved earlier, if any.
        manager_email: Manager who approved earlier, if any.
        creator_email: Contractor who submitted the RAB.
    """
    row_number: int
    status: str = ""
    ulok: str = ""
    scope: str = ""
    project: str = ""
    address: str = ""
    branch: str = ""
    store_name: str = ""
    creator_email: str = ""
    coordinator_email: str = ""
    coordinator_time: str = ""
    manager_email: str = ""
    manager_time: str = ""
    timestamp: str = ""
    link_pdf: str = ""
    link_pdf_non_sbo: str = ""
    link_pdf_rekap: str = ""


@dataclass(frozen=True)
class SpkRecord(_SheetRecord):
    """An SPK submission row from the SPK_Data sheet."""
    row_number: int
    status: str = ""
    ulok: str = ""
    scope: str = ""
    project: str = ""
    branch: str = ""
    store_name: str = ""
    store_code: str = ""
    submitter_email: str = ""
    approver_email: str = ""
    approval_time: str = ""
    link_pdf: str = ""
    rejection_reason: str = ""


@dataclass(frozen=True)
class DirectoryEntry:
    """A person in the Cabang directory sheet."""
    branch: str
    title: str
    email: str
