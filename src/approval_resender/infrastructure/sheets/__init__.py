"""
Sheets Infrastructure Package.

Exports:
- Data models (ApprovalRecord, SpkRecord, DirectoryEntry)
- Header binding (HeaderMap, ColumnSpec)
- Repositories and directory helpers
"""

from approval_resender.infrastructure.sheets.models import (
    DIRECTORY_SCHEMA,
    RAB_FORM_SCHEMA,
    SPK_SCHEMA,
    ApprovalRecord,
    BoundSchema,
    ColumnSpec,
    DirectoryEntry,
    HeaderMap,
    SpkRecord,
)
from approval_resender.infrastructure.sheets.repositories import (
    ApprovalRecordRepository,
    DirectoryRepository,
    RecordRepository,
    SpkRecordRepository,
    emails_for,
    find_title_emails,
    matching_entries,
    split_submitter,
)


__all__ = [
    # Models
    "DIRECTORY_SCHEMA",
    "RAB_FORM_SCHEMA",
    "SPK_SCHEMA",
    "ApprovalRecord",
    "BoundSchema",
    "ColumnSpec",
    "DirectoryEntry",
    "HeaderMap",
    "SpkRecord",
    # Repositories
    "ApprovalRecordRepository",
    "DirectoryRepository",
    "RecordRepository",
    "SpkRecordRepository",
    "emails_for",
    "find_title_emails",
    "matching_entries",
    "split_submitter",
]
