"""Core package - Pure business logic with no external dependencies."""

from approval_resender.core.exceptions import (
    BusinessError,
    ConfigurationError,
    CredentialError,
    DriveError,
    ExternalServiceError,
    GmailError,
    InfrastructureError,
    MissingBranchError,
    RecipientNotFoundError,
    RecordNotFoundError,
    ResenderError,
    SchemaMismatchError,
    SheetsError,
)
from approval_resender.core.normalization import (
    cell_text,
    extract_file_id,
    normalize_label,
    normalize_scope,
    normalize_ulok,
    unique_emails,
)
from approval_resender.core.result import Lookup, LookupStatus
from approval_resender.core.routing import (
    ApprovalStage,
    JobTitle,
    RabStatus,
    RouteDecision,
    SpkStatus,
    route_rab_status,
    route_spk_status,
)

__all__ = [
    # Exceptions
    "BusinessError",
    "ConfigurationError",
    "CredentialError",
    "DriveError",
    "ExternalServiceError",
    "GmailError",
    "InfrastructureError",
    "MissingBranchError",
    "RecipientNotFoundError",
    "RecordNotFoundError",
    "ResenderError",
    "SchemaMismatchError",
    "SheetsError",
    # Normalization
    "cell_text",
    "extract_file_id",
    "normalize_label",
    "normalize_scope",
    "normalize_ulok",
    "unique_emails",
    # Results
    "Lookup",
    "LookupStatus",
    # Routing
    "ApprovalStage",
    "JobTitle",
    "RabStatus",
    "RouteDecision",
    "SpkStatus",
    "route_rab_status",
    "route_spk_status",
]
