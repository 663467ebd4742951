"""
Custom exceptions for the approval resender service.

Provides a hierarchy of business and infrastructure exceptions
for proper error handling and HTTP status code mapping.
"""

from typing import Optional, Sequence


class ResenderError(Exception):
    """Base exception for all resender errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Business Errors (4xx)
# =============================================================================

class BusinessError(ResenderError):
    """Base exception for business logic errors (typically 4xx)."""
    pass


class RecordNotFoundError(BusinessError):
    """Raised when no sheet row matches the ulok + lingkup key."""

    def __init__(self, reason: str, ulok: str = "", lingkup: str = ""):
        super().__init__(
            reason,
            {"ulok": ulok, "lingkup": lingkup}
        )


class RecipientNotFoundError(BusinessError):
    """Raised when no email address can be resolved for a send."""

    def __init__(self, message: str, titles: Sequence[str] = (), branch: Optional[str] = None):
        super().__init__(
            message,
            {"titles": list(titles), "branch": branch}
        )
        self.titles = tuple(titles)
        self.branch = branch


class MissingBranchError(BusinessError):
    """Raised when the located row has an empty branch column."""

    def __init__(self, row_number: int):
        super().__init__(
            "Kolom cabang kosong.",
            {"row": row_number}
        )
        self.row_number = row_number


# =============================================================================
# Infrastructure Errors (5xx)
# =============================================================================

class InfrastructureError(ResenderError):
    """Base exception for infrastructure errors (typically 5xx)."""
    pass


class ConfigurationError(InfrastructureError):
    """Raised when a required configuration is missing."""

    def __init__(self, config_name: str, message: Optional[str] = None):
        msg = message or f"Configuration missing: {config_name}"
        super().__init__(msg, {"config_name": config_name})
        self.config_name = config_name


class CredentialError(ConfigurationError):
    """Raised when an OAuth credential set cannot be assembled."""

    def __init__(self, label: str, message: str):
        super().__init__(f"credentials:{label}", message)
        self.label = label


class SchemaMismatchError(InfrastructureError):
    """Raised when a sheet header row lacks a required column."""

    def __init__(self, sheet: str, missing: Sequence[str]):
        super().__init__(
            f"Sheet {sheet} is missing required columns: {', '.join(missing)}",
            {"sheet": sheet, "missing": list(missing)}
        )
        self.sheet = sheet
        self.missing = tuple(missing)


class ExternalServiceError(InfrastructureError):
    """Raised when an external service call fails."""

    def __init__(
        self,
        service_name: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            f"{service_name} error: {message}",
            {
                "service_name": service_name,
                "status_code": status_code,
            }
        )
        self.service_name = service_name
        self.status_code = status_code


class SheetsError(ExternalServiceError):
    """Raised when a Google Sheets API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("Sheets", message, status_code)


class DriveError(ExternalServiceError):
    """Raised when a Google Drive API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("Drive", message, status_code)


class GmailError(ExternalServiceError):
    """Raised when a Gmail API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("Gmail", message, status_code)
