"""
Flask API Routes.

Defines all HTTP endpoints for the approval resender service.
"""

from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, current_app, request
from pydantic import ValidationError as PydanticValidationError

from approval_resender import __version__
from approval_resender.api.validation import MISSING_KEY_MESSAGE, ResendEmailRequest
from approval_resender.core.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    MissingBranchError,
    RecipientNotFoundError,
    RecordNotFoundError,
    SchemaMismatchError,
)
from approval_resender.infrastructure.logging import get_logger
from approval_resender.infrastructure.metrics import metrics_endpoint


logger = get_logger(__name__)


api_bp = Blueprint("api", __name__)

EXTENSION_KEY = "approval_resender"
INTERNAL_ERROR_MESSAGE = "Terjadi kesalahan internal server."


def _error_response(
    message: str,
    status_code: int,
    error_type: str = "error",
    details: Optional[str] = None,
) -> Tuple[Dict[str, Any], int]:
    """Create standardized error response."""
    body: Dict[str, Any] = {
        "error": message,
        "error_type": error_type,
    }
    if details is not None:
        body["details"] = details
    return body, status_code


def _container():
    return current_app.extensions[EXTENSION_KEY]


def _resend(flow: str, service) -> Tuple[Dict[str, Any], int]:
    """Validate the body, run one resend flow and map errors to status codes."""
    data = request.get_json(silent=True) or {}

    try:
        validated = ResendEmailRequest(**data)
    except (PydanticValidationError, TypeError):
        return _error_response(MISSING_KEY_MESSAGE, 400, "validation_error")

    try:
        result = service.resend(validated.ulok, validated.lingkup)
        return result.to_response(), 200

    except (RecordNotFoundError, RecipientNotFoundError) as e:
        logger.warning(
            f"Resend {flow} not found: {e}",
            extra={"extra_fields": {
                "ulok": validated.ulok,
                "lingkup": validated.lingkup,
                "details": e.details,
            }}
        )
        return _error_response(str(e), 404, "not_found")
    except MissingBranchError as e:
        logger.warning(
            f"Resend {flow} rejected: {e}",
            extra={"extra_fields": {"ulok": validated.ulok, "details": e.details}}
        )
        return _error_response(str(e), 400, "missing_branch")
    except (ConfigurationError, SchemaMismatchError) as e:
        logger.error(
            f"Configuration error during {flow} resend: {e}",
            extra={"extra_fields": {"error_type": type(e).__name__, "details": e.details}}
        )
        return _error_response(INTERNAL_ERROR_MESSAGE, 500, "configuration_error", str(e))
    except ExternalServiceError as e:
        logger.error(
            f"External service error during {flow} resend: {e}",
            extra={"extra_fields": {
                "error_type": type(e).__name__,
                "details": e.details,
            }}
        )
        return _error_response(INTERNAL_ERROR_MESSAGE, 500, "external_service_error", str(e))
    except Exception as e:
        logger.exception(
            f"Unexpected error during {flow} resend: {e}",
            extra={"extra_fields": {"error_type": type(e).__name__}}
        )
        return _error_response(INTERNAL_ERROR_MESSAGE, 500, "internal_error", str(e))


# ============================================================================
# Health Check
# ============================================================================

@api_bp.route("/health", methods=["GET"])
def health_check() -> Tuple[Dict[str, Any], int]:
    """
    Liveness probe for the hosting platform.

    Returns:
        Health status response.
    """
    return {
        "status": "healthy",
        "service": "approval-resender",
        "version": __version__,
    }, 200


@api_bp.route("/", methods=["GET"])
def root() -> Tuple[Dict[str, Any], int]:
    """Root endpoint, same payload as /health."""
    return health_check()


@api_bp.route("/metrics", methods=["GET"])
def metrics():
    """
    Prometheus metrics endpoint.
    """
    return metrics_endpoint()


# ============================================================================
# Resend Endpoints
# ============================================================================

@api_bp.route("/api/resend-email", methods=["POST"])
def resend_rab_email() -> Tuple[Dict[str, Any], int]:
    """
    Resend the RAB approval email matching the row's current status.

    Request Body:
        ulok (str): Nomor Ulok.
        lingkup (str): Lingkup Pekerjaan.

    Returns:
        Send summary, or an informational message when the status
        does not call for an email.
    """
    return _resend("rab", _container().rab_service)


@api_bp.route("/api/resend-email-spk", methods=["POST"])
def resend_spk_email() -> Tuple[Dict[str, Any], int]:
    """
    Resend the SPK approval, final or rejection email.

    Request Body:
        ulok (str): Nomor Ulok.
        lingkup (str): Lingkup Pekerjaan.
    """
    return _resend("spk", _container().spk_service)


# ============================================================================
# Diagnostics
# ============================================================================

@api_bp.route("/api/debug/oauth-clients", methods=["GET"])
def debug_oauth_clients() -> Tuple[Dict[str, Any], int]:
    """
    Report credential sources and granted scopes for each OAuth client.
    """
    try:
        return _container().diagnostics.report(), 200
    except Exception as e:
        logger.exception(
            f"OAuth diagnostics failed: {e}",
            extra={"extra_fields": {"error_type": type(e).__name__}}
        )
        return _error_response(
            "Gagal membaca status OAuth client.", 500, "internal_error", str(e),
        )
