"""
Google REST API base client.

Wraps google-auth's AuthorizedSession (a requests.Session that
refreshes the OAuth access token on demand) with connection pooling
and uniform error translation.
"""

from typing import Any, Optional, Type

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from requests.adapters import HTTPAdapter

from approval_resender.core.exceptions import ExternalServiceError
from approval_resender.infrastructure.credentials import ResolvedCredential
from approval_resender.infrastructure.logging import get_logger
from approval_resender.infrastructure.metrics import get_metrics


logger = get_logger(__name__)


class GoogleApiClient:
    """
    Base class for the Sheets, Drive and Gmail clients.

    Subclasses set ``service_name`` and ``error_class``. No automatic
    retries are mounted: a failed call surfaces to the caller.
    """

    service_name = "google"
    error_class: Type[ExternalServiceError] = ExternalServiceError

    def __init__(
        self,
        credential: ResolvedCredential,
        timeout: int = 30,
    ) -> None:
        """
        Initialize the client.

        Args:
            credential: OAuth credential set used for every call.
            timeout: Request timeout in seconds.
        """
        self._credential = credential
        self._timeout = timeout
        self._session = self._build_session()

    def _build_session(self) -> requests.Session:
        """
        Create the authorized HTTP session.

        Built once per client; the container shares each client across
        request threads.
        """
        session = AuthorizedSession(self._credential.credentials)

        adapter = HTTPAdapter(pool_connections=5, pool_maxsize=5)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({"Accept": "application/json"})
        return session

    @property
    def label(self) -> str:
        """Label of the credential set this client calls with."""
        return self._credential.label

    @property
    def session(self) -> requests.Session:
        """The authorized HTTP session."""
        return self._session

    def _error(self, message: str, status_code: Optional[int] = None) -> ExternalServiceError:
        if self.error_class is ExternalServiceError:
            return ExternalServiceError(self.service_name, message, status_code)
        return self.error_class(message, status_code)

    def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> requests.Response:
        """
        Make an authorized HTTP request.

        Args:
            method: HTTP method.
            url: Absolute API URL.
            **kwargs: Additional request arguments.

        Returns:
            The successful response.

        Raises:
            ExternalServiceError: Subclass-specific error on any failure.
        """
        metrics = get_metrics()
        fields = {"service": self.service_name, "credential": self.label}

        try:
            response = self.session.request(
                method,
                url,
                timeout=self._timeout,
                **kwargs,
            )
            response.raise_for_status()

        except GoogleAuthError as e:
            metrics.external_requests_total.inc(service=self.service_name, status="auth_error")
            logger.error(
                f"{self.service_name} token refresh failed via {self.label}: {e}",
                extra={"extra_fields": fields}
            )
            raise self._error(f"token refresh failed via {self.label}: {e}") from e

        except requests.exceptions.Timeout as e:
            metrics.external_requests_total.inc(service=self.service_name, status="timeout")
            logger.error(
                f"{self.service_name} timeout",
                extra={"extra_fields": {**fields, "timeout": self._timeout}}
            )
            raise self._error(f"timeout: {e}") from e

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code
            metrics.external_requests_total.inc(service=self.service_name, status=str(status_code))
            logger.error(
                f"{self.service_name} HTTP error: {status_code}",
                extra={"extra_fields": {
                    **fields,
                    "status_code": status_code,
                    "response_body": e.response.text[:500] if e.response.text else None,
                }}
            )
            raise self._error(
                f"HTTP {status_code}: {e.response.text[:500]}", status_code
            ) from e

        except requests.exceptions.RequestException as e:
            metrics.external_requests_total.inc(service=self.service_name, status="error")
            logger.error(
                f"{self.service_name} request failed: {e}",
                extra={"extra_fields": {**fields, "error_type": type(e).__name__}}
            )
            raise self._error(f"request failed: {e}") from e

        metrics.external_requests_total.inc(service=self.service_name, status="success")
        return response
