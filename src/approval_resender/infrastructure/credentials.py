"""
OAuth credential resolution.

Each credential set ("doc", "sparta") is an authorized-user refresh
token. Values come from a token JSON file when one is mounted, with
per-field fallback to environment variables.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2.credentials import Credentials

from approval_resender.config import CredentialSettings, env_value
from approval_resender.core.exceptions import ConfigurationError, CredentialError
from approval_resender.infrastructure.logging import get_logger


logger = get_logger(__name__)


TOKEN_INFO_URL = "https://oauth2.googleapis.com/tokeninfo"

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


def candidate_paths(file_name: str) -> List[Path]:
    """Locations searched for a token file, in priority order."""
    cwd = Path.cwd()
    return [
        Path("/etc/secrets") / file_name,
        cwd / file_name,
        _PACKAGE_DIR / file_name,
        cwd / "server" / file_name,
    ]


def find_token_file(
    file_name: str,
    search_paths: Optional[Iterable[Path]] = None,
) -> Optional[Path]:
    """Return the first existing candidate path for file_name."""
    paths = search_paths if search_paths is not None else candidate_paths(file_name)
    for path in paths:
        if path.is_file():
            return path
    return None


def read_token_file(
    file_name: str,
    search_paths: Optional[Iterable[Path]] = None,
) -> Tuple[Optional[Dict[str, Any]], Optional[Path]]:
    """
    Load an authorized-user token file.

    Returns:
        (parsed data or None, path or None). A file that exists but
        does not parse yields (None, path).
    """
    path = find_token_file(file_name, search_paths)
    if path is None:
        return None, None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(
            f"Could not parse token file {path}: {e}",
            extra={"extra_fields": {"path": str(path)}}
        )
        return None, path

    if not isinstance(data, dict):
        logger.warning(
            f"Token file {path} is not a JSON object",
            extra={"extra_fields": {"path": str(path)}}
        )
        return None, path

    return data, path


@dataclass(frozen=True)
class CredentialMeta:
    """Diagnostics about where a credential set came from."""
    source: str
    token_file_found: bool
    has_refresh_token: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "tokenFileFound": self.token_file_found,
            "hasRefreshToken": self.has_refresh_token,
        }


@dataclass(frozen=True)
class ResolvedCredential:
    """A usable OAuth credential plus its diagnostics."""
    label: str
    credentials: Credentials
    meta: CredentialMeta


def resolve_credential(
    config: CredentialSettings,
    search_paths: Optional[Iterable[Path]] = None,
) -> ResolvedCredential:
    """
    Build an OAuth credential from a token file and/or the environment.

    Args:
        config: Token file name and environment variable names.
        search_paths: Override of the token file search locations.

    Returns:
        ResolvedCredential.

    Raises:
        CredentialError: If client id, secret or refresh token is missing.
    """
    token_data, token_path = read_token_file(config.token_file, search_paths)
    token_data = token_data or {}

    client_id = token_data.get("client_id") or env_value(config.env_client_id)
    client_secret = token_data.get("client_secret") or env_value(config.env_client_secret)
    refresh_token = token_data.get("refresh_token") or env_value(config.env_refresh_token)

    if not (client_id and client_secret and refresh_token):
        raise CredentialError(
            config.label,
            f"Kredensial {config.label.upper()} tidak lengkap. Cek {config.token_file} "
            f"atau env {config.env_client_id}/{config.env_client_secret}/"
            f"{config.env_refresh_token}.",
        )

    credentials = Credentials(
        token=None,
        refresh_token=refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        token_uri=token_data.get("token_uri") or config.token_uri,
    )

    source = f"file:{token_path}" if token_data else f"env:{config.env_refresh_token}"
    meta = CredentialMeta(
        source=source,
        token_file_found=token_path is not None,
        has_refresh_token=bool(refresh_token),
    )

    logger.info(
        f"Credential set {config.label} resolved from {source}",
        extra={"extra_fields": {"label": config.label, "source": source}}
    )

    return ResolvedCredential(label=config.label, credentials=credentials, meta=meta)


class CredentialStore:
    """Resolved credential sets keyed by label."""

    def __init__(self, credentials: Mapping[str, ResolvedCredential]) -> None:
        self._credentials = dict(credentials)

    @classmethod
    def from_settings(
        cls,
        configs: Sequence[CredentialSettings],
        search_dirs: Optional[Iterable[Path]] = None,
    ) -> "CredentialStore":
        """Resolve every configured credential set; any gap is fatal."""
        paths = list(search_dirs) if search_dirs is not None else None
        resolved = {}
        for config in configs:
            config_paths = [p / config.token_file for p in paths] if paths is not None else None
            resolved[config.label] = resolve_credential(config, config_paths)
        return cls(resolved)

    @property
    def labels(self) -> List[str]:
        return list(self._credentials)

    def get(self, label: str) -> ResolvedCredential:
        """
        Look up a credential set.

        Raises:
            ConfigurationError: If the label is not a configured set.
        """
        try:
            return self._credentials[label]
        except KeyError:
            raise ConfigurationError(
                f"credentials:{label}",
                f"Unknown credential set '{label}' (known: {', '.join(self._credentials)})",
            ) from None


def _detached_copy(credentials: Credentials) -> Credentials:
    """A fresh, never-refreshed Credentials with the same refresh token."""
    return Credentials(
        token=None,
        refresh_token=credentials.refresh_token,
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
        token_uri=credentials.token_uri,
        scopes=credentials.scopes,
    )


def describe_scopes(
    credential: ResolvedCredential,
    session: Optional[requests.Session] = None,
    timeout: int = 15,
) -> Dict[str, Any]:
    """
    Refresh the access token and ask Google which scopes it carries.

    Diagnostic only: failures are reported in the result, never raised.
    The refresh runs on a copy, leaving the credentials shared with the
    API clients untouched.

    Returns:
        {"ok": bool, "message": str, "scopes": [str, ...]}
    """
    if session is None:
        with requests.Session() as owned:
            return describe_scopes(credential, owned, timeout)

    scratch = _detached_copy(credential.credentials)
    try:
        scratch.refresh(GoogleAuthRequest(session))
        access_token = scratch.token
        if not access_token:
            return {"ok": False, "message": "Tidak bisa mengambil access token.", "scopes": []}

        response = session.get(
            TOKEN_INFO_URL,
            params={"access_token": access_token},
            timeout=timeout,
        )
        response.raise_for_status()
        info = response.json()
    except (GoogleAuthError, requests.exceptions.RequestException, ValueError) as e:
        logger.warning(
            f"Scope introspection failed for {credential.label}: {e}",
            extra={"extra_fields": {"label": credential.label, "error_type": type(e).__name__}}
        )
        return {"ok": False, "message": str(e), "scopes": []}

    scopes = info.get("scopes")
    if not isinstance(scopes, list):
        scopes = [s.strip() for s in str(info.get("scope", "")).split(" ") if s.strip()]

    return {"ok": True, "message": "OK", "scopes": scopes}
