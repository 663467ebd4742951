"""
OAuth Diagnostics.

Reports where each credential set came from and which scopes its
refresh token actually grants.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict

from approval_resender.infrastructure.credentials import (
    CredentialStore,
    ResolvedCredential,
    describe_scopes,
)


ScopeInspector = Callable[[ResolvedCredential], Dict[str, Any]]


class OAuthDiagnosticsService:
    """Builds the /api/debug/oauth-clients payload."""

    def __init__(
        self,
        credentials: CredentialStore,
        inspector: ScopeInspector = describe_scopes,
    ) -> None:
        self._credentials = credentials
        self._inspector = inspector

    def report(self) -> Dict[str, Dict[str, Any]]:
        """
        Describe every credential set.

        Scope introspection runs concurrently, one worker per set.
        """
        resolved = [self._credentials.get(label) for label in self._credentials.labels]
        if not resolved:
            return {}

        with ThreadPoolExecutor(max_workers=len(resolved)) as pool:
            scope_infos = list(pool.map(self._inspector, resolved))

        return {
            credential.label: {**credential.meta.to_dict(), "scopeInfo": scope_info}
            for credential, scope_info in zip(resolved, scope_infos)
        }
