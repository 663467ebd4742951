"""
Test Configuration and Fixtures.

Provides shared fixtures for all tests. Google APIs are replaced by
the in-memory fakes from fakes.py, wired through the real
repositories and services.
"""

from typing import Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from flask import Flask
from flask.testing import FlaskClient
from google.oauth2.credentials import Credentials

from approval_resender.app import create_app
from approval_resender.config import LinkSettings
from approval_resender.infrastructure.credentials import (
    CredentialMeta,
    CredentialStore,
    ResolvedCredential,
)
from approval_resender.infrastructure.sheets import (
    ApprovalRecordRepository,
    DirectoryRepository,
    SpkRecordRepository,
)
from approval_resender.services import (
    AttachmentFetcher,
    Notifier,
    OAuthDiagnosticsService,
    RabResendService,
    ServiceContainer,
    SpkResendService,
)
from fakes import (
    DIRECTORY_HEADER,
    DIRECTORY_RANGE,
    FORM_RANGE,
    NON_SBO_FILE_ID,
    RAB_HEADER,
    REKAP_FILE_ID,
    SBO_FILE_ID,
    SHEET_ID,
    SPK_FILE_ID,
    SPK_HEADER,
    SPK_RANGE,
    FakeDriveSource,
    FakeGmailClient,
    FakeSheetsClient,
    directory_row,
)


@pytest.fixture
def make_credential() -> Callable[..., ResolvedCredential]:
    """Factory for resolved credentials that never touch the network."""
    def factory(label: str = "doc", source: Optional[str] = None) -> ResolvedCredential:
        return ResolvedCredential(
            label=label,
            credentials=Credentials(
                token=None,
                refresh_token=f"{label}-refresh",
                client_id=f"{label}-client",
                client_secret=f"{label}-secret",
                token_uri="https://oauth2.googleapis.com/token",
            ),
            meta=CredentialMeta(
                source=source or f"env:{label.upper()}_REFRESH_TOKEN",
                token_file_found=source is not None,
                has_refresh_token=True,
            ),
        )
    return factory


@pytest.fixture
def links() -> LinkSettings:
    return LinkSettings(
        backend_base_url="https://backend.test",
        materai_upload_url="https://materai.test/login",
        spk_form_url="https://spk.test",
    )


@pytest.fixture
def directory_rows() -> List[List[str]]:
    """Cabang sheet with two branches."""
    return [
        DIRECTORY_HEADER,
        directory_row("BANDUNG", "BRANCH BUILDING COORDINATOR", "coord1@x.com"),
        directory_row(" bandung ", "branch building coordinator", "coord2@x.com"),
        directory_row("BANDUNG", "BRANCH BUILDING & MAINTENANCE MANAGER", "manager@x.com"),
        directory_row("BANDUNG", "BRANCH MANAGER", "bm@x.com"),
        directory_row("JAKARTA", "BRANCH BUILDING COORDINATOR", "jkt-coord@x.com"),
    ]


@pytest.fixture
def sheets(directory_rows) -> FakeSheetsClient:
    return FakeSheetsClient({
        FORM_RANGE: [RAB_HEADER],
        SPK_RANGE: [SPK_HEADER],
        DIRECTORY_RANGE: directory_rows,
    })


@pytest.fixture
def drive_files() -> Dict[str, bytes]:
    return {
        SBO_FILE_ID: b"%PDF-1.4 sbo",
        NON_SBO_FILE_ID: b"%PDF-1.4 non-sbo",
        REKAP_FILE_ID: b"%PDF-1.4 rekap",
        SPK_FILE_ID: b"%PDF-1.4 spk",
    }


@pytest.fixture
def drive_sources(drive_files) -> List[FakeDriveSource]:
    """Primary identity sees nothing; the fallback sees every file."""
    return [FakeDriveSource("doc"), FakeDriveSource("sparta", drive_files)]


@pytest.fixture
def gmail() -> FakeGmailClient:
    return FakeGmailClient()


@pytest.fixture
def notifier(gmail) -> Notifier:
    return Notifier(gmail, sender_email="sparta@test.id", sender_name="Sparta System")


@pytest.fixture
def directory(sheets) -> DirectoryRepository:
    return DirectoryRepository(sheets, SHEET_ID, DIRECTORY_RANGE)


@pytest.fixture
def rab_service(sheets, directory, drive_sources, notifier, links) -> RabResendService:
    return RabResendService(
        ApprovalRecordRepository(sheets, SHEET_ID, FORM_RANGE),
        directory,
        AttachmentFetcher(drive_sources),
        notifier,
        links,
    )


@pytest.fixture
def spk_service(sheets, directory, drive_sources, notifier, links) -> SpkResendService:
    return SpkResendService(
        SpkRecordRepository(sheets, SHEET_ID, SPK_RANGE),
        directory,
        AttachmentFetcher(drive_sources),
        notifier,
        links,
    )


@pytest.fixture
def diagnostics(make_credential) -> OAuthDiagnosticsService:
    store = CredentialStore({
        "doc": make_credential("doc", source="file:/etc/secrets/token_doc.json"),
        "sparta": make_credential("sparta"),
    })
    return OAuthDiagnosticsService(
        store,
        inspector=lambda credential: {
            "ok": True,
            "message": "OK",
            "scopes": [f"https://www.googleapis.com/auth/{credential.label}"],
        },
    )


@pytest.fixture
def mock_container() -> MagicMock:
    """Container whose services are mocks."""
    return MagicMock()


@pytest.fixture
def app(mock_container) -> Flask:
    """Create test Flask application backed by mocked services."""
    test_config = {
        "TESTING": True,
    }
    return create_app(test_config, container=mock_container)


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()


@pytest.fixture
def wired_client(rab_service, spk_service, diagnostics) -> FlaskClient:
    """Test client backed by real services over fake Google APIs."""
    container = ServiceContainer(
        rab_service=rab_service,
        spk_service=spk_service,
        diagnostics=diagnostics,
    )
    return create_app({"TESTING": True}, container=container).test_client()
