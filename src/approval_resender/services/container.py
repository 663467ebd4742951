"""
Service Container.

Wires credentials, Google clients, repositories and services from
Settings. The Flask app receives a container instead of reaching for
module-level globals, so tests can hand in fakes.
"""

from dataclasses import dataclass
from typing import Optional

from approval_resender.config import Settings, settings as default_settings
from approval_resender.infrastructure.credentials import CredentialStore
from approval_resender.infrastructure.http import DriveClient, GmailClient, SheetsClient
from approval_resender.infrastructure.logging import get_logger
from approval_resender.infrastructure.sheets import (
    ApprovalRecordRepository,
    DirectoryRepository,
    SpkRecordRepository,
)
from approval_resender.services.attachments import AttachmentFetcher
from approval_resender.services.diagnostics import OAuthDiagnosticsService
from approval_resender.services.notifier import Notifier
from approval_resender.services.resend import RabResendService, SpkResendService


logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything a request handler needs."""
    rab_service: RabResendService
    spk_service: SpkResendService
    diagnostics: OAuthDiagnosticsService

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        credentials: Optional[CredentialStore] = None,
    ) -> "ServiceContainer":
        """
        Build the production object graph.

        Args:
            config: Settings; defaults to the environment-derived singleton.
            credentials: Pre-resolved credentials; resolved from config if omitted.

        Raises:
            CredentialError: If a credential set is incomplete.
            ConfigurationError: If routing names an unknown credential set.
        """
        config = config or default_settings
        credentials = credentials or CredentialStore.from_settings(config.credentials)

        sheets = SheetsClient(
            credentials.get(config.routing.sheets),
            timeout=config.sheets.timeout_seconds,
        )
        gmail = GmailClient(
            credentials.get(config.routing.gmail),
            timeout=config.mail.timeout_seconds,
        )
        fetcher = AttachmentFetcher([
            DriveClient(credentials.get(label), timeout=config.drive.timeout_seconds)
            for label in config.routing.drive
        ])
        notifier = Notifier(
            gmail,
            sender_email=config.mail.sender_email,
            sender_name=config.mail.sender_name,
        )
        directory = DirectoryRepository(
            sheets, config.sheets.spreadsheet_id, config.sheets.directory_range,
        )

        logger.info(
            "Service container built",
            extra={"extra_fields": {
                "sheets_credential": config.routing.sheets,
                "gmail_credential": config.routing.gmail,
                "drive_credentials": list(config.routing.drive),
            }}
        )

        return cls(
            rab_service=RabResendService(
                ApprovalRecordRepository(
                    sheets, config.sheets.spreadsheet_id, config.sheets.form_range,
                ),
                directory,
                fetcher,
                notifier,
                config.links,
            ),
            spk_service=SpkResendService(
                SpkRecordRepository(
                    sheets, config.sheets.spk_spreadsheet_id, config.sheets.spk_range,
                ),
                directory,
                fetcher,
                notifier,
                config.links,
            ),
            diagnostics=OAuthDiagnosticsService(credentials),
        )
